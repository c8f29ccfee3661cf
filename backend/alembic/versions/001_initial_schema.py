"""Initial schema: pickup locations, schedule periods, households and food parcels.

- food_parcels carries a partial unique index over the active (not soft-deleted)
  rows so concurrent inserts of the same pickup window collapse into one.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def upgrade() -> None:
    op.create_table(
        "pickup_locations",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("street_address", sa.Text(), nullable=False),
        sa.Column("postal_code", sa.Text(), nullable=False),
        sa.Column("parcels_max_per_day", sa.Integer(), nullable=True),
        sa.Column("default_slot_duration_minutes", sa.Integer(), nullable=False, server_default=sa.text("15")),
        sa.CheckConstraint(
            "default_slot_duration_minutes > 0 AND default_slot_duration_minutes <= 240 "
            "AND default_slot_duration_minutes % 15 = 0",
            name="pickup_locations_slot_duration_check",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "pickup_location_schedules",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("pickup_location_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.CheckConstraint("start_date <= end_date", name="schedule_date_range_check"),
        sa.ForeignKeyConstraint(["pickup_location_id"], ["pickup_locations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_pickup_location_schedules_location", "pickup_location_schedules", ["pickup_location_id"], unique=False
    )

    op.create_table(
        "pickup_location_schedule_days",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("schedule_id", sa.Text(), nullable=False),
        sa.Column("weekday", sa.Enum(*WEEKDAYS, name="weekday"), nullable=False),
        sa.Column("is_open", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("opening_time", sa.Time(), nullable=True),
        sa.Column("closing_time", sa.Time(), nullable=True),
        sa.CheckConstraint(
            "NOT is_open OR (opening_time IS NOT NULL AND closing_time IS NOT NULL "
            "AND opening_time < closing_time)",
            name="opening_hours_check",
        ),
        sa.ForeignKeyConstraint(["schedule_id"], ["pickup_location_schedules.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "households",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("first_name", sa.Text(), nullable=False),
        sa.Column("last_name", sa.Text(), nullable=False),
        sa.Column("phone_number", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "food_parcels",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("household_id", sa.Text(), nullable=False),
        sa.Column("pickup_location_id", sa.Text(), nullable=False),
        sa.Column("pickup_date_time_earliest", sa.DateTime(timezone=True), nullable=False),
        sa.Column("pickup_date_time_latest", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_picked_up", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by_user_id", sa.Text(), nullable=True),
        sa.CheckConstraint(
            "pickup_date_time_earliest <= pickup_date_time_latest", name="pickup_time_range_check"
        ),
        sa.ForeignKeyConstraint(["household_id"], ["households.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["pickup_location_id"], ["pickup_locations.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "food_parcels_household_location_time_active_unique",
        "food_parcels",
        ["household_id", "pickup_location_id", "pickup_date_time_earliest", "pickup_date_time_latest"],
        unique=True,
        sqlite_where=sa.text("deleted_at IS NULL"),
        postgresql_where=sa.text("deleted_at IS NULL"),
    )


def downgrade() -> None:
    op.drop_index("food_parcels_household_location_time_active_unique", table_name="food_parcels")
    op.drop_table("food_parcels")
    op.drop_table("households")
    op.drop_table("pickup_location_schedule_days")
    op.drop_index("idx_pickup_location_schedules_location", table_name="pickup_location_schedules")
    op.drop_table("pickup_location_schedules")
    op.drop_table("pickup_locations")
    sa.Enum(name="weekday").drop(op.get_bind(), checkfirst=True)
