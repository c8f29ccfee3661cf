from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class PickupLocations(Base):
    __tablename__ = 'pickup_locations'
    __table_args__ = (
        CheckConstraint(
            'default_slot_duration_minutes > 0 AND default_slot_duration_minutes <= 240 '
            'AND default_slot_duration_minutes % 15 = 0',
            name='pickup_locations_slot_duration_check',
        ),
    )

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    street_address = Column(Text, nullable=False)
    postal_code = Column(Text, nullable=False)
    parcels_max_per_day = Column(Integer)
    default_slot_duration_minutes = Column(Integer, nullable=False, server_default=text('15'))

    schedules = relationship(
        'PickupLocationSchedules',
        back_populates='pickup_location',
        cascade='all, delete-orphan',
    )
    food_parcels = relationship('FoodParcels', back_populates='pickup_location')


class PickupLocationSchedules(Base):
    __tablename__ = 'pickup_location_schedules'
    __table_args__ = (
        CheckConstraint('start_date <= end_date', name='schedule_date_range_check'),
        Index('idx_pickup_location_schedules_location', 'pickup_location_id'),
    )

    id = Column(Text, primary_key=True)
    pickup_location_id = Column(ForeignKey('pickup_locations.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    pickup_location = relationship('PickupLocations', back_populates='schedules')
    days = relationship(
        'PickupLocationScheduleDays',
        back_populates='schedule',
        cascade='all, delete-orphan',
    )


class PickupLocationScheduleDays(Base):
    __tablename__ = 'pickup_location_schedule_days'
    __table_args__ = (
        CheckConstraint(
            'NOT is_open OR (opening_time IS NOT NULL AND closing_time IS NOT NULL '
            'AND opening_time < closing_time)',
            name='opening_hours_check',
        ),
    )

    id = Column(Text, primary_key=True)
    schedule_id = Column(ForeignKey('pickup_location_schedules.id', ondelete='CASCADE'), nullable=False)
    weekday = Column(Enum(*WEEKDAYS, name='weekday'), nullable=False)
    is_open = Column(Boolean, nullable=False, server_default=text('true'))
    opening_time = Column(Time)
    closing_time = Column(Time)

    schedule = relationship('PickupLocationSchedules', back_populates='days')


class Households(Base):
    __tablename__ = 'households'

    id = Column(Text, primary_key=True)
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    phone_number = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))

    food_parcels = relationship('FoodParcels', back_populates='household')


class FoodParcels(Base):
    __tablename__ = 'food_parcels'
    __table_args__ = (
        CheckConstraint(
            'pickup_date_time_earliest <= pickup_date_time_latest',
            name='pickup_time_range_check',
        ),
        # Only one active parcel per (household, location, time window)
        Index(
            'food_parcels_household_location_time_active_unique',
            'household_id',
            'pickup_location_id',
            'pickup_date_time_earliest',
            'pickup_date_time_latest',
            unique=True,
            sqlite_where=text('deleted_at IS NULL'),
            postgresql_where=text('deleted_at IS NULL'),
        ),
    )

    id = Column(Text, primary_key=True)
    household_id = Column(ForeignKey('households.id', ondelete='CASCADE'), nullable=False)
    pickup_location_id = Column(ForeignKey('pickup_locations.id'), nullable=False)
    pickup_date_time_earliest = Column(DateTime(timezone=True), nullable=False)
    pickup_date_time_latest = Column(DateTime(timezone=True), nullable=False)
    is_picked_up = Column(Boolean, nullable=False, server_default=text('false'))
    deleted_at = Column(DateTime(timezone=True))
    deleted_by_user_id = Column(Text)

    household = relationship('Households', back_populates='food_parcels')
    pickup_location = relationship('PickupLocations', back_populates='food_parcels')
