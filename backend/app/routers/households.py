# backend/app/routers/households.py

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import (
    Households as DBHouseholds,
    PickupLocations as DBPickupLocations,
)
from ..schemas.parcels import HouseholdParcelsUpdate, ParcelUpdateSummaryRead
from ..services.parcels import update_household_parcels

router = APIRouter(prefix="/households", tags=["households"])


@router.put("/{household_id}/parcels", response_model=ParcelUpdateSummaryRead)
def update_parcels(
    household_id: str,
    data: HouseholdParcelsUpdate,
    db: Session = Depends(get_db),
):
    """Replace the household's future parcels with the given pickup windows."""
    if not db.get(DBHouseholds, household_id):
        raise HTTPException(status_code=404, detail="Household not found")
    if not db.get(DBPickupLocations, data.location_id):
        raise HTTPException(status_code=404, detail="Location not found")

    try:
        summary = update_household_parcels(
            db,
            household_id=household_id,
            location_id=data.location_id,
            windows=[p.to_desired() for p in data.parcels],
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ParcelUpdateSummaryRead.model_validate(summary)
