"""
Rate Version API Endpoints.

Create, edit, list and resolve time-bounded rate versions.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.haulbook.core.clock import get_today
from backend.haulbook.core.dependencies import get_actor_username
from backend.haulbook.db.session import get_db
from backend.haulbook.domain.rates.party_key import RatePartyKey
from backend.haulbook.domain.rates.rate_version_service import RateVersionService
from backend.haulbook.models.rate_enums import RatePartyType
from backend.haulbook.schemas.rate_version import (
    RateVersionCreate, RateVersionUpdate, RateVersionResponse
)

router = APIRouter(prefix="/rate-versions", tags=["Rate Versions"])


@router.post("", response_model=RateVersionResponse, status_code=status.HTTP_201_CREATED)
async def create_rate_version(
    payload: RateVersionCreate,
    today: date = Depends(get_today),
    actor_username: Optional[str] = Depends(get_actor_username),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a rate version.

    An earlier version still running on the new start date is closed the day
    before; a clash with a later version is rejected with 409.
    """
    key = RatePartyKey(
        rate_party_type=payload.rate_party_type,
        rate_party_id=payload.rate_party_id,
        material_type_id=payload.material_type_id,
        pickup_location_id=payload.pickup_location_id,
        drop_off_location_id=payload.drop_off_location_id,
    )
    return await RateVersionService.create_version(
        db,
        key,
        payload.effective_from,
        payload.effective_to,
        payload.model_dump(),
        today,
        actor_username=actor_username,
    )


@router.get("", response_model=List[RateVersionResponse])
async def list_rate_versions(
    rate_party_type: Optional[RatePartyType] = Query(None),
    rate_party_id: Optional[str] = Query(None),
    material_type_id: Optional[str] = Query(None),
    pickup_location_id: Optional[str] = Query(None),
    drop_off_location_id: Optional[str] = Query(None),
    today: date = Depends(get_today),
    db: AsyncSession = Depends(get_db)
):
    """List rate versions, newest start first, with statuses brought up to date."""
    return await RateVersionService.list_versions(
        db,
        today,
        rate_party_type=rate_party_type,
        rate_party_id=rate_party_id,
        material_type_id=material_type_id,
        pickup_location_id=pickup_location_id,
        drop_off_location_id=drop_off_location_id,
    )


@router.get("/resolve", response_model=RateVersionResponse)
async def resolve_rate_version(
    rate_party_type: RatePartyType = Query(...),
    rate_party_id: str = Query(...),
    material_type_id: str = Query(...),
    pickup_location_id: str = Query(...),
    drop_off_location_id: str = Query(...),
    on_date: date = Query(..., description="Date the rate must be in force"),
    db: AsyncSession = Depends(get_db)
):
    """Get the version in force on a given date (e.g. a trip date)."""
    key = RatePartyKey(
        rate_party_type=rate_party_type,
        rate_party_id=rate_party_id,
        material_type_id=material_type_id,
        pickup_location_id=pickup_location_id,
        drop_off_location_id=drop_off_location_id,
    )
    return await RateVersionService.resolve_rate(db, key, on_date)


@router.get("/{version_id}", response_model=RateVersionResponse)
async def get_rate_version(
    version_id: int = Path(..., description="Rate version ID"),
    today: date = Depends(get_today),
    db: AsyncSession = Depends(get_db)
):
    return await RateVersionService.get_version(db, version_id, today)


@router.put("/{version_id}", response_model=RateVersionResponse)
async def update_rate_version(
    payload: RateVersionUpdate,
    version_id: int = Path(..., description="Rate version ID"),
    today: date = Depends(get_today),
    actor_username: Optional[str] = Depends(get_actor_username),
    db: AsyncSession = Depends(get_db)
):
    """
    Edit a rate version.

    Editing never closes other versions; any overlap is rejected with 409.
    """
    return await RateVersionService.update_version(
        db,
        version_id,
        payload.effective_from,
        payload.effective_to,
        payload.model_dump(),
        today,
        actor_username=actor_username,
    )


@router.delete("/{version_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rate_version(
    version_id: int = Path(..., description="Rate version ID"),
    actor_username: Optional[str] = Depends(get_actor_username),
    db: AsyncSession = Depends(get_db)
):
    await RateVersionService.delete_version(db, version_id, actor_username=actor_username)
