"""
Rate version schemas.

Request and response schemas for time-bounded rate versions.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from backend.haulbook.models.rate_enums import RatePartyType, RateStatus


class RateComponents(BaseModel):
    """Editable rate components. GST amount and total are computed server-side."""
    total_km: Decimal = Field(default=Decimal("0"), ge=0)
    rate_per_km: Decimal = Field(default=Decimal("0"), ge=0)
    rate_per_ton: Decimal = Field(default=Decimal("0"), ge=0)
    rate_per_m3: Decimal = Field(default=Decimal("0"), ge=0)
    gst_chargeable: bool = False
    gst_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    remarks: str = Field(default="", max_length=500)


class RateVersionCreate(RateComponents):
    """Schema for creating a rate version."""
    rate_party_type: RatePartyType
    rate_party_id: str = Field(..., min_length=1, max_length=64)
    material_type_id: str = Field(..., min_length=1, max_length=64)
    pickup_location_id: str = Field(..., min_length=1, max_length=64)
    drop_off_location_id: str = Field(..., min_length=1, max_length=64)
    effective_from: date
    effective_to: Optional[date] = None  # None = open-ended


class RateVersionUpdate(RateComponents):
    """Schema for editing a rate version. The party key cannot change."""
    effective_from: date
    effective_to: Optional[date] = None


class RateVersionResponse(BaseModel):
    """Schema for displaying a rate version."""
    id: int
    rate_party_type: RatePartyType
    rate_party_id: str
    material_type_id: str
    pickup_location_id: str
    drop_off_location_id: str
    total_km: Decimal
    rate_per_km: Decimal
    rate_per_ton: Decimal
    rate_per_m3: Decimal
    gst_chargeable: bool
    gst_percentage: Decimal
    gst_amount: Decimal
    total_rate: Decimal
    remarks: str
    effective_from: date
    effective_to: Optional[date]
    status: RateStatus
    created_at: datetime

    class Config:
        from_attributes = True
