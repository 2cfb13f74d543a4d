"""
Rate Version database model.

Time-bounded pricing record for one (party, material, route) combination.
"""

from sqlalchemy import Column, Integer, String, Numeric, Boolean, Date, DateTime, Enum, Index
from sqlalchemy.sql import func
from backend.haulbook.db.session import Base
from backend.haulbook.models.rate_enums import RatePartyType, RateStatus


class RateVersion(Base):
    """
    Rate Version model.

    The party key (rate_party_type, rate_party_id, material_type_id,
    pickup_location_id, drop_off_location_id) is the versioning scope: within
    one key no two [effective_from, effective_to] intervals may overlap.
    effective_to = NULL means open-ended. Both ends are inclusive.
    """
    __tablename__ = "rate_versions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Party key (immutable after creation)
    rate_party_type = Column(Enum(RatePartyType), nullable=False)
    rate_party_id = Column(String(64), nullable=False)
    material_type_id = Column(String(64), nullable=False)
    pickup_location_id = Column(String(64), nullable=False)
    drop_off_location_id = Column(String(64), nullable=False)

    # Rate components
    total_km = Column(Numeric(12, 2), nullable=False, default=0)
    rate_per_km = Column(Numeric(14, 4), nullable=False, default=0)
    rate_per_ton = Column(Numeric(14, 4), nullable=False, default=0)
    rate_per_m3 = Column(Numeric(14, 4), nullable=False, default=0)
    gst_chargeable = Column(Boolean, nullable=False, default=False)
    gst_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    gst_amount = Column(Numeric(14, 2), nullable=False, default=0)  # Computed
    total_rate = Column(Numeric(14, 2), nullable=False, default=0)  # Computed
    remarks = Column(String(500), nullable=False, default="")

    # Validity
    effective_from = Column(Date, nullable=False)
    effective_to = Column(Date, nullable=True)
    status = Column(Enum(RateStatus), nullable=False, default=RateStatus.ACTIVE)  # Cached, see intervals.derive_status

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index(
            "ix_rate_versions_party_key",
            "rate_party_type", "rate_party_id", "material_type_id",
            "pickup_location_id", "drop_off_location_id",
        ),
        # At most one open-ended version per key, enforced by storage as well
        Index(
            "uq_rate_versions_open_ended",
            "rate_party_type", "rate_party_id", "material_type_id",
            "pickup_location_id", "drop_off_location_id",
            unique=True,
            postgresql_where=effective_to.is_(None),
            sqlite_where=effective_to.is_(None),
        ),
    )

    def __repr__(self):
        return (
            f"<RateVersion(id={self.id}, party='{self.rate_party_id}', "
            f"from={self.effective_from}, to={self.effective_to})>"
        )
