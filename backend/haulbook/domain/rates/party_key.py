"""
Rate party key: the scope inside which rate versions must not overlap.
"""

from typing import NamedTuple

from backend.haulbook.models.rate_enums import RatePartyType


class RatePartyKey(NamedTuple):
    rate_party_type: RatePartyType
    rate_party_id: str
    material_type_id: str
    pickup_location_id: str
    drop_off_location_id: str

    @classmethod
    def of(cls, version) -> "RatePartyKey":
        """Key of an existing RateVersion row (or any object with the same fields)."""
        return cls(
            rate_party_type=RatePartyType(version.rate_party_type),
            rate_party_id=version.rate_party_id,
            material_type_id=version.material_type_id,
            pickup_location_id=version.pickup_location_id,
            drop_off_location_id=version.drop_off_location_id,
        )

    def lock_scope(self) -> tuple:
        return ("rate",) + tuple(self)
