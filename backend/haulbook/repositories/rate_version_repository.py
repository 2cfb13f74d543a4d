"""
Rate Version repository.

All queries for rate versions go through here so the service only deals with
keys and ordered row lists.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.haulbook.domain.rates.party_key import RatePartyKey
from backend.haulbook.models.rate_version import RateVersion


def _key_clause(key: RatePartyKey):
    return (
        RateVersion.rate_party_type == key.rate_party_type,
        RateVersion.rate_party_id == key.rate_party_id,
        RateVersion.material_type_id == key.material_type_id,
        RateVersion.pickup_location_id == key.pickup_location_id,
        RateVersion.drop_off_location_id == key.drop_off_location_id,
    )


class RateVersionRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, version_id: int, for_update: bool = False) -> Optional[RateVersion]:
        query = select(RateVersion).where(RateVersion.id == version_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_for_key(self, key: RatePartyKey, for_update: bool = False) -> List[RateVersion]:
        """
        All versions of one party key, oldest start first.

        With for_update the rows stay locked until the surrounding
        transaction ends (ignored by SQLite).
        """
        query = select(RateVersion).where(*_key_clause(key)).order_by(
            RateVersion.effective_from.asc(), RateVersion.id.asc()
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def search(
        self,
        rate_party_type=None,
        rate_party_id: Optional[str] = None,
        material_type_id: Optional[str] = None,
        pickup_location_id: Optional[str] = None,
        drop_off_location_id: Optional[str] = None,
    ) -> List[RateVersion]:
        """Versions matching any subset of the key fields, newest start first."""
        query = select(RateVersion)
        if rate_party_type is not None:
            query = query.where(RateVersion.rate_party_type == rate_party_type)
        if rate_party_id is not None:
            query = query.where(RateVersion.rate_party_id == rate_party_id)
        if material_type_id is not None:
            query = query.where(RateVersion.material_type_id == material_type_id)
        if pickup_location_id is not None:
            query = query.where(RateVersion.pickup_location_id == pickup_location_id)
        if drop_off_location_id is not None:
            query = query.where(RateVersion.drop_off_location_id == drop_off_location_id)
        query = query.order_by(RateVersion.effective_from.desc(), RateVersion.id.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def find_effective(self, key: RatePartyKey, on_date: date) -> Optional[RateVersion]:
        """The version of `key` whose interval contains `on_date`."""
        query = select(RateVersion).where(
            *_key_clause(key),
            RateVersion.effective_from <= on_date,
            (RateVersion.effective_to.is_(None) | (RateVersion.effective_to >= on_date))
        ).order_by(RateVersion.effective_from.desc()).limit(1)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    def add(self, version: RateVersion) -> None:
        self.db.add(version)

    async def delete(self, version: RateVersion) -> None:
        await self.db.delete(version)
