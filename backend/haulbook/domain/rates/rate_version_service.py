"""
Rate Version Service (Domain Logic).

Maintains time-bounded rate versions per party key:
- at most one open-ended version per key,
- a new version closes its predecessor instead of being rejected,
- genuine overlaps are rejected,
- cached status is healed on every read.

Every mutation runs as one transaction scoped to the party key.
"""

import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.haulbook.core.exceptions import (
    DuplicateRateError,
    InvalidIntervalError,
    OverlappingRateError,
    ResourceNotFoundError,
)
from backend.haulbook.db.unit_of_work import atomic
from backend.haulbook.domain.rates.intervals import as_day, derive_status, overlaps, previous_day
from backend.haulbook.domain.rates.party_key import RatePartyKey
from backend.haulbook.models.rate_version import RateVersion
from backend.haulbook.repositories.rate_version_repository import RateVersionRepository
from backend.haulbook.services.audit import log_event, AuditAction

logger = logging.getLogger("haulbook.rates")

CENT = Decimal("0.01")

RATE_FIELD_NAMES = (
    "total_km",
    "rate_per_km",
    "rate_per_ton",
    "rate_per_m3",
    "gst_chargeable",
    "gst_percentage",
    "remarks",
)


def compute_rate_totals(rate_fields: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Normalize rate components and fill in the computed GST amount and total.

    GST applies to the per-ton rate only when the rate is GST chargeable.
    """
    fields = {name: rate_fields[name] for name in RATE_FIELD_NAMES if name in rate_fields}
    rate_per_ton = Decimal(str(fields.get("rate_per_ton", 0) or 0))
    gst_percentage = Decimal(str(fields.get("gst_percentage", 0) or 0))
    gst_chargeable = bool(fields.get("gst_chargeable", False))

    gst_amount = Decimal("0")
    if gst_chargeable:
        gst_amount = (rate_per_ton * gst_percentage / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)

    fields["gst_chargeable"] = gst_chargeable
    fields["gst_amount"] = gst_amount
    fields["total_rate"] = (rate_per_ton + gst_amount).quantize(CENT, rounding=ROUND_HALF_UP)
    return fields


def _check_interval(effective_from: date, effective_to: Optional[date]) -> None:
    if effective_to is not None and effective_to < effective_from:
        raise InvalidIntervalError(effective_from, effective_to)


class RateVersionService:

    @staticmethod
    async def create_version(
        db: AsyncSession,
        key: RatePartyKey,
        effective_from: date,
        effective_to: Optional[date],
        rate_fields: Mapping[str, Any],
        today: date,
        actor_username: Optional[str] = None,
    ) -> RateVersion:
        """
        Create a new rate version, closing the version it supersedes.

        Flow:
        1. Load all versions of the key (locked)
        2. Exact (from, to) duplicate -> DuplicateRateError
        3. Overlap with a version starting on/after the new start -> OverlappingRateError
        4. Close every earlier version still running on the new start date
           (effective_to = new start - 1 day)
        5. Insert the new version with its derived status
        6. Commit (all or nothing)

        Raises:
            InvalidIntervalError, DuplicateRateError, OverlappingRateError,
            TransactionFailureError
        """
        effective_from, effective_to = as_day(effective_from), as_day(effective_to)
        _check_interval(effective_from, effective_to)

        repo = RateVersionRepository(db)
        superseded: List[Dict[str, Any]] = []

        async with atomic(db, key.lock_scope(), "create rate version"):
            existing = await repo.list_for_key(key, for_update=True)

            for version in existing:
                if version.effective_from == effective_from and version.effective_to == effective_to:
                    raise DuplicateRateError(version.id)

            for version in existing:
                if version.effective_from < effective_from:
                    continue
                if overlaps(effective_from, effective_to, version.effective_from, version.effective_to):
                    raise OverlappingRateError(version.id)

            close_on = previous_day(effective_from)
            for version in existing:
                if version.effective_from >= effective_from:
                    continue
                if version.effective_to is None or version.effective_to >= effective_from:
                    superseded.append({
                        "id": version.id,
                        "previous_effective_to": version.effective_to,
                        "effective_to": close_on,
                    })
                    version.effective_to = close_on
                    version.status = derive_status(version.effective_from, close_on, today)

            new_version = RateVersion(
                **key._asdict(),
                **compute_rate_totals(rate_fields),
                effective_from=effective_from,
                effective_to=effective_to,
                status=derive_status(effective_from, effective_to, today),
            )
            repo.add(new_version)
            await db.flush()

        await db.refresh(new_version)

        for closed in superseded:
            logger.info(
                "Rate version %s superseded by %s, closed on %s",
                closed["id"], new_version.id, closed["effective_to"]
            )
            await log_event(
                db=db,
                action=AuditAction.RATE_VERSION_SUPERSEDED,
                entity_type="rate_version",
                entity_id=closed["id"],
                actor_username=actor_username,
                metadata={**closed, "superseded_by": new_version.id},
            )

        await log_event(
            db=db,
            action=AuditAction.RATE_VERSION_CREATED,
            entity_type="rate_version",
            entity_id=new_version.id,
            actor_username=actor_username,
            metadata={
                "party_key": key._asdict(),
                "effective_from": effective_from,
                "effective_to": effective_to,
            },
        )

        return new_version

    @staticmethod
    async def update_version(
        db: AsyncSession,
        version_id: int,
        effective_from: date,
        effective_to: Optional[date],
        rate_fields: Mapping[str, Any],
        today: date,
        actor_username: Optional[str] = None,
    ) -> RateVersion:
        """
        Edit an existing rate version.

        Unlike creation, editing never closes other versions: any overlap with
        another version of the same key is rejected.

        Raises:
            ResourceNotFoundError, InvalidIntervalError, OverlappingRateError,
            TransactionFailureError
        """
        effective_from, effective_to = as_day(effective_from), as_day(effective_to)
        _check_interval(effective_from, effective_to)

        repo = RateVersionRepository(db)

        # Resolve the key first so the lock covers the right scope
        current = await repo.get(version_id)
        if not current:
            raise ResourceNotFoundError("Rate version", version_id)
        key = RatePartyKey.of(current)

        async with atomic(db, key.lock_scope(), "update rate version"):
            siblings = await repo.list_for_key(key, for_update=True)
            version = next((v for v in siblings if v.id == version_id), None)
            if version is None:
                raise ResourceNotFoundError("Rate version", version_id)

            for other in siblings:
                if other.id == version_id:
                    continue
                if overlaps(effective_from, effective_to, other.effective_from, other.effective_to):
                    raise OverlappingRateError(other.id)

            for name, value in compute_rate_totals(rate_fields).items():
                setattr(version, name, value)
            version.effective_from = effective_from
            version.effective_to = effective_to
            version.status = derive_status(effective_from, effective_to, today)

        await db.refresh(version)

        await log_event(
            db=db,
            action=AuditAction.RATE_VERSION_UPDATED,
            entity_type="rate_version",
            entity_id=version.id,
            actor_username=actor_username,
            metadata={"effective_from": effective_from, "effective_to": effective_to},
        )

        return version

    @staticmethod
    async def list_versions(
        db: AsyncSession,
        today: date,
        **filters: Any,
    ) -> List[RateVersion]:
        """
        List versions matching the given key fields, newest start first.

        Each cached status is recomputed against today and written back when
        it drifted (e.g. a Future version whose start date has arrived).
        """
        repo = RateVersionRepository(db)
        versions = await repo.search(**{k: v for k, v in filters.items() if v is not None})

        healed = _heal_statuses(versions, today)
        if healed:
            await db.commit()
            for version in healed:
                await db.refresh(version)
            logger.debug("Healed status of %d rate versions", len(healed))

        return versions

    @staticmethod
    async def get_version(db: AsyncSession, version_id: int, today: date) -> RateVersion:
        """Fetch one version with its status healed."""
        version = await RateVersionRepository(db).get(version_id)
        if not version:
            raise ResourceNotFoundError("Rate version", version_id)
        if _heal_statuses([version], today):
            await db.commit()
            await db.refresh(version)
        return version

    @staticmethod
    async def resolve_rate(db: AsyncSession, key: RatePartyKey, on_date: date) -> RateVersion:
        """
        The version of `key` in force on `on_date`.

        Raises:
            ResourceNotFoundError: If no version covers the date
        """
        version = await RateVersionRepository(db).find_effective(key, as_day(on_date))
        if not version:
            raise ResourceNotFoundError("Rate version effective on", str(as_day(on_date)))
        return version

    @staticmethod
    async def delete_version(
        db: AsyncSession,
        version_id: int,
        actor_username: Optional[str] = None,
    ) -> None:
        """
        Delete one version explicitly. Neighbouring versions are left as they are.

        Raises:
            ResourceNotFoundError, TransactionFailureError
        """
        repo = RateVersionRepository(db)
        current = await repo.get(version_id)
        if not current:
            raise ResourceNotFoundError("Rate version", version_id)
        key = RatePartyKey.of(current)
        snapshot = {
            "party_key": key._asdict(),
            "effective_from": current.effective_from,
            "effective_to": current.effective_to,
        }

        async with atomic(db, key.lock_scope(), "delete rate version"):
            version = await repo.get(version_id, for_update=True)
            if not version:
                raise ResourceNotFoundError("Rate version", version_id)
            await repo.delete(version)

        await log_event(
            db=db,
            action=AuditAction.RATE_VERSION_DELETED,
            entity_type="rate_version",
            entity_id=version_id,
            actor_username=actor_username,
            metadata=snapshot,
        )


def _heal_statuses(versions: List[RateVersion], today: date) -> List[RateVersion]:
    changed = []
    for version in versions:
        status = derive_status(version.effective_from, version.effective_to, today)
        if version.status != status:
            version.status = status
            changed.append(version)
    return changed
