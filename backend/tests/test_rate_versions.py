"""
Tests for rate versioning.

Covers supersession, overlap/duplicate rejection, status self-healing and the
HTTP surface.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from backend.haulbook.core.exceptions import (
    DuplicateRateError, OverlappingRateError, InvalidIntervalError, ResourceNotFoundError
)
from backend.haulbook.domain.rates.intervals import overlaps
from backend.haulbook.domain.rates.party_key import RatePartyKey
from backend.haulbook.domain.rates.rate_version_service import RateVersionService, compute_rate_totals
from backend.haulbook.models.audit_log import AuditLog
from backend.haulbook.models.rate_enums import RatePartyType, RateStatus
from backend.haulbook.models.rate_version import RateVersion
from backend.haulbook.services.audit import AuditAction

KEY = RatePartyKey(
    rate_party_type=RatePartyType.MINE_QUARRY,
    rate_party_id="quarry-7",
    material_type_id="gsb",
    pickup_location_id="hill-pit",
    drop_off_location_id="site-12",
)

OTHER_KEY = KEY._replace(drop_off_location_id="site-99")

RATES = {"rate_per_ton": Decimal("450"), "gst_chargeable": True, "gst_percentage": Decimal("5")}


async def create(db, effective_from, effective_to=None, key=KEY, today=date(2025, 1, 15)):
    return await RateVersionService.create_version(db, key, effective_from, effective_to, RATES, today)


def assert_no_overlaps(versions):
    for i, a in enumerate(versions):
        for b in versions[i + 1:]:
            assert not overlaps(a.effective_from, a.effective_to, b.effective_from, b.effective_to), (a, b)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_open_ended_version_is_closed_by_successor(db_session):
    a = await create(db_session, date(2025, 1, 1))

    b = await create(db_session, date(2025, 3, 1))

    await db_session.refresh(a)
    assert a.effective_to == date(2025, 2, 28)
    assert a.status == RateStatus.ACTIVE
    assert b.effective_to is None
    assert b.status == RateStatus.FUTURE


@pytest.mark.asyncio
async def test_successor_starting_today_is_active(db_session):
    await create(db_session, date(2025, 1, 1), today=date(2025, 3, 1))
    b = await create(db_session, date(2025, 3, 1), today=date(2025, 3, 1))

    assert b.status == RateStatus.ACTIVE


@pytest.mark.asyncio
async def test_bounded_version_inside_open_one_supersedes_it(db_session):
    a = await create(db_session, date(2025, 1, 1))

    c = await create(db_session, date(2025, 2, 1), date(2025, 2, 15))

    await db_session.refresh(a)
    assert a.effective_to == date(2025, 1, 31)
    assert (c.effective_from, c.effective_to) == (date(2025, 2, 1), date(2025, 2, 15))


@pytest.mark.asyncio
async def test_at_most_one_open_ended_version_per_key(db_session):
    for start in (date(2025, 1, 1), date(2025, 2, 1), date(2025, 4, 1), date(2025, 7, 1)):
        await create(db_session, start)

    versions = list((await db_session.execute(select(RateVersion))).scalars().all())
    for version in versions:
        await db_session.refresh(version)

    assert [v.effective_to for v in versions].count(None) == 1
    assert_no_overlaps(versions)


@pytest.mark.asyncio
async def test_exact_duplicate_is_rejected(db_session):
    a = await create(db_session, date(2025, 1, 1), date(2025, 1, 31))
    a_id = a.id  # Rollback expires loaded instances

    with pytest.raises(DuplicateRateError) as exc_info:
        await create(db_session, date(2025, 1, 1), date(2025, 1, 31))

    assert exc_info.value.details["conflicting_id"] == a_id


@pytest.mark.asyncio
async def test_overlap_with_later_version_is_rejected(db_session):
    a = await create(db_session, date(2025, 3, 1))
    a_id = a.id

    with pytest.raises(OverlappingRateError) as exc_info:
        await create(db_session, date(2025, 1, 1), date(2025, 3, 10))

    assert exc_info.value.details["conflicting_id"] == a_id


@pytest.mark.asyncio
async def test_gap_before_later_version_is_allowed(db_session):
    a = await create(db_session, date(2025, 3, 1))

    d = await create(db_session, date(2025, 1, 1), date(2025, 2, 28))

    await db_session.refresh(a)
    assert a.effective_to is None
    assert d.effective_to == date(2025, 2, 28)


@pytest.mark.asyncio
async def test_rejected_create_leaves_no_partial_supersession(db_session):
    a = await create(db_session, date(2025, 1, 1))
    f = await create(db_session, date(2025, 6, 1))  # Closes A on May 31

    # Would close A again, but clashes with F: nothing may change
    with pytest.raises(OverlappingRateError):
        await create(db_session, date(2025, 3, 1), date(2025, 7, 1))

    await db_session.refresh(a)
    await db_session.refresh(f)
    assert a.effective_to == date(2025, 5, 31)
    assert f.effective_to is None
    count = len((await db_session.execute(select(RateVersion))).scalars().all())
    assert count == 2


@pytest.mark.asyncio
async def test_keys_are_independent(db_session):
    await create(db_session, date(2025, 1, 1))

    other = await create(db_session, date(2025, 1, 1), key=OTHER_KEY)

    assert other.effective_to is None


@pytest.mark.asyncio
async def test_inverted_interval_is_rejected(db_session):
    with pytest.raises(InvalidIntervalError):
        await create(db_session, date(2025, 2, 1), date(2025, 1, 31))


@pytest.mark.asyncio
async def test_update_rejects_overlap_without_supersession(db_session):
    a = await create(db_session, date(2025, 1, 1), date(2025, 1, 31))
    b = await create(db_session, date(2025, 2, 1), date(2025, 2, 28))
    a_id, b_id = a.id, b.id

    with pytest.raises(OverlappingRateError) as exc_info:
        await RateVersionService.update_version(
            db_session, b_id, date(2025, 1, 15), date(2025, 2, 28), RATES, date(2025, 1, 15)
        )

    assert exc_info.value.details["conflicting_id"] == a_id
    await db_session.refresh(a)
    assert a.effective_to == date(2025, 1, 31)


@pytest.mark.asyncio
async def test_update_may_keep_its_own_interval(db_session):
    a = await create(db_session, date(2025, 1, 1))

    updated = await RateVersionService.update_version(
        db_session, a.id, date(2025, 1, 1), None, {"rate_per_ton": Decimal("500")}, date(2025, 1, 15)
    )

    assert updated.rate_per_ton == Decimal("500")
    assert updated.total_rate == Decimal("500.00")  # GST no longer chargeable


@pytest.mark.asyncio
async def test_update_missing_version(db_session):
    with pytest.raises(ResourceNotFoundError):
        await RateVersionService.update_version(
            db_session, 404, date(2025, 1, 1), None, RATES, date(2025, 1, 15)
        )


@pytest.mark.asyncio
async def test_list_heals_stale_status(db_session):
    version = await create(db_session, date(2025, 3, 1), today=date(2025, 1, 15))
    assert version.status == RateStatus.FUTURE

    listed = await RateVersionService.list_versions(db_session, date(2025, 3, 1), rate_party_id=KEY.rate_party_id)

    assert [v.status for v in listed] == [RateStatus.ACTIVE]
    stored = (await db_session.execute(select(RateVersion.status))).scalar_one()
    assert stored == RateStatus.ACTIVE


@pytest.mark.asyncio
async def test_list_filters_and_orders_newest_first(db_session):
    await create(db_session, date(2025, 1, 1))
    await create(db_session, date(2025, 2, 1))
    await create(db_session, date(2025, 1, 1), key=OTHER_KEY)

    listed = await RateVersionService.list_versions(
        db_session, date(2025, 1, 15), drop_off_location_id=KEY.drop_off_location_id
    )

    assert [v.effective_from for v in listed] == [date(2025, 2, 1), date(2025, 1, 1)]


@pytest.mark.asyncio
async def test_resolve_rate_by_trip_date(db_session):
    a = await create(db_session, date(2025, 1, 1))
    b = await create(db_session, date(2025, 3, 1))

    assert (await RateVersionService.resolve_rate(db_session, KEY, date(2025, 2, 28))).id == a.id
    assert (await RateVersionService.resolve_rate(db_session, KEY, date(2025, 3, 1))).id == b.id
    with pytest.raises(ResourceNotFoundError):
        await RateVersionService.resolve_rate(db_session, KEY, date(2024, 12, 31))


@pytest.mark.asyncio
async def test_supersession_is_audited(db_session):
    a = await create(db_session, date(2025, 1, 1))
    b = await create(db_session, date(2025, 3, 1))

    logs = list((await db_session.execute(select(AuditLog).order_by(AuditLog.id))).scalars().all())

    assert [log.action for log in logs] == [
        AuditAction.RATE_VERSION_CREATED,
        AuditAction.RATE_VERSION_SUPERSEDED,
        AuditAction.RATE_VERSION_CREATED,
    ]
    superseded = logs[1]
    assert superseded.entity_id == str(a.id)
    assert superseded.meta_data["superseded_by"] == b.id
    assert superseded.meta_data["effective_to"] == "2025-02-28"


@pytest.mark.asyncio
async def test_storage_rejects_second_open_ended_version(db_session):
    # Writers that bypass the service still cannot leave two open versions
    for start in (date(2025, 1, 1), date(2025, 3, 1)):
        db_session.add(RateVersion(**KEY._asdict(), effective_from=start, effective_to=None, status=RateStatus.ACTIVE))

    with pytest.raises(IntegrityError):
        await db_session.flush()
    await db_session.rollback()

    db_session.add(RateVersion(**KEY._asdict(), effective_from=date(2025, 1, 1), effective_to=None))
    db_session.add(RateVersion(**KEY._asdict(), effective_from=date(2024, 1, 1), effective_to=date(2024, 12, 31)))
    await db_session.commit()


def test_gst_is_applied_to_rate_per_ton():
    totals = compute_rate_totals({"rate_per_ton": "450", "gst_chargeable": True, "gst_percentage": "5"})

    assert totals["gst_amount"] == Decimal("22.50")
    assert totals["total_rate"] == Decimal("472.50")


def test_gst_ignored_when_not_chargeable():
    totals = compute_rate_totals({"rate_per_ton": "450", "gst_chargeable": False, "gst_percentage": "18"})

    assert totals["gst_amount"] == Decimal("0")
    assert totals["total_rate"] == Decimal("450.00")


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

def payload(effective_from, effective_to=None, **overrides):
    body = {
        "rate_party_type": "mine-quarry",
        "rate_party_id": "quarry-7",
        "material_type_id": "gsb",
        "pickup_location_id": "hill-pit",
        "drop_off_location_id": "site-12",
        "effective_from": effective_from,
        "effective_to": effective_to,
        "rate_per_ton": "450",
        "gst_chargeable": True,
        "gst_percentage": "5",
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_api_create_and_supersede(client):
    first = await client.post("/v1/rate-versions", json=payload("2024-01-01"))
    assert first.status_code == 201
    assert first.json()["status"] == "Active"
    assert Decimal(first.json()["total_rate"]) == Decimal("472.50")

    second = await client.post("/v1/rate-versions", json=payload("2024-07-01"))
    assert second.status_code == 201
    assert second.json()["status"] == "Future"

    listed = await client.get("/v1/rate-versions", params={"rate_party_id": "quarry-7"})
    assert listed.status_code == 200
    rows = listed.json()
    assert [r["id"] for r in rows] == [second.json()["id"], first.json()["id"]]
    assert rows[1]["effective_to"] == "2024-06-30"


@pytest.mark.asyncio
async def test_api_overlap_conflict(client):
    later = await client.post("/v1/rate-versions", json=payload("2024-03-01"))

    response = await client.post("/v1/rate-versions", json=payload("2024-01-01", "2024-03-10"))

    assert response.status_code == 409
    body = response.json()
    assert body["error_code"] == "ERR_RATE_OVERLAP"
    assert body["details"]["conflicting_id"] == later.json()["id"]


@pytest.mark.asyncio
async def test_api_duplicate_conflict(client):
    await client.post("/v1/rate-versions", json=payload("2024-01-01", "2024-01-31"))

    response = await client.post("/v1/rate-versions", json=payload("2024-01-01", "2024-01-31"))

    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_RATE_DUPLICATE"


@pytest.mark.asyncio
async def test_api_invalid_interval(client):
    response = await client.post("/v1/rate-versions", json=payload("2024-02-01", "2024-01-01"))

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_RATE_INTERVAL"


@pytest.mark.asyncio
async def test_api_validation_error(client):
    response = await client.post("/v1/rate-versions", json=payload("2024-01-01", rate_per_ton="-1"))

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_api_update_get_resolve_delete(client):
    created = (await client.post("/v1/rate-versions", json=payload("2024-01-01"))).json()
    version_id = created["id"]

    update = {k: v for k, v in payload("2024-01-01", "2024-12-31", rate_per_ton="500").items()
              if not k.endswith("_id") and k != "rate_party_type"}
    updated = await client.put(f"/v1/rate-versions/{version_id}", json=update)
    assert updated.status_code == 200
    assert updated.json()["effective_to"] == "2024-12-31"
    assert Decimal(updated.json()["gst_amount"]) == Decimal("25.00")

    fetched = await client.get(f"/v1/rate-versions/{version_id}")
    assert fetched.status_code == 200
    assert fetched.json()["status"] == "Active"

    resolved = await client.get("/v1/rate-versions/resolve", params={
        "rate_party_type": "mine-quarry",
        "rate_party_id": "quarry-7",
        "material_type_id": "gsb",
        "pickup_location_id": "hill-pit",
        "drop_off_location_id": "site-12",
        "on_date": "2024-06-01",
    })
    assert resolved.status_code == 200
    assert resolved.json()["id"] == version_id

    deleted = await client.delete(f"/v1/rate-versions/{version_id}", headers={"X-Actor-Username": "ops"})
    assert deleted.status_code == 204

    missing = await client.get(f"/v1/rate-versions/{version_id}")
    assert missing.status_code == 404
    assert missing.json()["error_code"] == "ERR_NOT_FOUND_001"
