"""
Integration tests for the account summary report.
"""

from datetime import date
from decimal import Decimal

import pytest

from backend.haulbook.models.party import Party
from backend.haulbook.models.party_enums import PartyCategory
from backend.haulbook.models.trip_record import TripRecord


@pytest.fixture
async def books(db_session):
    """Parties and trips as maintained by the entry screens."""
    customer = Party(name="Acme Builders", category=PartyCategory.CUSTOMER, opening_balance=Decimal("0"))
    quarry = Party(name="Hill Quarry", category=PartyCategory.QUARRY, opening_balance=Decimal("0"))
    transporter = Party(name="Fast Trucks", category=PartyCategory.TRANSPORT, opening_balance=Decimal("0"))
    royalty = Party(name="State Royalty", category=PartyCategory.ROYALTY, opening_balance=Decimal("-400"))
    bank = Party(name="Main Bank", category=PartyCategory.ACCOUNT, opening_balance=Decimal("0"))
    db_session.add_all([customer, quarry, transporter, royalty, bank])
    await db_session.flush()

    db_session.add_all([
        TripRecord(
            date=date(2024, 6, 1), customer_id=customer.id, quarry_owner_id=quarry.id,
            transporter_id=transporter.id, tonnage=Decimal("20"),
            revenue=Decimal("5000"), material_cost=Decimal("2000"), transport_cost=Decimal("1500"),
        ),
        TripRecord(
            date=date(2024, 4, 10), customer_id=customer.id, quarry_owner_id=quarry.id,
            tonnage=Decimal("10"), revenue=Decimal("2500"), material_cost=Decimal("1000"),
        ),
    ])
    await db_session.commit()
    return {p.name: p.id for p in (customer, quarry, transporter, royalty, bank)}


def by_name(body):
    return {s["name"]: s for s in body["summaries"]}


@pytest.mark.asyncio
async def test_summary_over_whole_history(client, books):
    # Bank pays the quarry 1200 from the general ledger
    paid = await client.post("/v1/ledger-transactions", json={
        "book": "GENERAL",
        "account_key": "Main Bank",
        "date": "2024-06-05",
        "amount": "1200",
        "direction": "CREDIT",
        "counterparty": "Hill Quarry",
    })
    assert paid.status_code == 201

    response = await client.get("/v1/account-summaries")

    assert response.status_code == 200
    summaries = by_name(response.json())

    customer = summaries["Acme Builders"]
    assert Decimal(customer["balance"]) == Decimal("7500")
    assert customer["total_trips"] == 2
    assert Decimal(customer["total_tonnage"]) == Decimal("30")
    assert customer["bucket"] == "CUSTOMER_RECEIVABLE"
    assert customer["last_activity_date"] == "2024-06-01"

    quarry = summaries["Hill Quarry"]
    assert Decimal(quarry["balance"]) == Decimal("-1800")
    assert quarry["bucket"] == "PAYABLE"
    assert quarry["last_activity_date"] == "2024-06-05"

    assert Decimal(summaries["Main Bank"]["balance"]) == Decimal("-1200")
    assert summaries["Main Bank"]["bucket"] == "OTHER"

    royalty = summaries["State Royalty"]
    assert royalty["bucket"] == "PAYABLE"
    assert royalty["is_aged"] is True  # No activity at all
    assert Decimal(royalty["total_royalty_m3"]) == Decimal("0")

    totals = response.json()["totals"]
    assert Decimal(totals["total_payable"]) == Decimal("1800") + Decimal("1500") + Decimal("400")
    assert Decimal(totals["total_customer_receivable"]) == Decimal("7500")
    assert Decimal(totals["total_aged"]) == Decimal("400")


@pytest.mark.asyncio
async def test_summary_for_period(client, books):
    response = await client.get("/v1/account-summaries", params={"from": "2024-06-01", "to": "2024-06-30"})

    assert response.status_code == 200
    body = response.json()
    assert body["period_from"] == "2024-06-01"
    summaries = by_name(body)
    assert Decimal(summaries["Acme Builders"]["balance"]) == Decimal("5000")
    assert summaries["Acme Builders"]["total_trips"] == 1
    assert Decimal(summaries["Hill Quarry"]["balance"]) == Decimal("-2000")


@pytest.mark.asyncio
async def test_summary_rejects_inverted_period(client):
    response = await client.get("/v1/account-summaries", params={"from": "2024-06-30", "to": "2024-06-01"})

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_RATE_INTERVAL"
