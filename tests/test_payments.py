"""API tests for payment preview, recording and history."""

from decimal import Decimal
from typing import Dict

import pytest
from httpx import AsyncClient

from feedesk.core.enums import Role
from feedesk.db.repository import LedgerRepository


def _alloc(data: list) -> list:
    return [(a["year_label"], Decimal(a["amount"])) for a in data]


@pytest.mark.asyncio
async def test_preview_does_not_record(
    client: AsyncClient, seeded: LedgerRepository, headers: Dict[Role, Dict[str, str]]
) -> None:
    response = await client.post(
        "/api/v1/payments/S001/preview", json={"amount": "1500"}, headers=headers[Role.ACCOUNTANT]
    )
    assert response.status_code == 200
    data = response.json()
    assert _alloc(data["allocations"]) == [("2023-24", Decimal("1500"))]
    assert Decimal(data["balance"]["outstanding"]) == Decimal("15500")

    student = await seeded.get_student("S001")
    assert len(student.payments) == 1


@pytest.mark.asyncio
async def test_record_auto_payment(
    client: AsyncClient, seeded: LedgerRepository, headers: Dict[Role, Dict[str, str]]
) -> None:
    response = await client.post(
        "/api/v1/payments/S001",
        json={"amount": "1500", "mode": "CASH", "paid_on": "2025-06-01"},
        headers=headers[Role.ACCOUNTANT],
    )
    assert response.status_code == 201
    data = response.json()
    assert Decimal(data["balance_before"]["outstanding"]) == Decimal("15500")
    assert Decimal(data["balance_after"]["outstanding"]) == Decimal("14000")
    assert data["payment"]["receipt_no"].startswith("R20250601-")
    assert data["payment"]["recorded_by"]["name"] == "Marcus Thorne"
    assert _alloc(data["payment"]["applied_to"]) == [("2023-24", Decimal("1500"))]

    student = await seeded.get_student("S001")
    assert [(p.year_label, p.amount) for p in student.previous_pending] == [
        ("2023-24", Decimal("500")),
        ("2024-25", Decimal("1500")),
    ]
    assert student.version == 1


@pytest.mark.asyncio
async def test_record_manual_payment(
    client: AsyncClient, seeded: LedgerRepository, headers: Dict[Role, Dict[str, str]]
) -> None:
    payload = {
        "amount": "10000",
        "mode": "CHEQUE",
        "allocations": [
            {"year_label": "2024-25", "amount": "5000"},
            {"year_label": "2025-26", "amount": "5000"},
        ],
    }
    response = await client.post("/api/v1/payments/S003", json=payload, headers=headers[Role.ACCOUNTANT])
    assert response.status_code == 201
    after = response.json()["balance_after"]
    assert Decimal(after["prior_pending"]) == Decimal("0")
    assert Decimal(after["current_due"]) == Decimal("23000")

    student = await seeded.get_student("S003")
    assert student.previous_pending == []


@pytest.mark.asyncio
async def test_manual_sum_mismatch_is_rejected(
    client: AsyncClient, seeded: LedgerRepository, headers: Dict[Role, Dict[str, str]]
) -> None:
    payload = {
        "amount": "10000",
        "mode": "CASH",
        "allocations": [
            {"year_label": "2024-25", "amount": "4000"},
            {"year_label": "2025-26", "amount": "5999"},
        ],
    }
    response = await client.post("/api/v1/payments/S003", json=payload, headers=headers[Role.ACCOUNTANT])
    assert response.status_code == 400
    assert response.json()["detail"]["reason"] == "sum_mismatch"

    student = await seeded.get_student("S003")
    assert student.payments == []


@pytest.mark.asyncio
async def test_overpayment_is_rejected(
    client: AsyncClient, seeded: LedgerRepository, headers: Dict[Role, Dict[str, str]]
) -> None:
    response = await client.post(
        "/api/v1/payments/S002", json={"amount": "19000.01", "mode": "CASH"}, headers=headers[Role.ACCOUNTANT]
    )
    assert response.status_code == 400
    assert response.json()["detail"]["reason"] == "exceeds_outstanding"


@pytest.mark.asyncio
async def test_unknown_mode_and_zero_amount_fail_validation(
    client: AsyncClient, seeded: LedgerRepository, headers: Dict[Role, Dict[str, str]]
) -> None:
    bad_mode = await client.post(
        "/api/v1/payments/S002", json={"amount": "100", "mode": "BITCOIN"}, headers=headers[Role.ACCOUNTANT]
    )
    assert bad_mode.status_code == 422
    zero = await client.post(
        "/api/v1/payments/S002", json={"amount": "0", "mode": "CASH"}, headers=headers[Role.ACCOUNTANT]
    )
    assert zero.status_code == 422


@pytest.mark.asyncio
async def test_payment_for_unknown_student(
    client: AsyncClient, seeded: LedgerRepository, headers: Dict[Role, Dict[str, str]]
) -> None:
    response = await client.post(
        "/api/v1/payments/S404", json={"amount": "100", "mode": "CASH"}, headers=headers[Role.ACCOUNTANT]
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_payment_roles(
    client: AsyncClient, seeded: LedgerRepository, headers: Dict[Role, Dict[str, str]]
) -> None:
    payload = {"amount": "100", "mode": "CASH"}
    teacher = await client.post("/api/v1/payments/S002", json=payload, headers=headers[Role.TEACHER])
    assert teacher.status_code == 403
    parent = await client.post("/api/v1/payments/S002", json=payload, headers=headers[Role.PARENT])
    assert parent.status_code == 403
    anonymous = await client.post("/api/v1/payments/S002", json=payload)
    assert anonymous.status_code == 401
    parent_view = await client.get("/api/v1/payments/S002", headers=headers[Role.PARENT])
    assert parent_view.status_code == 200


@pytest.mark.asyncio
async def test_history_newest_first(
    client: AsyncClient, seeded: LedgerRepository, headers: Dict[Role, Dict[str, str]]
) -> None:
    for paid_on in ("2025-07-01", "2025-05-01"):
        response = await client.post(
            "/api/v1/payments/S001",
            json={"amount": "100", "mode": "CARD", "paid_on": paid_on},
            headers=headers[Role.ACCOUNTANT],
        )
        assert response.status_code == 201

    response = await client.get("/api/v1/payments/S001", headers=headers[Role.ACCOUNTANT])
    assert response.status_code == 200
    assert [p["paid_on"] for p in response.json()] == ["2025-07-01", "2025-05-01", "2025-04-10"]


@pytest.mark.asyncio
async def test_balance_endpoint_tracks_payments(
    client: AsyncClient, seeded: LedgerRepository, headers: Dict[Role, Dict[str, str]]
) -> None:
    before = (await client.get("/api/v1/students/S001/balance", headers=headers[Role.PARENT])).json()
    await client.post(
        "/api/v1/payments/S001", json={"amount": "4000", "mode": "TRANSFER"}, headers=headers[Role.ACCOUNTANT]
    )
    after = (await client.get("/api/v1/students/S001/balance", headers=headers[Role.PARENT])).json()
    assert Decimal(before["outstanding"]) - Decimal(after["outstanding"]) == Decimal("4000")
    assert Decimal(after["current_paid"]) == Decimal("10500")
    assert after["previous_pending"] == []
