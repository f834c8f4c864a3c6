"""Tests for the fee table and fee revision fan-out."""

import asyncio
from decimal import Decimal
from typing import Dict

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from feedesk.api.v1.class_fees.service import revise_class_fee
from feedesk.core.enums import Role
from feedesk.core.exceptions import TransientIOError
from feedesk.db.repository import LedgerRepository
from feedesk.ledger.locks import StudentLocks
from feedesk.ledger.schemas import Student, StudentSession

ACADEMIC_YEAR = "2025-26"


async def _add_student(repo: LedgerRepository, adm: str, session_label: str, class_name: str, fees: int) -> None:
    await repo.create_student(
        Student(
            admission_number=adm,
            student_name=f"Student {adm}",
            sessions=[StudentSession(session_label=session_label, class_name=class_name)],
            current_year_fees=fees,
        )
    )


@pytest.mark.asyncio
async def test_list_class_fees(
    client: AsyncClient, seeded: LedgerRepository, headers: Dict[Role, Dict[str, str]]
) -> None:
    response = await client.get("/api/v1/class-fees", headers=headers[Role.TEACHER])
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 12
    assert data[0]["class_name"] == "LKG"


@pytest.mark.asyncio
async def test_create_class_fee(
    client: AsyncClient, seeded: LedgerRepository, headers: Dict[Role, Dict[str, str]]
) -> None:
    payload = {"class_name": "11", "fee_structure": {ACADEMIC_YEAR: "34000"}, "display_order": 12}
    response = await client.post("/api/v1/class-fees", json=payload, headers=headers[Role.ADMIN])
    assert response.status_code == 201

    duplicate = await client.post("/api/v1/class-fees", json=payload, headers=headers[Role.ADMIN])
    assert duplicate.status_code == 409

    negative = await client.post(
        "/api/v1/class-fees",
        json={"class_name": "12", "fee_structure": {ACADEMIC_YEAR: "-1"}},
        headers=headers[Role.ADMIN],
    )
    assert negative.status_code == 422


@pytest.mark.asyncio
async def test_revision_reaches_current_students_only(
    client: AsyncClient, seeded: LedgerRepository, headers: Dict[Role, Dict[str, str]]
) -> None:
    """Class 5 goes from 22000 to 23000 for the active year; a 2024-25-only student keeps 0."""
    await _add_student(seeded, "S004", "2024-25", "5", 0)

    response = await client.put(
        f"/api/v1/class-fees/5/sessions/{ACADEMIC_YEAR}",
        json={"amount": "23000"},
        headers=headers[Role.ADMIN],
    )
    assert response.status_code == 200
    data = response.json()
    assert data["updated"] == ["S001"]
    assert data["failed"] == []
    assert Decimal(data["class_fee"]["fee_structure"][ACADEMIC_YEAR]) == Decimal("23000")

    s001 = await seeded.get_student("S001")
    assert s001.current_year_fees == Decimal("23000")
    s004 = await seeded.get_student("S004")
    assert s004.current_year_fees == Decimal("0")


@pytest.mark.asyncio
async def test_past_session_revision_touches_no_student(
    client: AsyncClient, seeded: LedgerRepository, headers: Dict[Role, Dict[str, str]]
) -> None:
    response = await client.put(
        "/api/v1/class-fees/5/sessions/2024-25", json={"amount": "21000"}, headers=headers[Role.ADMIN]
    )
    assert response.status_code == 200
    assert response.json()["updated"] == []
    assert (await seeded.get_student("S001")).current_year_fees == Decimal("22000")


@pytest.mark.asyncio
async def test_revision_permissions_and_unknown_class(
    client: AsyncClient, seeded: LedgerRepository, headers: Dict[Role, Dict[str, str]]
) -> None:
    url = f"/api/v1/class-fees/5/sessions/{ACADEMIC_YEAR}"
    forbidden = await client.put(url, json={"amount": "23000"}, headers=headers[Role.ACCOUNTANT])
    assert forbidden.status_code == 403

    missing = await client.put(
        f"/api/v1/class-fees/99/sessions/{ACADEMIC_YEAR}", json={"amount": "1"}, headers=headers[Role.ADMIN]
    )
    assert missing.status_code == 404


class _FlakyRepository(LedgerRepository):
    """Fails writes for chosen students with the given error."""

    def __init__(self, session_factory, failing, error: Exception = None) -> None:
        super().__init__(session_factory, timeout=5)
        self.failing = set(failing)
        self.error = error or TransientIOError("Storage unavailable (save_student)")

    async def save_student(self, student: Student) -> Student:
        if student.admission_number in self.failing:
            raise self.error
        return await super().save_student(student)


class _CountingRepository(LedgerRepository):
    """Tracks the most save_student calls in flight at once."""

    def __init__(self, session_factory) -> None:
        super().__init__(session_factory, timeout=5)
        self.in_flight = 0
        self.peak = 0

    async def save_student(self, student: Student) -> Student:
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(0.05)
            return await super().save_student(student)
        finally:
            self.in_flight -= 1


@pytest.mark.asyncio
async def test_one_failed_student_does_not_block_others(session_factory, seeded: LedgerRepository) -> None:
    await _add_student(seeded, "S005", ACADEMIC_YEAR, "5", 22000)
    await _add_student(seeded, "S006", ACADEMIC_YEAR, "5", 22000)
    flaky = _FlakyRepository(session_factory, failing={"S005"})

    result = await revise_class_fee(
        flaky, StudentLocks(), "5", ACADEMIC_YEAR, Decimal("23000"), academic_year=ACADEMIC_YEAR, concurrency=2
    )

    assert sorted(result.updated) == ["S001", "S006"]
    assert [f.admission_number for f in result.failed] == ["S005"]
    assert (await seeded.get_class_fee("5")).fee_structure[ACADEMIC_YEAR] == Decimal("23000")
    assert (await seeded.get_student("S005")).current_year_fees == Decimal("22000")
    assert (await seeded.get_student("S006")).current_year_fees == Decimal("23000")


@pytest.mark.asyncio
async def test_unexpected_error_is_reported_per_student(session_factory, seeded: LedgerRepository) -> None:
    """A raw driver error for one student is listed in failed; the others still get the new fee."""
    await _add_student(seeded, "S005", ACADEMIC_YEAR, "5", 22000)
    flaky = _FlakyRepository(
        session_factory, failing={"S001"}, error=PoolTimeoutError("QueuePool limit reached")
    )

    result = await revise_class_fee(
        flaky, StudentLocks(), "5", ACADEMIC_YEAR, Decimal("23000"), academic_year=ACADEMIC_YEAR, concurrency=2
    )

    assert result.updated == ["S005"]
    assert [f.admission_number for f in result.failed] == ["S001"]
    assert (await seeded.get_student("S005")).current_year_fees == Decimal("23000")


@pytest.mark.asyncio
async def test_fan_out_respects_concurrency_limit(session_factory, seeded: LedgerRepository) -> None:
    for n in range(10, 16):
        await _add_student(seeded, f"S0{n}", ACADEMIC_YEAR, "5", 22000)
    counting = _CountingRepository(session_factory)

    result = await revise_class_fee(
        counting, StudentLocks(), "5", ACADEMIC_YEAR, Decimal("23000"), academic_year=ACADEMIC_YEAR, concurrency=2
    )

    assert len(result.updated) == 7
    assert result.failed == []
    assert counting.peak == 2
