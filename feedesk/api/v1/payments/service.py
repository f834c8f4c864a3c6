"""Payments service: allocate, apply and persist a payment as one unit."""

import logging
from datetime import date
from typing import List

from feedesk.auth.schemas import CurrentUser
from feedesk.db.repository import LedgerRepository
from feedesk.ledger.allocation import allocate
from feedesk.ledger.balance import compute_balance
from feedesk.ledger.locks import StudentLocks
from feedesk.ledger.mutator import apply_payment
from feedesk.ledger.receipts import generate_payment_id, generate_receipt_number
from feedesk.ledger.schemas import Payment, RecordedBy

from .schemas import (
    AllocationPreviewRequest,
    AllocationPreviewResponse,
    PaymentCreate,
    PaymentReceiptResponse,
)

logger = logging.getLogger(__name__)


async def preview_allocation(
    repo: LedgerRepository,
    admission_number: str,
    payload: AllocationPreviewRequest,
    academic_year: str,
) -> AllocationPreviewResponse:
    """Auto-allocation for an amount, without recording anything."""
    student = await repo.get_student(admission_number)
    return AllocationPreviewResponse(
        admission_number=student.admission_number,
        academic_year=academic_year,
        balance=compute_balance(student, academic_year),
        allocations=allocate(payload.amount, student, academic_year),
    )


async def record_payment(
    repo: LedgerRepository,
    locks: StudentLocks,
    admission_number: str,
    payload: PaymentCreate,
    recorded_by: CurrentUser,
    academic_year: str,
) -> PaymentReceiptResponse:
    """
    Allocate (auto or manual), apply to the ledger and save in one conditional write.

    The per-student lock serializes writers in this process; the version check in
    save_student rejects a writer that raced from another process.
    """
    async with locks.hold(admission_number):
        student = await repo.get_student(admission_number)
        balance_before = compute_balance(student, academic_year)
        allocations = allocate(payload.amount, student, academic_year, manual=payload.allocations)

        paid_on = payload.paid_on or date.today()
        payment = Payment(
            id=generate_payment_id(paid_on),
            paid_on=paid_on,
            amount=payload.amount,
            mode=payload.mode,
            applied_to=allocations,
            receipt_no=generate_receipt_number(paid_on),
            recorded_by=RecordedBy(id=recorded_by.id, name=recorded_by.name),
        )
        saved = await repo.save_student(apply_payment(student, payment))

    logger.info(
        "Recorded payment %s (receipt %s) of %s for %s by %s",
        payment.id,
        payment.receipt_no,
        payment.amount,
        admission_number,
        recorded_by.username,
    )
    return PaymentReceiptResponse(
        admission_number=saved.admission_number,
        student_name=saved.student_name,
        academic_year=academic_year,
        payment=payment,
        balance_before=balance_before,
        balance_after=compute_balance(saved, academic_year),
    )


async def get_payment_history(repo: LedgerRepository, admission_number: str) -> List[Payment]:
    """Newest first; within one date the most recently recorded comes first."""
    student = await repo.get_student(admission_number)
    return sorted(reversed(student.payments), key=lambda p: p.paid_on, reverse=True)
