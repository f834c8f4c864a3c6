"""Ledger mutator: commit a confirmed payment to a student's stored ledger."""

from feedesk.core.money import is_settled, to_money
from feedesk.ledger.schemas import Payment, PendingFee, Student


def apply_payment(student: Student, payment: Payment) -> Student:
    """
    Return a copy of student with payment appended and matching pending years reduced.

    Buckets that drop to EPSILON or below are removed. Allocations to the active year
    touch nothing here; the current-year due is always derived from payments.
    Not idempotent: applying the same payment twice deducts twice. Duplicate payments
    are stopped by the payment id's uniqueness in storage.
    """
    remaining = {p.year_label: to_money(p.amount) for p in student.previous_pending}
    for alloc in payment.applied_to:
        if alloc.year_label in remaining:
            remaining[alloc.year_label] -= to_money(alloc.amount)

    pending = [
        PendingFee(year_label=p.year_label, amount=remaining[p.year_label])
        for p in student.previous_pending
        if not is_settled(remaining[p.year_label])
    ]
    return student.model_copy(
        update={
            "previous_pending": pending,
            "payments": [*student.payments, payment],
        }
    )
