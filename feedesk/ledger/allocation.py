"""
Allocation engine: split one payment across year buckets.

Buckets are the student's unpaid past years plus the active year. Past years are
ordered by comparing their labels as strings; this matches chronological order only
for zero-padded labels like "2023-24" and is not a general date parser.

Overpayment is rejected in both modes: a payment can never be allocated beyond what
is owed, either in total (auto mode) or per bucket (manual mode).
"""

from decimal import Decimal
from typing import List, Optional, Sequence

from feedesk.core.exceptions import ValidationError
from feedesk.core.money import ZERO, money_sum, to_money
from feedesk.ledger.balance import compute_balance
from feedesk.ledger.schemas import PaymentAllocation, PendingFee, Student


def _require_positive(payment_amount) -> Decimal:
    amount = to_money(payment_amount)
    if amount <= ZERO:
        raise ValidationError(
            "Payment amount must be greater than zero",
            ValidationError.NON_POSITIVE_AMOUNT,
        )
    return amount


def auto_allocate(
    payment_amount,
    prior_pending: Sequence[PendingFee],
    current_year_due,
    academic_year: str,
) -> List[PaymentAllocation]:
    """Oldest past year first, then the active year. Raises if anything is left over."""
    remaining = _require_positive(payment_amount)
    allocations: List[PaymentAllocation] = []

    for bucket in sorted(prior_pending, key=lambda p: p.year_label):
        if remaining <= ZERO:
            break
        applied = min(remaining, to_money(bucket.amount))
        if applied > ZERO:
            allocations.append(PaymentAllocation(year_label=bucket.year_label, amount=applied))
            remaining -= applied

    due = to_money(current_year_due)
    if remaining > ZERO and due > ZERO:
        applied = min(remaining, due)
        allocations.append(PaymentAllocation(year_label=academic_year, amount=applied))
        remaining -= applied

    if remaining > ZERO:
        raise ValidationError(
            f"Payment amount exceeds outstanding balance by {remaining}",
            ValidationError.EXCEEDS_OUTSTANDING,
        )
    return allocations


def validate_allocation(
    payment_amount,
    allocations: Sequence[PaymentAllocation],
    prior_pending: Sequence[PendingFee],
    current_year_due,
    academic_year: str,
) -> List[PaymentAllocation]:
    """
    Check a caller-supplied allocation and return it with zero entries stripped.

    Every year must be a pending year or the active year, appear once, carry a positive
    amount not above that bucket's due, and the amounts must add up to the payment.
    """
    amount = _require_positive(payment_amount)
    dues = {p.year_label: to_money(p.amount) for p in prior_pending}
    if academic_year not in dues:
        dues[academic_year] = max(to_money(current_year_due), ZERO)

    seen = set()
    accepted: List[PaymentAllocation] = []
    for alloc in allocations:
        alloc_amount = to_money(alloc.amount)
        if alloc_amount == ZERO:
            continue
        if alloc_amount < ZERO:
            raise ValidationError(
                f"Allocation for {alloc.year_label} must be greater than zero",
                ValidationError.NON_POSITIVE_AMOUNT,
            )
        if alloc.year_label not in dues:
            raise ValidationError(
                f"Unknown year {alloc.year_label}: not a pending year or the current year",
                ValidationError.UNKNOWN_YEAR,
            )
        if alloc.year_label in seen:
            raise ValidationError(
                f"Year {alloc.year_label} is allocated more than once",
                ValidationError.DUPLICATE_YEAR,
            )
        seen.add(alloc.year_label)
        if alloc_amount > dues[alloc.year_label]:
            raise ValidationError(
                f"Allocation for {alloc.year_label} ({alloc_amount}) exceeds amount due ({dues[alloc.year_label]})",
                ValidationError.EXCEEDS_OUTSTANDING,
            )
        accepted.append(PaymentAllocation(year_label=alloc.year_label, amount=alloc_amount))

    total = money_sum(a.amount for a in accepted)
    if total != amount:
        raise ValidationError(
            f"Total allocated amount ({total}) must equal the payment amount ({amount})",
            ValidationError.SUM_MISMATCH,
        )
    return accepted


def allocate(
    payment_amount,
    student: Student,
    academic_year: str,
    manual: Optional[Sequence[PaymentAllocation]] = None,
) -> List[PaymentAllocation]:
    """Auto-allocate when no manual allocation is given, otherwise validate the manual one."""
    current_due = compute_balance(student, academic_year).current_due
    if manual is None:
        return auto_allocate(payment_amount, student.previous_pending, current_due, academic_year)
    return validate_allocation(
        payment_amount, manual, student.previous_pending, current_due, academic_year
    )
