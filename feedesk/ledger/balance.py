"""Balance calculator: pure derivation of a student's outstanding figures."""

from decimal import Decimal

from feedesk.core.money import money_sum, to_money
from feedesk.ledger.schemas import Balance, Student


def current_year_paid(student: Student, academic_year: str) -> Decimal:
    return money_sum(
        alloc.amount
        for payment in student.payments
        for alloc in payment.applied_to
        if alloc.year_label == academic_year
    )


def compute_balance(student: Student, academic_year: str) -> Balance:
    """
    prior_pending + (current_year_fees - paid towards academic_year).

    current_due is not clamped: a negative value is a credit and is reported as such.
    """
    prior_pending = money_sum(p.amount for p in student.previous_pending)
    current_paid = current_year_paid(student, academic_year)
    current_due = to_money(student.current_year_fees) - current_paid
    return Balance(
        prior_pending=prior_pending,
        current_paid=current_paid,
        current_due=current_due,
        outstanding=prior_pending + current_due,
    )
