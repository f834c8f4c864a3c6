"""Reports service: read-only aggregates over every student's ledger."""

import io
from datetime import date
from typing import List, Optional, Sequence

from openpyxl import Workbook

from feedesk.core.money import EPSILON, ZERO, money_sum
from feedesk.db.repository import LedgerRepository
from feedesk.ledger.balance import compute_balance
from feedesk.ledger.schemas import ClassFeeConfig, Student

from .schemas import ClassOutstandingItem, DashboardSummary, PaymentReportItem

RECENT_PAYMENTS_LIMIT = 5


def _class_order(configs: Sequence[ClassFeeConfig], students: Sequence[Student], academic_year: str) -> List[str]:
    names = [c.class_name for c in configs]
    for s in students:
        current = s.class_for(academic_year)
        if current and current not in names:
            names.append(current)
    return names


def outstanding_by_class(
    students: Sequence[Student],
    configs: Sequence[ClassFeeConfig],
    academic_year: str,
) -> List[ClassOutstandingItem]:
    """Per class of the active year; only students who still owe money add to the totals."""
    items = {
        name: ClassOutstandingItem(class_name=name, total_students=0, students_with_dues=0, total_outstanding=ZERO)
        for name in _class_order(configs, students, academic_year)
    }
    for student in students:
        current = student.class_for(academic_year)
        if current is None:
            continue
        item = items[current]
        item.total_students += 1
        outstanding = compute_balance(student, academic_year).outstanding
        if outstanding > EPSILON:
            item.total_outstanding += outstanding
            item.students_with_dues += 1
    return list(items.values())


def payment_report(students: Sequence[Student]) -> List[PaymentReportItem]:
    rows = [
        PaymentReportItem(
            **payment.model_dump(),
            admission_number=student.admission_number,
            student_name=student.student_name,
        )
        for student in students
        for payment in student.payments
    ]
    rows.sort(key=lambda r: r.paid_on, reverse=True)
    return rows


def dashboard_summary(
    students: Sequence[Student],
    configs: Sequence[ClassFeeConfig],
    academic_year: str,
    today: Optional[date] = None,
) -> DashboardSummary:
    today = today or date.today()
    outstanding = [compute_balance(s, academic_year).outstanding for s in students]
    owing = [o for o in outstanding if o > EPSILON]
    payments = payment_report(students)
    class_counts = {name: 0 for name in _class_order(configs, students, academic_year)}
    for s in students:
        current = s.class_for(academic_year)
        if current is not None:
            class_counts[current] += 1
    return DashboardSummary(
        academic_year=academic_year,
        total_students=len(students),
        total_outstanding=money_sum(owing),
        students_with_dues=len(owing),
        collected_today=money_sum(p.amount for p in payments if p.paid_on == today),
        recent_payments=payments[:RECENT_PAYMENTS_LIMIT],
        class_counts=class_counts,
    )


def build_payments_excel(rows: Sequence[PaymentReportItem]) -> bytes:
    """One row per payment; allocations flattened as "year: amount" pairs."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Payments"
    ws.append(
        ["receipt_no", "date", "admission_number", "student_name", "amount", "mode", "applied_to", "recorded_by"]
    )
    for r in rows:
        ws.append(
            [
                r.receipt_no,
                r.paid_on.isoformat(),
                r.admission_number,
                r.student_name,
                float(r.amount),
                r.mode.value,
                ", ".join(f"{a.year_label}: {a.amount}" for a in r.applied_to),
                r.recorded_by.name,
            ]
        )
    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()


async def get_outstanding_by_class(repo: LedgerRepository, academic_year: str) -> List[ClassOutstandingItem]:
    return outstanding_by_class(await repo.list_students(), await repo.get_class_fees(), academic_year)


async def get_payment_report(repo: LedgerRepository) -> List[PaymentReportItem]:
    return payment_report(await repo.list_students())


async def get_dashboard(repo: LedgerRepository, academic_year: str) -> DashboardSummary:
    return dashboard_summary(await repo.list_students(), await repo.get_class_fees(), academic_year)
