"""Report schemas."""

from decimal import Decimal
from typing import Dict, List

from pydantic import BaseModel

from feedesk.ledger.schemas import Payment


class ClassOutstandingItem(BaseModel):
    class_name: str
    total_students: int
    students_with_dues: int
    total_outstanding: Decimal


class PaymentReportItem(Payment):
    admission_number: str
    student_name: str


class DashboardSummary(BaseModel):
    academic_year: str
    total_students: int
    total_outstanding: Decimal
    students_with_dues: int
    collected_today: Decimal
    recent_payments: List[PaymentReportItem]
    class_counts: Dict[str, int]
