"""Ledger records: the plain data the engine reads and returns."""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from feedesk.core.enums import PaymentMode
from feedesk.core.money import money_sum, to_money


class _Money(BaseModel):
    @field_validator("amount", mode="after", check_fields=False)
    @classmethod
    def _quantize(cls, v: Decimal) -> Decimal:
        return to_money(v)


class StudentSession(BaseModel):
    """Enrollment of a student in a class for one academic session."""

    session_label: str = Field(..., min_length=1)
    class_name: str = Field(..., min_length=1)


class PendingFee(_Money):
    """Amount still owed for a past academic year."""

    year_label: str = Field(..., min_length=1)
    amount: Decimal


class PaymentAllocation(_Money):
    """Part of a payment applied to one year bucket (a past year or the active year)."""

    year_label: str = Field(..., min_length=1)
    amount: Decimal


class RecordedBy(BaseModel):
    """Snapshot of the acting user at write time."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class Payment(_Money):
    id: str
    paid_on: date
    amount: Decimal = Field(..., gt=0)
    mode: PaymentMode
    applied_to: List[PaymentAllocation]
    receipt_no: str
    recorded_by: RecordedBy

    @model_validator(mode="after")
    def _allocations_match_amount(self) -> "Payment":
        if any(a.amount <= 0 for a in self.applied_to):
            raise ValueError("every allocation must be greater than zero")
        if money_sum(a.amount for a in self.applied_to) != self.amount:
            raise ValueError("allocations must add up to the payment amount")
        return self


class Student(BaseModel):
    admission_number: str = Field(..., min_length=1)
    student_name: str
    father_name: Optional[str] = None
    mother_name: Optional[str] = None
    dob: Optional[date] = None
    sessions: List[StudentSession] = Field(default_factory=list)
    previous_pending: List[PendingFee] = Field(default_factory=list)
    current_year_fees: Decimal = Decimal("0.00")
    payments: List[Payment] = Field(default_factory=list)
    notes: Optional[str] = None
    version: int = 0

    @field_validator("current_year_fees", mode="after")
    @classmethod
    def _quantize_fees(cls, v: Decimal) -> Decimal:
        return to_money(v)

    def class_for(self, session_label: str) -> Optional[str]:
        for s in self.sessions:
            if s.session_label == session_label:
                return s.class_name
        return None


class ClassFeeConfig(BaseModel):
    class_name: str = Field(..., min_length=1)
    fee_structure: Dict[str, Decimal] = Field(default_factory=dict)
    display_order: Optional[int] = None

    @field_validator("fee_structure", mode="after")
    @classmethod
    def _quantize_structure(cls, v: Dict[str, Decimal]) -> Dict[str, Decimal]:
        for label, amount in v.items():
            if amount < 0:
                raise ValueError(f"fee for {label} cannot be negative")
        return {label: to_money(amount) for label, amount in v.items()}


class Balance(BaseModel):
    """Derived figures for one student and academic year. current_due < 0 means credit."""

    prior_pending: Decimal
    current_paid: Decimal
    current_due: Decimal
    outstanding: Decimal
