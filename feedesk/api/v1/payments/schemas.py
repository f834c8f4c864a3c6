"""Payments schemas."""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from feedesk.core.enums import PaymentMode
from feedesk.ledger.schemas import Balance, Payment, PaymentAllocation


class AllocationPreviewRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)


class AllocationPreviewResponse(BaseModel):
    admission_number: str
    academic_year: str
    balance: Balance
    allocations: List[PaymentAllocation]


class PaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    mode: PaymentMode
    paid_on: Optional[date] = None
    allocations: Optional[List[PaymentAllocation]] = Field(
        None,
        description="Manual split across years; omit to apply oldest pending year first",
    )


class PaymentReceiptResponse(BaseModel):
    admission_number: str
    student_name: str
    academic_year: str
    payment: Payment
    balance_before: Balance
    balance_after: Balance
