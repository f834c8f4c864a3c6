"""Students schemas."""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from feedesk.ledger.schemas import Balance, PendingFee, Student, StudentSession


class StudentCreate(BaseModel):
    admission_number: str = Field(..., min_length=1, max_length=50)
    student_name: str = Field(..., min_length=1, max_length=255)
    father_name: Optional[str] = Field(None, max_length=255)
    mother_name: Optional[str] = Field(None, max_length=255)
    dob: Optional[date] = None
    sessions: List[StudentSession] = Field(default_factory=list)
    previous_pending: List[PendingFee] = Field(default_factory=list)
    notes: Optional[str] = None


class StudentUpdate(BaseModel):
    """Details only. Pending fees and payments are changed by payments, never by edits."""

    student_name: Optional[str] = Field(None, min_length=1, max_length=255)
    father_name: Optional[str] = Field(None, max_length=255)
    mother_name: Optional[str] = Field(None, max_length=255)
    dob: Optional[date] = None
    sessions: Optional[List[StudentSession]] = None
    notes: Optional[str] = None

    @field_validator("student_name")
    @classmethod
    def name_not_null(cls, v: Optional[str]) -> Optional[str]:
        # Omit the field to keep the name; null is not a name.
        if v is None:
            raise ValueError("student_name cannot be null")
        return v


class EnrollmentCreate(BaseModel):
    session_label: str = Field(..., min_length=1)
    class_name: str = Field(..., min_length=1)


class StudentResponse(Student):
    current_class: Optional[str] = None
    balance: Balance


class BalanceResponse(Balance):
    admission_number: str
    academic_year: str
    current_year_fees: Decimal
    previous_pending: List[PendingFee]
