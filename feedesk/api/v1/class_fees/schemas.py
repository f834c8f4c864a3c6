"""Class fee schemas."""

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from feedesk.ledger.schemas import ClassFeeConfig


class ClassFeeCreate(BaseModel):
    class_name: str = Field(..., min_length=1, max_length=50)
    fee_structure: Dict[str, Decimal] = Field(default_factory=dict)
    display_order: Optional[int] = None

    @field_validator("fee_structure")
    @classmethod
    def non_negative_fees(cls, v: Dict[str, Decimal]) -> Dict[str, Decimal]:
        if any(amount < 0 for amount in v.values()):
            raise ValueError("fee amounts cannot be negative")
        return v


class FeeRevisionRequest(BaseModel):
    amount: Decimal = Field(..., ge=0)


class PropagationFailure(BaseModel):
    admission_number: str
    error: str


class FeeRevisionResponse(BaseModel):
    """Config is always saved; student updates are best effort and reported one by one."""

    class_fee: ClassFeeConfig
    session_label: str
    amount: Decimal
    updated: List[str] = Field(default_factory=list)
    failed: List[PropagationFailure] = Field(default_factory=list)
