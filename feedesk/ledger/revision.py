"""Fee-revision propagator: change one class/session fee and find who it reaches."""

from typing import Iterable, List

from pydantic import BaseModel, Field

from feedesk.core.exceptions import ValidationError
from feedesk.core.money import ZERO, to_money
from feedesk.ledger.schemas import ClassFeeConfig, Student


class FeeRevision(BaseModel):
    updated_config: ClassFeeConfig
    affected_students: List[Student] = Field(default_factory=list)


def is_enrolled(student: Student, class_name: str, session_label: str) -> bool:
    return any(
        s.session_label == session_label and s.class_name == class_name
        for s in student.sessions
    )


def revise_fee(
    config: ClassFeeConfig,
    session_label: str,
    new_amount,
    students: Iterable[Student],
    academic_year: str,
) -> FeeRevision:
    """
    Set config.fee_structure[session_label] and return updated copies of the students
    whose current_year_fees must follow it.

    Only a revision of the active year propagates; fees of past sessions are frozen.
    The class is config.class_name; there is no separate class argument.
    """
    amount = to_money(new_amount)
    if amount < ZERO:
        raise ValidationError("Fee amount cannot be negative", ValidationError.NON_POSITIVE_AMOUNT)

    updated_config = config.model_copy(
        update={"fee_structure": {**config.fee_structure, session_label: amount}}
    )
    if session_label != academic_year:
        return FeeRevision(updated_config=updated_config)

    affected = [
        student.model_copy(update={"current_year_fees": amount})
        for student in students
        if is_enrolled(student, config.class_name, session_label)
    ]
    return FeeRevision(updated_config=updated_config, affected_students=affected)
