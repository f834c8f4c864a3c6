"""Enrollment rules: session uniqueness, opening pending fees and the current-year fee lookup."""

import logging
from decimal import Decimal
from typing import List, Optional, Sequence

from feedesk.core.exceptions import NotFoundError, ValidationError
from feedesk.core.money import ZERO, is_settled, to_money
from feedesk.ledger.schemas import ClassFeeConfig, PendingFee, Student, StudentSession

logger = logging.getLogger(__name__)


def ensure_unique_sessions(sessions: Sequence[StudentSession]) -> List[StudentSession]:
    seen = set()
    cleaned: List[StudentSession] = []
    for s in sessions:
        label = s.session_label.strip()
        if label in seen:
            raise ValidationError(
                f"Student is already enrolled for session {label}",
                ValidationError.DUPLICATE_SESSION,
            )
        seen.add(label)
        cleaned.append(StudentSession(session_label=label, class_name=s.class_name.strip()))
    return cleaned


def normalize_pending(pending: Sequence[PendingFee]) -> List[PendingFee]:
    """Drop entries already settled (0.01 or less); reject a year listed twice."""
    seen = set()
    cleaned: List[PendingFee] = []
    for p in pending:
        label = p.year_label.strip()
        if label in seen:
            raise ValidationError(
                f"Pending fee for {label} is listed more than once",
                ValidationError.DUPLICATE_YEAR,
            )
        seen.add(label)
        if not is_settled(p.amount):
            cleaned.append(PendingFee(year_label=label, amount=p.amount))
    return cleaned


def fee_for(configs: Sequence[ClassFeeConfig], class_name: str, session_label: str) -> Decimal:
    """Fee table amount for class/session; 0 if the class has no amount for that session."""
    config: Optional[ClassFeeConfig] = next((c for c in configs if c.class_name == class_name), None)
    if config is None:
        raise NotFoundError(f"No fee structure configured for class {class_name}")
    amount = config.fee_structure.get(session_label)
    if amount is None:
        logger.warning("Class %s has no fee for session %s; using 0", class_name, session_label)
        return ZERO
    return to_money(amount)


def current_year_fees_for(
    sessions: Sequence[StudentSession],
    configs: Sequence[ClassFeeConfig],
    academic_year: str,
) -> Decimal:
    current = next((s for s in sessions if s.session_label == academic_year), None)
    if current is None:
        return ZERO
    return fee_for(configs, current.class_name, academic_year)


def enroll(
    student: Student,
    session: StudentSession,
    configs: Sequence[ClassFeeConfig],
    academic_year: str,
) -> Student:
    """Add an enrollment; enrolling in the active year also sets current_year_fees."""
    sessions = ensure_unique_sessions([*student.sessions, session])
    update = {"sessions": sessions}
    if sessions[-1].session_label == academic_year:
        update["current_year_fees"] = fee_for(configs, sessions[-1].class_name, academic_year)
    return student.model_copy(update=update)
