"""Students service: records, enrollment and balances."""

import logging
from typing import List, Optional

from feedesk.db.repository import LedgerRepository
from feedesk.ledger.balance import compute_balance
from feedesk.ledger.enrollment import (
    current_year_fees_for,
    enroll,
    ensure_unique_sessions,
    normalize_pending,
)
from feedesk.ledger.locks import StudentLocks
from feedesk.ledger.schemas import Student, StudentSession

from .schemas import (
    BalanceResponse,
    EnrollmentCreate,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
)

logger = logging.getLogger(__name__)


def to_response(student: Student, academic_year: str) -> StudentResponse:
    return StudentResponse(
        **student.model_dump(),
        current_class=student.class_for(academic_year),
        balance=compute_balance(student, academic_year),
    )


async def create_student(
    repo: LedgerRepository,
    payload: StudentCreate,
    academic_year: str,
) -> StudentResponse:
    sessions = ensure_unique_sessions(payload.sessions)
    pending = normalize_pending(payload.previous_pending)
    configs = await repo.get_class_fees()
    student = Student(
        admission_number=payload.admission_number.strip(),
        student_name=payload.student_name.strip(),
        father_name=payload.father_name,
        mother_name=payload.mother_name,
        dob=payload.dob,
        sessions=sessions,
        previous_pending=pending,
        current_year_fees=current_year_fees_for(sessions, configs, academic_year),
        notes=payload.notes,
    )
    created = await repo.create_student(student)
    logger.info("Created student %s", created.admission_number)
    return to_response(created, academic_year)


async def list_students(
    repo: LedgerRepository,
    academic_year: str,
    class_name: Optional[str] = None,
) -> List[StudentResponse]:
    """All students, or those in class_name for the active year, sorted by name."""
    students = await repo.list_students()
    if class_name is not None:
        students = [s for s in students if s.class_for(academic_year) == class_name]
    students.sort(key=lambda s: s.student_name.lower())
    return [to_response(s, academic_year) for s in students]


async def get_student(repo: LedgerRepository, admission_number: str, academic_year: str) -> StudentResponse:
    return to_response(await repo.get_student(admission_number), academic_year)


async def update_student(
    repo: LedgerRepository,
    locks: StudentLocks,
    admission_number: str,
    payload: StudentUpdate,
    academic_year: str,
) -> StudentResponse:
    async with locks.hold(admission_number):
        student = await repo.get_student(admission_number)
        update = payload.model_dump(exclude_unset=True, exclude={"sessions"})
        if payload.sessions is not None:
            sessions = ensure_unique_sessions(payload.sessions)
            configs = await repo.get_class_fees()
            update["sessions"] = sessions
            update["current_year_fees"] = current_year_fees_for(sessions, configs, academic_year)
        saved = await repo.save_student(student.model_copy(update=update))
    return to_response(saved, academic_year)


async def add_enrollment(
    repo: LedgerRepository,
    locks: StudentLocks,
    admission_number: str,
    payload: EnrollmentCreate,
    academic_year: str,
) -> StudentResponse:
    session = StudentSession(
        session_label=payload.session_label.strip(),
        class_name=payload.class_name.strip(),
    )
    async with locks.hold(admission_number):
        student = await repo.get_student(admission_number)
        configs = await repo.get_class_fees()
        saved = await repo.save_student(enroll(student, session, configs, academic_year))
    logger.info(
        "Enrolled %s in class %s for %s", admission_number, session.class_name, session.session_label
    )
    return to_response(saved, academic_year)


async def delete_student(repo: LedgerRepository, admission_number: str) -> None:
    await repo.delete_student(admission_number)
    logger.info("Deleted student %s", admission_number)


async def get_balance(repo: LedgerRepository, admission_number: str, academic_year: str) -> BalanceResponse:
    student = await repo.get_student(admission_number)
    balance = compute_balance(student, academic_year)
    return BalanceResponse(
        **balance.model_dump(),
        admission_number=student.admission_number,
        academic_year=academic_year,
        current_year_fees=student.current_year_fees,
        previous_pending=student.previous_pending,
    )
