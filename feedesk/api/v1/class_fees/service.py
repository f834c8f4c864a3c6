"""Class fee service: fee table maintenance and revision fan-out to enrolled students."""

import asyncio
import logging
from decimal import Decimal
from typing import List, Optional

from feedesk.core.exceptions import ConflictError, ServiceError
from feedesk.db.repository import LedgerRepository
from feedesk.ledger.locks import StudentLocks
from feedesk.ledger.revision import is_enrolled, revise_fee
from feedesk.ledger.schemas import ClassFeeConfig, Student

from .schemas import ClassFeeCreate, FeeRevisionResponse, PropagationFailure

logger = logging.getLogger(__name__)


async def list_class_fees(repo: LedgerRepository) -> List[ClassFeeConfig]:
    return await repo.get_class_fees()


async def create_class_fee(repo: LedgerRepository, payload: ClassFeeCreate) -> ClassFeeConfig:
    class_name = payload.class_name.strip()
    existing = {c.class_name for c in await repo.get_class_fees()}
    if class_name in existing:
        raise ConflictError(f"Class {class_name} already exists")
    config = ClassFeeConfig(
        class_name=class_name,
        fee_structure=payload.fee_structure,
        display_order=payload.display_order,
    )
    return await repo.save_class_fees(config)


async def _propagate_one(
    repo: LedgerRepository,
    locks: StudentLocks,
    semaphore: asyncio.Semaphore,
    student: Student,
    class_name: str,
    session_label: str,
    amount: Decimal,
) -> Optional[PropagationFailure]:
    admission_number = student.admission_number
    async with semaphore:
        try:
            async with locks.hold(admission_number):
                # Re-read so the write is based on the latest version of the record.
                fresh = await repo.get_student(admission_number)
                if not is_enrolled(fresh, class_name, session_label):
                    return None
                await repo.save_student(fresh.model_copy(update={"current_year_fees": amount}))
        except ServiceError as e:
            logger.warning("Fee revision not applied to %s: %s", admission_number, e.message)
            return PropagationFailure(admission_number=admission_number, error=e.message)
        except Exception as e:
            # Any other failure is reported for this student like a ServiceError.
            logger.exception("Fee revision failed unexpectedly for %s", admission_number)
            return PropagationFailure(admission_number=admission_number, error=str(e) or type(e).__name__)
    return None


async def revise_class_fee(
    repo: LedgerRepository,
    locks: StudentLocks,
    class_name: str,
    session_label: str,
    amount: Decimal,
    academic_year: str,
    concurrency: int,
) -> FeeRevisionResponse:
    """
    Save the new class/session fee, then push it to every student enrolled in that class
    for the active year, at most `concurrency` writes at a time. Failures are collected,
    not retried.
    """
    config = await repo.get_class_fee(class_name)
    students = await repo.list_students()
    revision = revise_fee(config, session_label, amount, students, academic_year)
    saved_config = await repo.save_class_fees(revision.updated_config)
    new_amount = saved_config.fee_structure[session_label]

    semaphore = asyncio.Semaphore(concurrency)
    results = await asyncio.gather(
        *(
            _propagate_one(repo, locks, semaphore, s, class_name, session_label, new_amount)
            for s in revision.affected_students
        )
    )
    failed = [r for r in results if r is not None]
    failed_ids = {f.admission_number for f in failed}
    updated = [s.admission_number for s in revision.affected_students if s.admission_number not in failed_ids]

    logger.info(
        "Fee for class %s session %s set to %s; %d students updated, %d failed",
        class_name,
        session_label,
        new_amount,
        len(updated),
        len(failed),
    )
    return FeeRevisionResponse(
        class_fee=saved_config,
        session_label=session_label,
        amount=new_amount,
        updated=updated,
        failed=failed,
    )
