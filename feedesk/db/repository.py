"""
Ledger repository: the persistence boundary for students, payments and class fees.

Each call runs in its own session and transaction and is bounded by a timeout.
Failures surface as NotFoundError, ConflictError or TransientIOError; nothing is retried here.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from feedesk.core.config import settings
from feedesk.core.exceptions import ConflictError, NotFoundError, ServiceError, TransientIOError
from feedesk.core.models import ClassFeeRecord, PaymentRecord, StudentRecord
from feedesk.db.session import AsyncSessionLocal
from feedesk.ledger.schemas import ClassFeeConfig, Payment, Student

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _dump_list(items) -> list:
    return [item.model_dump(mode="json") for item in items]


def _payment_from_record(rec: PaymentRecord) -> Payment:
    return Payment(
        id=rec.id,
        paid_on=rec.paid_on,
        amount=rec.amount,
        mode=rec.mode,
        applied_to=rec.applied_to or [],
        receipt_no=rec.receipt_no,
        recorded_by=rec.recorded_by,
    )


def _payment_to_record(admission_number: str, position: int, payment: Payment) -> PaymentRecord:
    return PaymentRecord(
        id=payment.id,
        student_admission_number=admission_number,
        position=position,
        paid_on=payment.paid_on,
        amount=payment.amount,
        mode=payment.mode.value,
        applied_to=_dump_list(payment.applied_to),
        receipt_no=payment.receipt_no,
        recorded_by=payment.recorded_by.model_dump(mode="json"),
    )


def _student_from_record(rec: StudentRecord, payments: List[PaymentRecord]) -> Student:
    return Student(
        admission_number=rec.admission_number,
        student_name=rec.student_name,
        father_name=rec.father_name,
        mother_name=rec.mother_name,
        dob=rec.dob,
        sessions=rec.sessions or [],
        previous_pending=rec.previous_pending or [],
        current_year_fees=rec.current_year_fees,
        payments=[_payment_from_record(p) for p in payments],
        notes=rec.notes,
        version=rec.version,
    )


def _student_columns(student: Student) -> dict:
    return {
        "student_name": student.student_name,
        "father_name": student.father_name,
        "mother_name": student.mother_name,
        "dob": student.dob,
        "sessions": _dump_list(student.sessions),
        "previous_pending": _dump_list(student.previous_pending),
        "current_year_fees": student.current_year_fees,
        "notes": student.notes,
    }


def _class_fee_from_record(rec: ClassFeeRecord) -> ClassFeeConfig:
    return ClassFeeConfig(
        class_name=rec.class_name,
        fee_structure=rec.fee_structure or {},
        display_order=rec.display_order,
    )


class LedgerRepository:
    def __init__(
        self,
        session_factory: async_sessionmaker = AsyncSessionLocal,
        timeout: Optional[float] = None,
    ) -> None:
        self._session_factory = session_factory
        self._timeout = timeout if timeout is not None else settings.persistence_timeout_seconds

    async def _run(self, op: str, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
        async def _in_session() -> T:
            async with self._session_factory() as db:
                return await fn(db)

        try:
            return await asyncio.wait_for(_in_session(), timeout=self._timeout)
        except ServiceError:
            raise
        except asyncio.TimeoutError as e:
            logger.error("%s timed out after %ss", op, self._timeout)
            raise TransientIOError(f"Storage did not respond in time ({op})") from e
        except IntegrityError as e:
            raise ConflictError(f"Conflicting write rejected by storage ({op})") from e
        except SQLAlchemyError as e:
            # Driver errors, lost connections and pool exhaustion
            logger.error("%s failed: %s", op, e)
            raise TransientIOError(f"Storage unavailable ({op})") from e

    # --- Students ---
    async def _load_payments(self, db: AsyncSession, admission_number: str) -> List[PaymentRecord]:
        result = await db.execute(
            select(PaymentRecord)
            .where(PaymentRecord.student_admission_number == admission_number)
            .order_by(PaymentRecord.position)
        )
        return list(result.scalars().all())

    async def get_student(self, admission_number: str) -> Student:
        async def _get(db: AsyncSession) -> Student:
            rec = await db.get(StudentRecord, admission_number)
            if rec is None:
                raise NotFoundError(f"Student {admission_number} not found")
            return _student_from_record(rec, await self._load_payments(db, admission_number))

        return await self._run("get_student", _get)

    async def list_students(self) -> List[Student]:
        async def _list(db: AsyncSession) -> List[Student]:
            students = (
                await db.execute(select(StudentRecord).order_by(StudentRecord.admission_number))
            ).scalars().all()
            payments = (
                await db.execute(select(PaymentRecord).order_by(PaymentRecord.position))
            ).scalars().all()
            by_student: dict = {}
            for p in payments:
                by_student.setdefault(p.student_admission_number, []).append(p)
            return [_student_from_record(s, by_student.get(s.admission_number, [])) for s in students]

        return await self._run("list_students", _list)

    async def create_student(self, student: Student) -> Student:
        async def _create(db: AsyncSession) -> Student:
            async with db.begin():
                if await db.get(StudentRecord, student.admission_number) is not None:
                    raise ConflictError(f"Admission number {student.admission_number} already exists")
                db.add(
                    StudentRecord(
                        admission_number=student.admission_number,
                        version=0,
                        **_student_columns(student),
                    )
                )
                await db.flush()
                for position, payment in enumerate(student.payments):
                    db.add(_payment_to_record(student.admission_number, position, payment))
            return student.model_copy(update={"version": 0})

        return await self._run("create_student", _create)

    async def save_student(self, student: Student) -> Student:
        """
        Write the student only if nobody saved it since it was read (same version).

        Payments not yet stored are inserted in the same transaction, so a payment and
        its ledger effect land together. Stored payments are never updated or removed.
        """

        async def _save(db: AsyncSession) -> Student:
            async with db.begin():
                result = await db.execute(
                    update(StudentRecord)
                    .where(
                        StudentRecord.admission_number == student.admission_number,
                        StudentRecord.version == student.version,
                    )
                    .values(version=student.version + 1, **_student_columns(student))
                )
                if result.rowcount == 0:
                    if await db.get(StudentRecord, student.admission_number) is None:
                        raise NotFoundError(f"Student {student.admission_number} not found")
                    raise ConflictError(
                        f"Student {student.admission_number} was modified concurrently; reload and retry"
                    )
                stored = set(
                    (
                        await db.execute(
                            select(PaymentRecord.id).where(
                                PaymentRecord.student_admission_number == student.admission_number
                            )
                        )
                    ).scalars().all()
                )
                for position, payment in enumerate(student.payments):
                    if payment.id not in stored:
                        db.add(_payment_to_record(student.admission_number, position, payment))
            return student.model_copy(update={"version": student.version + 1})

        return await self._run("save_student", _save)

    async def delete_student(self, admission_number: str) -> None:
        async def _delete(db: AsyncSession) -> None:
            async with db.begin():
                await db.execute(
                    delete(PaymentRecord).where(PaymentRecord.student_admission_number == admission_number)
                )
                result = await db.execute(
                    delete(StudentRecord).where(StudentRecord.admission_number == admission_number)
                )
                if result.rowcount == 0:
                    raise NotFoundError(f"Student {admission_number} not found")

        await self._run("delete_student", _delete)

    # --- Class fees ---
    async def get_class_fees(self) -> List[ClassFeeConfig]:
        async def _list(db: AsyncSession) -> List[ClassFeeConfig]:
            rows = (
                await db.execute(
                    select(ClassFeeRecord).order_by(
                        ClassFeeRecord.display_order.nullslast(), ClassFeeRecord.class_name
                    )
                )
            ).scalars().all()
            return [_class_fee_from_record(r) for r in rows]

        return await self._run("get_class_fees", _list)

    async def get_class_fee(self, class_name: str) -> ClassFeeConfig:
        async def _get(db: AsyncSession) -> ClassFeeConfig:
            rec = await db.get(ClassFeeRecord, class_name)
            if rec is None:
                raise NotFoundError(f"Class {class_name} not found")
            return _class_fee_from_record(rec)

        return await self._run("get_class_fee", _get)

    async def save_class_fees(self, config: ClassFeeConfig) -> ClassFeeConfig:
        """Insert or overwrite one class's fee structure (last write wins)."""

        async def _save(db: AsyncSession) -> ClassFeeConfig:
            structure = {label: str(amount) for label, amount in config.fee_structure.items()}
            async with db.begin():
                rec = await db.get(ClassFeeRecord, config.class_name)
                if rec is None:
                    db.add(
                        ClassFeeRecord(
                            class_name=config.class_name,
                            fee_structure=structure,
                            display_order=config.display_order,
                        )
                    )
                else:
                    rec.fee_structure = structure
                    if config.display_order is not None:
                        rec.display_order = config.display_order
            return config

        return await self._run("save_class_fees", _save)


def get_repository() -> LedgerRepository:
    return LedgerRepository(AsyncSessionLocal)
