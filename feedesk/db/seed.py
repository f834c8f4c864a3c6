"""
Seed script: create tables and load starter data when the database is empty.

Run once with env set (DATABASE_URL, JWT_SECRET_KEY):
  python -m feedesk.db.seed

Creates:
- users: admin, accountant, teacher, parent (password from SEED_ADMIN_PASSWORD or "password")
- class_fees: LKG..10 for the active academic year
- students: three sample students, one with pending fees and a prior payment
"""
import asyncio
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

import feedesk.core.models  # noqa: F401  (register tables on Base.metadata)
from feedesk.auth.models import User
from feedesk.auth.security import hash_password
from feedesk.core.config import settings
from feedesk.core.enums import PaymentMode, Role
from feedesk.db.repository import LedgerRepository
from feedesk.db.session import AsyncSessionLocal, Base, engine
from feedesk.ledger.schemas import (
    ClassFeeConfig,
    Payment,
    PaymentAllocation,
    PendingFee,
    RecordedBy,
    Student,
    StudentSession,
)

DEFAULT_PASSWORD = "password"

CLASS_FEES = [
    ("LKG", 15000),
    ("UKG", 16000),
    ("1", 18000),
    ("2", 19000),
    ("3", 20000),
    ("4", 21000),
    ("5", 22000),
    ("6", 24000),
    ("7", 26000),
    ("8", 28000),
    ("9", 30000),
    ("10", 32000),
]

USERS = [
    ("admin", "Dr. Evelyn Reed", Role.ADMIN),
    ("accountant", "Marcus Thorne", Role.ACCOUNTANT),
    ("teacher", "Lena Petrova", Role.TEACHER),
    ("parent", "Raj Patel", Role.PARENT),
]


def sample_students(academic_year: str, recorded_by: RecordedBy) -> list:
    return [
        Student(
            admission_number="S001",
            student_name="Aarav Sharma",
            father_name="Manish Sharma",
            mother_name="Priya Sharma",
            dob=date(2015, 5, 20),
            sessions=[StudentSession(session_label=academic_year, class_name="5")],
            previous_pending=[
                PendingFee(year_label="2023-24", amount=2000),
                PendingFee(year_label="2024-25", amount=1500),
            ],
            current_year_fees=22000,
            payments=[
                Payment(
                    id="P001",
                    paid_on=date(2025, 4, 10),
                    amount=10000,
                    mode=PaymentMode.TRANSFER,
                    applied_to=[PaymentAllocation(year_label=academic_year, amount=10000)],
                    receipt_no="R001",
                    recorded_by=recorded_by,
                )
            ],
            notes="Enrolled in chess club.",
        ),
        Student(
            admission_number="S002",
            student_name="Diya Patel",
            father_name="Sanjay Patel",
            mother_name="Anita Patel",
            dob=date(2018, 2, 15),
            sessions=[StudentSession(session_label=academic_year, class_name="2")],
            current_year_fees=19000,
        ),
        Student(
            admission_number="S003",
            student_name="Rohan Singh",
            father_name="Vikram Singh",
            mother_name="Sunita Singh",
            dob=date(2012, 11, 30),
            sessions=[StudentSession(session_label=academic_year, class_name="8")],
            previous_pending=[PendingFee(year_label="2024-25", amount=5000)],
            current_year_fees=28000,
        ),
    ]


async def seed_users(db: AsyncSession) -> RecordedBy:
    count = (await db.execute(select(func.count(User.id)))).scalar() or 0
    if count:
        print("Users already exist; skipping users.")
    else:
        password = settings.seed_admin_password or DEFAULT_PASSWORD
        for username, name, role in USERS:
            if username == "admin" and settings.seed_admin_username:
                username = settings.seed_admin_username
            db.add(User(username=username, name=name, password_hash=hash_password(password), role=role.value))
        await db.commit()
        print("Created default users.")
    accountant = (
        await db.execute(select(User).where(User.role == Role.ACCOUNTANT.value).order_by(User.created_at))
    ).scalars().first()
    if accountant is None:
        return RecordedBy(id="system", name="System")
    return RecordedBy(id=accountant.id, name=accountant.name)


async def seed_ledger(repo: LedgerRepository, recorded_by: RecordedBy) -> None:
    if await repo.get_class_fees():
        print("Class fees already exist; skipping class fees.")
    else:
        for order, (class_name, amount) in enumerate(CLASS_FEES):
            await repo.save_class_fees(
                ClassFeeConfig(
                    class_name=class_name,
                    fee_structure={settings.academic_year: amount},
                    display_order=order,
                )
            )
        print("Created class fee structure.")

    if await repo.list_students():
        print("Students already exist; skipping students.")
        return
    for student in sample_students(settings.academic_year, recorded_by):
        await repo.create_student(student)
    print("Created sample students.")


async def main() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncSessionLocal() as db:
        try:
            recorded_by = await seed_users(db)
        except Exception as e:
            await db.rollback()
            print("Error:", e)
            raise
    await seed_ledger(LedgerRepository(AsyncSessionLocal), recorded_by)
    await engine.dispose()
    print("Seed done.")


if __name__ == "__main__":
    asyncio.run(main())
