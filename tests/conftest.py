import os
from typing import AsyncGenerator, Dict

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("ACADEMIC_YEAR", "2025-26")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import feedesk.core.models  # noqa: F401
from feedesk.auth.models import User
from feedesk.auth.security import create_access_token, hash_password
from feedesk.core.enums import Role
from feedesk.db.repository import LedgerRepository, get_repository
from feedesk.db.seed import seed_ledger
from feedesk.db.session import Base, build_engine, build_session_factory, get_db
from feedesk.ledger.schemas import (
    ClassFeeConfig,
    PendingFee,
    RecordedBy,
    Student,
    StudentSession,
)
from feedesk.main import app

ACADEMIC_YEAR = "2025-26"
TEST_PASSWORD = "password123"
_PASSWORD_HASH = hash_password(TEST_PASSWORD)

USER_NAMES = {
    Role.ADMIN: "Dr. Evelyn Reed",
    Role.ACCOUNTANT: "Marcus Thorne",
    Role.TEACHER: "Lena Petrova",
    Role.PARENT: "Raj Patel",
}


@pytest.fixture()
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh SQLite file database per test with all tables created."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest.fixture()
def repo(session_factory: async_sessionmaker) -> LedgerRepository:
    return LedgerRepository(session_factory, timeout=5)


@pytest.fixture()
async def seeded(repo: LedgerRepository) -> LedgerRepository:
    """Class fees LKG..10 plus sample students S001-S003."""
    await seed_ledger(repo, RecordedBy(id="user-02", name="Marcus Thorne"))
    return repo


@pytest.fixture()
async def users(session_factory: async_sessionmaker) -> Dict[Role, User]:
    created: Dict[Role, User] = {}
    async with session_factory() as db:
        for role, name in USER_NAMES.items():
            user = User(username=role.value.lower(), name=name, password_hash=_PASSWORD_HASH, role=role.value)
            db.add(user)
            created[role] = user
        await db.commit()
    return created


@pytest.fixture()
def headers(users: Dict[Role, User]) -> Dict[Role, Dict[str, str]]:
    """Bearer headers per role."""
    out = {}
    for role, user in users.items():
        token = create_access_token(user.id, role.value)
        out[role] = {"Authorization": f"Bearer {token}"}
    return out


@pytest.fixture()
async def client(session_factory: async_sessionmaker, repo: LedgerRepository) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app, wired to the test database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_repository] = lambda: repo
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture()
def class_fees() -> list:
    return [
        ClassFeeConfig(class_name="2", fee_structure={ACADEMIC_YEAR: 19000}),
        ClassFeeConfig(class_name="5", fee_structure={"2024-25": 21000, ACADEMIC_YEAR: 22000}),
        ClassFeeConfig(class_name="8", fee_structure={ACADEMIC_YEAR: 28000}),
    ]


@pytest.fixture()
def student_with_arrears() -> Student:
    """Owes 2000 for 2023-24 and 1500 for 2024-25; class 5 fee 22000, nothing paid yet."""
    return Student(
        admission_number="S001",
        student_name="Aarav Sharma",
        sessions=[StudentSession(session_label=ACADEMIC_YEAR, class_name="5")],
        previous_pending=[
            PendingFee(year_label="2024-25", amount=1500),
            PendingFee(year_label="2023-24", amount=2000),
        ],
        current_year_fees=22000,
    )
