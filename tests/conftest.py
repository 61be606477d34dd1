"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

import uuid
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from absence_tracker.common.constants import AbsenceStatus, UserRole
from absence_tracker.config import settings
from absence_tracker.database import Base, get_db
from absence_tracker.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import absence_tracker.absences.models  # noqa: F401
import absence_tracker.auth.models  # noqa: F401
import absence_tracker.common.audit  # noqa: F401
import absence_tracker.core_hr.models  # noqa: F401
import absence_tracker.work_hours.models  # noqa: F401

# ── SQLite compat: compile PG-specific types to TEXT/CHAR ───────────

from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() as a SQLite custom function."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )


TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from absence_tracker.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

def _make_company(*, name: str = "Acme d.o.o.") -> dict:
    return dict(
        id=uuid.uuid4(),
        name=name,
        is_active=True,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


def _make_department(*, company_id: uuid.UUID, name: str = "Production") -> dict:
    return dict(
        id=uuid.uuid4(),
        company_id=company_id,
        name=name,
        is_active=True,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


def _make_work_group(*, id: int = 1, name: str = "Morning shift") -> dict:
    return dict(
        id=id,
        name=name,
        start_time=time(7, 0),
        end_time=time(15, 0),
        has_rest_day=False,
    )


def _make_employee(
    *,
    email: str = "ana.horvat@example.com",
    first_name: str = "Ana",
    last_name: str = "Horvat",
    company_id: uuid.UUID | None = None,
    department_id: uuid.UUID | None = None,
    user_id: uuid.UUID | None = None,
    work_group: int = 1,
) -> dict:
    return dict(
        id=uuid.uuid4(),
        user_id=user_id,
        first_name=first_name,
        last_name=last_name,
        email=email,
        work_group=work_group,
        company_id=company_id,
        department_id=department_id,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


async def add_employee(db: AsyncSession, **kwargs) -> dict:
    from absence_tracker.core_hr.models import Employee

    data = _make_employee(**kwargs)
    db.add(Employee(**data))
    await db.flush()
    return data


async def add_absence(
    db: AsyncSession,
    employee_id: uuid.UUID,
    day,
    absence_type_id: str = "V",
    *,
    hours: Decimal = Decimal("8"),
    status: AbsenceStatus = AbsenceStatus.approved,
) -> None:
    from absence_tracker.absences.models import AbsenceRecord

    db.add(AbsenceRecord(
        id=uuid.uuid4(),
        employee_id=employee_id,
        absence_type_id=absence_type_id,
        date=day,
        hours=hours,
        status=status,
    ))
    await db.flush()


@pytest.fixture
async def test_company(db) -> dict:
    from absence_tracker.core_hr.models import Company

    data = _make_company()
    db.add(Company(**data))
    await db.flush()
    return data


@pytest.fixture
async def other_company(db) -> dict:
    from absence_tracker.core_hr.models import Company

    data = _make_company(name="Beta d.d.")
    db.add(Company(**data))
    await db.flush()
    return data


@pytest.fixture
async def test_department(db, test_company) -> dict:
    from absence_tracker.core_hr.models import Department

    data = _make_department(company_id=test_company["id"])
    db.add(Department(**data))
    await db.flush()
    return data


@pytest.fixture
async def test_work_group(db) -> dict:
    from absence_tracker.core_hr.models import WorkGroup

    data = _make_work_group()
    db.add(WorkGroup(**data))
    await db.flush()
    return data


@pytest.fixture
async def absence_types(db) -> dict[str, dict]:
    """Vacation (V) and sick leave (B)."""
    from absence_tracker.absences.models import AbsenceType

    types = {
        "V": dict(id="V", name="Vacation", color="#22c55e", is_active=True),
        "B": dict(id="B", name="Sick leave", color="#ef4444", is_active=True),
    }
    for data in types.values():
        db.add(AbsenceType(**data))
    await db.flush()
    return types


@pytest.fixture
async def test_user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
async def test_employee(db, test_company, test_department, test_work_group, test_user_id) -> dict:
    """Employee linked to the regular test user's login."""
    return await add_employee(
        db,
        company_id=test_company["id"],
        department_id=test_department["id"],
        user_id=test_user_id,
    )


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    email: str = "ana.horvat@example.com",
    expired: bool = False,
    audience: str = "authenticated",
) -> str:
    """Generate a JWT shaped like the auth provider's access tokens."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
    payload = {
        "sub": str(user_id),
        "email": email,
        "aud": audience,
        "role": "authenticated",
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
async def auth_headers(test_employee, test_user_id) -> dict[str, str]:
    """Bearer headers for the regular user who owns ``test_employee``."""
    return {"Authorization": f"Bearer {create_access_token(test_user_id)}"}


@pytest.fixture
async def admin_headers(db) -> dict[str, str]:
    """Bearer headers for an admin without an employee profile."""
    from absence_tracker.auth.models import UserRoleAssignment

    admin_id = uuid.uuid4()
    db.add(UserRoleAssignment(user_id=admin_id, role=UserRole.admin))
    await db.flush()
    return {"Authorization": f"Bearer {create_access_token(admin_id, 'admin@example.com')}"}
