import os
from collections.abc import AsyncGenerator, Callable
from datetime import date
from typing import Any
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

# Load environment variables from .env file
load_dotenv()

# The app engine is never used by tests; get_db is overridden below
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("LOG_FORMAT", "console")

from clinic.core.clock import FixedClock, get_clock  # noqa: E402
from clinic.core.redis_client import get_cache_manager  # noqa: E402
from clinic.database import get_db  # noqa: E402
from clinic.main import app  # noqa: E402
from clinic.models import appointments, doctors, metadata, patients, staff  # noqa: E402
from tests.helpers import DOCTOR_AVAILABILITY, NOW, TOMORROW, auth_headers_for  # noqa: E402


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite database per test, so separate sessions really are separate."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'clinic.db'}",
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    clock: FixedClock,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client; every request gets its own session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_cache_manager] = lambda: None

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def _insert(session: AsyncSession, table: Any, **values: Any) -> dict[str, Any]:
    values.setdefault("id", uuid4())
    await session.execute(insert(table).values(**values))
    await session.commit()
    return values


@pytest_asyncio.fixture
async def doctor(db_session: AsyncSession) -> dict[str, Any]:
    return await _insert(
        db_session,
        doctors,
        name="Dr. Asha Rao",
        email="asha@clinic.test",
        specialization="General Medicine",
        availability=DOCTOR_AVAILABILITY,
    )


@pytest_asyncio.fixture
async def other_doctor(db_session: AsyncSession) -> dict[str, Any]:
    return await _insert(
        db_session,
        doctors,
        name="Dr. Ben Okafor",
        email="ben@clinic.test",
        specialization="Dermatology",
        availability=DOCTOR_AVAILABILITY,
    )


@pytest_asyncio.fixture
async def patient(db_session: AsyncSession) -> dict[str, Any]:
    return await _insert(
        db_session, patients, name="Maya Singh", email="maya@example.com", phone="+15550100"
    )


@pytest_asyncio.fixture
async def other_patient(db_session: AsyncSession) -> dict[str, Any]:
    return await _insert(
        db_session, patients, name="Leo Park", email="leo@example.com", phone="+15550101"
    )


@pytest_asyncio.fixture
async def staff_member(db_session: AsyncSession, doctor: dict[str, Any]) -> dict[str, Any]:
    return await _insert(
        db_session,
        staff,
        doctor_id=doctor["id"],
        name="Nia Front",
        email="nia@clinic.test",
        role="receptionist",
    )


@pytest_asyncio.fixture
async def other_staff_member(
    db_session: AsyncSession, other_doctor: dict[str, Any]
) -> dict[str, Any]:
    return await _insert(
        db_session,
        staff,
        doctor_id=other_doctor["id"],
        name="Omar Desk",
        email="omar@clinic.test",
        role="receptionist",
    )


@pytest.fixture
def patient_headers(patient: dict[str, Any]) -> dict[str, str]:
    return auth_headers_for("patient", patient["id"])


@pytest.fixture
def other_patient_headers(other_patient: dict[str, Any]) -> dict[str, str]:
    return auth_headers_for("patient", other_patient["id"])


@pytest.fixture
def doctor_headers(doctor: dict[str, Any]) -> dict[str, str]:
    return auth_headers_for("doctor", doctor["id"])


@pytest.fixture
def other_doctor_headers(other_doctor: dict[str, Any]) -> dict[str, str]:
    return auth_headers_for("doctor", other_doctor["id"])


@pytest.fixture
def staff_headers(staff_member: dict[str, Any]) -> dict[str, str]:
    return auth_headers_for("staff", staff_member["id"])


@pytest.fixture
def other_staff_headers(other_staff_member: dict[str, Any]) -> dict[str, str]:
    return auth_headers_for("staff", other_staff_member["id"])


@pytest.fixture
def make_appointment(
    db_session: AsyncSession,
    doctor: dict[str, Any],
    patient: dict[str, Any],
) -> Callable[..., Any]:
    """Insert an appointment directly, in any status."""

    async def _make(
        status: str = "pending",
        day: date = TOMORROW,
        slot: str = "09:00-09:30",
        doctor_id: UUID | None = None,
        patient_id: UUID | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        return await _insert(
            db_session,
            appointments,
            doctor_id=doctor_id or doctor["id"],
            patient_id=patient_id or patient["id"],
            date=day,
            slot=slot,
            status=status,
            version=1,
            **extra,
        )

    return _make


@pytest.fixture
def sample_prescription_data() -> dict:
    """Sample prescription data for testing."""
    return {
        "medicines": [
            {
                "name": "Amoxicillin",
                "dosage": "500mg",
                "frequency": "3x daily",
                "duration_days": 7,
            }
        ],
        "notes": "Take after meals",
    }


@pytest.fixture
def sample_bill_data() -> dict:
    """Sample bill data for testing; totals to 13000 + 2340 tax."""
    return {
        "items": [
            {"label": "Consultation", "qty": 1, "unit_price": 10000},
            {"label": "Dressing", "qty": 2, "unit_price": 1500},
        ],
        "tax_percent": "18",
    }
