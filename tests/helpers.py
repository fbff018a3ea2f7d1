"""Shared constants and helpers for the test suite."""

from datetime import UTC, datetime, timedelta
from uuid import UUID

from clinic.core.security import create_access_token

# Frozen "now": Tuesday 1 January 2030, 10:00 UTC
NOW = datetime(2030, 1, 1, 10, 0, tzinfo=UTC)
TODAY = NOW.date()
YESTERDAY = TODAY - timedelta(days=1)  # Monday
TOMORROW = TODAY + timedelta(days=1)  # Wednesday
NEXT_MONDAY = TODAY + timedelta(days=6)

DOCTOR_AVAILABILITY = [
    {"day": "Mon", "slots": ["09:00-09:30", "09:30-10:00"]},
    {"day": "Tue", "slots": ["09:00-09:30", "14:00-14:30"]},
    {"day": "Wed", "slots": ["09:00-09:30", "10:00-10:30"]},
]


def auth_headers_for(role: str, subject: UUID) -> dict[str, str]:
    """Bearer header for a token minted the way the identity service does."""
    token = create_access_token(
        data={"sub": str(subject), "role": role},
        expires_delta=timedelta(minutes=30),
    )
    return {"Authorization": f"Bearer {token}"}
