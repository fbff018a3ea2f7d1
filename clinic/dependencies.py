"""FastAPI dependencies."""

from collections.abc import Awaitable, Callable
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.clock import Clock, get_clock
from clinic.core.exceptions import ForbiddenException, UnauthorizedException
from clinic.core.redis_client import CacheManager, get_cache_manager
from clinic.core.security import Principal, decode_access_token
from clinic.core.state_machine import Role
from clinic.database import get_db
from clinic.models import doctors, patients, staff

# Security
security = HTTPBearer(auto_error=False)


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Principal:
    """
    Resolve the bearer token into a principal.

    Args:
        credentials: Bearer token credentials
        db: Database session

    Returns:
        Principal for the token subject

    Raises:
        UnauthorizedException: If the token is missing, invalid or names an unknown entity
    """
    if credentials is None:
        raise UnauthorizedException("Access token is required")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedException("Could not validate credentials")

    try:
        subject = UUID(str(payload.get("sub")))
        role = Role(payload.get("role"))
    except ValueError:
        raise UnauthorizedException("Token is invalid")

    if role is Role.PATIENT:
        row = (await db.execute(select(patients.c.id).where(patients.c.id == subject))).first()
        doctor_id = None
    elif role is Role.DOCTOR:
        row = (await db.execute(select(doctors.c.id).where(doctors.c.id == subject))).first()
        doctor_id = subject
    else:
        row = (
            await db.execute(select(staff.c.id, staff.c.doctor_id).where(staff.c.id == subject))
        ).first()
        doctor_id = row.doctor_id if row else None

    if row is None:
        raise UnauthorizedException("Token is invalid")

    return Principal(id=subject, role=role, doctor_id=doctor_id)


def require_role(*roles: Role) -> Callable[..., Awaitable[Principal]]:
    """Build a dependency that admits only the given roles."""

    async def dependency(
        principal: Annotated[Principal, Depends(get_current_principal)],
    ) -> Principal:
        if principal.role not in roles:
            raise ForbiddenException("Access denied")
        return principal

    return dependency


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
CurrentPatient = Annotated[Principal, Depends(require_role(Role.PATIENT))]
CurrentDoctor = Annotated[Principal, Depends(require_role(Role.DOCTOR))]
CurrentStaff = Annotated[Principal, Depends(require_role(Role.STAFF))]
CurrentClock = Annotated[Clock, Depends(get_clock)]
Cache = Annotated[CacheManager | None, Depends(get_cache_manager)]
