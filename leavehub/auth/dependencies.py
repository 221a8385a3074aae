"""Auth dependencies — JWT validation, RBAC enforcement."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import Depends, Request
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavehub.common.constants import ROLE_HIERARCHY, UserRole
from leavehub.common.exceptions import ForbiddenError, UnauthorizedError
from leavehub.config import settings
from leavehub.database import get_db
from leavehub.employees.models import Employee


def create_access_token(
    employee_id: uuid.UUID,
    role: UserRole,
    *,
    expires_in: Optional[timedelta] = None,
) -> str:
    """Issue a signed access token for *employee_id*."""
    expires_in = expires_in or timedelta(hours=settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(employee_id),
        "role": role.value,
        "type": "access",
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise UnauthorizedError("Missing or invalid Authorization header.")
    return auth_header[7:]


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Employee:
    """Validate the JWT and return the authenticated, active Employee."""
    token = _extract_bearer(request)

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise UnauthorizedError("Token has expired.")
    except JWTError:
        raise UnauthorizedError("Invalid token.")

    if payload.get("type") != "access":
        raise UnauthorizedError("Invalid token type.")

    try:
        employee_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise UnauthorizedError("Invalid token subject.")

    result = await db.execute(
        select(Employee).where(Employee.id == employee_id, Employee.is_active.is_(True)),
    )
    employee = result.scalars().first()
    if employee is None:
        raise UnauthorizedError("User account is inactive or not found.")

    # The stored role is authoritative; the token claim is informational
    request.state.user_role = employee.role
    return employee


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed_roles: UserRole) -> Callable:
    """Return a FastAPI dependency that enforces role membership.

    Respects hierarchy — admin can reach manager and employee endpoints.
    """

    async def _check(
        employee: Employee = Depends(get_current_user),
    ) -> Employee:
        effective_roles = ROLE_HIERARCHY.get(employee.role, {employee.role})
        if not effective_roles.intersection(allowed_roles):
            raise ForbiddenError(
                detail=(
                    f"Role '{employee.role.value}' is not permitted. "
                    f"Required: {[r.value for r in allowed_roles]}."
                ),
            )
        return employee

    return _check
