"""Enums and constants for LeaveHub — stored as plain strings in the database."""

from __future__ import annotations

import enum
from decimal import Decimal


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    admin = "admin"


# ── Employee ────────────────────────────────────────────────────────

class EmployeeType(str, enum.Enum):
    onshore = "onshore"
    offshore = "offshore"


class ProbationStatus(str, enum.Enum):
    none = "none"
    active = "active"
    extended = "extended"
    completed = "completed"
    terminated = "terminated"


# Statuses under which leave is forced unpaid
OPEN_PROBATION: frozenset[ProbationStatus] = frozenset(
    {ProbationStatus.active, ProbationStatus.extended}
)


# ── Leave ───────────────────────────────────────────────────────────

class LeaveType(str, enum.Enum):
    annual = "annual"
    sick = "sick"
    casual = "casual"
    emergency = "emergency"
    maternity = "maternity"
    paternity = "paternity"


class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class HalfDayPeriod(str, enum.Enum):
    morning = "morning"
    afternoon = "afternoon"


class PolicyResolution(str, enum.Enum):
    """How a leave policy is matched to an employee's classification."""

    strict = "strict"
    fallback = "fallback"


# ── Calendar / arithmetic ───────────────────────────────────────────

DAYS_PER_YEAR = Decimal("365")
TWO_PLACES = Decimal("0.01")

MONTH_NAMES: tuple[str, ...] = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

DATE_FORMAT = "%Y-%m-%d"
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


# ── Role hierarchy ──────────────────────────────────────────────────

ROLE_HIERARCHY: dict[UserRole, set[UserRole]] = {
    UserRole.admin: {UserRole.admin, UserRole.manager, UserRole.employee},
    UserRole.manager: {UserRole.manager, UserRole.employee},
    UserRole.employee: {UserRole.employee},
}
