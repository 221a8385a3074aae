"""Employee ORM model: identity, role, reporting line, tenure and probation.

SQLAlchemy 2.0 async-compatible model with Mapped[] annotations. Enum-valued
columns are stored as plain strings; the closed enums live in
``leavehub.common.constants``.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leavehub.common.constants import EmployeeType, ProbationStatus, UserRole
from leavehub.database import Base, utcnow

if TYPE_CHECKING:
    from leavehub.leave.models import LeaveBalanceAdjustment, LeaveRequest


class Employee(Base):
    """Anyone who can log in: employees, managers and admins."""

    __tablename__ = "employees"

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_code: Mapped[Optional[str]] = mapped_column(sa.String(30), unique=True)
    name: Mapped[str] = mapped_column(sa.String(150), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    role: Mapped[UserRole] = mapped_column(
        sa.Enum(UserRole, native_enum=False, length=20),
        nullable=False,
        default=UserRole.employee,
    )
    department: Mapped[Optional[str]] = mapped_column(sa.String(100))
    manager_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id"),
    )
    join_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    employee_type: Mapped[Optional[EmployeeType]] = mapped_column(
        sa.Enum(EmployeeType, native_enum=False, length=20),
    )

    # ── Probation ───────────────────────────────────────────────────
    probation_status: Mapped[Optional[ProbationStatus]] = mapped_column(
        sa.Enum(ProbationStatus, native_enum=False, length=20),
    )
    probation_start_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    probation_end_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    probation_duration: Mapped[Optional[int]] = mapped_column(sa.Integer)
    probation_completed_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True),
    )

    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )

    # ── Relationships ───────────────────────────────────────────────
    manager: Mapped[Optional[Employee]] = relationship(
        remote_side=[id], foreign_keys=[manager_id], back_populates="reports",
    )
    reports: Mapped[list[Employee]] = relationship(
        foreign_keys=[manager_id], back_populates="manager",
    )
    leave_requests: Mapped[list[LeaveRequest]] = relationship(
        back_populates="employee", foreign_keys="LeaveRequest.employee_id",
    )
    balance_adjustments: Mapped[list[LeaveBalanceAdjustment]] = relationship(
        back_populates="employee", foreign_keys="LeaveBalanceAdjustment.employee_id",
    )

    def __repr__(self) -> str:
        return f"<Employee {self.email!r} ({self.role})>"
