"""Leave ORM models: LeavePolicy, LeaveRequest, LeaveBalanceAdjustment."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leavehub.common.constants import (
    EmployeeType,
    HalfDayPeriod,
    LeaveStatus,
    LeaveType,
)
from leavehub.database import Base, utcnow

if TYPE_CHECKING:
    from leavehub.employees.models import Employee


class LeavePolicy(Base):
    __tablename__ = "leave_policies"
    __table_args__ = (
        sa.UniqueConstraint(
            "leave_type", "employee_type", name="uq_leave_policy_type_employee_type",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    leave_type: Mapped[LeaveType] = mapped_column(
        sa.Enum(LeaveType, native_enum=False, length=20), nullable=False,
    )
    # NULL = applies to every employee type (only honoured in fallback mode)
    employee_type: Mapped[Optional[EmployeeType]] = mapped_column(
        sa.Enum(EmployeeType, native_enum=False, length=20),
    )
    total_days_per_year: Mapped[Decimal] = mapped_column(
        sa.Numeric(5, 2), nullable=False,
    )
    is_paid: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    requires_approval: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    allow_half_day: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id"),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now()
    )


class LeaveRequest(Base):
    __tablename__ = "leave_requests"
    __table_args__ = (
        sa.CheckConstraint("total_days > 0", name="ck_leave_requests_positive_days"),
        sa.Index("ix_leave_requests_employee_dates", "employee_id", "start_date", "end_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id"), nullable=False
    )
    leave_type: Mapped[LeaveType] = mapped_column(
        sa.Enum(LeaveType, native_enum=False, length=20), nullable=False,
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    total_days: Mapped[Decimal] = mapped_column(sa.Numeric(5, 2), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, native_enum=False, length=20),
        default=LeaveStatus.pending,
        nullable=False,
    )
    is_half_day: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    half_day_period: Mapped[Optional[HalfDayPeriod]] = mapped_column(
        sa.Enum(HalfDayPeriod, native_enum=False, length=20),
    )
    short_leave_hours: Mapped[Optional[Decimal]] = mapped_column(sa.Numeric(4, 2))
    # Derived at creation; only rewritten by an explicit recompute
    is_paid: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    submitted_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now()
    )
    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id")
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    reviewer_comments: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now()
    )

    # Relationships
    employee: Mapped[Employee] = relationship(
        back_populates="leave_requests", foreign_keys=[employee_id]
    )
    reviewer: Mapped[Optional[Employee]] = relationship(
        foreign_keys=[reviewed_by]
    )


class LeaveBalanceAdjustment(Base):
    """Manual top-up of a leave type's entitlement for one employee and year."""

    __tablename__ = "leave_balance_adjustments"
    __table_args__ = (
        sa.UniqueConstraint(
            "employee_id", "leave_type", "year", name="uq_leave_balance_adjustment"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id"), nullable=False
    )
    leave_type: Mapped[LeaveType] = mapped_column(
        sa.Enum(LeaveType, native_enum=False, length=20), nullable=False,
    )
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    adjusted_days: Mapped[Decimal] = mapped_column(
        sa.Numeric(6, 2), nullable=False, default=Decimal("0")
    )
    updated_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id")
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now()
    )

    employee: Mapped[Employee] = relationship(
        back_populates="balance_adjustments", foreign_keys=[employee_id]
    )
