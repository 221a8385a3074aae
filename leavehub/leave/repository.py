"""Repository seams between the async ORM and the pure leave engine.

Each protocol returns engine value types (``EmployeeProfile``,
``PolicyRecord``, ``LeaveRecord``) so that services load data here and hand
plain values to ``leavehub.engine``. Services take a ``LeaveRepositories``
bundle; ``LeaveRepositories.for_session`` wires the SQLAlchemy
implementations to a session.
"""

from __future__ import annotations

import asyncio
import uuid
import weakref
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavehub.common.constants import LeaveStatus, LeaveType
from leavehub.common.exceptions import NotFoundError
from leavehub.employees.models import Employee
from leavehub.engine.types import EmployeeProfile, LeaveRecord, PolicyRecord
from leavehub.leave.models import LeaveBalanceAdjustment, LeavePolicy, LeaveRequest


# ═════════════════════════════════════════════════════════════════════
# Protocols
# ═════════════════════════════════════════════════════════════════════


class EmployeeRepository(Protocol):
    async def get_profile(self, *, employee_id: uuid.UUID) -> EmployeeProfile:
        raise NotImplementedError

    async def lock(self, *, employee_id: uuid.UUID) -> Employee:
        """Load the employee row with a write lock for the current transaction."""

        raise NotImplementedError


class PolicyRepository(Protocol):
    async def list_policies(
        self,
        *,
        leave_type: Optional[LeaveType] = None,
        active_only: bool = True,
    ) -> list[PolicyRecord]:
        raise NotImplementedError


class LeaveRequestRepository(Protocol):
    async def history(
        self,
        *,
        employee_id: uuid.UUID,
        statuses: Optional[Iterable[LeaveStatus]] = None,
    ) -> list[LeaveRecord]:
        raise NotImplementedError

    async def history_for(
        self,
        *,
        employee_ids: Sequence[uuid.UUID],
        statuses: Optional[Iterable[LeaveStatus]] = None,
    ) -> dict[uuid.UUID, list[LeaveRecord]]:
        raise NotImplementedError

    async def overlapping(
        self,
        *,
        employee_id: uuid.UUID,
        start_date: date,
        end_date: date,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> list[LeaveRecord]:
        """Pending or approved requests sharing at least one date with the range."""

        raise NotImplementedError


class BalanceAdjustmentRepository(Protocol):
    async def adjustments(
        self,
        *,
        employee_id: uuid.UUID,
        year: int,
    ) -> dict[LeaveType, Decimal]:
        raise NotImplementedError

    async def get_row(
        self,
        *,
        employee_id: uuid.UUID,
        leave_type: LeaveType,
        year: int,
    ) -> Optional[LeaveBalanceAdjustment]:
        raise NotImplementedError


class LeaveRepositories:
    """The repositories one service call reads and writes through."""

    def __init__(
        self,
        *,
        employees: EmployeeRepository,
        policies: PolicyRepository,
        requests: LeaveRequestRepository,
        adjustments: BalanceAdjustmentRepository,
    ) -> None:
        self.employees = employees
        self.policies = policies
        self.requests = requests
        self.adjustments = adjustments

    @classmethod
    def for_session(cls, db: AsyncSession) -> "LeaveRepositories":
        return cls(
            employees=SqlEmployeeRepository(db),
            policies=SqlPolicyRepository(db),
            requests=SqlLeaveRequestRepository(db),
            adjustments=SqlBalanceAdjustmentRepository(db),
        )


# ═════════════════════════════════════════════════════════════════════
# SQLAlchemy implementations
# ═════════════════════════════════════════════════════════════════════


class SqlEmployeeRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_profile(self, *, employee_id: uuid.UUID) -> EmployeeProfile:
        result = await self.db.execute(
            select(Employee).where(Employee.id == employee_id)
        )
        employee = result.scalars().first()
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        return EmployeeProfile.model_validate(employee)

    async def lock(self, *, employee_id: uuid.UUID) -> Employee:
        result = await self.db.execute(
            select(Employee).where(Employee.id == employee_id).with_for_update()
        )
        employee = result.scalars().first()
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        return employee


class SqlPolicyRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_policies(
        self,
        *,
        leave_type: Optional[LeaveType] = None,
        active_only: bool = True,
    ) -> list[PolicyRecord]:
        query = select(LeavePolicy)
        if active_only:
            query = query.where(LeavePolicy.is_active.is_(True))
        if leave_type is not None:
            query = query.where(LeavePolicy.leave_type == leave_type)
        result = await self.db.execute(query)
        return [PolicyRecord.model_validate(p) for p in result.scalars().all()]


class SqlLeaveRequestRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def history(
        self,
        *,
        employee_id: uuid.UUID,
        statuses: Optional[Iterable[LeaveStatus]] = None,
    ) -> list[LeaveRecord]:
        grouped = await self.history_for(employee_ids=[employee_id], statuses=statuses)
        return grouped.get(employee_id, [])

    async def history_for(
        self,
        *,
        employee_ids: Sequence[uuid.UUID],
        statuses: Optional[Iterable[LeaveStatus]] = None,
    ) -> dict[uuid.UUID, list[LeaveRecord]]:
        if not employee_ids:
            return {}
        query = (
            select(LeaveRequest)
            .where(LeaveRequest.employee_id.in_(list(employee_ids)))
            .order_by(LeaveRequest.start_date, LeaveRequest.submitted_at)
        )
        if statuses is not None:
            query = query.where(LeaveRequest.status.in_(list(statuses)))
        result = await self.db.execute(query)

        grouped: dict[uuid.UUID, list[LeaveRecord]] = defaultdict(list)
        for req in result.scalars().all():
            grouped[req.employee_id].append(LeaveRecord.model_validate(req))
        return dict(grouped)

    async def overlapping(
        self,
        *,
        employee_id: uuid.UUID,
        start_date: date,
        end_date: date,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> list[LeaveRecord]:
        query = (
            select(LeaveRequest)
            .where(
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.status.in_([LeaveStatus.pending, LeaveStatus.approved]),
                LeaveRequest.start_date <= end_date,
                LeaveRequest.end_date >= start_date,
            )
            .order_by(LeaveRequest.start_date)
        )
        if exclude_id is not None:
            query = query.where(LeaveRequest.id != exclude_id)
        result = await self.db.execute(query)
        return [LeaveRecord.model_validate(r) for r in result.scalars().all()]


class SqlBalanceAdjustmentRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def adjustments(
        self,
        *,
        employee_id: uuid.UUID,
        year: int,
    ) -> dict[LeaveType, Decimal]:
        result = await self.db.execute(
            select(LeaveBalanceAdjustment).where(
                LeaveBalanceAdjustment.employee_id == employee_id,
                LeaveBalanceAdjustment.year == year,
            )
        )
        return {
            LeaveType(adj.leave_type): Decimal(adj.adjusted_days)
            for adj in result.scalars().all()
        }

    async def get_row(
        self,
        *,
        employee_id: uuid.UUID,
        leave_type: LeaveType,
        year: int,
    ) -> Optional[LeaveBalanceAdjustment]:
        result = await self.db.execute(
            select(LeaveBalanceAdjustment).where(
                LeaveBalanceAdjustment.employee_id == employee_id,
                LeaveBalanceAdjustment.leave_type == leave_type,
                LeaveBalanceAdjustment.year == year,
            )
        )
        return result.scalars().first()


# ── Per-employee serialization ──────────────────────────────────────

# An entry lives only while some caller holds or waits on its lock
_employee_locks: "weakref.WeakValueDictionary[uuid.UUID, asyncio.Lock]" = (
    weakref.WeakValueDictionary()
)


def employee_lock(employee_id: uuid.UUID) -> asyncio.Lock:
    """In-process lock shared by every writer touching one employee's leave.

    Paired with ``SqlEmployeeRepository.lock`` (row lock) for multi-process
    deployments on PostgreSQL.
    """
    lock = _employee_locks.get(employee_id)
    if lock is None:
        lock = asyncio.Lock()
        _employee_locks[employee_id] = lock
    return lock
