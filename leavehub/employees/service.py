"""Employee service layer — onboarding, lookup and probation transitions.

Probation state machine::

    none ──(onboard as employee)──▶ active ──extend──▶ extended
                                     │  ▲               │
                                     │  └────extend─────┘
                                     ├──complete──▶ completed
                                     └──terminate─▶ terminated (employee deactivated)

Only ``active`` / ``extended`` can be completed or extended. Any status other
than ``terminated`` can be terminated.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leavehub.common.audit import record_audit
from leavehub.common.constants import (
    OPEN_PROBATION,
    EmployeeType,
    ProbationStatus,
    UserRole,
)
from leavehub.common.exceptions import (
    DuplicateError,
    InvalidRangeError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from leavehub.common.pagination import PaginationMeta, paginate
from leavehub.config import settings
from leavehub.employees.models import Employee
from leavehub.employees.schemas import (
    EmployeeCreate,
    EmployeeUpdate,
    ProbationEndingSoonItem,
    ProbationUpdateRequest,
)

logger = logging.getLogger(__name__)


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _probation_snapshot(employee: Employee) -> dict:
    return {
        "probation_status": employee.probation_status.value if employee.probation_status else None,
        "probation_start_date": (
            employee.probation_start_date.isoformat() if employee.probation_start_date else None
        ),
        "probation_end_date": (
            employee.probation_end_date.isoformat() if employee.probation_end_date else None
        ),
        "probation_duration": employee.probation_duration,
        "is_active": employee.is_active,
    }


class EmployeeService:
    """Async employee operations."""

    # ── Read ────────────────────────────────────────────────────────

    @staticmethod
    async def get_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
    ) -> Employee:
        result = await db.execute(select(Employee).where(Employee.id == employee_id))
        employee = result.scalars().first()
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        return employee

    @staticmethod
    async def list_employees(
        db: AsyncSession,
        *,
        department: Optional[str] = None,
        employee_type: Optional[EmployeeType] = None,
        probation_status: Optional[ProbationStatus] = None,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = True,
        page: int = 1,
        page_size: int = 50,
        sort: Optional[str] = None,
    ) -> tuple[list[Employee], PaginationMeta]:
        query = select(Employee).order_by(Employee.name)
        if department:
            query = query.where(Employee.department == department)
        if employee_type:
            query = query.where(Employee.employee_type == employee_type)
        if probation_status:
            query = query.where(Employee.probation_status == probation_status)
        if role:
            query = query.where(Employee.role == role)
        if is_active is not None:
            query = query.where(Employee.is_active == is_active)

        rows, meta = await paginate(
            db, query, page=page, page_size=page_size, sort=sort, model=Employee,
        )
        return list(rows), meta

    @staticmethod
    async def get_direct_reports(
        db: AsyncSession,
        manager_id: uuid.UUID,
    ) -> list[Employee]:
        result = await db.execute(
            select(Employee)
            .where(Employee.manager_id == manager_id, Employee.is_active.is_(True))
            .order_by(Employee.name)
        )
        return list(result.scalars().all())

    # ── Create / Update ─────────────────────────────────────────────

    @staticmethod
    async def create_employee(
        db: AsyncSession,
        data: EmployeeCreate,
        *,
        actor: Optional[Employee] = None,
    ) -> Employee:
        """Create an employee; role=employee starts probation on the join date by default."""

        if data.manager_id is not None:
            await EmployeeService.get_employee(db, data.manager_id)

        with_probation = data.with_probation
        if with_probation is None:
            with_probation = data.role == UserRole.employee

        fields = data.model_dump(exclude={"with_probation", "probation_days"})
        employee = Employee(**fields, is_active=True)
        if with_probation:
            duration = data.probation_days or settings.DEFAULT_PROBATION_DAYS
            employee.probation_status = ProbationStatus.active
            employee.probation_start_date = data.join_date
            employee.probation_end_date = data.join_date + timedelta(days=duration)
            employee.probation_duration = duration
        else:
            employee.probation_status = ProbationStatus.none

        db.add(employee)
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            err = str(exc.orig)
            if "employee_code" in err:
                raise DuplicateError("employee_code", data.employee_code)
            if "email" in err:
                raise DuplicateError("email", data.email)
            raise

        await record_audit(
            db,
            action="EMPLOYEE_CREATE",
            target_type="employee",
            target_id=employee.id,
            actor_id=actor.id if actor else None,
            actor_name=actor.name if actor else "System",
            details={**data.model_dump(mode="json"), **_probation_snapshot(employee)},
        )
        logger.info(
            "Employee %s created (role=%s, probation=%s)",
            employee.id, employee.role.value, employee.probation_status.value,
        )
        return employee

    @staticmethod
    async def update_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        data: EmployeeUpdate,
        *,
        actor: Employee,
    ) -> Employee:
        employee = await EmployeeService.get_employee(db, employee_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("manager_id") is not None:
            if changes["manager_id"] == employee_id:
                raise ValidationError({"manager_id": ["An employee cannot report to themselves."]})
            await EmployeeService.get_employee(db, changes["manager_id"])

        old_values = {k: getattr(employee, k) for k in changes}
        for field, value in changes.items():
            setattr(employee, field, value)
        employee.updated_at = datetime.now(timezone.utc)
        await db.flush()

        await record_audit(
            db,
            action="EMPLOYEE_UPDATE",
            target_type="employee",
            target_id=employee.id,
            actor_id=actor.id,
            actor_name=actor.name,
            details={
                "old": {k: _plain(v) for k, v in old_values.items()},
                "new": {k: _plain(v) for k, v in changes.items()},
            },
        )
        return employee

    # ── Probation transitions ───────────────────────────────────────

    @staticmethod
    async def _transition(
        db: AsyncSession,
        employee: Employee,
        action: str,
        before: dict,
        actor: Employee,
        reason: Optional[str] = None,
    ) -> Employee:
        employee.updated_at = datetime.now(timezone.utc)
        await db.flush()
        await record_audit(
            db,
            action=action,
            target_type="employee",
            target_id=employee.id,
            actor_id=actor.id,
            actor_name=actor.name,
            details={"before": before, "after": _probation_snapshot(employee), "reason": reason},
        )
        logger.info(
            "%s for employee %s: %s -> %s",
            action, employee.id, before["probation_status"],
            employee.probation_status.value if employee.probation_status else None,
        )
        return employee

    @staticmethod
    async def complete_probation(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        actor: Employee,
        reason: Optional[str] = None,
    ) -> Employee:
        employee = await EmployeeService.get_employee(db, employee_id)
        if employee.probation_status not in OPEN_PROBATION:
            raise InvalidTransitionError("Employee is not in active probation.")

        before = _probation_snapshot(employee)
        employee.probation_status = ProbationStatus.completed
        employee.probation_completed_at = datetime.now(timezone.utc)
        return await EmployeeService._transition(
            db, employee, "PROBATION_COMPLETE", before, actor, reason,
        )

    @staticmethod
    async def extend_probation(
        db: AsyncSession,
        employee_id: uuid.UUID,
        additional_days: int,
        *,
        actor: Employee,
        reason: Optional[str] = None,
    ) -> Employee:
        """Push the end date out by *additional_days*; status becomes extended."""

        if additional_days <= 0:
            raise InvalidRangeError("additional_days must be positive.", field="additional_days")

        employee = await EmployeeService.get_employee(db, employee_id)
        if employee.probation_status not in OPEN_PROBATION:
            raise InvalidTransitionError("Employee is not in active probation.")

        before = _probation_snapshot(employee)
        current_end = employee.probation_end_date or _today()
        employee.probation_end_date = current_end + timedelta(days=additional_days)
        employee.probation_duration = (employee.probation_duration or 0) + additional_days
        employee.probation_status = ProbationStatus.extended
        return await EmployeeService._transition(
            db, employee, "PROBATION_EXTEND", before, actor, reason,
        )

    @staticmethod
    async def terminate_probation(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        actor: Employee,
        reason: Optional[str] = None,
    ) -> Employee:
        """Terminate during probation; the employee is deactivated."""

        employee = await EmployeeService.get_employee(db, employee_id)
        if employee.probation_status == ProbationStatus.terminated:
            raise InvalidTransitionError("Employee probation is already terminated.")

        before = _probation_snapshot(employee)
        employee.probation_status = ProbationStatus.terminated
        employee.is_active = False
        return await EmployeeService._transition(
            db, employee, "PROBATION_TERMINATE", before, actor, reason,
        )

    @staticmethod
    async def update_probation(
        db: AsyncSession,
        employee_id: uuid.UUID,
        data: ProbationUpdateRequest,
        *,
        actor: Employee,
    ) -> Employee:
        """Correct probation dates/duration without changing the status.

        A duration without an end date recomputes the end from the start;
        dates without a duration recompute the duration.
        """

        employee = await EmployeeService.get_employee(db, employee_id)
        before = _probation_snapshot(employee)

        start = data.start_date or employee.probation_start_date
        end = data.end_date
        duration = data.duration_days

        if duration is not None and end is None:
            if start is None:
                raise InvalidRangeError(
                    "A probation start date is required to derive the end date.",
                    field="start_date",
                )
            end = start + timedelta(days=duration)
        if end is None:
            end = employee.probation_end_date
        if start is not None and end is not None:
            if end < start:
                raise InvalidRangeError(
                    "Probation end date must be on or after the start date.",
                )
            if duration is None:
                duration = (end - start).days

        employee.probation_start_date = start
        employee.probation_end_date = end
        employee.probation_duration = duration
        return await EmployeeService._transition(
            db, employee, "PROBATION_UPDATE", before, actor,
        )

    # ── Reporting ───────────────────────────────────────────────────

    @staticmethod
    async def probation_ending_soon(
        db: AsyncSession,
        *,
        days_ahead: int = 7,
    ) -> list[ProbationEndingSoonItem]:
        """Active employees whose open probation ends within *days_ahead* days."""

        today = _today()
        horizon = today + timedelta(days=days_ahead)
        result = await db.execute(
            select(Employee)
            .where(
                Employee.is_active.is_(True),
                Employee.probation_status.in_(list(OPEN_PROBATION)),
                Employee.probation_end_date >= today,
                Employee.probation_end_date <= horizon,
            )
            .order_by(Employee.probation_end_date, Employee.name)
        )
        return [
            ProbationEndingSoonItem(
                id=e.id,
                name=e.name,
                department=e.department,
                probation_status=e.probation_status,
                probation_end_date=e.probation_end_date,
                days_remaining=(e.probation_end_date - today).days,
            )
            for e in result.scalars().all()
        ]


def _plain(value):
    if isinstance(value, uuid.UUID):
        return str(value)
    return getattr(value, "value", value)
