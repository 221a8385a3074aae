"""Employee service test suite — onboarding defaults and probation transitions."""

from __future__ import annotations

import uuid
from datetime import date
from unittest.mock import patch

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavehub.common.audit import AuditLog
from leavehub.common.constants import EmployeeType, ProbationStatus, UserRole
from leavehub.common.exceptions import (
    DuplicateError,
    InvalidRangeError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from leavehub.employees.schemas import EmployeeCreate, EmployeeUpdate, ProbationUpdateRequest
from leavehub.employees.service import EmployeeService
from tests.factories import seed_employee


def _create(**kw) -> EmployeeCreate:
    data = dict(
        name="New Hire",
        email=f"hire.{uuid.uuid4().hex[:6]}@leavehub.io",
        join_date=date(2024, 1, 1),
        employee_type=EmployeeType.onshore,
    )
    data.update(kw)
    return EmployeeCreate(**data)


async def _on_probation(db: AsyncSession):
    admin = await seed_employee(db, name="Ada Admin", role=UserRole.admin)
    emp = await EmployeeService.create_employee(db, _create(), actor=admin)
    return admin, emp


# ═════════════════════════════════════════════════════════════════════
# 1. Onboarding
# ═════════════════════════════════════════════════════════════════════


class TestCreateEmployee:

    async def test_employee_role_starts_probation(self, db: AsyncSession):
        _, emp = await _on_probation(db)

        assert emp.probation_status == ProbationStatus.active
        assert emp.probation_start_date == date(2024, 1, 1)
        assert emp.probation_end_date == date(2024, 3, 31)
        assert emp.probation_duration == 90

    async def test_custom_probation_length(self, db: AsyncSession):
        emp = await EmployeeService.create_employee(db, _create(probation_days=30))
        assert emp.probation_end_date == date(2024, 1, 31)

    async def test_manager_role_skips_probation(self, db: AsyncSession):
        emp = await EmployeeService.create_employee(db, _create(role=UserRole.manager))
        assert emp.probation_status == ProbationStatus.none
        assert emp.probation_end_date is None

    async def test_probation_can_be_disabled(self, db: AsyncSession):
        emp = await EmployeeService.create_employee(db, _create(with_probation=False))
        assert emp.probation_status == ProbationStatus.none

    async def test_unknown_manager_not_found(self, db: AsyncSession):
        with pytest.raises(NotFoundError):
            await EmployeeService.create_employee(db, _create(manager_id=uuid.uuid4()))

    async def test_duplicate_email(self, db: AsyncSession):
        await seed_employee(db, email="taken@leavehub.io")
        with pytest.raises(DuplicateError):
            await EmployeeService.create_employee(db, _create(email="taken@leavehub.io"))

    async def test_creation_audited(self, db: AsyncSession):
        admin, emp = await _on_probation(db)
        audit = (await db.execute(
            select(AuditLog).where(AuditLog.target_id == emp.id)
        )).scalars().one()
        assert audit.action == "EMPLOYEE_CREATE"
        assert audit.actor_name == "Ada Admin"
        assert audit.details["probation_status"] == "active"

    async def test_cannot_report_to_self(self, db: AsyncSession):
        admin = await seed_employee(db, role=UserRole.admin)
        emp = await seed_employee(db)
        with pytest.raises(ValidationError) as exc_info:
            await EmployeeService.update_employee(
                db, emp.id, EmployeeUpdate(manager_id=emp.id), actor=admin,
            )
        assert "manager_id" in exc_info.value.errors


# ═════════════════════════════════════════════════════════════════════
# 2. Probation transitions
# ═════════════════════════════════════════════════════════════════════


class TestProbation:

    async def test_complete(self, db: AsyncSession):
        admin, emp = await _on_probation(db)
        result = await EmployeeService.complete_probation(db, emp.id, actor=admin)

        assert result.probation_status == ProbationStatus.completed
        assert result.probation_completed_at is not None

        with pytest.raises(InvalidTransitionError):
            await EmployeeService.complete_probation(db, emp.id, actor=admin)

    async def test_extend_pushes_end_date(self, db: AsyncSession):
        admin, emp = await _on_probation(db)
        result = await EmployeeService.extend_probation(
            db, emp.id, 30, actor=admin, reason="More time",
        )

        assert result.probation_status == ProbationStatus.extended
        assert result.probation_end_date == date(2024, 4, 30)
        assert result.probation_duration == 120

        again = await EmployeeService.extend_probation(db, emp.id, 10, actor=admin)
        assert again.probation_end_date == date(2024, 5, 10)

    async def test_extend_requires_open_probation(self, db: AsyncSession):
        admin = await seed_employee(db, role=UserRole.admin)
        emp = await seed_employee(db, probation_status=ProbationStatus.completed)
        with pytest.raises(InvalidTransitionError):
            await EmployeeService.extend_probation(db, emp.id, 10, actor=admin)

    async def test_extend_rejects_non_positive_days(self, db: AsyncSession):
        admin, emp = await _on_probation(db)
        with pytest.raises(InvalidRangeError):
            await EmployeeService.extend_probation(db, emp.id, 0, actor=admin)

    async def test_terminate_deactivates(self, db: AsyncSession):
        admin, emp = await _on_probation(db)
        result = await EmployeeService.terminate_probation(db, emp.id, actor=admin)

        assert result.probation_status == ProbationStatus.terminated
        assert result.is_active is False

        with pytest.raises(InvalidTransitionError):
            await EmployeeService.terminate_probation(db, emp.id, actor=admin)

    async def test_update_dates_recomputes_duration(self, db: AsyncSession):
        admin, emp = await _on_probation(db)
        result = await EmployeeService.update_probation(
            db, emp.id, ProbationUpdateRequest(end_date=date(2024, 2, 29)), actor=admin,
        )
        assert result.probation_end_date == date(2024, 2, 29)
        assert result.probation_duration == 59
        assert result.probation_status == ProbationStatus.active

    async def test_update_duration_recomputes_end(self, db: AsyncSession):
        admin, emp = await _on_probation(db)
        result = await EmployeeService.update_probation(
            db, emp.id, ProbationUpdateRequest(duration_days=60), actor=admin,
        )
        assert result.probation_end_date == date(2024, 3, 1)

    async def test_update_end_before_start_rejected(self, db: AsyncSession):
        admin, emp = await _on_probation(db)
        with pytest.raises(InvalidRangeError):
            await EmployeeService.update_probation(
                db, emp.id, ProbationUpdateRequest(end_date=date(2023, 12, 1)), actor=admin,
            )

    async def test_ending_soon(self, db: AsyncSession):
        await seed_employee(
            db, name="Soon",
            probation_status=ProbationStatus.active,
            probation_start_date=date(2024, 1, 1),
            probation_end_date=date(2024, 3, 31),
        )
        await seed_employee(
            db, name="Later",
            probation_status=ProbationStatus.extended,
            probation_start_date=date(2024, 1, 1),
            probation_end_date=date(2024, 6, 30),
        )
        await seed_employee(
            db, name="Done",
            probation_status=ProbationStatus.completed,
            probation_start_date=date(2024, 1, 1),
            probation_end_date=date(2024, 3, 30),
        )

        with patch("leavehub.employees.service._today", return_value=date(2024, 3, 26)):
            items = await EmployeeService.probation_ending_soon(db, days_ahead=7)

        assert [i.name for i in items] == ["Soon"]
        assert items[0].days_remaining == 5
