"""Employee routers — team view for managers, onboarding and probation for admins."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from leavehub.auth.dependencies import require_role
from leavehub.common.constants import EmployeeType, ProbationStatus, UserRole
from leavehub.common.pagination import PaginationParams
from leavehub.common.responses import ApiResponse, ok
from leavehub.database import get_db
from leavehub.employees.models import Employee
from leavehub.employees.schemas import (
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
    ProbationEndingSoonItem,
    ProbationExtendRequest,
    ProbationReasonRequest,
    ProbationUpdateRequest,
)
from leavehub.employees.service import EmployeeService

manager_router = APIRouter(tags=["manager: team"])
admin_router = APIRouter(tags=["admin: employees"])

_manager = require_role(UserRole.manager)
_admin = require_role(UserRole.admin)


# ── Manager ─────────────────────────────────────────────────────────

@manager_router.get("/team", response_model=ApiResponse[list[EmployeeResponse]])
async def my_team(
    manager: Employee = Depends(_manager),
    db: AsyncSession = Depends(get_db),
):
    """Active direct reports of the calling manager."""
    reports = await EmployeeService.get_direct_reports(db, manager.id)
    return ok([EmployeeResponse.model_validate(e) for e in reports])


# ── Admin: employees ────────────────────────────────────────────────

@admin_router.get("/employees", response_model=ApiResponse[list[EmployeeResponse]])
async def list_employees(
    department: Optional[str] = Query(None),
    employee_type: Optional[EmployeeType] = Query(None),
    probation_status: Optional[ProbationStatus] = Query(None),
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(True),
    pagination: PaginationParams = Depends(),
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    rows, meta = await EmployeeService.list_employees(
        db,
        department=department,
        employee_type=employee_type,
        probation_status=probation_status,
        role=role,
        is_active=is_active,
        page=pagination.page,
        page_size=pagination.page_size,
        sort=pagination.sort,
    )
    return ok([EmployeeResponse.model_validate(e) for e in rows], pagination=meta)


@admin_router.post(
    "/employees",
    response_model=ApiResponse[EmployeeResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_employee(
    body: EmployeeCreate,
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    employee = await EmployeeService.create_employee(db, body, actor=admin)
    return ok(EmployeeResponse.model_validate(employee), "Employee created.")


@admin_router.get("/employees/{employee_id}", response_model=ApiResponse[EmployeeResponse])
async def get_employee(
    employee_id: uuid.UUID,
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    employee = await EmployeeService.get_employee(db, employee_id)
    return ok(EmployeeResponse.model_validate(employee))


@admin_router.put("/employees/{employee_id}", response_model=ApiResponse[EmployeeResponse])
async def update_employee(
    employee_id: uuid.UUID,
    body: EmployeeUpdate,
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    employee = await EmployeeService.update_employee(db, employee_id, body, actor=admin)
    return ok(EmployeeResponse.model_validate(employee))


# ── Admin: probation ────────────────────────────────────────────────

@admin_router.post(
    "/employees/{employee_id}/probation/complete",
    response_model=ApiResponse[EmployeeResponse],
)
async def complete_probation(
    employee_id: uuid.UUID,
    body: Optional[ProbationReasonRequest] = None,
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    employee = await EmployeeService.complete_probation(
        db, employee_id, actor=admin, reason=body.reason if body else None,
    )
    return ok(EmployeeResponse.model_validate(employee), "Probation completed.")


@admin_router.post(
    "/employees/{employee_id}/probation/extend",
    response_model=ApiResponse[EmployeeResponse],
)
async def extend_probation(
    employee_id: uuid.UUID,
    body: ProbationExtendRequest,
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    employee = await EmployeeService.extend_probation(
        db, employee_id, body.additional_days, actor=admin, reason=body.reason,
    )
    return ok(EmployeeResponse.model_validate(employee), "Probation extended.")


@admin_router.post(
    "/employees/{employee_id}/probation/terminate",
    response_model=ApiResponse[EmployeeResponse],
)
async def terminate_probation(
    employee_id: uuid.UUID,
    body: Optional[ProbationReasonRequest] = None,
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    employee = await EmployeeService.terminate_probation(
        db, employee_id, actor=admin, reason=body.reason if body else None,
    )
    return ok(EmployeeResponse.model_validate(employee), "Probation terminated.")


@admin_router.put(
    "/employees/{employee_id}/probation",
    response_model=ApiResponse[EmployeeResponse],
)
async def update_probation(
    employee_id: uuid.UUID,
    body: ProbationUpdateRequest,
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    employee = await EmployeeService.update_probation(db, employee_id, body, actor=admin)
    return ok(EmployeeResponse.model_validate(employee))


@admin_router.get(
    "/probation/ending-soon",
    response_model=ApiResponse[list[ProbationEndingSoonItem]],
)
async def probation_ending_soon(
    days_ahead: int = Query(7, ge=0, le=365),
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    return ok(await EmployeeService.probation_ending_soon(db, days_ahead=days_ahead))
