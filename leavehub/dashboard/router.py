"""Dashboard / report routers.

Employee: own dashboard. Manager: team balances and monthly report.
Admin: organisation-wide reports, summary and the on-demand accrual run.
"""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leavehub.auth.dependencies import get_current_user, require_role
from leavehub.common.constants import UserRole
from leavehub.common.responses import ApiResponse, ok
from leavehub.dashboard.schemas import (
    AccrualRunResult,
    EmployeeDashboard,
    LeaveSummary,
    MonthlyReport,
    PaidUnpaidReport,
    TeamMemberBalance,
)
from leavehub.dashboard.service import DashboardService
from leavehub.database import get_db
from leavehub.employees.models import Employee

employee_router = APIRouter(tags=["employee: dashboard"])
manager_router = APIRouter(tags=["manager: reports"])
admin_router = APIRouter(tags=["admin: reports"])

_manager = require_role(UserRole.manager)
_admin = require_role(UserRole.admin)


# ── Employee ────────────────────────────────────────────────────────

@employee_router.get("/dashboard", response_model=ApiResponse[EmployeeDashboard])
async def my_dashboard(
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Balance snapshot, request summary and probation status for the caller."""
    return ok(await DashboardService.employee_dashboard(db, employee))


# ── Manager ─────────────────────────────────────────────────────────

@manager_router.get("/team/balances", response_model=ApiResponse[list[TeamMemberBalance]])
async def team_balances(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    manager: Employee = Depends(_manager),
    db: AsyncSession = Depends(get_db),
):
    return ok(await DashboardService.team_balances(db, manager.id, year=year))


@manager_router.get("/reports/monthly", response_model=ApiResponse[MonthlyReport])
async def team_monthly_report(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    manager: Employee = Depends(_manager),
    db: AsyncSession = Depends(get_db),
):
    report = await DashboardService.monthly_paid_unpaid(
        db, year=year, manager_id=manager.id,
    )
    return ok(report)


@manager_router.get("/summary", response_model=ApiResponse[LeaveSummary])
async def team_summary(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    manager: Employee = Depends(_manager),
    db: AsyncSession = Depends(get_db),
):
    return ok(await DashboardService.summary(db, manager, scope="team", year=year))


# ── Admin ───────────────────────────────────────────────────────────

@admin_router.get("/reports/paid-unpaid", response_model=ApiResponse[PaidUnpaidReport])
async def paid_unpaid_report(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    department: Optional[str] = Query(None),
    employee_id: Optional[uuid.UUID] = Query(None),
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    report = await DashboardService.paid_unpaid_stats(
        db, year=year, department=department, employee_id=employee_id,
    )
    return ok(report)


@admin_router.get("/reports/monthly", response_model=ApiResponse[MonthlyReport])
async def monthly_report(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    department: Optional[str] = Query(None),
    employee_ids: Optional[list[uuid.UUID]] = Query(None),
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    report = await DashboardService.monthly_paid_unpaid(
        db, year=year, department=department, employee_ids=employee_ids,
    )
    return ok(report)


@admin_router.post("/accruals/run", response_model=ApiResponse[AccrualRunResult])
async def run_accruals(
    as_of: Optional[date] = Query(None),
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    """Recompute entitlement for every active employee and manager."""
    return ok(await DashboardService.run_accruals(db, as_of=as_of))


@admin_router.get("/summary", response_model=ApiResponse[LeaveSummary])
async def organisation_summary(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    return ok(await DashboardService.summary(db, admin, scope="all", year=year))
