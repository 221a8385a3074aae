"""Dashboard service — paid/unpaid reports, team balances, accrual runs, summaries.

All methods are static async, following the project convention. Data is
loaded in bulk (one query for employees, one for their leave requests, one
for policies) and handed to the pure engine per employee. A failure for one
employee is logged and reported on that employee's row only.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from leavehub.common.constants import (
    OPEN_PROBATION,
    LeaveStatus,
    ProbationStatus,
    UserRole,
)
from leavehub.common.exceptions import AppException
from leavehub.config import settings
from leavehub.dashboard.schemas import (
    AccrualError,
    AccrualRunResult,
    EmployeeDashboard,
    EmployeeMonthly,
    EmployeePaidUnpaid,
    LeaveSummary,
    MonthlyReport,
    PaidUnpaidReport,
    ProbationInfo,
    StatusTotals,
    TeamMemberBalance,
)
from leavehub.employees.models import Employee
from leavehub.engine.apportion import apportion_requests, monthly_breakdown
from leavehub.engine.calendar import q2, year_window
from leavehub.engine.ledger import build_snapshot
from leavehub.engine.probation import in_probation_on
from leavehub.engine.types import DayTotals, EmployeeProfile
from leavehub.leave.models import LeaveRequest
from leavehub.leave.repository import LeaveRepositories
from leavehub.leave.schemas import EmployeeBrief
from leavehub.leave.service import LeaveService

logger = logging.getLogger(__name__)


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _add(totals: DayTotals, paid: Decimal, unpaid: Decimal) -> DayTotals:
    return DayTotals(
        paid_days=q2(totals.paid_days + paid),
        unpaid_days=q2(totals.unpaid_days + unpaid),
        total_days=q2(totals.total_days + paid + unpaid),
    )


async def _load_employees(
    db: AsyncSession,
    *,
    department: Optional[str] = None,
    employee_ids: Optional[Sequence[uuid.UUID]] = None,
    manager_id: Optional[uuid.UUID] = None,
    roles: Optional[Sequence[UserRole]] = None,
) -> list[Employee]:
    query = select(Employee).where(Employee.is_active.is_(True)).order_by(Employee.name)
    if department:
        query = query.where(Employee.department == department)
    if employee_ids is not None:
        query = query.where(Employee.id.in_(list(employee_ids)))
    if manager_id is not None:
        query = query.where(Employee.manager_id == manager_id)
    if roles:
        query = query.where(Employee.role.in_(list(roles)))
    result = await db.execute(query)
    return list(result.scalars().all())


class DashboardService:
    """Async report and aggregation operations."""

    # ═════════════════════════════════════════════════════════════════
    # Paid / unpaid (yearly)
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def paid_unpaid_stats(
        db: AsyncSession,
        *,
        year: Optional[int] = None,
        department: Optional[str] = None,
        employee_id: Optional[uuid.UUID] = None,
    ) -> PaidUnpaidReport:
        """Paid vs unpaid days of approved leave per employee for *year*."""

        year = year or _today().year
        employees = await _load_employees(
            db,
            department=department,
            employee_ids=[employee_id] if employee_id else None,
        )
        repos = LeaveRepositories.for_session(db)
        policies = await repos.policies.list_policies()
        history = await repos.requests.history_for(
            employee_ids=[e.id for e in employees], statuses=[LeaveStatus.approved],
        )
        window = year_window(year)

        rows: list[EmployeePaidUnpaid] = []
        grand = DayTotals()
        for emp in employees:
            row = EmployeePaidUnpaid(employee=EmployeeBrief.model_validate(emp))
            try:
                results = apportion_requests(
                    EmployeeProfile.model_validate(emp),
                    history.get(emp.id, []),
                    policies,
                    window=window,
                    mode=settings.POLICY_RESOLUTION,
                )
            except AppException as exc:
                logger.warning(
                    "Paid/unpaid stats failed for employee %s: %s", emp.id, exc.detail,
                )
                row.error = exc.detail
                rows.append(row)
                continue

            by_type: dict = {}
            for res in results:
                row.totals = _add(row.totals, res.paid_days, res.unpaid_days)
                by_type[res.leave_type] = _add(
                    by_type.get(res.leave_type, DayTotals()), res.paid_days, res.unpaid_days,
                )
            row.by_leave_type = by_type
            row.requests = results
            grand = _add(grand, row.totals.paid_days, row.totals.unpaid_days)
            rows.append(row)

        return PaidUnpaidReport(year=year, employees=rows, totals=grand)

    # ═════════════════════════════════════════════════════════════════
    # Paid / unpaid (monthly)
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def monthly_paid_unpaid(
        db: AsyncSession,
        *,
        year: Optional[int] = None,
        department: Optional[str] = None,
        employee_ids: Optional[Sequence[uuid.UUID]] = None,
        manager_id: Optional[uuid.UUID] = None,
    ) -> MonthlyReport:
        """Month-by-month paid/unpaid days; employees without leave get zero rows."""

        year = year or _today().year
        employees = await _load_employees(
            db, department=department, employee_ids=employee_ids, manager_id=manager_id,
        )
        repos = LeaveRepositories.for_session(db)
        policies = await repos.policies.list_policies()
        history = await repos.requests.history_for(
            employee_ids=[e.id for e in employees], statuses=[LeaveStatus.approved],
        )

        rows: list[EmployeeMonthly] = []
        for emp in employees:
            row = EmployeeMonthly(employee=EmployeeBrief.model_validate(emp))
            try:
                row.breakdown = monthly_breakdown(
                    EmployeeProfile.model_validate(emp),
                    history.get(emp.id, []),
                    policies,
                    year,
                    mode=settings.POLICY_RESOLUTION,
                    hours_per_day=settings.SHORT_LEAVE_HOURS_PER_DAY,
                )
            except AppException as exc:
                logger.warning(
                    "Monthly paid/unpaid failed for employee %s: %s", emp.id, exc.detail,
                )
                row.error = exc.detail
            rows.append(row)

        return MonthlyReport(year=year, employees=rows)

    # ═════════════════════════════════════════════════════════════════
    # Team balances
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def team_balances(
        db: AsyncSession,
        manager_id: uuid.UUID,
        *,
        year: Optional[int] = None,
    ) -> list[TeamMemberBalance]:
        """Entitlement snapshot for each active direct report of *manager_id*."""

        year = year or _today().year
        reports = await _load_employees(db, manager_id=manager_id)
        repos = LeaveRepositories.for_session(db)

        rows: list[TeamMemberBalance] = []
        for emp in reports:
            row = TeamMemberBalance(employee=EmployeeBrief.model_validate(emp))
            try:
                row.snapshot = await LeaveService.get_entitlement(
                    db, emp.id, year=year, repos=repos,
                )
            except AppException as exc:
                logger.warning(
                    "Balance snapshot failed for employee %s: %s", emp.id, exc.detail,
                )
                row.error = exc.detail
            rows.append(row)
        return rows

    # ═════════════════════════════════════════════════════════════════
    # Accrual run
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def run_accruals(
        db: AsyncSession,
        *,
        as_of: Optional[date] = None,
    ) -> AccrualRunResult:
        """Recompute every active employee's and manager's entitlement as of a date.

        Nothing is persisted: entitlement is always derived. Employees who
        have not joined yet, or for whom no policy resolves, are skipped.
        """

        as_of = as_of or _today()
        window_start, window_end = year_window(as_of.year)
        employees = await _load_employees(
            db, roles=[UserRole.employee, UserRole.manager],
        )
        repos = LeaveRepositories.for_session(db)
        policies = await repos.policies.list_policies()
        history = await repos.requests.history_for(
            employee_ids=[e.id for e in employees],
        )

        result = AccrualRunResult(as_of=as_of)
        for emp in employees:
            if emp.join_date > as_of:
                result.skipped += 1
                continue
            try:
                snapshot = build_snapshot(
                    EmployeeProfile.model_validate(emp),
                    policies,
                    history.get(emp.id, []),
                    reference_date=as_of,
                    window_start=window_start,
                    window_end=window_end,
                    adjustments=await repos.adjustments.adjustments(
                        employee_id=emp.id, year=as_of.year,
                    ),
                    mode=settings.POLICY_RESOLUTION,
                )
            except AppException as exc:
                logger.warning("Accrual failed for employee %s: %s", emp.id, exc.detail)
                result.errors.append(AccrualError(employee_id=emp.id, error=exc.detail))
                continue

            if not any(line.policy_found for line in snapshot.lines.values()):
                result.skipped += 1
                continue
            result.processed += 1

        logger.info(
            "Accrual run as of %s: processed=%d skipped=%d errors=%d",
            as_of, result.processed, result.skipped, len(result.errors),
        )
        return result

    # ═════════════════════════════════════════════════════════════════
    # Summary
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def summary(
        db: AsyncSession,
        requestor: Employee,
        *,
        scope: str = "my",
        year: Optional[int] = None,
    ) -> LeaveSummary:
        """Request counts and day totals by status for my/team/all scope."""

        year = year or _today().year
        window_start, window_end = year_window(year)

        query = (
            select(
                LeaveRequest.status,
                func.count(LeaveRequest.id),
                func.coalesce(func.sum(LeaveRequest.total_days), 0),
            )
            .where(
                LeaveRequest.start_date <= window_end,
                LeaveRequest.end_date >= window_start,
            )
            .group_by(LeaveRequest.status)
        )
        if scope == "my":
            query = query.where(LeaveRequest.employee_id == requestor.id)
        elif scope == "team":
            query = query.join(Employee, LeaveRequest.employee_id == Employee.id).where(
                Employee.manager_id == requestor.id,
            )

        summary = LeaveSummary(scope=scope)
        for status, count, days in (await db.execute(query)).all():
            totals = StatusTotals(count=count, days=q2(days))
            setattr(summary, LeaveStatus(status).value, totals)

        if scope == "all":
            in_probation = await db.execute(
                select(func.count(Employee.id)).where(
                    Employee.is_active.is_(True),
                    Employee.probation_status.in_(list(OPEN_PROBATION)),
                )
            )
            summary.employees_in_probation = in_probation.scalar_one()
        return summary

    @staticmethod
    async def employee_dashboard(
        db: AsyncSession,
        employee: Employee,
    ) -> EmployeeDashboard:
        today = _today()
        profile = EmployeeProfile.model_validate(employee)
        return EmployeeDashboard(
            entitlement=await LeaveService.get_entitlement(
                db, employee.id, year=today.year, reference_date=today,
            ),
            summary=await DashboardService.summary(db, employee, scope="my", year=today.year),
            probation=ProbationInfo(
                status=employee.probation_status or ProbationStatus.none,
                end_date=employee.probation_end_date,
                in_probation_today=in_probation_on(profile, today),
            ),
        )
