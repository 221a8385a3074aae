"""Leave service layer — application, review, entitlement, adjustments, policies.

Business logic:
  - Leave application with range validation, fractional day counting and an
    overlap check serialized per employee
  - Policy rules: half-day allowance and approval-free leave types
  - Editing of pending requests with the same checks as an application
  - Paid/unpaid flag derived at creation and on edit, otherwise recomputed
    only on demand
  - Approval/rejection by the direct manager or an admin, singly or in bulk;
    terminal afterwards
  - Entitlement snapshots recomputed from source rows on every read
  - Manual balance adjustments and leave policy maintenance
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from leavehub.common.audit import record_audit
from leavehub.common.constants import (
    EmployeeType,
    LeaveStatus,
    LeaveType,
    PolicyResolution,
    UserRole,
)
from leavehub.common.exceptions import (
    AppException,
    ConflictError,
    DuplicateError,
    ForbiddenError,
    InvalidRangeError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from leavehub.common.pagination import PaginationMeta, paginate
from leavehub.config import settings
from leavehub.employees.models import Employee
from leavehub.engine.apportion import policy_or_none, split_paid_unpaid
from leavehub.engine.calendar import inclusive_days, q2
from leavehub.engine.ledger import build_snapshot
from leavehub.engine.policy import resolve_policy
from leavehub.engine.types import (
    EmployeeProfile,
    EntitlementSnapshot,
    LeaveRecord,
    PaidUnpaidResult,
    PolicyRecord,
)
from leavehub.leave.models import LeaveBalanceAdjustment, LeavePolicy, LeaveRequest
from leavehub.leave.repository import LeaveRepositories, employee_lock
from leavehub.leave.schemas import (
    BalanceAdjustmentOut,
    BalanceAdjustRequest,
    BulkDecisionItem,
    LeavePolicyCreate,
    LeavePolicyOut,
    LeavePolicyUpdate,
    LeaveRequestCreate,
    LeaveRequestDetailOut,
    LeaveRequestOut,
    LeaveRequestUpdate,
)

logger = logging.getLogger(__name__)

HALF_DAY = Decimal("0.5")


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _reference_date_for(year: int) -> date:
    """Accrual reference for a calendar year: today, capped at Dec 31."""
    today = _today()
    if year < today.year:
        return date(year, 12, 31)
    if year > today.year:
        return date(year, 1, 1)
    return today


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave operations: requests, reviews, entitlement, adjustments, policies."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _count_days(data: LeaveRequestCreate) -> Decimal:
        """Requested day count: half-day, short leave or inclusive calendar days."""

        if data.end_date < data.start_date:
            raise InvalidRangeError("End date must be on or after the start date.")

        if data.is_half_day or data.short_leave_hours is not None:
            if data.start_date != data.end_date:
                raise InvalidRangeError(
                    "Half-day and short leave requests must cover a single date.",
                )

        if data.is_half_day:
            return HALF_DAY

        if data.short_leave_hours is not None:
            hours_per_day = Decimal(settings.SHORT_LEAVE_HOURS_PER_DAY)
            if data.short_leave_hours > hours_per_day:
                raise InvalidRangeError(
                    f"Short leave cannot exceed {hours_per_day} hours.",
                    field="short_leave_hours",
                )
            days = q2(data.short_leave_hours / hours_per_day)
        else:
            days = Decimal(inclusive_days(data.start_date, data.end_date))

        if days <= 0:
            raise InvalidRangeError("Leave request must cover a positive number of days.")
        return days

    @staticmethod
    async def _get_request(
        db: AsyncSession,
        request_id: uuid.UUID,
    ) -> LeaveRequest:
        result = await db.execute(
            select(LeaveRequest)
            .where(LeaveRequest.id == request_id)
            .options(selectinload(LeaveRequest.employee))
        )
        leave_req = result.scalars().first()
        if leave_req is None:
            raise NotFoundError("LeaveRequest", request_id)
        return leave_req

    @staticmethod
    def _ensure_reviewer(reviewer: Employee, leave_req: LeaveRequest) -> None:
        """Admins review anyone; managers only their direct reports."""

        if reviewer.role == UserRole.admin:
            return
        if leave_req.employee_id == reviewer.id:
            raise ForbiddenError("You cannot review your own leave request.")
        if leave_req.employee.manager_id != reviewer.id:
            raise ForbiddenError(
                "You are not authorized to review this leave request."
            )

    @staticmethod
    async def _applicable_policy(
        repos: LeaveRepositories,
        candidate: LeaveRecord,
        profile: EmployeeProfile,
    ) -> Optional[PolicyRecord]:
        policies = await repos.policies.list_policies(leave_type=candidate.leave_type)
        return policy_or_none(policies, candidate, profile, settings.POLICY_RESOLUTION)

    @staticmethod
    def _check_policy_rules(
        policy: Optional[PolicyRecord],
        data: LeaveRequestCreate,
    ) -> None:
        if policy is not None and data.is_half_day and not policy.allow_half_day:
            raise InvalidRangeError(
                f"Half-day leave is not allowed for {data.leave_type.value} leave.",
                field="is_half_day",
            )

    @staticmethod
    async def _paid_split(
        repos: LeaveRepositories,
        candidate: LeaveRecord,
        profile: EmployeeProfile,
        policy: Optional[PolicyRecord],
    ) -> PaidUnpaidResult:
        history = await repos.requests.history(
            employee_id=profile.id, statuses=[LeaveStatus.approved],
        )
        return split_paid_unpaid(candidate, profile, policy, history)

    @staticmethod
    async def _auto_approve(
        db: AsyncSession,
        leave_req: LeaveRequest,
        policy: Optional[PolicyRecord],
    ) -> bool:
        """Approve on submission when the resolved policy needs no review."""

        if policy is None or policy.requires_approval:
            return False
        leave_req.status = LeaveStatus.approved
        leave_req.reviewed_at = datetime.now(timezone.utc)
        await db.flush()
        await record_audit(
            db,
            action="LEAVE_AUTO_APPROVE",
            target_type="leave_request",
            target_id=leave_req.id,
            actor_id=None,
            actor_name="System",
            details={"leave_type": leave_req.leave_type.value, "requires_approval": False},
        )
        return True

    # ─────────────────────────────────────────────────────────────────
    # Apply Leave
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create_leave_request(
        db: AsyncSession,
        employee_id: uuid.UUID,
        data: LeaveRequestCreate,
        *,
        repos: Optional[LeaveRepositories] = None,
    ) -> LeaveRequestOut:
        """Create a leave request, pending unless its policy needs no approval.

        The overlap check and the insert run under the employee's lock and are
        committed before it is released.
        """

        total_days = LeaveService._count_days(data)
        repos = repos or LeaveRepositories.for_session(db)

        async with employee_lock(employee_id):
            employee = await repos.employees.lock(employee_id=employee_id)
            if not employee.is_active:
                raise ForbiddenError("Inactive employees cannot apply for leave.")

            # ── Overlap check ───────────────────────────────────────
            overlaps = await repos.requests.overlapping(
                employee_id=employee_id,
                start_date=data.start_date,
                end_date=data.end_date,
            )
            if overlaps:
                clash = overlaps[0]
                raise ConflictError(clash.start_date, clash.end_date)

            # ── Policy rules and paid flag at submission time ───────
            profile = EmployeeProfile.model_validate(employee)
            candidate = LeaveRecord(
                employee_id=employee_id,
                leave_type=data.leave_type,
                start_date=data.start_date,
                end_date=data.end_date,
                total_days=total_days,
                status=LeaveStatus.pending,
                is_half_day=data.is_half_day,
                short_leave_hours=data.short_leave_hours,
            )
            policy = await LeaveService._applicable_policy(repos, candidate, profile)
            LeaveService._check_policy_rules(policy, data)
            split = await LeaveService._paid_split(repos, candidate, profile, policy)

            leave_req = LeaveRequest(
                employee_id=employee_id,
                leave_type=data.leave_type,
                start_date=data.start_date,
                end_date=data.end_date,
                total_days=total_days,
                reason=data.reason,
                status=LeaveStatus.pending,
                is_half_day=data.is_half_day,
                half_day_period=data.half_day_period,
                short_leave_hours=data.short_leave_hours,
                is_paid=split.is_paid,
            )
            db.add(leave_req)
            await db.flush()

            await record_audit(
                db,
                action="LEAVE_CREATE",
                target_type="leave_request",
                target_id=leave_req.id,
                actor_id=employee.id,
                actor_name=employee.name,
                details={
                    "leave_type": data.leave_type.value,
                    "start_date": data.start_date.isoformat(),
                    "end_date": data.end_date.isoformat(),
                    "total_days": str(total_days),
                    "is_paid": split.is_paid,
                    "paid_days": str(split.paid_days),
                    "unpaid_days": str(split.unpaid_days),
                },
            )
            await LeaveService._auto_approve(db, leave_req, policy)
            await db.commit()

        logger.info(
            "Leave request %s created for employee %s (%s, %s days, paid=%s, status=%s)",
            leave_req.id, employee_id, data.leave_type.value, total_days,
            split.is_paid, leave_req.status.value,
        )
        return LeaveRequestOut.model_validate(leave_req)

    # ─────────────────────────────────────────────────────────────────
    # Edit Leave
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _merge_update(leave_req: LeaveRequest, data: LeaveRequestUpdate) -> LeaveRequestCreate:
        values = {
            "leave_type": leave_req.leave_type,
            "start_date": leave_req.start_date,
            "end_date": leave_req.end_date,
            "reason": leave_req.reason,
            "is_half_day": leave_req.is_half_day,
            "half_day_period": leave_req.half_day_period,
            "short_leave_hours": leave_req.short_leave_hours,
        }
        values.update(data.model_dump(exclude_unset=True))
        if not values["is_half_day"]:
            values["half_day_period"] = None
        try:
            return LeaveRequestCreate(**values)
        except PydanticValidationError as exc:
            errors: dict[str, list[str]] = {}
            for err in exc.errors():
                name = ".".join(str(p) for p in err.get("loc", ())) or "body"
                errors.setdefault(name, []).append(err.get("msg", "Invalid value"))
            raise ValidationError(errors) from exc

    @staticmethod
    async def update_leave_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        employee: Employee,
        data: LeaveRequestUpdate,
    ) -> LeaveRequestOut:
        """Edit the caller's own pending request.

        Day count, overlap (ignoring the request itself) and the paid flag are
        all re-derived under the employee's lock, as on creation.
        """

        repos = LeaveRepositories.for_session(db)

        async with employee_lock(employee.id):
            locked = await repos.employees.lock(employee_id=employee.id)
            leave_req = await LeaveService._get_request(db, request_id)
            if leave_req.employee_id != employee.id:
                raise ForbiddenError("You can only edit your own leave requests.")
            if leave_req.status != LeaveStatus.pending:
                raise InvalidTransitionError(
                    f"Cannot edit a leave request that is {leave_req.status.value}."
                )

            merged = LeaveService._merge_update(leave_req, data)
            total_days = LeaveService._count_days(merged)

            overlaps = await repos.requests.overlapping(
                employee_id=employee.id,
                start_date=merged.start_date,
                end_date=merged.end_date,
                exclude_id=leave_req.id,
            )
            if overlaps:
                clash = overlaps[0]
                raise ConflictError(clash.start_date, clash.end_date)

            profile = EmployeeProfile.model_validate(locked)
            candidate = LeaveRecord(
                id=leave_req.id,
                employee_id=employee.id,
                leave_type=merged.leave_type,
                start_date=merged.start_date,
                end_date=merged.end_date,
                total_days=total_days,
                status=LeaveStatus.pending,
                is_half_day=merged.is_half_day,
                short_leave_hours=merged.short_leave_hours,
            )
            policy = await LeaveService._applicable_policy(repos, candidate, profile)
            LeaveService._check_policy_rules(policy, merged)
            split = await LeaveService._paid_split(repos, candidate, profile, policy)

            before = {
                "leave_type": leave_req.leave_type.value,
                "start_date": leave_req.start_date.isoformat(),
                "end_date": leave_req.end_date.isoformat(),
                "total_days": str(leave_req.total_days),
                "is_paid": leave_req.is_paid,
            }
            leave_req.leave_type = merged.leave_type
            leave_req.start_date = merged.start_date
            leave_req.end_date = merged.end_date
            leave_req.reason = merged.reason
            leave_req.is_half_day = merged.is_half_day
            leave_req.half_day_period = merged.half_day_period
            leave_req.short_leave_hours = merged.short_leave_hours
            leave_req.total_days = total_days
            leave_req.is_paid = split.is_paid
            leave_req.updated_at = datetime.now(timezone.utc)
            await db.flush()

            await record_audit(
                db,
                action="LEAVE_UPDATE",
                target_type="leave_request",
                target_id=leave_req.id,
                actor_id=employee.id,
                actor_name=employee.name,
                details={
                    "old": before,
                    "new": {
                        "leave_type": merged.leave_type.value,
                        "start_date": merged.start_date.isoformat(),
                        "end_date": merged.end_date.isoformat(),
                        "total_days": str(total_days),
                        "is_paid": split.is_paid,
                    },
                },
            )
            await LeaveService._auto_approve(db, leave_req, policy)
            await db.commit()

        logger.info("Leave request %s edited by %s", leave_req.id, employee.id)
        return LeaveRequestOut.model_validate(leave_req)

    # ─────────────────────────────────────────────────────────────────
    # Approve / Reject
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _decide(
        db: AsyncSession,
        request_id: uuid.UUID,
        reviewer: Employee,
        status: LeaveStatus,
        comments: Optional[str],
    ) -> LeaveRequestDetailOut:
        leave_req = await LeaveService._get_request(db, request_id)

        if leave_req.status != LeaveStatus.pending:
            raise InvalidTransitionError(
                f"Leave request is already {leave_req.status.value}."
            )
        LeaveService._ensure_reviewer(reviewer, leave_req)

        now = datetime.now(timezone.utc)
        old_status = leave_req.status.value
        leave_req.status = status
        leave_req.reviewed_by = reviewer.id
        leave_req.reviewed_at = now
        leave_req.reviewer_comments = comments
        leave_req.updated_at = now
        await db.flush()

        await record_audit(
            db,
            action="LEAVE_APPROVE" if status == LeaveStatus.approved else "LEAVE_REJECT",
            target_type="leave_request",
            target_id=leave_req.id,
            actor_id=reviewer.id,
            actor_name=reviewer.name,
            details={
                "old_status": old_status,
                "new_status": status.value,
                "comments": comments,
            },
        )
        logger.info(
            "Leave request %s %s by %s", leave_req.id, status.value, reviewer.id,
        )
        return LeaveRequestDetailOut.model_validate(leave_req)

    @staticmethod
    async def approve_leave(
        db: AsyncSession,
        request_id: uuid.UUID,
        reviewer: Employee,
        *,
        comments: Optional[str] = None,
    ) -> LeaveRequestDetailOut:
        """Approve a pending leave request. The stored paid flag is left as derived at creation."""
        return await LeaveService._decide(
            db, request_id, reviewer, LeaveStatus.approved, comments,
        )

    @staticmethod
    async def reject_leave(
        db: AsyncSession,
        request_id: uuid.UUID,
        reviewer: Employee,
        *,
        comments: Optional[str] = None,
    ) -> LeaveRequestDetailOut:
        return await LeaveService._decide(
            db, request_id, reviewer, LeaveStatus.rejected, comments,
        )

    @staticmethod
    async def bulk_decide(
        db: AsyncSession,
        request_ids: list[uuid.UUID],
        status: LeaveStatus,
        reviewer: Employee,
        *,
        comments: Optional[str] = None,
    ) -> list[BulkDecisionItem]:
        """Approve or reject many requests; one failing row does not stop the rest."""

        results: list[BulkDecisionItem] = []
        for request_id in dict.fromkeys(request_ids):
            try:
                decided = await LeaveService._decide(
                    db, request_id, reviewer, status, comments,
                )
            except AppException as exc:
                results.append(
                    BulkDecisionItem(request_id=request_id, success=False, error=exc.detail)
                )
                continue
            results.append(
                BulkDecisionItem(request_id=request_id, success=True, status=decided.status)
            )

        logger.info(
            "Bulk %s by %s: %d of %d succeeded",
            status.value, reviewer.id, sum(r.success for r in results), len(results),
        )
        return results

    # ─────────────────────────────────────────────────────────────────
    # Withdraw
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def withdraw_leave(
        db: AsyncSession,
        request_id: uuid.UUID,
        employee: Employee,
    ) -> None:
        """Delete the caller's own pending request."""

        leave_req = await LeaveService._get_request(db, request_id)
        if leave_req.employee_id != employee.id:
            raise ForbiddenError("You can only withdraw your own leave requests.")
        if leave_req.status != LeaveStatus.pending:
            raise InvalidTransitionError(
                f"Cannot withdraw a leave request that is {leave_req.status.value}."
            )

        details = {
            "leave_type": leave_req.leave_type.value,
            "start_date": leave_req.start_date.isoformat(),
            "end_date": leave_req.end_date.isoformat(),
            "total_days": str(leave_req.total_days),
        }
        await db.delete(leave_req)
        await db.flush()

        await record_audit(
            db,
            action="LEAVE_WITHDRAW",
            target_type="leave_request",
            target_id=request_id,
            actor_id=employee.id,
            actor_name=employee.name,
            details=details,
        )
        logger.info("Leave request %s withdrawn by %s", request_id, employee.id)

    # ─────────────────────────────────────────────────────────────────
    # Paid flag
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def recompute_paid_flag(
        db: AsyncSession,
        request_id: uuid.UUID,
        actor: Employee,
    ) -> PaidUnpaidResult:
        """Re-derive ``is_paid`` from the current balance history and store it."""

        leave_req = await LeaveService._get_request(db, request_id)
        profile = EmployeeProfile.model_validate(leave_req.employee)
        candidate = LeaveRecord.model_validate(leave_req)
        repos = LeaveRepositories.for_session(db)
        policy = await LeaveService._applicable_policy(repos, candidate, profile)
        split = await LeaveService._paid_split(repos, candidate, profile, policy)

        old_value = leave_req.is_paid
        if old_value != split.is_paid:
            leave_req.is_paid = split.is_paid
            leave_req.updated_at = datetime.now(timezone.utc)
            await db.flush()

        await record_audit(
            db,
            action="LEAVE_RECOMPUTE_PAID",
            target_type="leave_request",
            target_id=leave_req.id,
            actor_id=actor.id,
            actor_name=actor.name,
            details={
                "old_is_paid": old_value,
                "new_is_paid": split.is_paid,
                "paid_days": str(split.paid_days),
                "unpaid_days": str(split.unpaid_days),
            },
        )
        return split

    # ─────────────────────────────────────────────────────────────────
    # Listing
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_leave_requests(
        db: AsyncSession,
        *,
        requestor: Employee,
        scope: str = "my",
        employee_id: Optional[uuid.UUID] = None,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        page: int = 1,
        page_size: int = 50,
        sort: Optional[str] = None,
    ) -> tuple[list[LeaveRequestDetailOut], PaginationMeta]:
        """List leave requests with pagination and filters.

        Scopes:
          - my: own requests only
          - team: direct reports of requestor
          - all: every employee (admin only)
        """

        query = (
            select(LeaveRequest)
            .options(selectinload(LeaveRequest.employee))
            .order_by(LeaveRequest.submitted_at.desc())
        )

        if scope == "my":
            query = query.where(LeaveRequest.employee_id == requestor.id)
        elif scope == "team":
            query = query.join(Employee, LeaveRequest.employee_id == Employee.id).where(
                Employee.manager_id == requestor.id,
            )
        elif scope == "all":
            if requestor.role != UserRole.admin:
                raise ForbiddenError("Only admins can list every leave request.")
        else:
            raise InvalidRangeError(f"Unknown scope '{scope}'.", field="scope")

        if employee_id:
            query = query.where(LeaveRequest.employee_id == employee_id)
        if status:
            query = query.where(LeaveRequest.status == status)
        if leave_type:
            query = query.where(LeaveRequest.leave_type == leave_type)
        if from_date:
            query = query.where(LeaveRequest.end_date >= from_date)
        if to_date:
            query = query.where(LeaveRequest.start_date <= to_date)

        rows, meta = await paginate(
            db, query, page=page, page_size=page_size, sort=sort, model=LeaveRequest,
        )
        return [LeaveRequestDetailOut.model_validate(r) for r in rows], meta

    # ─────────────────────────────────────────────────────────────────
    # Entitlement
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_entitlement(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        year: Optional[int] = None,
        reference_date: Optional[date] = None,
        repos: Optional[LeaveRepositories] = None,
    ) -> EntitlementSnapshot:
        """Entitlement snapshot for one employee; unknown employee is a 404."""

        repos = repos or LeaveRepositories.for_session(db)
        profile = await repos.employees.get_profile(employee_id=employee_id)

        if year is None:
            year = (reference_date or _today()).year
        if reference_date is None:
            reference_date = _reference_date_for(year)
        window_start, window_end = date(year, 1, 1), date(year, 12, 31)

        policies = await repos.policies.list_policies()
        requests = await repos.requests.history(employee_id=employee_id)
        adjustments = await repos.adjustments.adjustments(
            employee_id=employee_id, year=year,
        )
        return build_snapshot(
            profile,
            policies,
            requests,
            reference_date=reference_date,
            window_start=window_start,
            window_end=window_end,
            adjustments=adjustments,
            mode=settings.POLICY_RESOLUTION,
        )

    # ─────────────────────────────────────────────────────────────────
    # Balance Adjustment
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def adjust_balance(
        db: AsyncSession,
        employee_id: uuid.UUID,
        data: BalanceAdjustRequest,
        actor: Employee,
    ) -> BalanceAdjustmentOut:
        """Add *data.additional_days* to the employee's entitlement for one year.

        A policy must resolve for the employee; the read-modify-write of the
        adjustment row runs under the same per-employee lock as applications.
        """

        year = data.year or _today().year
        repos = LeaveRepositories.for_session(db)

        async with employee_lock(employee_id):
            employee = await repos.employees.lock(employee_id=employee_id)
            profile = EmployeeProfile.model_validate(employee)

            policies = await repos.policies.list_policies(
                leave_type=data.leave_type,
            )
            resolve_policy(
                policies, data.leave_type, profile.employee_type,
                mode=settings.POLICY_RESOLUTION,
            )

            row = await repos.adjustments.get_row(
                employee_id=employee_id, leave_type=data.leave_type, year=year,
            )
            before = Decimal("0") if row is None else Decimal(row.adjusted_days)
            if row is None:
                row = LeaveBalanceAdjustment(
                    employee_id=employee_id,
                    leave_type=data.leave_type,
                    year=year,
                    adjusted_days=Decimal("0"),
                )
                db.add(row)
            row.adjusted_days = q2(before + data.additional_days)
            row.updated_by = actor.id
            row.updated_at = datetime.now(timezone.utc)
            await db.flush()

            await record_audit(
                db,
                action="ADJUST_LEAVE_BALANCE",
                target_type="employee",
                target_id=employee_id,
                actor_id=actor.id,
                actor_name=actor.name,
                details={
                    "leave_type": data.leave_type.value,
                    "year": year,
                    "additional_days": str(data.additional_days),
                    "adjusted_before": str(before),
                    "adjusted_after": str(row.adjusted_days),
                    "reason": data.reason,
                },
            )
            await db.commit()

        logger.info(
            "Adjusted %s balance of employee %s for %s by %s",
            data.leave_type.value, employee_id, year, data.additional_days,
        )
        return BalanceAdjustmentOut.model_validate(row)

    # ─────────────────────────────────────────────────────────────────
    # Policies
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _get_policy(db: AsyncSession, policy_id: uuid.UUID) -> LeavePolicy:
        result = await db.execute(select(LeavePolicy).where(LeavePolicy.id == policy_id))
        policy = result.scalars().first()
        if policy is None:
            raise NotFoundError("LeavePolicy", policy_id)
        return policy

    @staticmethod
    async def list_policies(
        db: AsyncSession,
        *,
        employee_type: Optional[EmployeeType] = None,
        include_generic: bool = False,
        include_inactive: bool = False,
    ) -> list[LeavePolicyOut]:
        query = select(LeavePolicy).order_by(LeavePolicy.leave_type, LeavePolicy.employee_type)
        if not include_inactive:
            query = query.where(LeavePolicy.is_active.is_(True))
        if employee_type is not None:
            if include_generic:
                query = query.where(
                    (LeavePolicy.employee_type == employee_type)
                    | LeavePolicy.employee_type.is_(None)
                )
            else:
                query = query.where(LeavePolicy.employee_type == employee_type)
        result = await db.execute(query)
        return [LeavePolicyOut.model_validate(p) for p in result.scalars().all()]

    @staticmethod
    async def policies_for_employee(
        db: AsyncSession,
        employee: Employee,
    ) -> list[LeavePolicyOut]:
        """Active policies that can apply to *employee* under the configured resolution."""

        if employee.employee_type is None:
            result = await db.execute(
                select(LeavePolicy)
                .where(LeavePolicy.is_active.is_(True), LeavePolicy.employee_type.is_(None))
                .order_by(LeavePolicy.leave_type)
            )
            return [LeavePolicyOut.model_validate(p) for p in result.scalars().all()]

        candidates = await LeaveService.list_policies(
            db,
            employee_type=employee.employee_type,
            include_generic=settings.POLICY_RESOLUTION == PolicyResolution.fallback,
        )
        specific = {p.leave_type for p in candidates if p.employee_type is not None}
        return [
            p for p in candidates
            if p.employee_type is not None or p.leave_type not in specific
        ]

    @staticmethod
    async def create_policy(
        db: AsyncSession,
        data: LeavePolicyCreate,
        actor: Employee,
    ) -> LeavePolicyOut:
        existing = await db.execute(
            select(LeavePolicy.id).where(
                LeavePolicy.leave_type == data.leave_type,
                LeavePolicy.employee_type == data.employee_type
                if data.employee_type is not None
                else LeavePolicy.employee_type.is_(None),
            )
        )
        if existing.scalar() is not None:
            label = data.employee_type.value if data.employee_type else "all"
            raise DuplicateError("leave_type", f"{data.leave_type.value}/{label}")

        policy = LeavePolicy(**data.model_dump(), created_by=actor.id)
        db.add(policy)
        await db.flush()

        await record_audit(
            db,
            action="POLICY_CREATE",
            target_type="leave_policy",
            target_id=policy.id,
            actor_id=actor.id,
            actor_name=actor.name,
            details={
                "leave_type": data.leave_type.value,
                "employee_type": data.employee_type.value if data.employee_type else None,
                "total_days_per_year": str(data.total_days_per_year),
                "is_paid": data.is_paid,
            },
        )
        logger.info("Leave policy %s created (%s)", policy.id, data.leave_type.value)
        return LeavePolicyOut.model_validate(policy)

    @staticmethod
    async def update_policy(
        db: AsyncSession,
        policy_id: uuid.UUID,
        data: LeavePolicyUpdate,
        actor: Employee,
    ) -> LeavePolicyOut:
        policy = await LeaveService._get_policy(db, policy_id)

        changes = data.model_dump(exclude_unset=True)
        old_values = {k: _jsonable(getattr(policy, k)) for k in changes}
        for field, value in changes.items():
            setattr(policy, field, value)
        policy.updated_at = datetime.now(timezone.utc)
        await db.flush()

        await record_audit(
            db,
            action="POLICY_UPDATE",
            target_type="leave_policy",
            target_id=policy.id,
            actor_id=actor.id,
            actor_name=actor.name,
            details={
                "old": old_values,
                "new": {k: _jsonable(v) for k, v in changes.items()},
            },
        )
        return LeavePolicyOut.model_validate(policy)

    @staticmethod
    async def deactivate_policy(
        db: AsyncSession,
        policy_id: uuid.UUID,
        actor: Employee,
    ) -> LeavePolicyOut:
        return await LeaveService.update_policy(
            db, policy_id, LeavePolicyUpdate(is_active=False), actor,
        )


def _jsonable(value):
    if isinstance(value, Decimal):
        return str(value)
    return getattr(value, "value", value)
