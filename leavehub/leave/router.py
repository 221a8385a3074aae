"""Leave routers — apply, withdraw, review, balances, adjustments, policies.

Three routers, mounted under the role prefixes in main.py:
  - ``employee_router`` → /api/v1/employee
  - ``manager_router``  → /api/v1/manager
  - ``admin_router``    → /api/v1/admin
"""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from leavehub.auth.dependencies import get_current_user, require_role
from leavehub.common.constants import EmployeeType, LeaveStatus, LeaveType, UserRole
from leavehub.common.pagination import PaginationParams
from leavehub.common.rate_limit import limiter
from leavehub.common.responses import ApiResponse, ok
from leavehub.config import settings
from leavehub.database import get_db
from leavehub.employees.models import Employee
from leavehub.engine.types import EntitlementSnapshot, PaidUnpaidResult
from leavehub.leave.schemas import (
    BalanceAdjustmentOut,
    BalanceAdjustRequest,
    BulkDecisionItem,
    BulkDecisionRequest,
    LeaveDecisionRequest,
    LeavePolicyCreate,
    LeavePolicyOut,
    LeavePolicyUpdate,
    LeaveRequestCreate,
    LeaveRequestDetailOut,
    LeaveRequestOut,
    LeaveRequestUpdate,
)
from leavehub.leave.service import LeaveService

employee_router = APIRouter(tags=["employee: leave"])
manager_router = APIRouter(tags=["manager: leave"])
admin_router = APIRouter(tags=["admin: leave"])

_manager = require_role(UserRole.manager)
_admin = require_role(UserRole.admin)


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


@employee_router.post(
    "/leave-requests",
    response_model=ApiResponse[LeaveRequestOut],
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.APPLY_RATE_LIMIT)
async def apply_leave(
    request: Request,
    body: LeaveRequestCreate,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Apply for leave. Rejects ranges overlapping a pending or approved request."""
    created = await LeaveService.create_leave_request(db, employee.id, body)
    return ok(created, "Leave request submitted.")


@employee_router.get(
    "/leave-requests", response_model=ApiResponse[list[LeaveRequestDetailOut]],
)
async def my_leave_requests(
    status: Optional[LeaveStatus] = Query(None),
    leave_type: Optional[LeaveType] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    pagination: PaginationParams = Depends(),
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rows, meta = await LeaveService.list_leave_requests(
        db,
        requestor=employee,
        scope="my",
        status=status,
        leave_type=leave_type,
        from_date=from_date,
        to_date=to_date,
        page=pagination.page,
        page_size=pagination.page_size,
        sort=pagination.sort,
    )
    return ok(rows, pagination=meta)


@employee_router.put(
    "/leave-requests/{request_id}", response_model=ApiResponse[LeaveRequestOut],
)
async def edit_leave(
    request_id: uuid.UUID,
    body: LeaveRequestUpdate,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Edit one of your own pending requests."""
    updated = await LeaveService.update_leave_request(db, request_id, employee, body)
    return ok(updated, "Leave request updated.")


@employee_router.delete("/leave-requests/{request_id}", response_model=ApiResponse[None])
async def withdraw_leave(
    request_id: uuid.UUID,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Withdraw one of your own pending requests."""
    await LeaveService.withdraw_leave(db, request_id, employee)
    return ok(message="Leave request withdrawn.")


@employee_router.get("/balance", response_model=ApiResponse[EntitlementSnapshot])
async def my_balance(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    snapshot = await LeaveService.get_entitlement(db, employee.id, year=year)
    return ok(snapshot)


@employee_router.get("/policies", response_model=ApiResponse[list[LeavePolicyOut]])
async def my_policies(
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ok(await LeaveService.policies_for_employee(db, employee))


# ═════════════════════════════════════════════════════════════════════
# Manager
# ═════════════════════════════════════════════════════════════════════


@manager_router.get(
    "/leave-requests", response_model=ApiResponse[list[LeaveRequestDetailOut]],
)
async def team_leave_requests(
    status: Optional[LeaveStatus] = Query(None),
    employee_id: Optional[uuid.UUID] = Query(None),
    leave_type: Optional[LeaveType] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    pagination: PaginationParams = Depends(),
    manager: Employee = Depends(_manager),
    db: AsyncSession = Depends(get_db),
):
    """Leave requests of the manager's direct reports."""
    rows, meta = await LeaveService.list_leave_requests(
        db,
        requestor=manager,
        scope="team",
        employee_id=employee_id,
        status=status,
        leave_type=leave_type,
        from_date=from_date,
        to_date=to_date,
        page=pagination.page,
        page_size=pagination.page_size,
        sort=pagination.sort,
    )
    return ok(rows, pagination=meta)


@manager_router.put(
    "/leave-requests/{request_id}/approve",
    response_model=ApiResponse[LeaveRequestDetailOut],
)
async def manager_approve(
    request_id: uuid.UUID,
    body: LeaveDecisionRequest,
    manager: Employee = Depends(_manager),
    db: AsyncSession = Depends(get_db),
):
    decided = await LeaveService.approve_leave(db, request_id, manager, comments=body.comments)
    return ok(decided, "Leave request approved.")


@manager_router.put(
    "/leave-requests/{request_id}/reject",
    response_model=ApiResponse[LeaveRequestDetailOut],
)
async def manager_reject(
    request_id: uuid.UUID,
    body: LeaveDecisionRequest,
    manager: Employee = Depends(_manager),
    db: AsyncSession = Depends(get_db),
):
    decided = await LeaveService.reject_leave(db, request_id, manager, comments=body.comments)
    return ok(decided, "Leave request rejected.")


# ═════════════════════════════════════════════════════════════════════
# Admin
# ═════════════════════════════════════════════════════════════════════


# ── Leave requests ──────────────────────────────────────────────────

@admin_router.get(
    "/leave-requests", response_model=ApiResponse[list[LeaveRequestDetailOut]],
)
async def all_leave_requests(
    status: Optional[LeaveStatus] = Query(None),
    employee_id: Optional[uuid.UUID] = Query(None),
    leave_type: Optional[LeaveType] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    pagination: PaginationParams = Depends(),
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    rows, meta = await LeaveService.list_leave_requests(
        db,
        requestor=admin,
        scope="all",
        employee_id=employee_id,
        status=status,
        leave_type=leave_type,
        from_date=from_date,
        to_date=to_date,
        page=pagination.page,
        page_size=pagination.page_size,
        sort=pagination.sort,
    )
    return ok(rows, pagination=meta)


@admin_router.post(
    "/leave-requests/bulk-decision",
    response_model=ApiResponse[list[BulkDecisionItem]],
)
async def admin_bulk_decision(
    body: BulkDecisionRequest,
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject several pending requests; results are reported per request."""
    decision = LeaveStatus.approved if body.action == "approve" else LeaveStatus.rejected
    results = await LeaveService.bulk_decide(
        db, body.request_ids, decision, admin, comments=body.comments,
    )
    return ok(results)


@admin_router.put(
    "/leave-requests/{request_id}/approve",
    response_model=ApiResponse[LeaveRequestDetailOut],
)
async def admin_approve(
    request_id: uuid.UUID,
    body: LeaveDecisionRequest,
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    decided = await LeaveService.approve_leave(db, request_id, admin, comments=body.comments)
    return ok(decided, "Leave request approved.")


@admin_router.put(
    "/leave-requests/{request_id}/reject",
    response_model=ApiResponse[LeaveRequestDetailOut],
)
async def admin_reject(
    request_id: uuid.UUID,
    body: LeaveDecisionRequest,
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    decided = await LeaveService.reject_leave(db, request_id, admin, comments=body.comments)
    return ok(decided, "Leave request rejected.")


@admin_router.post(
    "/leave-requests/{request_id}/recompute-paid",
    response_model=ApiResponse[PaidUnpaidResult],
)
async def recompute_paid(
    request_id: uuid.UUID,
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    """Re-derive the stored paid flag from the current balance history."""
    return ok(await LeaveService.recompute_paid_flag(db, request_id, admin))


# ── Balances ────────────────────────────────────────────────────────

@admin_router.get(
    "/employees/{employee_id}/balance", response_model=ApiResponse[EntitlementSnapshot],
)
async def employee_balance(
    employee_id: uuid.UUID,
    year: Optional[int] = Query(None, ge=2000, le=2100),
    as_of: Optional[date] = Query(None, description="Accrual reference date"),
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    snapshot = await LeaveService.get_entitlement(
        db, employee_id, year=year, reference_date=as_of,
    )
    return ok(snapshot)


@admin_router.post(
    "/employees/{employee_id}/balance-adjustments",
    response_model=ApiResponse[BalanceAdjustmentOut],
)
async def adjust_balance(
    employee_id: uuid.UUID,
    body: BalanceAdjustRequest,
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    adjusted = await LeaveService.adjust_balance(db, employee_id, body, admin)
    return ok(adjusted, "Leave balance adjusted.")


# ── Policies ────────────────────────────────────────────────────────

@admin_router.get("/policies", response_model=ApiResponse[list[LeavePolicyOut]])
async def list_policies(
    employee_type: Optional[EmployeeType] = Query(None),
    include_inactive: bool = Query(False),
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    policies = await LeaveService.list_policies(
        db, employee_type=employee_type, include_inactive=include_inactive,
    )
    return ok(policies)


@admin_router.post(
    "/policies",
    response_model=ApiResponse[LeavePolicyOut],
    status_code=status.HTTP_201_CREATED,
)
async def create_policy(
    body: LeavePolicyCreate,
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    return ok(await LeaveService.create_policy(db, body, admin), "Leave policy created.")


@admin_router.put("/policies/{policy_id}", response_model=ApiResponse[LeavePolicyOut])
async def update_policy(
    policy_id: uuid.UUID,
    body: LeavePolicyUpdate,
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    return ok(await LeaveService.update_policy(db, policy_id, body, admin))


@admin_router.delete("/policies/{policy_id}", response_model=ApiResponse[LeavePolicyOut])
async def deactivate_policy(
    policy_id: uuid.UUID,
    admin: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    """Soft-delete: the policy is deactivated, never removed."""
    deactivated = await LeaveService.deactivate_policy(db, policy_id, admin)
    return ok(deactivated, "Leave policy deactivated.")
