"""Policy resolution: which active leave policy applies to an employee.

Two modes, chosen by ``Settings.POLICY_RESOLUTION``:

``strict``
    Only a policy whose employee type equals the employee's exactly. An
    unclassified employee matches only unclassified policies.

``fallback``
    Prefer the exact match; when there is none, accept a generic policy
    (employee type unset). A specific policy always wins over a generic one.

Missing policies raise :class:`PolicyNotFoundError` so callers can tell
"zero days" from "no policy configured".
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from leavehub.common.constants import EmployeeType, LeaveType, PolicyResolution
from leavehub.common.exceptions import PolicyAmbiguityError, PolicyNotFoundError
from leavehub.engine.types import PolicyRecord

logger = logging.getLogger(__name__)


def _single(
    candidates: list[PolicyRecord],
    leave_type: LeaveType,
    employee_type: Optional[EmployeeType],
) -> Optional[PolicyRecord]:
    if not candidates:
        return None
    if len(candidates) > 1:
        raise PolicyAmbiguityError(leave_type, employee_type, len(candidates))
    return candidates[0]


def resolve_policy(
    policies: Iterable[PolicyRecord],
    leave_type: LeaveType,
    employee_type: Optional[EmployeeType],
    *,
    mode: PolicyResolution = PolicyResolution.strict,
) -> PolicyRecord:
    """Return the single active policy for *leave_type* and *employee_type*."""
    leave_type = LeaveType(leave_type)
    active = [p for p in policies if p.is_active and p.leave_type == leave_type]

    exact = [p for p in active if p.employee_type == employee_type]
    match = _single(exact, leave_type, employee_type)
    if match is not None:
        return match

    if mode == PolicyResolution.fallback and employee_type is not None:
        generic = [p for p in active if p.employee_type is None]
        match = _single(generic, leave_type, None)
        if match is not None:
            logger.debug(
                "Using generic %s policy for employee type %s",
                leave_type.value, employee_type.value,
            )
            return match

    raise PolicyNotFoundError(leave_type, employee_type)


def applicable_policies(
    policies: Iterable[PolicyRecord],
    employee_type: Optional[EmployeeType],
    *,
    mode: PolicyResolution = PolicyResolution.strict,
) -> dict[LeaveType, PolicyRecord]:
    """Every leave type that resolves for *employee_type*, keyed by type.

    Leave types without a policy are simply absent; ambiguity still raises.
    """
    policies = list(policies)
    resolved: dict[LeaveType, PolicyRecord] = {}
    for leave_type in sorted({p.leave_type for p in policies}, key=lambda t: t.value):
        try:
            resolved[leave_type] = resolve_policy(
                policies, leave_type, employee_type, mode=mode,
            )
        except PolicyNotFoundError:
            continue
    return resolved
