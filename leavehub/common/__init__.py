"""Common module — shared utilities for LeaveHub."""

from leavehub.common.constants import (
    DATE_FORMAT,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    EmployeeType,
    HalfDayPeriod,
    LeaveStatus,
    LeaveType,
    PolicyResolution,
    ProbationStatus,
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
    PolicyAmbiguityError,
    PolicyNotFoundError,
    UnauthorizedError,
    ValidationError,
    register_exception_handlers,
)
from leavehub.common.pagination import PaginationMeta, PaginationParams, paginate
from leavehub.common.responses import ApiResponse, ok

__all__ = [
    # Constants / Enums
    "EmployeeType",
    "HalfDayPeriod",
    "LeaveStatus",
    "LeaveType",
    "PolicyResolution",
    "ProbationStatus",
    "UserRole",
    "DATE_FORMAT",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "ConflictError",
    "DuplicateError",
    "ForbiddenError",
    "InvalidRangeError",
    "InvalidTransitionError",
    "NotFoundError",
    "PolicyAmbiguityError",
    "PolicyNotFoundError",
    "UnauthorizedError",
    "ValidationError",
    "register_exception_handlers",
    # Pagination / envelope
    "ApiResponse",
    "PaginationMeta",
    "PaginationParams",
    "ok",
    "paginate",
]
