"""Custom exceptions and the JSON error-envelope handlers."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

BASE_ERROR_URI = "/errors"


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → ``{success: false, error: {...}}``."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        super().__init__(detail)


class NotFoundError(AppException):
    """404 — entity not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
        )


class PolicyNotFoundError(NotFoundError):
    """404 — no active leave policy for a (leave type, employee type) pair."""

    def __init__(self, leave_type: Any, employee_type: Any) -> None:
        super().__init__("LeavePolicy", f"{_value(leave_type)}/{_value(employee_type)}")
        self.leave_type = leave_type
        self.employee_type = employee_type
        self.detail = (
            f"No active {_value(leave_type)} leave policy for employee type "
            f"'{_value(employee_type)}'."
        )
        self.args = (self.detail,)


class InvalidRangeError(AppException):
    """422 — bad date range or non-positive day count."""

    def __init__(self, detail: str, field: str = "dates") -> None:
        super().__init__(
            status_code=422,
            error_type="invalid-range",
            title="Invalid Range",
            detail=detail,
            errors={field: [detail]},
        )


class ConflictError(AppException):
    """409 — an overlapping pending/approved leave request exists."""

    def __init__(self, start_date: date, end_date: date) -> None:
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            status_code=409,
            error_type="conflict",
            title="Conflict",
            detail=(
                "You already have a leave request for this period "
                f"({start_date.isoformat()} to {end_date.isoformat()})."
            ),
            errors={
                "conflicting_request": [start_date.isoformat(), end_date.isoformat()],
            },
        )


class DuplicateError(AppException):
    """409 — unique-constraint violation."""

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(
            status_code=409,
            error_type="duplicate",
            title="Duplicate",
            detail=f"An entry with {field}='{value}' already exists.",
            errors={field: [f"'{value}' is already in use."]},
        )


class PolicyAmbiguityError(AppException):
    """409 — several active policies match one (leave type, employee type)."""

    def __init__(self, leave_type: Any, employee_type: Any, count: int) -> None:
        self.leave_type = leave_type
        self.employee_type = employee_type
        super().__init__(
            status_code=409,
            error_type="policy-ambiguity",
            title="Ambiguous Leave Policy",
            detail=(
                f"{count} active {_value(leave_type)} policies match employee type "
                f"'{_value(employee_type)}'; exactly one is required."
            ),
        )


class InvalidTransitionError(AppException):
    """409 — state change not allowed from the current status."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=409,
            error_type="invalid-transition",
            title="Invalid Transition",
            detail=detail,
        )


class ForbiddenError(AppException):
    """403 — insufficient permissions."""

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(
            status_code=403,
            error_type="forbidden",
            title="Forbidden",
            detail=detail,
        )


class UnauthorizedError(AppException):
    """401 — missing, expired or invalid credentials."""

    def __init__(self, detail: str = "Authentication required.") -> None:
        super().__init__(
            status_code=401,
            error_type="unauthorized",
            title="Unauthorized",
            detail=detail,
        )


class ValidationError(AppException):
    """422 — business-logic validation failures."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        super().__init__(
            status_code=422,
            error_type="validation-error",
            title="Validation Error",
            detail="One or more fields failed validation.",
            errors=errors,
        )


def _value(obj: Any) -> Any:
    return getattr(obj, "value", obj)


# ── Envelope builder ────────────────────────────────────────────────

def _build_error_body(exc: AppException, request: Request) -> dict[str, Any]:
    error: dict[str, Any] = {
        "type": f"{BASE_ERROR_URI}/{exc.error_type}",
        "title": exc.title,
        "status": exc.status_code,
        "detail": exc.detail,
        "instance": str(request.url.path),
    }
    if exc.errors:
        error["errors"] = exc.errors
    return {
        "success": False,
        "message": exc.detail,
        "data": None,
        "error": error,
    }


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_build_error_body(exc, request),
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        name = (
            ".".join(str(p) for p in loc[1:])
            if len(loc) > 1
            else str(loc[0]) if loc else "unknown"
        )
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": "Request validation failed.",
            "data": None,
            "error": {
                "type": f"{BASE_ERROR_URI}/validation-error",
                "title": "Validation Error",
                "status": 422,
                "detail": "Request validation failed.",
                "instance": str(request.url.path),
                "errors": field_errors,
            },
        },
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
