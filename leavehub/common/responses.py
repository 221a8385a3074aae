"""Standard JSON envelope: ``{"success", "message", "data", "pagination"?}``."""

from __future__ import annotations

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

from leavehub.common.pagination import PaginationMeta

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str = "OK"
    data: Optional[T] = None
    pagination: Optional[PaginationMeta] = None


def ok(
    data: Any = None,
    message: str = "OK",
    *,
    pagination: Optional[PaginationMeta] = None,
) -> ApiResponse:
    """Wrap *data* in a success envelope."""
    return ApiResponse(success=True, message=message, data=data, pagination=pagination)
