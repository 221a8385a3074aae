"""Audit log model and async helper for recording who changed what."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from leavehub.database import Base, utcnow


class AuditLog(Base):
    """Append-only log of every leave, balance and probation mutation."""

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    actor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id"), nullable=True,
    )
    actor_name: Mapped[str] = mapped_column(sa.String(150), nullable=False)
    action: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    target_type: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    target_id: Mapped[Optional[uuid.UUID]] = mapped_column(sa.Uuid, nullable=True)
    details: Mapped[Optional[dict]] = mapped_column(sa.JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )

    __table_args__ = (
        sa.Index("ix_audit_logs_target", "target_type", "target_id"),
        sa.Index("ix_audit_logs_action", "action"),
    )

    def __repr__(self) -> str:
        return (
            f"<AuditLog {self.action} {self.target_type}"
            f"/{self.target_id} by {self.actor_name}>"
        )


async def record_audit(
    session: AsyncSession,
    *,
    action: str,
    target_type: str,
    target_id: Optional[uuid.UUID],
    actor_id: Optional[uuid.UUID] = None,
    actor_name: str = "System",
    details: Optional[dict[str, Any]] = None,
) -> AuditLog:
    """
    Add and flush an audit entry.

    Args:
        session: Async SQLAlchemy session.
        action: e.g. ``LEAVE_CREATE``, ``LEAVE_APPROVE``, ``ADJUST_LEAVE_BALANCE``.
        target_type: ``leave_request`` | ``employee`` | ``leave_policy``.
        target_id: UUID of the affected row.
        actor_id: UUID of the employee performing the action (None for system).
        actor_name: Display name captured at write time.
        details: JSON-serialisable payload (strings for dates and decimals).
    """
    entry = AuditLog(
        actor_id=actor_id,
        actor_name=actor_name,
        action=action,
        target_type=target_type,
        target_id=target_id,
        details=details,
    )
    session.add(entry)
    await session.flush()
    return entry
