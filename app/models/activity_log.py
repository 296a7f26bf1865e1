"""
Paywise Payroll Engine - Activity Log Model

Append-only record of engine actions (who generated which payroll, and
whether it succeeded). Browsing the log is handled elsewhere.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, String, Text, Uuid, Enum as SQLEnum, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class ActivityStatus(str, Enum):
    """Outcome of a logged action."""
    SUCCESS = "success"
    FAILURE = "failure"


class ActivityLog(Base):
    """Activity log entry. Rows are never updated."""

    __tablename__ = "activity_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
        index=True,
    )

    module: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    entity: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    entity_id: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True,
        comment="ID of the affected record",
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[ActivityStatus] = mapped_column(
        SQLEnum(ActivityStatus),
        default=ActivityStatus.SUCCESS,
        nullable=False,
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<ActivityLog(module={self.module}, action={self.action}, status={self.status})>"
