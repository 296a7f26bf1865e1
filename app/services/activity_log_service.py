"""
Paywise Payroll Engine - Activity Log Service

Writes activity log entries for payroll actions.
"""

import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.activity_log import ActivityLog, ActivityStatus


class ActivityLogService:
    """Service for recording engine activity."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log_action(
        self,
        module: str,
        action: str,
        description: str,
        user_id: Optional[uuid.UUID] = None,
        entity: Optional[str] = None,
        entity_id: Optional[str] = None,
        status: ActivityStatus = ActivityStatus.SUCCESS,
        error_message: Optional[str] = None,
    ) -> ActivityLog:
        """
        Log an activity.

        Args:
            module: Functional area (e.g., 'payroll')
            action: Action performed (e.g., 'generate')
            description: Human readable summary
            user_id: ID of user who performed the action
            entity: Type of the affected record
            entity_id: ID of the affected record
            status: Outcome of the action
            error_message: Failure reason, for failed actions

        Returns:
            Created ActivityLog record (flushed, not committed)
        """
        activity = ActivityLog(
            module=module,
            action=action,
            entity=entity,
            entity_id=entity_id,
            description=description,
            user_id=user_id,
            status=status,
            error_message=error_message,
        )

        self.db.add(activity)
        await self.db.flush()

        return activity

    async def list_for_module(self, module: str, limit: int = 50) -> List[ActivityLog]:
        """Most recent entries of a module."""
        result = await self.db.execute(
            select(ActivityLog)
            .where(ActivityLog.module == module)
            .order_by(ActivityLog.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
