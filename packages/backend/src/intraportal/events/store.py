"""Activity store — append-only audit log of content changes.

Learn: Every service write records who did what to which resource.
Rows are flushed inside the caller's transaction so the audit entry
commits (or rolls back) together with the change itself.
"""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from intraportal.db.models import ActivityLog


class ActivityStore:
    """Append-only activity log backed by the activity_logs table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(
        self,
        user_id: str | uuid.UUID,
        resource_type: str,
        action: str,
        resource_id: Optional[uuid.UUID] = None,
        metadata: dict | None = None,
    ) -> ActivityLog:
        """Append an entry. Returns the created row."""
        entry = ActivityLog(
            user_id=_as_uuid(user_id),
            resource_type=resource_type,
            action=action,
            resource_id=resource_id,
            meta=metadata or {},
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def for_user(
        self,
        user_id: str | uuid.UUID,
        limit: int = 50,
    ) -> list[ActivityLog]:
        """Most recent activity for one user."""
        result = await self.db.execute(
            select(ActivityLog)
            .where(ActivityLog.user_id == _as_uuid(user_id))
            .order_by(ActivityLog.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())


def _as_uuid(value: str | uuid.UUID) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(value)
