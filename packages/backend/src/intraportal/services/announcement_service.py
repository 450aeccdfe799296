"""Announcement service.

Learn: An announcement is active from its start_date until its
end_date (open-ended when end_date is NULL). Urgent ones sort first.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from intraportal.db.models import Announcement, User, as_utc
from intraportal.events.store import ActivityStore
from intraportal.events.types import ANNOUNCEMENT, CREATED, DELETED
from intraportal.realtime.bridge import publish_change
from intraportal.schemas.announcement import AnnouncementCreate


class AnnouncementService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.activity = ActivityStore(db)

    async def list_active(
        self, limit: int = 10, offset: int = 0
    ) -> list[tuple[Announcement, str]]:
        now = datetime.now(timezone.utc)
        q = (
            select(Announcement, User.name)
            .join(User, Announcement.author_id == User.id)
            .where(
                Announcement.start_date <= now,
                or_(Announcement.end_date.is_(None), Announcement.end_date >= now),
            )
            .order_by(
                Announcement.is_urgent.desc(),
                Announcement.published_at.desc().nulls_last(),
            )
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(q)
        return [(item, name) for item, name in result.all()]

    async def create_announcement(
        self, author_id: str, body: AnnouncementCreate
    ) -> Announcement:
        now = datetime.now(timezone.utc)
        announcement = Announcement(
            title=body.title,
            content=body.content,
            author_id=uuid.UUID(author_id),
            priority=body.priority,
            is_urgent=body.is_urgent,
            end_date=as_utc(body.end_date),
            visible_to_roles=body.visible_to_roles,
            published_at=now,
            start_date=now,
        )
        self.db.add(announcement)
        await self.db.flush()

        await self.activity.append(
            user_id=author_id,
            resource_type=ANNOUNCEMENT,
            action=CREATED,
            resource_id=announcement.id,
            metadata={"title": announcement.title, "is_urgent": announcement.is_urgent},
        )
        await self.db.commit()
        await publish_change(
            ANNOUNCEMENT,
            CREATED,
            {
                "id": str(announcement.id),
                "title": announcement.title,
                "priority": announcement.priority,
                "is_urgent": announcement.is_urgent,
            },
        )
        return announcement

    async def delete_announcement(self, announcement_id: uuid.UUID, user_id: str) -> bool:
        announcement = await self.db.get(Announcement, announcement_id)
        if announcement is None:
            return False

        await self.db.delete(announcement)
        await self.activity.append(
            user_id=user_id,
            resource_type=ANNOUNCEMENT,
            action=DELETED,
            resource_id=announcement_id,
        )
        await self.db.commit()
        await publish_change(ANNOUNCEMENT, DELETED, {"id": str(announcement_id)})
        return True
