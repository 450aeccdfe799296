"""News service — business logic for portal news items.

Learn: Every write follows the same three steps:
1. Apply the change to the news table
2. Append an activity log row in the same transaction
3. After commit, hand the change to the real-time bridge
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from intraportal.db.models import News, User
from intraportal.events.store import ActivityStore
from intraportal.events.types import CREATED, DELETED, NEWS, UPDATED
from intraportal.realtime.bridge import publish_change
from intraportal.schemas.news import NewsCreate, NewsUpdate


class NewsService:
    """Business logic for news items."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.activity = ActivityStore(db)

    async def list_news(
        self,
        limit: int = 10,
        offset: int = 0,
        featured: bool = False,
    ) -> list[tuple[News, str]]:
        """Newest published first; each row paired with the author's name."""
        q = select(News, User.name).join(User, News.author_id == User.id)
        if featured:
            q = q.where(News.featured.is_(True))
        q = (
            q.order_by(News.published_at.desc().nulls_last(), News.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(q)
        return [(news, name) for news, name in result.all()]

    async def get_news(self, news_id: uuid.UUID) -> News | None:
        return await self.db.get(News, news_id)

    async def create_news(self, author_id: str, body: NewsCreate) -> News:
        news = News(
            author_id=uuid.UUID(author_id),
            published_at=datetime.now(timezone.utc),
            **body.model_dump(),
        )
        self.db.add(news)
        await self.db.flush()

        await self.activity.append(
            user_id=author_id,
            resource_type=NEWS,
            action=CREATED,
            resource_id=news.id,
            metadata={"title": news.title},
        )
        await self.db.commit()
        await publish_change(NEWS, CREATED, _payload(news))
        return news

    async def update_news(
        self, news_id: uuid.UUID, user_id: str, body: NewsUpdate
    ) -> Optional[News]:
        news = await self.db.get(News, news_id)
        if news is None:
            return None

        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(news, field, value)
        news.updated_at = datetime.now(timezone.utc)

        await self.activity.append(
            user_id=user_id,
            resource_type=NEWS,
            action=UPDATED,
            resource_id=news.id,
            metadata={"fields": sorted(changes)},
        )
        await self.db.commit()
        await publish_change(NEWS, UPDATED, _payload(news))
        return news

    async def delete_news(self, news_id: uuid.UUID, user_id: str) -> bool:
        news = await self.db.get(News, news_id)
        if news is None:
            return False

        await self.db.delete(news)
        await self.activity.append(
            user_id=user_id,
            resource_type=NEWS,
            action=DELETED,
            resource_id=news_id,
            metadata={"title": news.title},
        )
        await self.db.commit()
        await publish_change(NEWS, DELETED, {"id": str(news_id)})
        return True


def _payload(news: News) -> dict:
    return {
        "id": str(news.id),
        "title": news.title,
        "category": news.category,
        "featured": news.featured,
        "author_id": str(news.author_id),
    }
