"""News API routes.

Learn: Routes handle HTTP concerns (status codes, 404s) and delegate
to NewsService. List endpoints return {items, count} with the author's
display name joined in.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from intraportal.auth.dependencies import CurrentIdentity, get_current_user
from intraportal.db.engine import get_db
from intraportal.schemas.news import NewsCreate, NewsList, NewsRead, NewsUpdate
from intraportal.services.news_service import NewsService

router = APIRouter(prefix="/news")


def _svc(db: AsyncSession = Depends(get_db)) -> NewsService:
    return NewsService(db)


@router.get("", response_model=NewsList)
async def list_news(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    featured: bool = False,
    svc: NewsService = Depends(_svc),
):
    rows = await svc.list_news(limit=limit, offset=offset, featured=featured)
    items = [
        NewsRead.model_validate(news).model_copy(update={"author_name": name})
        for news, name in rows
    ]
    return NewsList(items=items, count=len(items))


@router.get("/{news_id}", response_model=NewsRead)
async def get_news(news_id: uuid.UUID, svc: NewsService = Depends(_svc)):
    news = await svc.get_news(news_id)
    if not news:
        raise HTTPException(status_code=404, detail="News not found")
    return news


@router.post("", response_model=NewsRead, status_code=201)
async def create_news(
    body: NewsCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NewsService = Depends(_svc),
):
    return await svc.create_news(identity.user_id, body)


@router.put("/{news_id}", response_model=NewsRead)
async def update_news(
    news_id: uuid.UUID,
    body: NewsUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NewsService = Depends(_svc),
):
    news = await svc.update_news(news_id, identity.user_id, body)
    if not news:
        raise HTTPException(status_code=404, detail="News not found")
    return news


@router.delete("/{news_id}")
async def delete_news(
    news_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NewsService = Depends(_svc),
):
    if not await svc.delete_news(news_id, identity.user_id):
        raise HTTPException(status_code=404, detail="News not found")
    return {"message": "News deleted successfully"}
