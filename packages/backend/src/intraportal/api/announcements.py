"""Announcement API routes."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from intraportal.auth.dependencies import CurrentIdentity, get_current_user
from intraportal.db.engine import get_db
from intraportal.schemas.announcement import (
    AnnouncementCreate,
    AnnouncementList,
    AnnouncementRead,
)
from intraportal.services.announcement_service import AnnouncementService

router = APIRouter(prefix="/announcements")


def _svc(db: AsyncSession = Depends(get_db)) -> AnnouncementService:
    return AnnouncementService(db)


@router.get("", response_model=AnnouncementList)
async def list_announcements(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    svc: AnnouncementService = Depends(_svc),
):
    """Currently active announcements, urgent first."""
    rows = await svc.list_active(limit=limit, offset=offset)
    items = [
        AnnouncementRead.model_validate(item).model_copy(update={"author_name": name})
        for item, name in rows
    ]
    return AnnouncementList(items=items, count=len(items))


@router.post("", response_model=AnnouncementRead, status_code=201)
async def create_announcement(
    body: AnnouncementCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: AnnouncementService = Depends(_svc),
):
    return await svc.create_announcement(identity.user_id, body)


@router.delete("/{announcement_id}")
async def delete_announcement(
    announcement_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: AnnouncementService = Depends(_svc),
):
    if not await svc.delete_announcement(announcement_id, identity.user_id):
        raise HTTPException(status_code=404, detail="Announcement not found")
    return {"message": "Announcement deleted successfully"}
