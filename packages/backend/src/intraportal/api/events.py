"""Event API routes — calendar events and RSVPs."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from intraportal.auth.dependencies import CurrentIdentity, get_current_user
from intraportal.db.engine import get_db
from intraportal.schemas.event import EventCreate, EventList, EventRead, EventUpdate
from intraportal.services.event_service import EventService, InvalidEventWindowError

router = APIRouter(prefix="/events")


def _svc(db: AsyncSession = Depends(get_db)) -> EventService:
    return EventService(db)


@router.get("", response_model=EventList)
async def list_events(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    upcoming: bool = True,
    svc: EventService = Depends(_svc),
):
    rows = await svc.list_events(limit=limit, offset=offset, upcoming=upcoming)
    items = [
        EventRead.model_validate(event).model_copy(update={"organizer_name": name})
        for event, name in rows
    ]
    return EventList(items=items, count=len(items))


@router.get("/{event_id}", response_model=EventRead)
async def get_event(event_id: uuid.UUID, svc: EventService = Depends(_svc)):
    event = await svc.get_event(event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.post("", response_model=EventRead, status_code=201)
async def create_event(
    body: EventCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: EventService = Depends(_svc),
):
    return await svc.create_event(identity.user_id, body)


@router.post("/{event_id}/rsvp", response_model=EventRead)
async def rsvp_event(
    event_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: EventService = Depends(_svc),
):
    event = await svc.rsvp(event_id, identity.user_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found or already RSVP'd")
    return event


@router.put("/{event_id}", response_model=EventRead)
async def update_event(
    event_id: uuid.UUID,
    body: EventUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: EventService = Depends(_svc),
):
    try:
        event = await svc.update_event(event_id, identity.user_id, body)
    except InvalidEventWindowError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.delete("/{event_id}")
async def delete_event(
    event_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: EventService = Depends(_svc),
):
    if not await svc.delete_event(event_id, identity.user_id):
        raise HTTPException(status_code=404, detail="Event not found")
    return {"message": "Event deleted successfully"}
