"""Event service — calendar events and RSVPs.

Learn: Attendees are stored as a JSON list of user id strings. JSON
columns don't track in-place mutation, so RSVP assigns a new list.
The organizer is the first attendee of every event they create.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from intraportal.db.models import Event, User, as_utc
from intraportal.events.store import ActivityStore
from intraportal.events.types import CREATED, DELETED, EVENT, RSVP, UPDATED
from intraportal.realtime.bridge import publish_change
from intraportal.schemas.event import EventCreate, EventUpdate


class InvalidEventWindowError(Exception):
    """Raised when an update would put end_time before start_time."""


class EventService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.activity = ActivityStore(db)

    async def list_events(
        self,
        limit: int = 20,
        offset: int = 0,
        upcoming: bool = True,
    ) -> list[tuple[Event, str]]:
        """Soonest first; `upcoming` hides events that already started."""
        q = select(Event, User.name).join(User, Event.organizer_id == User.id)
        if upcoming:
            q = q.where(Event.start_time >= datetime.now(timezone.utc))
        q = q.order_by(Event.start_time.asc()).limit(limit).offset(offset)
        result = await self.db.execute(q)
        return [(event, name) for event, name in result.all()]

    async def get_event(self, event_id: uuid.UUID) -> Event | None:
        return await self.db.get(Event, event_id)

    async def create_event(self, organizer_id: str, body: EventCreate) -> Event:
        event = Event(
            title=body.title,
            description=body.description,
            start_time=as_utc(body.start_time),
            end_time=as_utc(body.end_time),
            location=body.location,
            teams_channel_id=body.teams_channel_id,
            organizer_id=uuid.UUID(organizer_id),
            attendees=[organizer_id],
        )
        self.db.add(event)
        await self.db.flush()

        await self.activity.append(
            user_id=organizer_id,
            resource_type=EVENT,
            action=CREATED,
            resource_id=event.id,
            metadata={"title": event.title},
        )
        await self.db.commit()
        await publish_change(EVENT, CREATED, _payload(event))
        return event

    async def update_event(
        self, event_id: uuid.UUID, user_id: str, body: EventUpdate
    ) -> Optional[Event]:
        event = await self.db.get(Event, event_id)
        if event is None:
            return None

        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        start = as_utc(changes.get("start_time", event.start_time))
        end = as_utc(changes.get("end_time", event.end_time))
        if end < start:
            raise InvalidEventWindowError("end_time must not be before start_time")

        for field, value in changes.items():
            if isinstance(value, datetime):
                value = as_utc(value)
            setattr(event, field, value)
        event.updated_at = datetime.now(timezone.utc)

        await self.activity.append(
            user_id=user_id,
            resource_type=EVENT,
            action=UPDATED,
            resource_id=event.id,
            metadata={"fields": sorted(changes)},
        )
        await self.db.commit()
        await publish_change(EVENT, UPDATED, _payload(event))
        return event

    async def delete_event(self, event_id: uuid.UUID, user_id: str) -> bool:
        event = await self.db.get(Event, event_id)
        if event is None:
            return False

        await self.db.delete(event)
        await self.activity.append(
            user_id=user_id,
            resource_type=EVENT,
            action=DELETED,
            resource_id=event_id,
            metadata={"title": event.title},
        )
        await self.db.commit()
        await publish_change(EVENT, DELETED, {"id": str(event_id)})
        return True

    async def rsvp(self, event_id: uuid.UUID, user_id: str) -> Optional[Event]:
        """Add the user to the attendee list.

        Returns None when the event doesn't exist or the user already
        RSVP'd — the caller can't tell the two apart, same as before.
        """
        event = await self.db.get(Event, event_id)
        if event is None or user_id in (event.attendees or []):
            return None

        event.attendees = [*(event.attendees or []), user_id]
        await self.activity.append(
            user_id=user_id,
            resource_type=EVENT,
            action=RSVP,
            resource_id=event.id,
        )
        await self.db.commit()
        await publish_change(
            EVENT, RSVP, {"id": str(event.id), "attendees": len(event.attendees)}
        )
        return event


def _payload(event: Event) -> dict:
    return {
        "id": str(event.id),
        "title": event.title,
        "start_time": as_utc(event.start_time).isoformat(),
        "end_time": as_utc(event.end_time).isoformat(),
        "location": event.location,
    }
