"""Wire protocol for the /ws channel — inbound decoding and outbound frames.

Learn: Client frames are JSON objects tagged by `type`. Decoding is a
two-step affair:
1. Parse JSON and read the tag. Anything that isn't a JSON object with
   a string `type` raises MalformedFrame.
2. Known tags are validated into their pydantic variant; an unknown tag
   becomes UnknownMessage so the router's fallback branch is explicit.

Client → server:
    {"type": "subscribe", "data": {"channel": str}}
    {"type": "ping"}
    {"type": "update", "data": {"resource": str, "action": str, "payload": any}}
    {"type": "heartbeat"}                      (liveness acknowledgement)

Server → client:
    {"type": "connection", "message": str, "userId": str}
    {"type": "subscribed", "channel": str}
    {"type": "pong", "timestamp": int}         (epoch milliseconds)
    {"type": "update", "resource", "action", "data", "timestamp": ISO-8601}
    {"type": "heartbeat"}                      (liveness probe)
"""

import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Union

from pydantic import BaseModel, ValidationError


class MalformedFrame(Exception):
    """Raised when an inbound frame can't be decoded into a message."""


# ─── Inbound variants ───────────────────────────────────


class SubscribeData(BaseModel):
    channel: str


class SubscribeMessage(BaseModel):
    type: Literal["subscribe"]
    data: SubscribeData


class PingMessage(BaseModel):
    type: Literal["ping"]


class UpdateData(BaseModel):
    resource: str
    action: str
    payload: Any = None


class UpdateMessage(BaseModel):
    type: Literal["update"]
    data: UpdateData


class HeartbeatMessage(BaseModel):
    type: Literal["heartbeat"]


class UnknownMessage(BaseModel):
    type: str


InboundMessage = Union[
    SubscribeMessage, PingMessage, UpdateMessage, HeartbeatMessage, UnknownMessage
]

_VARIANTS: dict[str, type[BaseModel]] = {
    "subscribe": SubscribeMessage,
    "ping": PingMessage,
    "update": UpdateMessage,
    "heartbeat": HeartbeatMessage,
}


def decode_message(raw: str | bytes) -> InboundMessage:
    """Decode one client frame. Raises MalformedFrame on bad input."""
    try:
        obj = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedFrame(f"not JSON: {e}") from e

    if not isinstance(obj, dict):
        raise MalformedFrame("frame is not a JSON object")
    tag = obj.get("type")
    if not isinstance(tag, str):
        raise MalformedFrame("frame has no string 'type'")

    variant = _VARIANTS.get(tag)
    if variant is None:
        return UnknownMessage(type=tag)
    try:
        return variant.model_validate(obj)
    except ValidationError as e:
        raise MalformedFrame(f"invalid '{tag}' frame: {e.error_count()} error(s)") from e


# ─── Outbound frames ────────────────────────────────────


def connection_frame(user_id: str) -> str:
    return json.dumps({
        "type": "connection",
        "message": "Connected to real-time updates",
        "userId": user_id,
    })


def subscribed_frame(channel: str) -> str:
    return json.dumps({"type": "subscribed", "channel": channel})


def pong_frame(now_ms: int | None = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return json.dumps({"type": "pong", "timestamp": now_ms})


HEARTBEAT_FRAME = json.dumps({"type": "heartbeat"})


@dataclass(frozen=True)
class UpdateEvent:
    """A data-change notification destined for every connected client.

    `occurred_at` is when the change happened, not when it is sent.
    """

    resource: str
    action: str
    payload: Any = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_frame(self) -> dict:
        return {
            "type": "update",
            "resource": self.resource,
            "action": self.action,
            "data": self.payload,
            "timestamp": self.occurred_at.isoformat(),
        }

    def serialize(self) -> str:
        # default=str covers UUIDs and datetimes coming from ORM payloads
        return json.dumps(self.to_frame(), default=str)
