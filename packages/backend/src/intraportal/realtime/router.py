"""Message router — reacts to one decoded client frame.

Learn: Each variant gets an explicit branch:
- subscribe → reply `subscribed` to the sender only (the channel is
  recorded on the connection but does not filter broadcasts)
- ping      → reply `pong` with the server time in epoch ms
- update    → build an UpdateEvent and hand it to the broadcast callback;
  no direct reply, the sender gets the broadcast like everyone else
- heartbeat → liveness acknowledgement, nothing to send
- unknown   → logged and dropped

Frames that fail to decode are logged and dropped too; the connection
stays open either way.
"""

from typing import Awaitable, Callable

import structlog

from intraportal.realtime.protocol import (
    HeartbeatMessage,
    InboundMessage,
    MalformedFrame,
    PingMessage,
    SubscribeMessage,
    UnknownMessage,
    UpdateEvent,
    UpdateMessage,
    decode_message,
    pong_frame,
    subscribed_frame,
)
from intraportal.realtime.registry import Connection

logger = structlog.get_logger()

BroadcastFn = Callable[[UpdateEvent], Awaitable[object]]


class MessageRouter:
    def __init__(self, broadcast: BroadcastFn):
        self._broadcast = broadcast

    async def handle_raw(self, conn: Connection, raw: str | bytes) -> None:
        """Decode and dispatch one frame; malformed input is dropped."""
        try:
            message = decode_message(raw)
        except MalformedFrame as e:
            logger.warning(
                "realtime.message.malformed", user_id=conn.user_id, error=str(e)
            )
            return
        await self.dispatch(conn, message)

    async def dispatch(self, conn: Connection, message: InboundMessage) -> None:
        if isinstance(message, SubscribeMessage):
            channel = message.data.channel
            conn.channels.add(channel)
            logger.info("realtime.subscribed", user_id=conn.user_id, channel=channel)
            await conn.transport.send_text(subscribed_frame(channel))
        elif isinstance(message, PingMessage):
            await conn.transport.send_text(pong_frame())
        elif isinstance(message, UpdateMessage):
            event = UpdateEvent(
                resource=message.data.resource,
                action=message.data.action,
                payload=message.data.payload,
            )
            await self._broadcast(event)
        elif isinstance(message, HeartbeatMessage):
            conn.mark_alive()
        elif isinstance(message, UnknownMessage):
            logger.info(
                "realtime.message.unknown_type", user_id=conn.user_id, type=message.type
            )
        else:
            raise TypeError(f"unhandled message variant: {type(message).__name__}")
