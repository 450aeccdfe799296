"""WebSocket endpoint — live update notifications for portal clients.

Learn: Each client connects to /ws?token=JWT. The handler:
1. Accepts the socket, then runs the handshake. Rejections close with
   4001/4003 *after* accept — closing before accept turns into a plain
   HTTP 403 and the client never sees the code.
2. Registers the connection with the hub and sends the ack frame
3. Runs a reader task that feeds every frame to the hub's router
4. Deregisters on disconnect, transport error, or liveness eviction

ASGI has no ping/pong primitive for applications, so the liveness probe
is a tiny `{"type": "heartbeat"}` text frame and any inbound frame
counts as the acknowledgement.
"""

import asyncio
from typing import Optional

import structlog
from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketState

from intraportal.realtime.hub import get_hub
from intraportal.realtime.protocol import HEARTBEAT_FRAME

logger = structlog.get_logger()
router = APIRouter()

CLOSE_POLICY_VIOLATION = 1008


class WebSocketTransport:
    """Adapts a Starlette WebSocket to the registry's Transport protocol."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.terminated = False
        self._reader: Optional[asyncio.Task] = None

    def bind_reader(self, task: asyncio.Task) -> None:
        self._reader = task
        if self.terminated:
            task.cancel()

    @property
    def is_open(self) -> bool:
        return (
            not self.terminated
            and self.websocket.application_state == WebSocketState.CONNECTED
            and self.websocket.client_state == WebSocketState.CONNECTED
        )

    async def send_text(self, data: str) -> None:
        await self.websocket.send_text(data)

    async def ping(self) -> None:
        await self.websocket.send_text(HEARTBEAT_FRAME)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self.websocket.application_state == WebSocketState.DISCONNECTED:
            return
        if self.websocket.client_state == WebSocketState.DISCONNECTED:
            return
        await self.websocket.close(code=code, reason=reason)

    async def terminate(self) -> None:
        """Stop reading immediately; the endpoint cleans up the socket."""
        self.terminated = True
        if self._reader is not None and not self._reader.done():
            self._reader.cancel()


@router.websocket("/ws")
async def updates_websocket(websocket: WebSocket):
    """WebSocket endpoint for real-time portal updates."""
    hub = get_hub()
    await websocket.accept()

    transport = WebSocketTransport(websocket)
    conn = await hub.admit(transport, websocket.query_params.get("token"))
    if conn is None:
        return

    async def reader():
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await hub.receive(conn, raw)

    reader_task = asyncio.create_task(reader())
    transport.bind_reader(reader_task)

    try:
        await asyncio.wait([reader_task])
        if not reader_task.cancelled() and reader_task.exception() is not None:
            logger.warning(
                "realtime.transport_error",
                user_id=conn.user_id,
                error=str(reader_task.exception()),
            )
    finally:
        if not reader_task.done():
            reader_task.cancel()
        await hub.disconnect(conn)
        if transport.terminated:
            code, reason = CLOSE_POLICY_VIOLATION, "Connection terminated"
        else:
            code, reason = 1000, ""
        try:
            await transport.close(code, reason)
        except Exception as e:
            logger.debug("realtime.close_failed", user_id=conn.user_id, error=str(e))
