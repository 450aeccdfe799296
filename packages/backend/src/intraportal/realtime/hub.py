"""Real-time hub — wires registry, handshake, router, broadcaster and monitor.

Learn: One hub per process, created in the FastAPI lifespan:

    handshake → registry.add → ack frame
        → frames → router → (reply | broadcaster)
    liveness monitor ticks independently over the same registry
    disconnect / eviction → registry.remove

Shutdown cancels the monitor first, then closes whatever is still
registered, so the sweep can never run against a torn-down registry.
"""

from typing import Any, Optional

import structlog

from intraportal.config import settings
from intraportal.realtime.broadcast import Broadcaster, DeliveryReport
from intraportal.realtime.handshake import HandshakeRejected, authenticate
from intraportal.realtime.liveness import LivenessMonitor
from intraportal.realtime.protocol import UpdateEvent, connection_frame
from intraportal.realtime.registry import Connection, ConnectionRegistry, Transport
from intraportal.realtime.router import MessageRouter

logger = structlog.get_logger()

CLOSE_GOING_AWAY = 1001


class RealtimeHub:
    def __init__(self, heartbeat_interval: float = 30.0):
        self.registry = ConnectionRegistry()
        self.broadcaster = Broadcaster(self.registry)
        self.monitor = LivenessMonitor(self.registry, interval=heartbeat_interval)
        self.router = MessageRouter(self.broadcast)

    # ─── Lifecycle ──────────────────────────────────────

    def start(self) -> None:
        self.monitor.start()

    async def stop(self) -> None:
        await self.monitor.stop()
        for conn in await self.registry.clear():
            try:
                await conn.transport.close(CLOSE_GOING_AWAY, "Server shutting down")
            except Exception as e:
                logger.debug("realtime.close_failed", user_id=conn.user_id, error=str(e))
        logger.info("realtime.hub.stopped")

    # ─── Connections ────────────────────────────────────

    async def admit(
        self, transport: Transport, token: Optional[str]
    ) -> Optional[Connection]:
        """Authenticate and register a freshly opened transport.

        Returns None when the handshake is rejected (the transport has
        already been closed with the matching code) or the acknowledgement
        could not be delivered.
        """
        try:
            result = authenticate(token)
        except HandshakeRejected as e:
            logger.info("realtime.rejected", code=e.code, reason=e.reason)
            await transport.close(e.code, e.reason)
            return None

        conn = Connection(user_id=result.user_id, transport=transport)
        if not await self.registry.add(conn):
            raise ValueError("transport is already registered")

        try:
            await transport.send_text(connection_frame(conn.user_id))
        except Exception as e:
            logger.warning("realtime.ack_failed", user_id=conn.user_id, error=str(e))
            await self.registry.remove(conn)
            return None

        logger.info("realtime.connected", user_id=conn.user_id, connections=len(self.registry))
        return conn

    async def receive(self, conn: Connection, raw: str | bytes) -> None:
        """Handle one inbound frame. Any traffic counts as a liveness ack."""
        conn.mark_alive()
        await self.router.handle_raw(conn, raw)

    async def disconnect(self, conn: Connection) -> None:
        if await self.registry.remove(conn):
            logger.info(
                "realtime.disconnected", user_id=conn.user_id, connections=len(self.registry)
            )

    # ─── Broadcast ──────────────────────────────────────

    async def broadcast(self, event: UpdateEvent) -> DeliveryReport:
        report = await self.broadcaster.broadcast(event)
        # Failed transports are torn down; their reader loops deregister them
        for conn in report.failed:
            try:
                await conn.transport.terminate()
            except Exception as e:
                logger.debug(
                    "realtime.terminate_failed", user_id=conn.user_id, error=str(e)
                )
        return report

    async def publish(self, resource: str, action: str, payload: Any = None) -> DeliveryReport:
        return await self.broadcast(UpdateEvent(resource=resource, action=action, payload=payload))

    async def stats(self) -> dict:
        connections = await self.registry.snapshot()
        channels: dict[str, int] = {}
        for conn in connections:
            for channel in conn.channels:
                channels[channel] = channels.get(channel, 0) + 1
        return {
            "connections": len(connections),
            "users": len({conn.user_id for conn in connections}),
            "channels": channels,
            "heartbeat_interval": self.monitor.interval,
            "monitor_running": self.monitor.running,
        }


# ─── Process-wide instance (initialized in lifespan) ────

_hub: Optional[RealtimeHub] = None


def init_hub(heartbeat_interval: Optional[float] = None) -> RealtimeHub:
    """Create and start the process-wide hub."""
    global _hub
    _hub = RealtimeHub(
        heartbeat_interval=heartbeat_interval or settings.ws_heartbeat_interval
    )
    _hub.start()
    return _hub


async def close_hub() -> None:
    global _hub
    if _hub is not None:
        await _hub.stop()
        _hub = None


def get_hub() -> RealtimeHub:
    """Get the hub (must be initialized first)."""
    if _hub is None:
        raise RuntimeError("Realtime hub not initialized. Call init_hub() first.")
    return _hub


def current_hub() -> Optional[RealtimeHub]:
    return _hub
