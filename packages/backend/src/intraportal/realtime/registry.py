"""Connection registry — the set of every admitted real-time connection.

Learn: All registry access happens on the application's single event
loop. Membership changes (admit, remove) are serialized by one
asyncio.Lock, and whole-registry work (broadcast, liveness sweep)
iterates over a snapshot taken under that lock. Nobody ever iterates
the live set, so concurrent admission/removal can't corrupt an
in-flight sweep or fan-out.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Protocol

import structlog

logger = structlog.get_logger()


class Transport(Protocol):
    """The bidirectional channel behind one Connection.

    The FastAPI adapter lives in realtime/websocket.py; tests use
    in-memory fakes with the same shape.
    """

    @property
    def is_open(self) -> bool: ...

    async def send_text(self, data: str) -> None: ...

    async def ping(self) -> None: ...

    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    async def terminate(self) -> None: ...


@dataclass(eq=False)
class Connection:
    """One authenticated real-time session.

    Identity is fixed at handshake time. `is_alive` is flipped by the
    liveness monitor (to False, before each probe) and by the transport's
    acknowledgement path (back to True).

    eq=False keeps identity-based hashing: registry membership is by
    reference, never by value.
    """

    user_id: str
    transport: Transport
    is_alive: bool = True
    channels: set[str] = field(default_factory=set)

    def mark_alive(self) -> None:
        self.is_alive = True


class ConnectionRegistry:
    """Lock-guarded set of live connections."""

    def __init__(self) -> None:
        self._connections: set[Connection] = set()
        self._lock = asyncio.Lock()

    async def add(self, connection: Connection) -> bool:
        """Admit a connection. Returns False if its transport is already registered."""
        async with self._lock:
            if any(c.transport is connection.transport for c in self._connections):
                return False
            self._connections.add(connection)
            size = len(self._connections)
        logger.debug("realtime.registry.added", user_id=connection.user_id, size=size)
        return True

    async def remove(self, connection: Connection) -> bool:
        """Drop a connection. Returns False if it was already gone."""
        async with self._lock:
            if connection not in self._connections:
                return False
            self._connections.discard(connection)
            size = len(self._connections)
        logger.debug("realtime.registry.removed", user_id=connection.user_id, size=size)
        return True

    async def snapshot(self) -> list[Connection]:
        """Point-in-time copy of the membership, safe to iterate."""
        async with self._lock:
            return list(self._connections)

    async def clear(self) -> list[Connection]:
        """Remove everything and return what was registered."""
        async with self._lock:
            drained = list(self._connections)
            self._connections.clear()
        return drained

    def __contains__(self, connection: Connection) -> bool:
        return connection in self._connections

    def __len__(self) -> int:
        return len(self._connections)
