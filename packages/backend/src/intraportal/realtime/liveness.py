"""Liveness monitor — reclaims half-open connections.

Learn: Every `interval` seconds, for each registered connection:
- flag already False → it never answered the previous probe:
  terminate the transport and remove it from the registry
- otherwise → set the flag False and send a probe

A connection is admitted with the flag True, so it always survives the
first sweep. A client that goes silent is evicted on the sweep *after*
the one whose probe it ignored — one full interval of grace per probe.

The monitor runs as its own asyncio task next to the per-connection
reader tasks; both touch the registry only through its lock/snapshot API.
"""

import asyncio
from typing import Optional

import structlog

from intraportal.realtime.registry import Connection, ConnectionRegistry

logger = structlog.get_logger()


class LivenessMonitor:
    """Periodic probe-and-evict loop over the connection registry.

    Usage:
        monitor = LivenessMonitor(registry, interval=30.0)
        monitor.start()
        ...
        await monitor.stop()
    """

    def __init__(self, registry: ConnectionRegistry, interval: float = 30.0):
        self.registry = registry
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self.run_loop(), name="liveness-monitor")
        logger.info("realtime.liveness.started", interval=self.interval)

    async def stop(self) -> None:
        """Cancel the recurring sweep and wait for it to unwind."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("realtime.liveness.stopped")

    async def run_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.sweep()
            except Exception:
                logger.exception("realtime.liveness.error")

    async def sweep(self) -> list[Connection]:
        """Run one probe cycle. Returns the connections evicted this cycle."""
        evicted: list[Connection] = []
        for conn in await self.registry.snapshot():
            if not conn.is_alive:
                await self._evict(conn)
                evicted.append(conn)
                continue
            conn.is_alive = False
            try:
                await conn.transport.ping()
            except Exception as e:
                # The next sweep evicts it unless something arrives first
                logger.debug(
                    "realtime.liveness.probe_failed",
                    user_id=conn.user_id,
                    error=str(e),
                )
        return evicted

    async def _evict(self, conn: Connection) -> None:
        await self.registry.remove(conn)
        try:
            await conn.transport.terminate()
        except Exception as e:
            logger.debug(
                "realtime.liveness.terminate_failed",
                user_id=conn.user_id,
                error=str(e),
            )
        logger.info("realtime.evicted", user_id=conn.user_id)
