"""Broadcast dispatcher — fan one update out to every open connection.

Learn: The event is serialized exactly once, so every recipient gets
byte-identical text. Delivery is best-effort per recipient: a closed
transport is skipped and a failing send is recorded, and neither stops
the loop. The dispatcher reads a registry snapshot and never mutates
the registry; the caller decides what to do with failed recipients.
"""

from dataclasses import dataclass, field

import structlog

from intraportal.realtime.protocol import UpdateEvent
from intraportal.realtime.registry import Connection, ConnectionRegistry

logger = structlog.get_logger()


@dataclass
class DeliveryReport:
    """Outcome of one broadcast."""

    delivered: list[Connection] = field(default_factory=list)
    skipped: list[Connection] = field(default_factory=list)
    failed: list[Connection] = field(default_factory=list)

    @property
    def recipients(self) -> int:
        return len(self.delivered) + len(self.skipped) + len(self.failed)


class Broadcaster:
    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    async def broadcast(self, event: UpdateEvent) -> DeliveryReport:
        payload = event.serialize()
        report = DeliveryReport()

        for conn in await self.registry.snapshot():
            if not conn.transport.is_open:
                report.skipped.append(conn)
                continue
            try:
                await conn.transport.send_text(payload)
            except Exception as e:
                report.failed.append(conn)
                logger.warning(
                    "realtime.broadcast.send_failed",
                    user_id=conn.user_id,
                    error=str(e),
                )
                continue
            report.delivered.append(conn)

        logger.debug(
            "realtime.broadcast",
            resource=event.resource,
            action=event.action,
            delivered=len(report.delivered),
            skipped=len(report.skipped),
            failed=len(report.failed),
        )
        return report
