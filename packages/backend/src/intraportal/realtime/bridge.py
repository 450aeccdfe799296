"""REST → real-time bridge.

Learn: Services call publish_change() after a committed create/update/
delete. It is a no-op unless INTRAPORTAL_WS_BROADCAST_ON_WRITE is set
and the hub is running, so the REST layer never depends on the
real-time layer being up. A broadcast failure is logged, never raised:
the write has already committed.
"""

from typing import Any, Optional

import structlog

from intraportal.config import settings
from intraportal.realtime.broadcast import DeliveryReport
from intraportal.realtime.hub import current_hub

logger = structlog.get_logger()


async def publish_change(
    resource: str,
    action: str,
    payload: Any = None,
) -> Optional[DeliveryReport]:
    if not settings.ws_broadcast_on_write:
        return None
    hub = current_hub()
    if hub is None:
        return None
    try:
        return await hub.publish(resource, action, payload)
    except Exception:
        logger.exception("realtime.bridge.publish_failed", resource=resource, action=action)
        return None
