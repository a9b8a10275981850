import logging
from typing import Optional

from app.core.event_bus import FAILURE, SUCCESS, EventBus
from app.models.message import Msg

logger = logging.getLogger(__name__)


class NodeContext:
    """What a node sees of its host: tenant, time-series storage and output routing."""

    def __init__(self, tenant_id: str, telemetry_store, event_bus: Optional[EventBus] = None):
        self.tenant_id = tenant_id
        self.telemetry_store = telemetry_store
        self.event_bus = event_bus

    async def tell_success(self, msg: Msg) -> None:
        if self.event_bus is not None:
            await self.event_bus.route(SUCCESS, msg)

    async def tell_failure(self, msg: Msg, error: BaseException) -> None:
        logger.warning(f"Message {msg.id} routed to failure: {error}")
        if self.event_bus is not None:
            await self.event_bus.route(FAILURE, msg, error)
