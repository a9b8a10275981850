import logging
from typing import Any

from app.core.context import NodeContext
from app.core.event_bus import get_event_bus
from app.models.message import EntityId, Msg, NodeOutcome
from app.models.query import ReadTsKvQuery
from app.models.telemetry import TsKvEntry
from app.services.telemetry_node import GetTelemetryNode
from app.storage.telemetry_store import TelemetryStore

logger = logging.getLogger(__name__)


class TelemetryService:
    def __init__(self, store: TelemetryStore):
        self.store = store
        self.event_bus = get_event_bus()

    async def ingest(
        self, tenant_id: str, entity: EntityId, entries: list[TsKvEntry]
    ) -> None:
        await self.store.save_entries(tenant_id, entity, entries)
        logger.info(f"Stored {len(entries)} entries for {entity.entity_type}/{entity.id}")

    async def query(
        self, tenant_id: str, entity: EntityId, queries: list[ReadTsKvQuery]
    ) -> list[TsKvEntry]:
        return await self.store.find_all(tenant_id, entity, queries)

    async def enrich(
        self, tenant_id: str, configuration: dict[str, Any], msg: Msg
    ) -> NodeOutcome:
        node = GetTelemetryNode()
        node.init(configuration)
        try:
            ctx = NodeContext(tenant_id, self.store, self.event_bus)
            return await node.on_msg(ctx, msg)
        finally:
            node.destroy()
