import logging
from enum import Enum
from typing import Any

from pydantic import ValidationError

from app.core.context import NodeContext
from app.core.errors import NodeConfigurationError, TelemetryNotSelectedError
from app.core.interval import check_interval, resolve_interval
from app.core.patterns import process_patterns
from app.core.query_builder import build_queries
from app.core.result_encoder import write_metadata
from app.models.message import Msg, NodeFailure, NodeOutcome, NodeSuccess
from app.models.node import GetTelemetryNodeConfig

logger = logging.getLogger(__name__)


class NodeState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


class GetTelemetryNode:
    """Adds the originator's telemetry for a time range to message metadata.

    ``FIRST`` and ``LAST`` store the value alone, ``ALL`` stores an array of
    ``{ts, value}`` objects. Keys without data in the range are left
    untouched.
    """

    def __init__(self):
        self.config: GetTelemetryNodeConfig = None
        self.state = NodeState.UNINITIALIZED

    def init(self, configuration: Any) -> None:
        try:
            if isinstance(configuration, GetTelemetryNodeConfig):
                self.config = configuration
            else:
                self.config = GetTelemetryNodeConfig.model_validate(configuration or {})
        except ValidationError as e:
            raise NodeConfigurationError(f"Invalid node configuration: {e}") from e

        self.state = NodeState.READY
        logger.info(
            f"Telemetry node ready: keys={self.config.latest_ts_key_names} "
            f"mode={self.config.fetch_mode.value} aggregation={self.config.aggregation.value}"
        )

    def destroy(self) -> None:
        self.config = None
        self.state = NodeState.UNINITIALIZED

    async def on_msg(self, ctx: NodeContext, msg: Msg) -> NodeOutcome:
        if self.state != NodeState.READY:
            raise RuntimeError("Telemetry node is not initialized")

        if not self.config.latest_ts_key_names:
            return await self._fail(ctx, msg, TelemetryNotSelectedError())

        try:
            interval = resolve_interval(self.config, msg)
            if self.config.use_metadata_interval_patterns:
                check_interval(self.config, msg, interval)
            keys = process_patterns(self.config.latest_ts_key_names, msg)
            queries = build_queries(self.config, interval, keys)

            entries = await ctx.telemetry_store.find_all(
                ctx.tenant_id, msg.originator, queries
            )

            metadata = write_metadata(
                dict(msg.metadata), entries, keys, self.config.fetch_mode
            )
        except Exception as e:
            return await self._fail(ctx, msg, e)

        enriched = msg.model_copy(update={"metadata": metadata})
        await ctx.tell_success(enriched)
        return NodeSuccess(msg=enriched)

    async def _fail(self, ctx: NodeContext, msg: Msg, error: Exception) -> NodeFailure:
        await ctx.tell_failure(msg, error)
        return NodeFailure(msg=msg, error=error)
