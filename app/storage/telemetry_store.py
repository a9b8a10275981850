import asyncio
import logging
from typing import Optional

from redis.exceptions import RedisError

from app.config.settings import get_settings
from app.core.errors import StorageError
from app.core.redis_client import get_redis_client
from app.models.message import EntityId
from app.models.query import Aggregation, OrderBy, ReadTsKvQuery
from app.models.telemetry import (
    DoubleEntry,
    LongEntry,
    TsKvEntry,
    ts_kv_entry_adapter,
)

logger = logging.getLogger(__name__)


def series_key(tenant_id: str, entity: EntityId, key: str) -> str:
    return f"ts:{tenant_id}:{entity.entity_type}:{entity.id}:{key}"


class TelemetryStore:
    """Time-series storage on Redis sorted sets scored by timestamp."""

    def __init__(self):
        self.redis = None
        self.settings = get_settings()

    async def initialize(self):
        if not self.redis:
            self.redis = await get_redis_client()

    async def save_entries(
        self, tenant_id: str, entity: EntityId, entries: list[TsKvEntry]
    ) -> None:
        await self.initialize()

        try:
            async with self.redis.pipeline() as pipe:
                for entry in entries:
                    key = series_key(tenant_id, entity, entry.key)
                    pipe.zadd(key, {entry.model_dump_json(): entry.ts})
                    pipe.expire(key, self.settings.telemetry_retention_seconds)
                await pipe.execute()
        except RedisError as e:
            logger.error(f"Failed to save telemetry for {entity.id}: {e}")
            raise StorageError(f"Failed to save telemetry for {entity.id}") from e

    async def find_all(
        self, tenant_id: str, entity: EntityId, queries: list[ReadTsKvQuery]
    ) -> list[TsKvEntry]:
        await self.initialize()

        # every read completes before any failure is reported
        results = await asyncio.gather(
            *(self._find(tenant_id, entity, query) for query in queries),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            error = errors[0]
            if isinstance(error, RedisError):
                logger.error(
                    f"Failed to read telemetry for {entity.id}: {error} "
                    f"({len(errors)} of {len(queries)} reads failed)"
                )
                raise StorageError(f"Failed to read telemetry for {entity.id}") from error
            raise error

        return [entry for entries in results for entry in entries]

    async def _find(
        self, tenant_id: str, entity: EntityId, query: ReadTsKvQuery
    ) -> list[TsKvEntry]:
        key = series_key(tenant_id, entity, query.key)
        # end bound is exclusive
        min_score, max_score = query.start_ts, f"({query.end_ts}"

        if query.aggregation == Aggregation.NONE:
            if query.order == OrderBy.DESC:
                raw = await self.redis.zrevrangebyscore(
                    key, max_score, min_score, start=0, num=query.limit
                )
            else:
                raw = await self.redis.zrangebyscore(
                    key, min_score, max_score, start=0, num=query.limit
                )
            return [ts_kv_entry_adapter.validate_json(item) for item in raw]

        raw = await self.redis.zrangebyscore(key, min_score, max_score)
        entries = [ts_kv_entry_adapter.validate_json(item) for item in raw]
        buckets = aggregate(entries, query)
        if query.order == OrderBy.DESC:
            buckets.reverse()
        return buckets[: query.limit]


def aggregate(entries: list[TsKvEntry], query: ReadTsKvQuery) -> list[TsKvEntry]:
    """Collapse ``entries`` into one entry per ``query.interval`` wide bucket.

    Buckets are returned in ascending time order; empty buckets are skipped.
    """
    if query.interval <= 0:
        return []

    result = []
    bucket_start = query.start_ts
    while bucket_start < query.end_ts:
        bucket_end = min(bucket_start + query.interval, query.end_ts)
        in_bucket = [e for e in entries if bucket_start <= e.ts < bucket_end]
        ts = bucket_start + (bucket_end - bucket_start) // 2
        entry = _reduce(query.key, ts, in_bucket, query.aggregation)
        if entry is not None:
            result.append(entry)
        bucket_start = bucket_end
    return result


def _reduce(
    key: str, ts: int, entries: list[TsKvEntry], aggregation: Aggregation
) -> Optional[TsKvEntry]:
    if aggregation == Aggregation.COUNT:
        if not entries:
            return None
        return LongEntry(key=key, ts=ts, value=len(entries))

    numeric_entries = [e for e in entries if isinstance(e, (LongEntry, DoubleEntry))]
    if not numeric_entries:
        return None
    numeric = [e.value for e in numeric_entries]
    all_longs = all(isinstance(e, LongEntry) for e in numeric_entries)

    if aggregation == Aggregation.AVG:
        return DoubleEntry(key=key, ts=ts, value=sum(numeric) / len(numeric))
    elif aggregation == Aggregation.SUM:
        value = sum(numeric)
    elif aggregation == Aggregation.MIN:
        value = min(numeric)
    elif aggregation == Aggregation.MAX:
        value = max(numeric)
    else:
        raise ValueError(f"Unsupported aggregation: {aggregation}")

    if all_longs:
        return LongEntry(key=key, ts=ts, value=int(value))
    return DoubleEntry(key=key, ts=ts, value=float(value))


_store = TelemetryStore()


def get_telemetry_store() -> TelemetryStore:
    return _store
