import asyncio
import uuid

import pytest
from fastapi.testclient import TestClient

from app.core.context import NodeContext
from app.main import app
from app.models.message import EntityId, Msg
from app.models.query import Aggregation, OrderBy
from app.storage.telemetry_store import aggregate, get_telemetry_store


class InMemoryTelemetryStore:
    """Stands in for the Redis store, with the same read semantics."""

    def __init__(self):
        self.series: dict[tuple, list] = {}
        self.queries: list = []
        self.error = None

    async def save_entries(self, tenant_id, entity, entries):
        for entry in entries:
            key = (tenant_id, entity.entity_type, entity.id, entry.key)
            self.series.setdefault(key, []).append(entry)

    async def find_all(self, tenant_id, entity, queries):
        self.queries.extend(queries)
        if self.error is not None:
            raise self.error

        result = []
        for query in queries:
            key = (tenant_id, entity.entity_type, entity.id, query.key)
            entries = sorted(
                (
                    e
                    for e in self.series.get(key, [])
                    if query.start_ts <= e.ts < query.end_ts
                ),
                key=lambda e: e.ts,
            )
            if query.aggregation != Aggregation.NONE:
                entries = aggregate(entries, query)
            if query.order == OrderBy.DESC:
                entries.reverse()
            result.extend(entries[: query.limit])
        return result


@pytest.fixture
def store():
    return InMemoryTelemetryStore()


@pytest.fixture
def ctx(store):
    return NodeContext("tenant-1", store)


@pytest.fixture
def device():
    return EntityId(entity_type="DEVICE", id=uuid.uuid4().hex[:8])


@pytest.fixture
def make_msg(device):
    def _make(metadata=None, data="{}"):
        return Msg(originator=device, metadata=metadata or {}, data=data)

    return _make


@pytest.fixture
def run():
    return asyncio.run


@pytest.fixture
def client(store):
    app.dependency_overrides[get_telemetry_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def unique_id():
    return uuid.uuid4().hex[:8]
