from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_telemetry_service, get_tenant_id
from app.models.message import EntityId
from app.models.node import MAX_FETCH_SIZE
from app.models.query import Aggregation, OrderBy, ReadTsKvQuery
from app.models.telemetry import TsKvEntry
from app.services.telemetry_service import TelemetryService

router = APIRouter()


@router.post("/{entity_type}/{entity_id}", status_code=202)
async def ingest_entries(
    entity_type: str,
    entity_id: str,
    entries: list[TsKvEntry],
    tenant_id: str = Depends(get_tenant_id),
    service: TelemetryService = Depends(get_telemetry_service),
):
    entity = EntityId(entity_type=entity_type, id=entity_id)
    await service.ingest(tenant_id, entity, entries)
    return {"status": "accepted", "count": len(entries)}


@router.get("/{entity_type}/{entity_id}", response_model=list[TsKvEntry])
async def query_entries(
    entity_type: str,
    entity_id: str,
    keys: str,
    start_ts: int,
    end_ts: int,
    interval: Optional[int] = None,
    limit: int = 100,
    agg: Aggregation = Aggregation.NONE,
    order: OrderBy = OrderBy.DESC,
    tenant_id: str = Depends(get_tenant_id),
    service: TelemetryService = Depends(get_telemetry_service),
):
    if end_ts <= start_ts:
        raise HTTPException(status_code=400, detail="end_ts must be greater than start_ts")

    if interval is None:
        interval = 1 if agg == Aggregation.NONE else end_ts - start_ts

    entity = EntityId(entity_type=entity_type, id=entity_id)
    queries = [
        ReadTsKvQuery(
            key=key,
            start_ts=start_ts,
            end_ts=end_ts,
            interval=interval,
            limit=min(limit, MAX_FETCH_SIZE),
            aggregation=agg,
            order=order,
        )
        for key in keys.split(",")
        if key
    ]
    return await service.query(tenant_id, entity, queries)
