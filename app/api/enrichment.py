from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.api.deps import get_telemetry_service, get_tenant_id
from app.models.message import Msg, NodeFailure
from app.services.telemetry_service import TelemetryService

router = APIRouter()


class EnrichmentRequest(BaseModel):
    configuration: dict[str, Any] = Field(default_factory=dict)
    msg: Msg


class EnrichmentResponse(BaseModel):
    relation: str
    msg: Msg
    error: Optional[str] = None


@router.post("/originator-telemetry", response_model=EnrichmentResponse)
async def originator_telemetry(
    request: EnrichmentRequest,
    tenant_id: str = Depends(get_tenant_id),
    service: TelemetryService = Depends(get_telemetry_service),
):
    outcome = await service.enrich(tenant_id, request.configuration, request.msg)
    if isinstance(outcome, NodeFailure):
        return EnrichmentResponse(
            relation=outcome.relation, msg=outcome.msg, error=str(outcome.error)
        )
    return EnrichmentResponse(relation=outcome.relation, msg=outcome.msg)
