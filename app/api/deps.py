from typing import Optional

from fastapi import Depends

from app.config.settings import get_settings
from app.services.telemetry_service import TelemetryService
from app.storage.telemetry_store import TelemetryStore, get_telemetry_store


def get_telemetry_service(
    store: TelemetryStore = Depends(get_telemetry_store),
) -> TelemetryService:
    return TelemetryService(store)


def get_tenant_id(tenant_id: Optional[str] = None) -> str:
    return tenant_id or get_settings().default_tenant_id
