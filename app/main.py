import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api import enrichment, telemetry
from app.config.settings import get_settings
from app.core.event_bus import FAILURE, get_event_bus
from app.core.redis_client import close_redis_client

logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)


def log_failure(event: dict):
    msg = event["msg"]
    logger.warning(f"Message {msg.id} from {msg.originator.id} failed: {event['error']}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    event_bus = get_event_bus()
    event_bus.subscribe(FAILURE, log_failure)
    await event_bus.start()
    logger.info("Originator telemetry service started")
    yield
    await event_bus.stop()
    await close_redis_client()
    logger.info("Originator telemetry service stopped")


app = FastAPI(title="Originator Telemetry", version="1.0.0", lifespan=lifespan)

app.include_router(telemetry.router, prefix="/telemetry", tags=["telemetry"])
app.include_router(enrichment.router, prefix="/enrichment", tags=["enrichment"])


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "originator-telemetry"}


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"error": str(exc)})

