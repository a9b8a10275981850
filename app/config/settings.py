from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    redis_url: str = "redis://localhost:6379"
    redis_max_connections: int = 50
    redis_socket_timeout: int = 5

    telemetry_retention_seconds: int = 86400 * 30

    default_tenant_id: str = "default"

    event_bus_queue_max_size: int = 10000
    event_bus_worker_count: int = 4

    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
