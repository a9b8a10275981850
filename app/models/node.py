from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.query import Aggregation, OrderBy

MAX_FETCH_SIZE = 1000


class FetchMode(str, Enum):
    FIRST = "FIRST"
    LAST = "LAST"
    ALL = "ALL"


class TimeUnit(str, Enum):
    NANOSECONDS = "NANOSECONDS"
    MICROSECONDS = "MICROSECONDS"
    MILLISECONDS = "MILLISECONDS"
    SECONDS = "SECONDS"
    MINUTES = "MINUTES"
    HOURS = "HOURS"
    DAYS = "DAYS"

    def to_millis(self, duration: int) -> int:
        return duration * _NANOS_PER_UNIT[self] // 1_000_000


_NANOS_PER_UNIT = {
    TimeUnit.NANOSECONDS: 1,
    TimeUnit.MICROSECONDS: 1_000,
    TimeUnit.MILLISECONDS: 1_000_000,
    TimeUnit.SECONDS: 1_000_000_000,
    TimeUnit.MINUTES: 60 * 1_000_000_000,
    TimeUnit.HOURS: 3600 * 1_000_000_000,
    TimeUnit.DAYS: 86400 * 1_000_000_000,
}


class GetTelemetryNodeConfig(BaseModel):
    """Configuration of the originator telemetry node.

    Field names follow the camelCase JSON layout of stored node
    configurations; snake_case names are accepted as well.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    latest_ts_key_names: list[str] = Field(default_factory=list)
    fetch_mode: FetchMode = FetchMode.FIRST
    order_by: OrderBy = OrderBy.ASC
    aggregation: Aggregation = Aggregation.NONE
    limit: int = Field(default=MAX_FETCH_SIZE, ge=0)

    use_metadata_interval_patterns: bool = False
    start_interval: int = 2
    start_interval_time_unit: TimeUnit = TimeUnit.MINUTES
    end_interval: int = 1
    end_interval_time_unit: TimeUnit = TimeUnit.MINUTES
    start_interval_pattern: str = ""
    end_interval_pattern: str = ""

    @field_validator("order_by", mode="before")
    @classmethod
    def default_order(cls, value: Any) -> Any:
        return value or OrderBy.ASC

    @field_validator("aggregation", mode="before")
    @classmethod
    def default_aggregation(cls, value: Any) -> Any:
        return value or Aggregation.NONE

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, value: int) -> int:
        if value == 0:
            return MAX_FETCH_SIZE
        return min(value, MAX_FETCH_SIZE)
