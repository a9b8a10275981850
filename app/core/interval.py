import re
import time
from typing import Optional

from app.core.errors import InvalidIntervalFormatError, UndefinedIntervalError
from app.core.patterns import process_pattern, strip_placeholder
from app.models.message import Msg
from app.models.node import GetTelemetryNodeConfig
from app.models.query import Interval

_TIMESTAMP = re.compile(r"-?\d+")


def current_time_millis() -> int:
    return int(time.time() * 1000)


def resolve_interval(config: GetTelemetryNodeConfig, msg: Msg) -> Interval:
    if config.use_metadata_interval_patterns:
        return Interval(
            start_ts=_parse_ts(process_pattern(config.start_interval_pattern, msg)),
            end_ts=_parse_ts(process_pattern(config.end_interval_pattern, msg)),
        )

    now = current_time_millis()
    return Interval(
        start_ts=now
        - config.start_interval_time_unit.to_millis(config.start_interval),
        end_ts=now - config.end_interval_time_unit.to_millis(config.end_interval),
    )


def check_interval(config: GetTelemetryNodeConfig, msg: Msg, interval: Interval) -> None:
    """Reject a metadata-driven interval whose bounds are missing or malformed.

    Missing metadata is reported before malformed values so that callers can
    tell the two apart.
    """
    start_key = strip_placeholder(config.start_interval_pattern)
    end_key = strip_placeholder(config.end_interval_pattern)

    start_missing = msg.metadata.get(start_key) is None
    end_missing = msg.metadata.get(end_key) is None
    if start_missing and end_missing:
        raise UndefinedIntervalError([start_key, end_key])
    if start_missing:
        raise UndefinedIntervalError([start_key])
    if end_missing:
        raise UndefinedIntervalError([end_key])

    if interval.start_ts is None and interval.end_ts is None:
        raise InvalidIntervalFormatError([start_key, end_key])
    if interval.start_ts is None:
        raise InvalidIntervalFormatError([start_key])
    if interval.end_ts is None:
        raise InvalidIntervalFormatError([end_key])


def _parse_ts(value: str) -> Optional[int]:
    if value and _TIMESTAMP.fullmatch(value.strip()):
        return int(value)
    return None
