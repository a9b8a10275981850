import json
import logging
from typing import Any

from app.core.errors import EncodingError
from app.models.node import FetchMode
from app.models.telemetry import DataType, TsKvEntry, format_double

logger = logging.getLogger(__name__)


def to_relaxed_json(value: Any) -> str:
    """Serialize ``value`` as compact JSON with unquoted object field names.

    ``{"ts": 1, "value": 20.0}`` becomes ``{ts:1,value:20.0}``. Names keep
    their string escaping, doubles are written by :func:`format_double`.
    """
    if isinstance(value, dict):
        fields = ",".join(
            f"{_field_name(name)}:{to_relaxed_json(item)}" for name, item in value.items()
        )
        return "{" + fields + "}"
    if isinstance(value, list):
        return "[" + ",".join(to_relaxed_json(item) for item in value) + "]"
    if isinstance(value, float):
        return format_double(value)
    return json.dumps(value, ensure_ascii=False)


def _field_name(name: str) -> str:
    return json.dumps(str(name), ensure_ascii=False)[1:-1]


def entry_value(entry: TsKvEntry) -> Any:
    if entry.data_type == DataType.STRING:
        return entry.value
    elif entry.data_type == DataType.LONG:
        return entry.value
    elif entry.data_type == DataType.BOOLEAN:
        return entry.value
    elif entry.data_type == DataType.DOUBLE:
        return float(entry.value)
    elif entry.data_type == DataType.JSON:
        try:
            return json.loads(entry.value)
        except ValueError as e:
            raise EncodingError(f"Can't parse jsonValue: {entry.value}") from e
    raise EncodingError(f"Unsupported data type: {entry.data_type}")


def build_result_mapping(entries: list[TsKvEntry], fetch_mode: FetchMode) -> dict[str, Any]:
    result: dict[str, Any] = {}
    if fetch_mode == FetchMode.ALL:
        for entry in entries:
            result.setdefault(entry.key, []).append(
                {"ts": entry.ts, "value": entry_value(entry)}
            )
    else:
        for entry in entries:
            result[entry.key] = entry.value_as_string()
    return result


def encode_entries(
    entries: list[TsKvEntry], keys: list[str], fetch_mode: FetchMode
) -> dict[str, str]:
    """Render fetched entries as metadata values for the requested keys.

    Keys without any entry are omitted.
    """
    result = build_result_mapping(entries, fetch_mode)

    encoded = {}
    for key in keys:
        if key not in result:
            continue
        value = result[key]
        encoded[key] = to_relaxed_json(value) if fetch_mode == FetchMode.ALL else value
    return encoded


def write_metadata(
    metadata: dict[str, str],
    entries: list[TsKvEntry],
    keys: list[str],
    fetch_mode: FetchMode,
) -> dict[str, str]:
    encoded = encode_entries(entries, keys, fetch_mode)
    metadata.update(encoded)
    logger.debug(f"Wrote {len(encoded)} of {len(keys)} telemetry keys to metadata")
    return metadata
