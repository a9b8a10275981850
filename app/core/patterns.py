import json
import re
from typing import Any, Optional

from app.models.message import Msg

METADATA_PATTERN = re.compile(r"\$\{([^}]+)\}")
DATA_PATTERN = re.compile(r"\$\[([^\]]+)\]")


def process_pattern(pattern: str, msg: Msg) -> str:
    """Substitute ``${key}`` with metadata values and ``$[path]`` with payload values.

    Placeholders that cannot be resolved are left in place.
    """
    if not pattern:
        return pattern

    def from_metadata(match: re.Match) -> str:
        value = msg.metadata.get(match.group(1))
        return match.group(0) if value is None else value

    result = METADATA_PATTERN.sub(from_metadata, pattern)

    if DATA_PATTERN.search(result):
        payload = _load_payload(msg.data)

        def from_data(match: re.Match) -> str:
            value = _lookup(payload, match.group(1))
            return match.group(0) if value is None else _as_text(value)

        result = DATA_PATTERN.sub(from_data, result)

    return result


def process_patterns(patterns: list[str], msg: Msg) -> list[str]:
    return [process_pattern(pattern, msg) for pattern in patterns]


def strip_placeholder(pattern: str) -> str:
    return re.sub(r"[${}]", "", pattern)


def _load_payload(data: str) -> Optional[Any]:
    try:
        return json.loads(data)
    except (TypeError, ValueError):
        return None


def _lookup(payload: Any, path: str) -> Optional[Any]:
    node = payload
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)
