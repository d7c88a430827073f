"""JSON helpers for text columns. They log and fall back instead of raising."""

import json
from typing import Any

from reelswipe.logging import get_logger

logger = get_logger(__name__)


def safe_json_dumps(data: Any, default: str = "{}") -> str:
    """Compact JSON for `data`; `default` for None or unserializable values."""
    if data is None:
        return default

    try:
        return json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError, OverflowError) as e:
        logger.warning(f"Not storing unserializable value: {e}")
        return default


def safe_json_loads(text: str | None, default: dict | list | None = None) -> Any:
    """Parse a stored column value.

    Args:
        text: Column contents, possibly empty or corrupt
        default: Returned when nothing usable is stored (an empty dict if omitted)

    Returns:
        Parsed data or the default
    """
    fallback = {} if default is None else default
    if not text:
        return fallback

    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        logger.warning(f"Ignoring malformed JSON column value: {e}")
        return fallback


def load_str_list(text: str | None) -> list[str]:
    """Non-empty strings from a stored JSON array; anything else is dropped."""
    data = safe_json_loads(text, default=[])
    if not isinstance(data, list):
        return []
    return [value for value in data if isinstance(value, str) and value]
