"""
Shared helper functions.

Imported by the models, so nothing here may import from bed_allocation.models.
"""
from typing import List, Any, Iterable, Optional
import json


STANDARD_TAG = "standard"


def safe_json_loads(value: Any, default: Any = None) -> Any:
    """
    Parses a JSON list safely.

    Args:
        value: Value to parse
        default: Value returned when parsing fails

    Returns:
        Parsed list or default
    """
    if default is None:
        default = []

    if not value:
        return default

    if isinstance(value, list):
        return value

    if isinstance(value, str):
        try:
            parsed = json.loads(value)
            return parsed if isinstance(parsed, list) else default
        except (json.JSONDecodeError, TypeError, ValueError):
            return default

    return default


def safe_json_dumps(value: Any) -> str:
    """
    Serializes a list to a JSON string safely.

    Args:
        value: Value to serialize

    Returns:
        JSON string, "[]" when the value cannot be serialized
    """
    if value is None:
        return "[]"

    if isinstance(value, str):
        try:
            json.loads(value)
            return value
        except (json.JSONDecodeError, ValueError):
            return "[]"

    try:
        return json.dumps(list(value))
    except (TypeError, ValueError):
        return "[]"


def normalize_equipment_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """
    Normalizes equipment tags for comparison.

    Tags are stripped and lower-cased, duplicates and blanks dropped, and the
    "standard" tag removed since it means no special equipment.

    Args:
        tags: Raw tags as stored or as received

    Returns:
        Normalized tags in first-seen order
    """
    normalized: List[str] = []
    for tag in tags or []:
        if not isinstance(tag, str):
            continue
        clean = tag.strip().lower()
        if not clean or clean == STANDARD_TAG or clean in normalized:
            continue
        normalized.append(clean)
    return normalized
