"""
Utilities.
"""
from bed_allocation.utils.helpers import (
    safe_json_loads,
    safe_json_dumps,
    normalize_equipment_tags,
)
from bed_allocation.utils.logger import configure_logging

__all__ = [
    "safe_json_loads",
    "safe_json_dumps",
    "normalize_equipment_tags",
    "configure_logging",
]
