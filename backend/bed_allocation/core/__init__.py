"""
Core: database, realtime events, caller identity and exceptions.
"""
from bed_allocation.core.database import create_db_and_tables, get_session, get_session_direct, engine
from bed_allocation.core.websocket_manager import manager, ConnectionManager
from bed_allocation.core.exceptions import (
    BaseAppException,
    ValidationError,
    PermissionDeniedError,
    NotFoundError,
    ConflictError,
    InternalFailureError,
)

__all__ = [
    "create_db_and_tables",
    "get_session",
    "get_session_direct",
    "engine",
    "manager",
    "ConnectionManager",
    "BaseAppException",
    "ValidationError",
    "PermissionDeniedError",
    "NotFoundError",
    "ConflictError",
    "InternalFailureError",
]
