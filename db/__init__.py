"""
Database layer for Support Relay.

Provides the SQLAlchemy key-value model and connection management.
"""

from .connection import (
    check_db_initialized,
    get_db_context,
    get_engine,
    init_db,
    reset_connection,
)
from .models import Base, Setting
from .settings import (
    delete_setting,
    get_all_settings,
    get_setting,
    set_setting,
)

__all__ = [
    "Base",
    "Setting",
    "check_db_initialized",
    "get_db_context",
    "get_engine",
    "init_db",
    "reset_connection",
    "get_setting",
    "set_setting",
    "delete_setting",
    "get_all_settings",
]
