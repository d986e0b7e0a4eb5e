"""
Configuration and DB connection helpers.
"""

from .config import Settings, settings
from .connect import (
    DRIVER_ERRORS,
    apply_statement_timeout,
    connect,
    cursor_to_table,
    execute,
    parse_connection_string,
)

__all__ = [
    "Settings",
    "settings",
    "DRIVER_ERRORS",
    "apply_statement_timeout",
    "connect",
    "cursor_to_table",
    "execute",
    "parse_connection_string",
]
