"""
Utilities package for the pga adapter.

Exports shared helpers for logging and other cross-cutting concerns.
Keep this package lightweight and free of database logic.
"""

from pga.utils.logging import (
    JsonFormatter,
    configure_logging,
    configure_logging_from_settings,
    get_logger,
)

__all__ = [
    "JsonFormatter",
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
]
