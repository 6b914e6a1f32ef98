"""Core SeedKeep utilities.

This module exports core utilities for use throughout the application.
"""

from seedkeep.core.config import PAGE_SIZE_OPTIONS, Settings, get_settings
from seedkeep.core.logging import (
    LoggingContext,
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "PAGE_SIZE_OPTIONS",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "LoggingContext",
    "bind_correlation_id",
    "clear_context",
]
