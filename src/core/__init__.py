"""Core utilities for the KeyCRM sync service.

This package contains the cross-cutting building blocks:
- logging: Structured logging configuration and the KeyCRM debug sink
"""

from src.core.logging import get_debug_logger, log_event, setup_logging


__all__ = [
    "get_debug_logger",
    "log_event",
    "setup_logging",
]
