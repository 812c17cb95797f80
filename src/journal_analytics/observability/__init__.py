"""Logging setup for the analytics engine."""

from .logger import (
    get_logger,
    get_run_id,
    run_scope,
    setup_logging,
    setup_logging_from_settings,
)

__all__ = [
    "get_logger",
    "get_run_id",
    "run_scope",
    "setup_logging",
    "setup_logging_from_settings",
]
