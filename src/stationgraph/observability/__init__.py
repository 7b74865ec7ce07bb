"""Observability module for stationgraph.

Provides structured logging for the engine, the content build and the QA tools.
"""

from stationgraph.observability.logging import (
    close_file_logging,
    configure_logging,
    get_logger,
    get_logs_dir,
    session_context,
)

__all__ = [
    "close_file_logging",
    "configure_logging",
    "get_logger",
    "get_logs_dir",
    "session_context",
]
