"""Shared utilities for the paper ledger services."""

from shared.utils.logging import (
    configure_logging,
    correlation_scope,
    get_correlation_id,
    get_logger,
    set_correlation_id,
)
from shared.utils.db import close_db, create_tables, get_db_session, init_db
from shared.utils.metrics import create_counter, create_histogram, render_metrics

__all__ = [
    "configure_logging",
    "correlation_scope",
    "get_correlation_id",
    "get_logger",
    "set_correlation_id",
    "close_db",
    "create_tables",
    "get_db_session",
    "init_db",
    "create_counter",
    "create_histogram",
    "render_metrics",
]
