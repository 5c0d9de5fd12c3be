"""Structured logging package."""

from capital_ledger.logs.logger import (
    LedgerLogger,
    configure_logging,
    create_correlation_id,
    get_logger,
)

__all__ = [
    "LedgerLogger",
    "configure_logging",
    "create_correlation_id",
    "get_logger",
]
