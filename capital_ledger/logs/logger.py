"""
Ledger Logger

DESIGN DECISION: Every state-changing ledger operation is logged.
This provides:
1. Traceability of what changed a month's numbers
2. Debugging capability when a close is refused
3. Visibility of storage failures, which are never swallowed

The logger writes structured events through structlog only.
Nothing is persisted: an audit trail is not part of the ledger.
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from capital_ledger.models.events import (
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventSeverity,
)


def configure_logging(level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure structlog on top of the standard library logging module.

    Safe to call more than once; the last call wins.
    """
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )

    renderer = (
        structlog.dev.ConsoleRenderer()
        if log_format == "console"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None):
    return structlog.get_logger(name)


class LedgerLogger:
    """
    Central structured logging for ledger operations.

    Each helper builds a LedgerEvent and renders it at the level
    matching the event's severity.
    """

    def __init__(self, name: str = "capital_ledger"):
        self._logger = structlog.get_logger(name)

    def log(self, event: LedgerEvent) -> None:
        log_dict = event.to_log_dict()

        if event.severity == LedgerEventSeverity.ERROR:
            self._logger.error("ledger_event", **log_dict)
        elif event.severity == LedgerEventSeverity.WARNING:
            self._logger.warning("ledger_event", **log_dict)
        elif event.severity == LedgerEventSeverity.DEBUG:
            self._logger.debug("ledger_event", **log_dict)
        else:
            self._logger.info("ledger_event", **log_dict)

    def log_transaction_saved(
        self,
        owner_id: str,
        transaction_id: UUID,
        tx_type: str,
        month: str,
        created: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.transaction_saved(
            owner_id=owner_id,
            transaction_id=transaction_id,
            tx_type=tx_type,
            month=month,
            created=created,
            correlation_id=correlation_id,
        ))

    def log_transaction_deleted(
        self,
        owner_id: str,
        transaction_id: UUID,
        month: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.transaction_deleted(
            owner_id=owner_id,
            transaction_id=transaction_id,
            month=month,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        owner_id: str,
        transaction_id: UUID,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.validation_failed(
            owner_id=owner_id,
            transaction_id=transaction_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_initial_capital_updated(
        self,
        owner_id: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.initial_capital_updated(
            owner_id=owner_id,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_month_closed(
        self,
        owner_id: str,
        month: str,
        capital_base: str,
        net: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.month_closed(
            owner_id=owner_id,
            month=month,
            capital_base=capital_base,
            net=net,
            correlation_id=correlation_id,
        ))

    def log_month_close_rejected(
        self,
        owner_id: str,
        month: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.month_close_rejected(
            owner_id=owner_id,
            month=month,
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_storage_error(
        self,
        owner_id: str,
        operation: str,
        error: Exception,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(LedgerEventBuilder.storage_error(
            owner_id=owner_id,
            operation=operation,
            error_type=type(error).__name__,
            error_message=str(error),
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., closing a month)
    and pass it through all subsequent operations.
    """
    return uuid4()
