"""
Ledger Log Events

Every state-changing ledger operation emits one structured event.
Events are rendered through structlog for debugging and operations;
they are not persisted and do not form an undo history.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class LedgerEventType(str, Enum):
    """Types of events the ledger logs."""
    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    VALIDATION_FAILED = "validation_failed"

    # Capital
    INITIAL_CAPITAL_UPDATED = "initial_capital_updated"

    # Month close
    MONTH_CLOSED = "month_closed"
    MONTH_CLOSE_REJECTED = "month_close_rejected"

    # System events
    STORAGE_ERROR = "storage_error"


class LedgerEventSeverity(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LedgerEvent(BaseModel):
    """A single structured log event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: LedgerEventType
    severity: LedgerEventSeverity = LedgerEventSeverity.INFO

    owner_id: Optional[str] = None
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'month_summary')"
    )
    entity_id: Optional[str] = None
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "owner_id": self.owner_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class LedgerEventBuilder:
    """
    Helper class to build ledger events with common patterns.

    Usage:
        event = LedgerEventBuilder.month_closed(owner_id, "2025-01", ...)
    """

    @staticmethod
    def transaction_saved(
        owner_id: str,
        transaction_id: UUID,
        tx_type: str,
        month: str,
        created: bool,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        event_type = (
            LedgerEventType.TRANSACTION_CREATED
            if created
            else LedgerEventType.TRANSACTION_UPDATED
        )
        verb = "created" if created else "updated"
        return LedgerEvent(
            event_type=event_type,
            owner_id=owner_id,
            entity_type="transaction",
            entity_id=str(transaction_id),
            correlation_id=correlation_id,
            description=f"Transaction {verb}: {tx_type} in {month}",
            details={"type": tx_type, "month": month},
        )

    @staticmethod
    def transaction_deleted(
        owner_id: str,
        transaction_id: UUID,
        month: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_DELETED,
            owner_id=owner_id,
            entity_type="transaction",
            entity_id=str(transaction_id),
            correlation_id=correlation_id,
            description=f"Transaction deleted from {month}",
            details={"month": month},
        )

    @staticmethod
    def validation_failed(
        owner_id: str,
        transaction_id: UUID,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.VALIDATION_FAILED,
            severity=LedgerEventSeverity.WARNING,
            owner_id=owner_id,
            entity_type="transaction",
            entity_id=str(transaction_id),
            correlation_id=correlation_id,
            description=f"Transaction validation failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def initial_capital_updated(
        owner_id: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.INITIAL_CAPITAL_UPDATED,
            owner_id=owner_id,
            entity_type="settings",
            correlation_id=correlation_id,
            description=f"Initial capital set to {amount}",
            details={"initial_capital": amount},
        )

    @staticmethod
    def month_closed(
        owner_id: str,
        month: str,
        capital_base: str,
        net: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.MONTH_CLOSED,
            owner_id=owner_id,
            entity_type="month_summary",
            entity_id=month,
            correlation_id=correlation_id,
            description=f"Month {month} closed with net {net}",
            details={"capital_base": capital_base, "net": net},
        )

    @staticmethod
    def month_close_rejected(
        owner_id: str,
        month: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.MONTH_CLOSE_REJECTED,
            severity=LedgerEventSeverity.WARNING,
            owner_id=owner_id,
            entity_type="month_summary",
            entity_id=month,
            correlation_id=correlation_id,
            description=f"Close of {month} rejected",
            error_message=reason,
        )

    @staticmethod
    def storage_error(
        owner_id: str,
        operation: str,
        error_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.STORAGE_ERROR,
            severity=LedgerEventSeverity.ERROR,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation, "error_type": error_type},
        )
