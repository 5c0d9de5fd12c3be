"""
Data Models Package

This package contains all Pydantic models used by the capital ledger.
All data flowing through the engine must conform to these schemas.
"""

from capital_ledger.models.ledger import (
    BASE_UNIT,
    STABLE_ASSET,
    Asset,
    LedgerErrorCode,
    LedgerKpis,
    LedgerResult,
    MonthKey,
    MonthSummary,
    MonthView,
    PortfolioDistribution,
    Transaction,
    TransactionFilters,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)
from capital_ledger.models.events import (
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventSeverity,
    LedgerEventType,
)

__all__ = [
    # Ledger models
    "BASE_UNIT",
    "STABLE_ASSET",
    "Asset",
    "LedgerErrorCode",
    "LedgerKpis",
    "LedgerResult",
    "MonthKey",
    "MonthSummary",
    "MonthView",
    "PortfolioDistribution",
    "Transaction",
    "TransactionFilters",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    # Event models
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventSeverity",
    "LedgerEventType",
]
