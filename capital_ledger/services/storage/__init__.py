"""
Storage Services Package

Provides abstract interfaces and concrete implementations for ledger data.
Google Sheets is the persistent backend; in-memory stores back tests and
unconfigured environments.
"""

from capital_ledger.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    MonthSummaryStorageInterface,
    NotFoundError,
    SettingsStorageInterface,
    StorageError,
    TransactionStorageInterface,
)
from capital_ledger.services.storage.memory import (
    InMemoryMonthSummaryStorage,
    InMemorySettingsStorage,
    InMemoryTransactionStorage,
)
from capital_ledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsMonthSummaryStorage,
    GoogleSheetsSettingsStorage,
    GoogleSheetsTransactionStorage,
)

__all__ = [
    # Interfaces
    "MonthSummaryStorageInterface",
    "SettingsStorageInterface",
    "TransactionStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryMonthSummaryStorage",
    "InMemorySettingsStorage",
    "InMemoryTransactionStorage",
    # Google Sheets implementation
    "GoogleSheetsClient",
    "GoogleSheetsMonthSummaryStorage",
    "GoogleSheetsSettingsStorage",
    "GoogleSheetsTransactionStorage",
]
