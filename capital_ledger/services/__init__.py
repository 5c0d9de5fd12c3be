"""Services package."""

from capital_ledger.services.storage import (
    ConnectionError,
    DuplicateError,
    GoogleSheetsClient,
    GoogleSheetsMonthSummaryStorage,
    GoogleSheetsSettingsStorage,
    GoogleSheetsTransactionStorage,
    InMemoryMonthSummaryStorage,
    InMemorySettingsStorage,
    InMemoryTransactionStorage,
    MonthSummaryStorageInterface,
    NotFoundError,
    SettingsStorageInterface,
    StorageError,
    TransactionStorageInterface,
)

__all__ = [
    "ConnectionError",
    "DuplicateError",
    "GoogleSheetsClient",
    "GoogleSheetsMonthSummaryStorage",
    "GoogleSheetsSettingsStorage",
    "GoogleSheetsTransactionStorage",
    "InMemoryMonthSummaryStorage",
    "InMemorySettingsStorage",
    "InMemoryTransactionStorage",
    "MonthSummaryStorageInterface",
    "NotFoundError",
    "SettingsStorageInterface",
    "StorageError",
    "TransactionStorageInterface",
]
