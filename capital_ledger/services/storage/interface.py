"""
Abstract Storage Interface

DESIGN DECISION: The ledger engine never talks to a database directly.
Transactions, month summaries and the initial capital live behind
these interfaces so that:
1. Google Sheets can be swapped for a real database later
2. In-memory storage can be used for testing
3. Engine logic stays pure and decoupled from I/O

Storage errors are raised by implementations and propagated unchanged;
the ledger service turns them into structured failures.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional
from uuid import UUID

from capital_ledger.models.ledger import MonthSummary, Transaction


class TransactionStorageInterface(ABC):
    """
    Abstract interface for ledger transaction storage.

    Transactions are scoped to an owner. Deletion is permanent.
    """

    @abstractmethod
    async def create_transaction(self, transaction: Transaction) -> bool:
        """
        Persist a new transaction.

        Raises:
            DuplicateError: If a transaction with the same ID exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_transaction_by_id(
        self,
        owner_id: str,
        transaction_id: UUID,
    ) -> Optional[Transaction]:
        """
        Retrieve one transaction.

        Returns:
            The transaction if found for this owner, None otherwise
        """
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> bool:
        """
        Replace a stored transaction. Any field may change, including date.

        Raises:
            NotFoundError: If the transaction doesn't exist for its owner
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_transaction(
        self,
        owner_id: str,
        transaction_id: UUID,
    ) -> bool:
        """
        Delete a transaction permanently.

        Returns:
            True if a transaction was deleted, False if none matched
        """
        pass

    @abstractmethod
    async def list_transactions(self, owner_id: str) -> list[Transaction]:
        """
        List every transaction of an owner.

        Returns:
            Transactions in storage (insertion) order
        """
        pass


class MonthSummaryStorageInterface(ABC):
    """
    Abstract interface for closed month summaries.

    Summaries are append-only: created once, never updated or deleted.
    """

    @abstractmethod
    async def create_month_summary(self, summary: MonthSummary) -> bool:
        """
        Persist a month summary.

        Raises:
            DuplicateError: If the owner already has a summary for that month
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def list_month_summaries(self, owner_id: str) -> list[MonthSummary]:
        """
        List all summaries of an owner.

        Returns:
            Summaries sorted by month, oldest first
        """
        pass


class SettingsStorageInterface(ABC):
    """Abstract interface for per-owner ledger settings."""

    @abstractmethod
    async def get_initial_capital(self, owner_id: str) -> Decimal:
        """
        Get the capital base of the first tracked month.

        Returns:
            The stored value, or 0 when the owner never set one
        """
        pass

    @abstractmethod
    async def set_initial_capital(self, owner_id: str, value: Decimal) -> bool:
        """Create or replace the owner's initial capital."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
