"""
In-Memory Storage Implementation

Used for tests and as the fallback when no persistent backend is
configured. Enforces the same constraints as the persistent stores:
unique transaction IDs and one summary per owner and month.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from capital_ledger.models.ledger import MonthSummary, Transaction
from capital_ledger.services.storage.interface import (
    DuplicateError,
    MonthSummaryStorageInterface,
    NotFoundError,
    SettingsStorageInterface,
    TransactionStorageInterface,
)


class InMemoryTransactionStorage(TransactionStorageInterface):
    """Transactions kept in a dict; dicts preserve insertion order."""

    def __init__(self):
        self._rows: dict[UUID, Transaction] = {}

    async def create_transaction(self, transaction: Transaction) -> bool:
        if transaction.id in self._rows:
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        self._rows[transaction.id] = transaction.model_copy(deep=True)
        return True

    async def get_transaction_by_id(
        self,
        owner_id: str,
        transaction_id: UUID,
    ) -> Optional[Transaction]:
        row = self._rows.get(transaction_id)
        if row is None or row.owner_id != owner_id:
            return None
        return row.model_copy(deep=True)

    async def update_transaction(self, transaction: Transaction) -> bool:
        existing = self._rows.get(transaction.id)
        if existing is None or existing.owner_id != transaction.owner_id:
            raise NotFoundError(f"Transaction not found: {transaction.id}")
        self._rows[transaction.id] = transaction.model_copy(deep=True)
        return True

    async def delete_transaction(
        self,
        owner_id: str,
        transaction_id: UUID,
    ) -> bool:
        existing = self._rows.get(transaction_id)
        if existing is None or existing.owner_id != owner_id:
            return False
        del self._rows[transaction_id]
        return True

    async def list_transactions(self, owner_id: str) -> list[Transaction]:
        return [
            row.model_copy(deep=True)
            for row in self._rows.values()
            if row.owner_id == owner_id
        ]


class InMemoryMonthSummaryStorage(MonthSummaryStorageInterface):
    """Month summaries keyed by (owner, month)."""

    def __init__(self):
        self._rows: dict[tuple[str, str], MonthSummary] = {}

    async def create_month_summary(self, summary: MonthSummary) -> bool:
        key = (summary.owner_id, summary.month)
        if key in self._rows:
            raise DuplicateError(f"Month {summary.month} is already closed")
        self._rows[key] = summary
        return True

    async def list_month_summaries(self, owner_id: str) -> list[MonthSummary]:
        summaries = [s for (owner, _), s in self._rows.items() if owner == owner_id]
        return sorted(summaries, key=lambda s: s.month)


class InMemorySettingsStorage(SettingsStorageInterface):

    def __init__(self, initial_capital: Optional[dict[str, Decimal]] = None):
        self._initial_capital: dict[str, Decimal] = dict(initial_capital or {})

    async def get_initial_capital(self, owner_id: str) -> Decimal:
        return self._initial_capital.get(owner_id, Decimal("0"))

    async def set_initial_capital(self, owner_id: str, value: Decimal) -> bool:
        self._initial_capital[owner_id] = Decimal(value)
        return True
