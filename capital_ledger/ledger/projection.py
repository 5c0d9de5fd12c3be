"""
Filter / Projection Layer

Derives display subsets of a month's transactions.

CRITICAL: Output of this module is presentation only. KPIs are always
computed from the unfiltered month set; feeding a filtered list to the
reducer would silently corrupt the month's totals.
"""

from collections.abc import Iterable

from capital_ledger.models.ledger import Transaction, TransactionFilters


def matches_search(tx: Transaction, search_text: str) -> bool:
    """Case-insensitive substring match on client or city."""
    query = search_text.strip().lower()
    if not query:
        return True
    return query in (tx.client or "").lower() or query in (tx.city or "").lower()


def matches_filters(tx: Transaction, filters: TransactionFilters) -> bool:
    if filters.types and tx.type not in filters.types:
        return False
    if filters.assets and tx.asset not in filters.assets:
        return False
    return matches_search(tx, filters.search_text)


def filter_transactions(
    transactions: Iterable[Transaction],
    filters: TransactionFilters,
) -> list[Transaction]:
    """Subset of `transactions` matching every non-empty filter, order kept."""
    return [tx for tx in transactions if matches_filters(tx, filters)]
