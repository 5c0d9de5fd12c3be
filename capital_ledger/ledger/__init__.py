"""Ledger engine package: reducer, capital base resolver, closer and projection."""

from capital_ledger.ledger.closer import MonthCloser
from capital_ledger.ledger.projection import filter_transactions
from capital_ledger.ledger.reducer import (
    fee_in_base_unit,
    reduce_month,
    transactions_for_month,
)
from capital_ledger.ledger.resolver import (
    available_months,
    latest_summary,
    resolve_capital_base,
)

__all__ = [
    "MonthCloser",
    "available_months",
    "fee_in_base_unit",
    "filter_transactions",
    "latest_summary",
    "reduce_month",
    "resolve_capital_base",
    "transactions_for_month",
]
