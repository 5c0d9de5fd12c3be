"""
Capital Base Resolver

Determines the starting capital of any month from closed-month history,
falling back to the owner's initial capital.

DESIGN DECISION: There is no stored "current base". The base is derived
from MonthSummary rows on every read, so it can never diverge from them.
"""

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal
from typing import Optional

from capital_ledger.models.ledger import MonthSummary, Transaction
from capital_ledger.months import current_month, month_of, previous_month


def available_months(
    summaries: Iterable[MonthSummary],
    transactions: Iterable[Transaction],
    today: Optional[date] = None,
) -> list[str]:
    """
    Sorted union of closed months, months with transactions and the
    current calendar month.
    """
    months = {s.month for s in summaries}
    months.update(month_of(tx.date) for tx in transactions)
    months.add(current_month(today))
    return sorted(months)


def latest_summary(summaries: Iterable[MonthSummary]) -> Optional[MonthSummary]:
    return max(summaries, key=lambda s: s.month, default=None)


def resolve_capital_base(
    month: str,
    summaries: Sequence[MonthSummary],
    initial_capital: Decimal,
    months: Sequence[str],
) -> Decimal:
    """
    Capital base for `month`. Rules are evaluated in order, first match wins:

    1. The previous month is closed: its capital base plus its net.
    2. `month` is the earliest available month: the initial capital.
    3. `month` is after the latest closed month: roll the latest close forward.
    4. Otherwise: the initial capital.

    Args:
        month: Target month key
        summaries: All closed months of the owner
        initial_capital: Capital base of the first tracked month
        months: Available months, as returned by available_months()
    """
    by_month = {s.month: s for s in summaries}

    previous = by_month.get(previous_month(month))
    if previous is not None:
        return previous.ending_capital

    if months and month == min(months):
        return Decimal(initial_capital)

    latest = latest_summary(summaries)
    if latest is not None and month > latest.month:
        return latest.ending_capital

    return Decimal(initial_capital)
