"""
Ledger Reducer

Folds one month's transactions into end-of-month balances and KPIs.

CRITICAL: This is a pure function of (capital_base, transactions).
It performs no I/O, reads no settings and keeps no state between calls,
so the same inputs always produce the same KPIs.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from capital_ledger.models.ledger import (
    Asset,
    LedgerKpis,
    PortfolioDistribution,
    Transaction,
    TransactionType,
)
from capital_ledger.months import month_of


ZERO = Decimal("0")

# Fixed valuation of one stable asset unit in the base unit of account.
STABLE_ASSET_RATE = Decimal("1")

# Conversion of a fee into the base unit, per recognized fee unit.
FEE_RATES: dict[Asset, Decimal] = {
    Asset.USD: Decimal("1"),
    Asset.USDT: STABLE_ASSET_RATE,
}


@dataclass
class FoldState:
    """Running balances carried through the fold."""
    cash: Decimal
    stable_asset_units: Decimal = ZERO
    fees: Decimal = ZERO
    marketing: Decimal = ZERO


def fee_in_base_unit(
    fee_amount: Optional[Decimal],
    fee_unit: Optional[Asset],
) -> Decimal:
    """Fee converted to the base unit; 0 when amount or unit is missing."""
    if not fee_amount or fee_unit is None:
        return ZERO
    rate = FEE_RATES.get(fee_unit)
    if rate is None:
        return ZERO
    return fee_amount * rate


def apply_transaction(state: FoldState, tx: Transaction) -> FoldState:
    """
    Apply one transaction to the running state.

    Fees are always paid from cash, even on stable asset trades.
    Unrecognized types only pay their fee.
    """
    fee = fee_in_base_unit(tx.fee_amount, tx.fee_unit)
    state.fees += fee
    state.cash -= fee

    if tx.type == TransactionType.DEPOSIT_CASH:
        state.cash += tx.total_value
    elif tx.type == TransactionType.WITHDRAW_CASH:
        state.cash -= tx.total_value
    elif tx.type == TransactionType.MARKETING_EXPENSE:
        state.cash -= tx.total_value
        state.marketing += tx.total_value
    elif tx.type == TransactionType.BUY_STABLE_ASSET:
        state.stable_asset_units += tx.amount_primary
        state.cash -= tx.total_value
    elif tx.type == TransactionType.SELL_STABLE_ASSET:
        state.stable_asset_units -= tx.amount_primary
        state.cash += tx.total_value

    return state


def order_by_date(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Ascending by date; same-day transactions keep their input order."""
    return sorted(transactions, key=lambda tx: tx.date)


def transactions_for_month(
    transactions: Iterable[Transaction],
    month: str,
) -> list[Transaction]:
    """
    The full, unfiltered transaction set of one month, in fold order.

    This is the only input the reducer should ever be given; display
    filters are applied separately and never feed back into it.
    """
    return order_by_date(tx for tx in transactions if month_of(tx.date) == month)


def reduce_month(
    capital_base: Decimal,
    transactions: Iterable[Transaction],
) -> LedgerKpis:
    """
    Compute a month's KPIs starting from its capital base.

    Args:
        capital_base: Starting capital, held entirely as cash
        transactions: All transactions of the month

    Returns:
        LedgerKpis with portfolio value, net, fees, marketing and
        the final cash / stable asset distribution
    """
    capital_base = Decimal(capital_base)
    state = FoldState(cash=capital_base)

    for tx in order_by_date(transactions):
        state = apply_transaction(state, tx)

    portfolio_value = state.stable_asset_units * STABLE_ASSET_RATE + state.cash

    return LedgerKpis(
        capital_base=capital_base,
        portfolio_value=portfolio_value,
        net_this_month=portfolio_value - capital_base,
        fees_this_month=state.fees,
        marketing_this_month=state.marketing,
        distribution=PortfolioDistribution(
            stable_asset=state.stable_asset_units,
            cash=state.cash,
        ),
    )
