"""
Shared fixtures.

All tests run against in-memory stores with a fixed "today" so that
month availability and future-date checks are reproducible.
"""

from datetime import date
from decimal import Decimal

import pytest

from capital_ledger.config import LedgerSettings
from capital_ledger.logs import configure_logging
from capital_ledger.models.ledger import Asset, Transaction, TransactionType
from capital_ledger.orchestrator import LedgerService
from capital_ledger.services.storage import (
    InMemoryMonthSummaryStorage,
    InMemorySettingsStorage,
    InMemoryTransactionStorage,
)
from capital_ledger.validation import TransactionValidator


OWNER = "owner-1"
TODAY = date(2025, 1, 20)


configure_logging("DEBUG", "console")


def make_tx(
    tx_type: TransactionType,
    day: date,
    total_value="0",
    amount_primary="0",
    fee_amount=None,
    fee_unit=None,
    owner_id: str = OWNER,
    **extra,
) -> Transaction:
    """Build a transaction with string amounts converted to Decimal."""
    return Transaction(
        owner_id=owner_id,
        date=day,
        type=tx_type,
        total_value=Decimal(str(total_value)),
        amount_primary=Decimal(str(amount_primary)),
        fee_amount=Decimal(str(fee_amount)) if fee_amount is not None else None,
        fee_unit=fee_unit,
        **extra,
    )


@pytest.fixture
def owner_id() -> str:
    return OWNER


@pytest.fixture
def transaction_storage() -> InMemoryTransactionStorage:
    return InMemoryTransactionStorage()


@pytest.fixture
def summary_storage() -> InMemoryMonthSummaryStorage:
    return InMemoryMonthSummaryStorage()


@pytest.fixture
def settings_storage() -> InMemorySettingsStorage:
    return InMemorySettingsStorage()


@pytest.fixture
def ledger_settings() -> LedgerSettings:
    return LedgerSettings()


@pytest.fixture
def validator(ledger_settings) -> TransactionValidator:
    return TransactionValidator(ledger_settings)


@pytest.fixture
def service(
    transaction_storage,
    summary_storage,
    settings_storage,
    validator,
) -> LedgerService:
    return LedgerService(
        owner_id=OWNER,
        transaction_storage=transaction_storage,
        summary_storage=summary_storage,
        settings_storage=settings_storage,
        validator=validator,
        today=lambda: TODAY,
    )


@pytest.fixture
def scenario_transactions() -> list[Transaction]:
    """Deposit 500 then buy 300 units for 300 with a 5 USD fee, in 2025-01."""
    return [
        make_tx(
            TransactionType.DEPOSIT_CASH,
            date(2025, 1, 3),
            total_value="500",
            client="Founder",
        ),
        make_tx(
            TransactionType.BUY_STABLE_ASSET,
            date(2025, 1, 10),
            total_value="300",
            amount_primary="300",
            fee_amount="5",
            fee_unit=Asset.USD,
            client="Desk A",
            city="Santo Domingo",
        ),
    ]
