"""
Tests for the ledger models.

Test strategy:
1. Unit tests for individual components (models, reducer, resolver, validator)
2. Flow tests for the ledger service against in-memory stores
3. No real API calls in tests (fake worksheets for Google Sheets)
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from capital_ledger.models.ledger import (
    Asset,
    LedgerErrorCode,
    LedgerResult,
    MonthSummary,
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


class TestTransactionModel:
    """Tests for the Transaction model."""

    def test_transaction_creation(self):
        """Test Transaction model creation."""
        tx = Transaction(
            owner_id="owner-1",
            date=date(2025, 1, 3),
            type=TransactionType.DEPOSIT_CASH,
            total_value=Decimal("500"),
            client="Founder",
        )
        assert tx.total_value == Decimal("500")
        assert tx.amount_primary == Decimal("0")
        assert tx.fee_amount is None

    def test_date_field_is_a_calendar_day(self):
        """Test that the `date` field builds and parses ISO strings."""
        assert Transaction.model_fields["date"].annotation is date

        tx = Transaction(
            owner_id="owner-1",
            date="2025-01-03",
            type=TransactionType.DEPOSIT_CASH,
            total_value=Decimal("1"),
        )
        assert tx.date == date(2025, 1, 3)

    def test_unit_price_is_optional_metadata(self):
        tx = Transaction(
            owner_id="o",
            date=date(2025, 1, 3),
            type=TransactionType.BUY_STABLE_ASSET,
            amount_primary=Decimal("100"),
            total_value=Decimal("100"),
        )
        assert tx.unit_price is None

        with pytest.raises(ValidationError):
            Transaction(
                owner_id="o",
                date=date(2025, 1, 3),
                type=TransactionType.BUY_STABLE_ASSET,
                amount_primary=Decimal("100"),
                total_value=Decimal("100"),
                unit_price=Decimal("-1"),
            )

    def test_type_accepts_string_value(self):
        """Test that types parse from their stored string values."""
        tx = Transaction(
            owner_id="owner-1",
            date=date(2025, 1, 3),
            type="withdraw-cash",
            total_value="20",
        )
        assert tx.type == TransactionType.WITHDRAW_CASH

    def test_asset_defaults_from_type(self):
        """Test that trades are tagged with the stable asset, everything else with cash."""
        buy = Transaction(
            owner_id="o",
            date=date(2025, 1, 3),
            type=TransactionType.BUY_STABLE_ASSET,
            amount_primary=Decimal("10"),
            total_value=Decimal("10"),
        )
        expense = Transaction(
            owner_id="o",
            date=date(2025, 1, 3),
            type=TransactionType.MARKETING_EXPENSE,
            total_value=Decimal("10"),
        )
        assert buy.asset == Asset.USDT
        assert expense.asset == Asset.USD

    def test_explicit_asset_is_kept(self):
        tx = Transaction(
            owner_id="o",
            date=date(2025, 1, 3),
            type=TransactionType.DEPOSIT_CASH,
            asset=Asset.USDT,
            total_value=Decimal("10"),
        )
        assert tx.asset == Asset.USDT

    def test_rejects_negative_total_value(self):
        """Test that negative magnitudes are rejected; sign comes from type."""
        with pytest.raises(ValidationError):
            Transaction(
                owner_id="o",
                date=date(2025, 1, 3),
                type=TransactionType.WITHDRAW_CASH,
                total_value=Decimal("-100"),
            )

    def test_rejects_negative_amount_primary(self):
        with pytest.raises(ValidationError):
            Transaction(
                owner_id="o",
                date=date(2025, 1, 3),
                type=TransactionType.SELL_STABLE_ASSET,
                amount_primary=Decimal("-1"),
                total_value=Decimal("1"),
            )

    def test_rejects_negative_fee(self):
        with pytest.raises(ValidationError):
            Transaction(
                owner_id="o",
                date=date(2025, 1, 3),
                type=TransactionType.DEPOSIT_CASH,
                total_value=Decimal("1"),
                fee_amount=Decimal("-1"),
                fee_unit=Asset.USD,
            )

    def test_fee_requires_unit(self):
        """Test that a fee without a unit is rejected."""
        with pytest.raises(ValidationError, match="Fee unit is required"):
            Transaction(
                owner_id="o",
                date=date(2025, 1, 3),
                type=TransactionType.DEPOSIT_CASH,
                total_value=Decimal("1"),
                fee_amount=Decimal("2"),
            )

    def test_rejects_legacy_type(self):
        """Test that types outside the model (e.g. BTC trades) are rejected."""
        with pytest.raises(ValidationError):
            Transaction(
                owner_id="o",
                date=date(2025, 1, 3),
                type="Buy BTC",
                total_value=Decimal("1"),
            )

    def test_rejects_unparsable_date(self):
        with pytest.raises(ValidationError):
            Transaction(
                owner_id="o",
                date="not-a-date",
                type=TransactionType.DEPOSIT_CASH,
                total_value=Decimal("1"),
            )

    def test_month_property(self):
        tx = Transaction(
            owner_id="o",
            date=date(2025, 3, 31),
            type=TransactionType.DEPOSIT_CASH,
            total_value=Decimal("1"),
        )
        assert tx.month == "2025-03"

    def test_metadata_strips_whitespace(self):
        tx = Transaction(
            owner_id="o",
            date=date(2025, 3, 31),
            type=TransactionType.DEPOSIT_CASH,
            total_value=Decimal("1"),
            client="  Desk A  ",
        )
        assert tx.client == "Desk A"


class TestMonthSummaryModel:
    """Tests for the MonthSummary model."""

    def test_summary_creation(self):
        summary = MonthSummary(
            owner_id="o",
            month="2025-01",
            capital_base=Decimal("1000"),
            portfolio_value_at_close=Decimal("1495"),
            fees=Decimal("5"),
            net=Decimal("495"),
        )
        assert summary.ending_capital == Decimal("1495")
        assert summary.marketing == Decimal("0")

    def test_net_must_match_portfolio_minus_base(self):
        with pytest.raises(ValidationError, match="Net must equal"):
            MonthSummary(
                owner_id="o",
                month="2025-01",
                capital_base=Decimal("1000"),
                portfolio_value_at_close=Decimal("1495"),
                net=Decimal("400"),
            )

    def test_month_key_format(self):
        with pytest.raises(ValidationError):
            MonthSummary(
                owner_id="o",
                month="2025-13",
                capital_base=Decimal("0"),
                portfolio_value_at_close=Decimal("0"),
                net=Decimal("0"),
            )

    def test_summary_is_immutable(self):
        summary = MonthSummary(
            owner_id="o",
            month="2025-01",
            capital_base=Decimal("100"),
            portfolio_value_at_close=Decimal("120"),
            net=Decimal("20"),
        )
        with pytest.raises(ValidationError):
            summary.net = Decimal("0")


class TestFiltersAndResults:
    """Tests for filter, validation and result models."""

    def test_empty_filters(self):
        assert TransactionFilters().is_empty is True
        assert TransactionFilters(search_text="  ").is_empty is True

    def test_non_empty_filters(self):
        filters = TransactionFilters(types={TransactionType.DEPOSIT_CASH})
        assert filters.is_empty is False

    def test_ledger_result_helpers(self):
        ok = LedgerResult.ok("done", next_month="2025-02")
        failed = LedgerResult.fail(LedgerErrorCode.NOT_FOUND, "missing")
        assert ok.success is True
        assert ok.error_code is None
        assert failed.success is False
        assert failed.error_code == LedgerErrorCode.NOT_FOUND

    def test_validation_result_counts_errors_only(self):
        result = ValidationResult(
            transaction_id=uuid4(),
            schema_valid=True,
            semantic_valid=False,
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="date",
                    issue_type="month_closed",
                    message="closed",
                    severity="error",
                ),
                ValidationIssue(
                    field="client",
                    issue_type="missing",
                    message="no client",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
        assert [i.field for i in result.errors] == ["date"]


class TestLedgerEvents:
    """Tests for log event models."""

    def test_event_defaults(self):
        event = LedgerEvent(
            event_type=LedgerEventType.MONTH_CLOSED,
            description="closed",
        )
        assert event.severity == LedgerEventSeverity.INFO

    def test_event_to_log_dict(self):
        event = LedgerEventBuilder.month_closed(
            owner_id="o",
            month="2025-01",
            capital_base="1000",
            net="495",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "month_closed"
        assert log_dict["entity_id"] == "2025-01"
        assert log_dict["details"]["net"] == "495"

    def test_builder_transaction_saved(self):
        tx_id = uuid4()
        created = LedgerEventBuilder.transaction_saved("o", tx_id, "deposit-cash", "2025-01", True)
        updated = LedgerEventBuilder.transaction_saved("o", tx_id, "deposit-cash", "2025-01", False)
        assert created.event_type == LedgerEventType.TRANSACTION_CREATED
        assert updated.event_type == LedgerEventType.TRANSACTION_UPDATED
        assert created.entity_id == str(tx_id)

    def test_builder_storage_error_is_error_severity(self):
        event = LedgerEventBuilder.storage_error("o", "create_month_summary", "StorageError", "boom")
        assert event.severity == LedgerEventSeverity.ERROR
        assert event.error_message == "boom"
