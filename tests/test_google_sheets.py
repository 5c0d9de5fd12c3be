"""
Tests for the Google Sheets stores.

The gspread worksheet is replaced by an in-memory fake so that no
network calls are made.
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from conftest import OWNER, TODAY, make_tx

from capital_ledger.models.ledger import Asset, MonthSummary, TransactionType
from capital_ledger.orchestrator import LedgerService
from capital_ledger.services.storage import (
    DuplicateError,
    GoogleSheetsMonthSummaryStorage,
    GoogleSheetsSettingsStorage,
    GoogleSheetsTransactionStorage,
    NotFoundError,
)
from capital_ledger.services.storage.google_sheets import (
    SETTINGS_COLUMNS,
    SUMMARY_COLUMNS,
    TRANSACTION_COLUMNS,
)


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the stores."""

    def __init__(self, header: list[str]):
        self.rows: list[list[str]] = [list(header)]

    def get_all_values(self) -> list[list[str]]:
        return [list(row) for row in self.rows]

    def append_row(self, values, value_input_option=None):
        self.rows.append([str(v) for v in values])

    def update_cell(self, row: int, col: int, value):
        target = self.rows[row - 1]
        target.extend([""] * (col - len(target)))
        target[col - 1] = str(value)

    def delete_rows(self, index: int):
        del self.rows[index - 1]


class FakeSheetsClient:

    def __init__(self):
        self.transactions = FakeWorksheet(TRANSACTION_COLUMNS)
        self.summaries = FakeWorksheet(SUMMARY_COLUMNS)
        self.settings = FakeWorksheet(SETTINGS_COLUMNS)

    def get_transactions_sheet(self):
        return self.transactions

    def get_summaries_sheet(self):
        return self.summaries

    def get_settings_sheet(self):
        return self.settings


@pytest.fixture
def sheets_client() -> FakeSheetsClient:
    return FakeSheetsClient()


class TestTransactionSheet:
    """Tests for GoogleSheetsTransactionStorage."""

    @pytest.mark.asyncio
    async def test_create_and_list(self, sheets_client, scenario_transactions):
        storage = GoogleSheetsTransactionStorage(sheets_client)
        for tx in scenario_transactions:
            await storage.create_transaction(tx)

        loaded = await storage.list_transactions(OWNER)

        assert [tx.model_dump() for tx in loaded] == [tx.model_dump() for tx in scenario_transactions]
        assert loaded[1].fee_unit == Asset.USD
        assert loaded[1].city == "Santo Domingo"
        assert loaded[0].phone is None

    @pytest.mark.asyncio
    async def test_row_layout(self, sheets_client, scenario_transactions):
        storage = GoogleSheetsTransactionStorage(sheets_client)
        await storage.create_transaction(scenario_transactions[1])

        row = dict(zip(TRANSACTION_COLUMNS, sheets_client.transactions.rows[1]))

        assert row["date"] == "2025-01-10"
        assert row["type"] == "buy-stable-asset"
        assert row["asset"] == "USDT"
        assert row["fee_amount"] == "5"

    @pytest.mark.asyncio
    async def test_duplicate_id_is_rejected(self, sheets_client, scenario_transactions):
        storage = GoogleSheetsTransactionStorage(sheets_client)
        await storage.create_transaction(scenario_transactions[0])

        with pytest.raises(DuplicateError):
            await storage.create_transaction(scenario_transactions[0])

    @pytest.mark.asyncio
    async def test_list_is_scoped_to_owner(self, sheets_client):
        storage = GoogleSheetsTransactionStorage(sheets_client)
        await storage.create_transaction(
            make_tx(TransactionType.DEPOSIT_CASH, date(2025, 1, 3), total_value="1", owner_id="someone-else")
        )

        assert await storage.list_transactions(OWNER) == []

    @pytest.mark.asyncio
    async def test_legacy_rows_are_skipped(self, sheets_client, scenario_transactions):
        """Test that rows with unknown types never reach the ledger."""
        storage = GoogleSheetsTransactionStorage(sheets_client)
        await storage.create_transaction(scenario_transactions[0])
        sheets_client.transactions.append_row(
            ["legacy-1", OWNER, "2024-06-01", "Buy BTC", "BTC", "0.1", "6000", "", "", "", "", "", ""]
        )

        loaded = await storage.list_transactions(OWNER)

        assert [tx.id for tx in loaded] == [scenario_transactions[0].id]

    @pytest.mark.asyncio
    async def test_unparsable_amount_rows_are_skipped(self, sheets_client, scenario_transactions):
        """Test that a hand-edited amount cell is skipped instead of failing the read."""
        storage = GoogleSheetsTransactionStorage(sheets_client)
        await storage.create_transaction(scenario_transactions[0])
        sheets_client.transactions.append_row(
            [str(uuid4()), OWNER, "2025-01-05", "deposit-cash", "USD", "0", "1,000", "", "", "", "", "", "", ""]
        )

        loaded = await storage.list_transactions(OWNER)

        assert [tx.id for tx in loaded] == [scenario_transactions[0].id]

    @pytest.mark.asyncio
    async def test_month_view_survives_unparsable_row(self, sheets_client, scenario_transactions):
        service = LedgerService(
            owner_id=OWNER,
            transaction_storage=GoogleSheetsTransactionStorage(sheets_client),
            summary_storage=GoogleSheetsMonthSummaryStorage(sheets_client),
            settings_storage=GoogleSheetsSettingsStorage(sheets_client),
            today=lambda: TODAY,
        )
        await service.set_initial_capital("1000")
        for tx in scenario_transactions:
            await service.create_transaction(tx)
        sheets_client.transactions.append_row(
            [str(uuid4()), OWNER, "2025-01-05", "deposit-cash", "USD", "", "", "", "", "", "", "", "", ""]
        )

        view = await service.get_month_view("2025-01")

        assert view.success is True
        assert view.kpis.portfolio_value == Decimal("1495")

    @pytest.mark.asyncio
    async def test_unit_price_is_stored(self, sheets_client):
        storage = GoogleSheetsTransactionStorage(sheets_client)
        tx = make_tx(
            TransactionType.SELL_STABLE_ASSET,
            date(2025, 1, 8),
            total_value="101",
            amount_primary="100",
            unit_price=Decimal("1.01"),
            client="Desk B",
        )
        await storage.create_transaction(tx)

        row = dict(zip(TRANSACTION_COLUMNS, sheets_client.transactions.rows[1]))
        loaded = await storage.get_transaction_by_id(OWNER, tx.id)

        assert row["unit_price"] == "1.01"
        assert loaded.unit_price == Decimal("1.01")

    @pytest.mark.asyncio
    async def test_rows_without_unit_price_column_load(self, sheets_client, scenario_transactions):
        storage = GoogleSheetsTransactionStorage(sheets_client)
        await storage.create_transaction(scenario_transactions[0])
        sheets_client.transactions.rows[1] = sheets_client.transactions.rows[1][:-1]

        loaded = await storage.list_transactions(OWNER)

        assert loaded[0].unit_price is None

    @pytest.mark.asyncio
    async def test_update_changes_date(self, sheets_client, scenario_transactions):
        storage = GoogleSheetsTransactionStorage(sheets_client)
        tx = scenario_transactions[0]
        await storage.create_transaction(tx)

        moved = tx.model_copy(update={"date": date(2025, 2, 1)})
        await storage.update_transaction(moved)

        stored = await storage.get_transaction_by_id(OWNER, tx.id)
        assert stored.date == date(2025, 2, 1)

    @pytest.mark.asyncio
    async def test_update_missing_raises_not_found(self, sheets_client, scenario_transactions):
        storage = GoogleSheetsTransactionStorage(sheets_client)

        with pytest.raises(NotFoundError):
            await storage.update_transaction(scenario_transactions[0])

    @pytest.mark.asyncio
    async def test_delete(self, sheets_client, scenario_transactions):
        storage = GoogleSheetsTransactionStorage(sheets_client)
        tx = scenario_transactions[0]
        await storage.create_transaction(tx)

        assert await storage.delete_transaction(OWNER, tx.id) is True
        assert await storage.delete_transaction(OWNER, tx.id) is False
        assert await storage.get_transaction_by_id(OWNER, tx.id) is None


class TestSummarySheet:
    """Tests for GoogleSheetsMonthSummaryStorage."""

    def _summary(self, month: str) -> MonthSummary:
        return MonthSummary(
            owner_id=OWNER,
            month=month,
            capital_base=Decimal("1000"),
            portfolio_value_at_close=Decimal("1495"),
            fees=Decimal("5"),
            net=Decimal("495"),
        )

    @pytest.mark.asyncio
    async def test_create_and_list_sorted(self, sheets_client):
        storage = GoogleSheetsMonthSummaryStorage(sheets_client)
        await storage.create_month_summary(self._summary("2025-02"))
        await storage.create_month_summary(self._summary("2025-01"))

        summaries = await storage.list_month_summaries(OWNER)

        assert [s.month for s in summaries] == ["2025-01", "2025-02"]
        assert summaries[0].net == Decimal("495")

    @pytest.mark.asyncio
    async def test_second_close_raises_duplicate(self, sheets_client):
        """Test that one month can only be stored once per owner."""
        storage = GoogleSheetsMonthSummaryStorage(sheets_client)
        await storage.create_month_summary(self._summary("2025-01"))

        with pytest.raises(DuplicateError):
            await storage.create_month_summary(self._summary("2025-01"))

        assert len(sheets_client.summaries.rows) == 2


class TestSettingsSheet:
    """Tests for GoogleSheetsSettingsStorage."""

    @pytest.mark.asyncio
    async def test_defaults_to_zero(self, sheets_client):
        storage = GoogleSheetsSettingsStorage(sheets_client)
        assert await storage.get_initial_capital(OWNER) == Decimal("0")

    @pytest.mark.asyncio
    async def test_set_then_overwrite(self, sheets_client):
        storage = GoogleSheetsSettingsStorage(sheets_client)
        await storage.set_initial_capital(OWNER, Decimal("500"))
        await storage.set_initial_capital(OWNER, Decimal("750"))

        assert await storage.get_initial_capital(OWNER) == Decimal("750")
        assert len(sheets_client.settings.rows) == 2
