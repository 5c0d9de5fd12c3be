"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the persistent backend because:
1. The account owner can inspect the ledger directly in Sheets
2. No database setup required
3. Easy to export/migrate later

TRADEOFFS:
- No transactions or unique indexes (uniqueness is checked in Python
  before each append)
- Limited query capabilities (we filter by owner in Python)

Transient API failures are retried here, at the storage layer.
Duplicate and not-found errors are final and never retried.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from capital_ledger.config import get_settings
from capital_ledger.logs import get_logger
from capital_ledger.models.ledger import (
    Asset,
    MonthSummary,
    Transaction,
    TransactionType,
)
from capital_ledger.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    MonthSummaryStorageInterface,
    NotFoundError,
    SettingsStorageInterface,
    StorageError,
    TransactionStorageInterface,
)


logger = get_logger(__name__)


TRANSACTION_COLUMNS = [
    "id",
    "owner_id",
    "date",
    "type",
    "asset",
    "amount_primary",
    "total_value",
    "fee_amount",
    "fee_unit",
    "client",
    "phone",
    "city",
    "memo",
    "unit_price",
]

SUMMARY_COLUMNS = [
    "owner_id",
    "month",
    "capital_base",
    "portfolio_value_at_close",
    "fees",
    "marketing",
    "net",
    "closed_at",
]

SETTINGS_COLUMNS = [
    "owner_id",
    "initial_capital",
]


retry_transient = retry(
    retry=retry_if_not_exception_type((DuplicateError, NotFoundError)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


def _row_dict(columns: list[str], row: list) -> dict[str, str]:
    """Map a sheet row onto column names, padding short rows with ''."""
    padded = list(row) + [""] * (len(columns) - len(row))
    return dict(zip(columns, padded))


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and creates missing worksheets with headers.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """Establish connection using service account credentials."""
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_worksheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_worksheet(
            self._settings.transactions_sheet_name,
            TRANSACTION_COLUMNS,
            rows=5000,
        )

    def get_summaries_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_worksheet(
            self._settings.summaries_sheet_name,
            SUMMARY_COLUMNS,
        )

    def get_settings_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_worksheet(
            self._settings.settings_sheet_name,
            SETTINGS_COLUMNS,
            rows=100,
        )


class GoogleSheetsTransactionStorage(TransactionStorageInterface):
    """
    Google Sheets implementation of transaction storage.

    One transaction per row, in append order.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _transaction_to_row(self, tx: Transaction) -> list:
        return [
            str(tx.id),
            tx.owner_id,
            tx.date.isoformat(),
            tx.type.value,
            tx.asset.value if tx.asset else "",
            str(tx.amount_primary),
            str(tx.total_value),
            str(tx.fee_amount) if tx.fee_amount is not None else "",
            tx.fee_unit.value if tx.fee_unit else "",
            tx.client,
            tx.phone or "",
            tx.city or "",
            tx.memo or "",
            str(tx.unit_price) if tx.unit_price is not None else "",
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        data = _row_dict(TRANSACTION_COLUMNS, row)
        return Transaction(
            id=UUID(data["id"]),
            owner_id=data["owner_id"],
            date=date.fromisoformat(data["date"]),
            type=TransactionType(data["type"]),
            asset=Asset(data["asset"]) if data["asset"] else None,
            amount_primary=Decimal(data["amount_primary"] or "0"),
            total_value=Decimal(data["total_value"]),
            fee_amount=Decimal(data["fee_amount"]) if data["fee_amount"] else None,
            fee_unit=Asset(data["fee_unit"]) if data["fee_unit"] else None,
            client=data["client"],
            phone=data["phone"] or None,
            city=data["city"] or None,
            memo=data["memo"] or None,
            unit_price=Decimal(data["unit_price"]) if data["unit_price"] else None,
        )

    def _find_row_index(self, all_rows: list, owner_id: str, transaction_id: UUID) -> Optional[int]:
        """1-based sheet row index of a transaction, skipping the header."""
        for idx, row in enumerate(all_rows[1:], start=2):
            if len(row) > 1 and row[0] == str(transaction_id) and row[1] == owner_id:
                return idx
        return None

    @retry_transient
    async def create_transaction(self, transaction: Transaction) -> bool:
        try:
            sheet = self._client.get_transactions_sheet()
            ids = {row[0] for row in sheet.get_all_values()[1:] if row}
            if str(transaction.id) in ids:
                raise DuplicateError(f"Transaction already exists: {transaction.id}")
            sheet.append_row(self._transaction_to_row(transaction), value_input_option="RAW")
            return True
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")

    async def get_transaction_by_id(
        self,
        owner_id: str,
        transaction_id: UUID,
    ) -> Optional[Transaction]:
        try:
            all_rows = self._client.get_transactions_sheet().get_all_values()
            idx = self._find_row_index(all_rows, owner_id, transaction_id)
            if idx is None:
                return None
            return self._row_to_transaction(all_rows[idx - 1])
        except Exception as e:
            raise StorageError(f"Failed to get transaction: {e}")

    @retry_transient
    async def update_transaction(self, transaction: Transaction) -> bool:
        try:
            sheet = self._client.get_transactions_sheet()
            idx = self._find_row_index(
                sheet.get_all_values(), transaction.owner_id, transaction.id
            )
            if idx is None:
                raise NotFoundError(f"Transaction not found: {transaction.id}")

            new_row = self._transaction_to_row(transaction)
            for col_idx, value in enumerate(new_row, start=1):
                sheet.update_cell(idx, col_idx, value)
            return True
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update transaction: {e}")

    async def delete_transaction(
        self,
        owner_id: str,
        transaction_id: UUID,
    ) -> bool:
        try:
            sheet = self._client.get_transactions_sheet()
            idx = self._find_row_index(sheet.get_all_values(), owner_id, transaction_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")

    async def list_transactions(self, owner_id: str) -> list[Transaction]:
        try:
            all_rows = self._client.get_transactions_sheet().get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}")

        transactions = []
        for row in all_rows:
            if len(row) < 2 or row[1] != owner_id:
                continue
            try:
                transactions.append(self._row_to_transaction(row))
            except (ValueError, InvalidOperation) as e:
                # Legacy types and hand-edited cells never reach the ledger
                logger.warning(
                    "transaction_row_skipped",
                    transaction_id=row[0],
                    error=str(e),
                )
        return transactions


class GoogleSheetsMonthSummaryStorage(MonthSummaryStorageInterface):
    """
    Google Sheets implementation of month summary storage.

    Append-only. The (owner, month) uniqueness a database would enforce
    with an index is checked before every append.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _summary_to_row(self, summary: MonthSummary) -> list:
        return [
            summary.owner_id,
            summary.month,
            str(summary.capital_base),
            str(summary.portfolio_value_at_close),
            str(summary.fees),
            str(summary.marketing),
            str(summary.net),
            summary.closed_at.isoformat(),
        ]

    def _row_to_summary(self, row: list) -> MonthSummary:
        data = _row_dict(SUMMARY_COLUMNS, row)
        return MonthSummary(
            owner_id=data["owner_id"],
            month=data["month"],
            capital_base=Decimal(data["capital_base"]),
            portfolio_value_at_close=Decimal(data["portfolio_value_at_close"]),
            fees=Decimal(data["fees"] or "0"),
            marketing=Decimal(data["marketing"] or "0"),
            net=Decimal(data["net"]),
            closed_at=datetime.fromisoformat(data["closed_at"]),
        )

    @retry_transient
    async def create_month_summary(self, summary: MonthSummary) -> bool:
        try:
            sheet = self._client.get_summaries_sheet()
            for row in sheet.get_all_values()[1:]:
                if len(row) > 1 and row[0] == summary.owner_id and row[1] == summary.month:
                    raise DuplicateError(f"Month {summary.month} is already closed")
            sheet.append_row(self._summary_to_row(summary), value_input_option="RAW")
            return True
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save month summary: {e}")

    async def list_month_summaries(self, owner_id: str) -> list[MonthSummary]:
        try:
            all_rows = self._client.get_summaries_sheet().get_all_values()[1:]
            summaries = [
                self._row_to_summary(row)
                for row in all_rows
                if len(row) > 1 and row[0] == owner_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to list month summaries: {e}")

        summaries.sort(key=lambda s: s.month)
        return summaries


class GoogleSheetsSettingsStorage(SettingsStorageInterface):
    """One row per owner holding the initial capital."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    async def get_initial_capital(self, owner_id: str) -> Decimal:
        try:
            for row in self._client.get_settings_sheet().get_all_values()[1:]:
                data = _row_dict(SETTINGS_COLUMNS, row)
                if data["owner_id"] == owner_id and data["initial_capital"]:
                    return Decimal(data["initial_capital"])
            return Decimal("0")
        except Exception as e:
            raise StorageError(f"Failed to read initial capital: {e}")

    @retry_transient
    async def set_initial_capital(self, owner_id: str, value: Decimal) -> bool:
        try:
            sheet = self._client.get_settings_sheet()
            for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
                if row and row[0] == owner_id:
                    sheet.update_cell(idx, 2, str(value))
                    return True
            sheet.append_row([owner_id, str(value)], value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save initial capital: {e}")
