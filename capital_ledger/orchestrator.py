"""
Ledger Service

This module ties the stores and the pure ledger engine together and
defines the end-to-end flows for:
1. Reading a month (stores → capital base → reducer → KPIs → projection)
2. Changing transactions (validate → store)
3. Setting the initial capital
4. Closing a month (recompute → closer → summary store)

DESIGN DECISION: The service enforces the boundaries:
- KPIs are recomputed from the full month on every read; nothing derived is cached
- Display filters never reach the reducer
- Validation and storage failures come back as structured results,
  never as exceptions
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

from capital_ledger.config import get_settings
from capital_ledger.ledger import (
    MonthCloser,
    available_months,
    filter_transactions,
    reduce_month,
    resolve_capital_base,
    transactions_for_month,
)
from capital_ledger.logs import (
    LedgerLogger,
    configure_logging,
    create_correlation_id,
    get_logger,
)
from capital_ledger.models.ledger import (
    LedgerErrorCode,
    LedgerKpis,
    LedgerResult,
    MonthSummary,
    MonthView,
    Transaction,
    TransactionFilters,
    ValidationResult,
)
from capital_ledger.months import current_month, is_month_key
from capital_ledger.services.storage import (
    DuplicateError,
    GoogleSheetsClient,
    GoogleSheetsMonthSummaryStorage,
    GoogleSheetsSettingsStorage,
    GoogleSheetsTransactionStorage,
    InMemoryMonthSummaryStorage,
    InMemorySettingsStorage,
    InMemoryTransactionStorage,
    MonthSummaryStorageInterface,
    NotFoundError,
    SettingsStorageInterface,
    StorageError,
    TransactionStorageInterface,
)
from capital_ledger.validation import TransactionValidator


@dataclass
class LedgerSnapshot:
    """Everything the engine reads for one owner, fetched together."""
    initial_capital: Decimal
    summaries: list[MonthSummary] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)


class LedgerService:
    """
    Ledger operations for a single owner.

    Every public method returns a LedgerResult or MonthView.
    Store exceptions are logged and turned into failures with the
    store's own message.
    """

    def __init__(
        self,
        owner_id: str,
        transaction_storage: TransactionStorageInterface,
        summary_storage: MonthSummaryStorageInterface,
        settings_storage: SettingsStorageInterface,
        validator: Optional[TransactionValidator] = None,
        logger: Optional[LedgerLogger] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self._owner_id = owner_id
        self._transactions = transaction_storage
        self._summaries = summary_storage
        self._settings = settings_storage
        self._validator = validator or TransactionValidator()
        self._logger = logger or LedgerLogger()
        self._closer = MonthCloser(summary_storage, self._logger)
        self._today = today or date.today

    @property
    def owner_id(self) -> str:
        return self._owner_id

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def load_snapshot(self) -> LedgerSnapshot:
        """
        Read initial capital, summaries and transactions.

        Raises:
            StorageError: Propagated unchanged from the stores
        """
        initial_capital, summaries, transactions = await asyncio.gather(
            self._settings.get_initial_capital(self._owner_id),
            self._summaries.list_month_summaries(self._owner_id),
            self._transactions.list_transactions(self._owner_id),
        )
        return LedgerSnapshot(
            initial_capital=Decimal(initial_capital),
            summaries=sorted(summaries, key=lambda s: s.month),
            transactions=list(transactions),
        )

    def compute_month(
        self,
        snapshot: LedgerSnapshot,
        month: str,
    ) -> tuple[list[Transaction], LedgerKpis]:
        """Full month set and its KPIs, derived from a snapshot."""
        months = available_months(snapshot.summaries, snapshot.transactions, self._today())
        capital_base = resolve_capital_base(
            month,
            snapshot.summaries,
            snapshot.initial_capital,
            months,
        )
        month_transactions = transactions_for_month(snapshot.transactions, month)
        return month_transactions, reduce_month(capital_base, month_transactions)

    async def get_month_view(
        self,
        month: Optional[str] = None,
        filters: Optional[TransactionFilters] = None,
    ) -> MonthView:
        """
        Build the read model for one month.

        Args:
            month: Month key; defaults to the latest available month
            filters: Display filters for `visible_transactions`
        """
        if month is not None and not is_month_key(month):
            return MonthView(
                month=current_month(self._today()),
                success=False,
                error_message=f"Invalid month key: {month!r} (expected YYYY-MM)",
            )

        try:
            snapshot = await self.load_snapshot()
        except StorageError as e:
            self._logger.log_storage_error(self._owner_id, "load_snapshot", e)
            return MonthView(
                month=month or current_month(self._today()),
                success=False,
                error_message=str(e),
            )

        months = available_months(snapshot.summaries, snapshot.transactions, self._today())
        month = month or months[-1]

        month_transactions, kpis = self.compute_month(snapshot, month)
        summary = next((s for s in snapshot.summaries if s.month == month), None)

        return MonthView(
            month=month,
            success=True,
            is_closed=summary is not None,
            summary=summary,
            kpis=kpis,
            transactions=month_transactions,
            visible_transactions=filter_transactions(
                month_transactions, filters or TransactionFilters()
            ),
            available_months=months,
            history=snapshot.summaries,
        )

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def _wrong_owner(self, tx: Transaction) -> Optional[LedgerResult]:
        if tx.owner_id != self._owner_id:
            return LedgerResult.fail(
                LedgerErrorCode.VALIDATION_FAILED,
                "Transaction belongs to another account",
            )
        return None

    async def _closed_months(self) -> set[str]:
        summaries = await self._summaries.list_month_summaries(self._owner_id)
        return {s.month for s in summaries}

    def _storage_failure(
        self,
        operation: str,
        error: StorageError,
        correlation_id: Optional[UUID],
    ) -> LedgerResult:
        self._logger.log_storage_error(self._owner_id, operation, error, correlation_id)
        return LedgerResult.fail(LedgerErrorCode.STORAGE_ERROR, str(error))

    def _validation_failure(
        self,
        tx: Transaction,
        result: ValidationResult,
        correlation_id: Optional[UUID],
    ) -> LedgerResult:
        self._logger.log_validation_failed(
            owner_id=self._owner_id,
            transaction_id=tx.id,
            issues=[
                {"field": i.field, "type": i.issue_type, "message": i.message}
                for i in result.errors
            ],
            correlation_id=correlation_id,
        )
        code = (
            LedgerErrorCode.MONTH_CLOSED
            if any(i.issue_type == "month_closed" for i in result.errors)
            else LedgerErrorCode.VALIDATION_FAILED
        )
        return LedgerResult.fail(
            code,
            self._validator.get_user_friendly_summary(result),
            issues=result.issues,
        )

    async def create_transaction(
        self,
        tx: Transaction,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerResult:
        correlation_id = correlation_id or create_correlation_id()

        wrong_owner = self._wrong_owner(tx)
        if wrong_owner:
            return wrong_owner

        try:
            closed_months = await self._closed_months()
        except StorageError as e:
            return self._storage_failure("list_month_summaries", e, correlation_id)

        validation = self._validator.validate(tx, closed_months, self._today())
        if not validation.is_valid:
            return self._validation_failure(tx, validation, correlation_id)

        try:
            await self._transactions.create_transaction(tx)
        except DuplicateError as e:
            return LedgerResult.fail(LedgerErrorCode.DUPLICATE, str(e))
        except StorageError as e:
            return self._storage_failure("create_transaction", e, correlation_id)

        self._logger.log_transaction_saved(
            owner_id=self._owner_id,
            transaction_id=tx.id,
            tx_type=tx.type.value,
            month=tx.month,
            created=True,
            correlation_id=correlation_id,
        )
        return LedgerResult.ok(
            "Transaction created",
            transaction=tx,
            issues=validation.issues,
        )

    async def update_transaction(
        self,
        tx: Transaction,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerResult:
        """
        Replace a stored transaction.

        Refused when either the stored date or the new date falls in a
        closed month, so closed summaries keep matching their transactions.
        """
        correlation_id = correlation_id or create_correlation_id()

        wrong_owner = self._wrong_owner(tx)
        if wrong_owner:
            return wrong_owner

        try:
            existing = await self._transactions.get_transaction_by_id(self._owner_id, tx.id)
            closed_months = await self._closed_months()
        except StorageError as e:
            return self._storage_failure("update_transaction", e, correlation_id)

        if existing is None:
            return LedgerResult.fail(LedgerErrorCode.NOT_FOUND, f"Transaction not found: {tx.id}")

        locked = self._validator.check_month_open(existing.month, closed_months)
        if locked is not None:
            return LedgerResult.fail(LedgerErrorCode.MONTH_CLOSED, locked.message, issues=[locked])

        validation = self._validator.validate(tx, closed_months, self._today())
        if not validation.is_valid:
            return self._validation_failure(tx, validation, correlation_id)

        try:
            await self._transactions.update_transaction(tx)
        except NotFoundError as e:
            return LedgerResult.fail(LedgerErrorCode.NOT_FOUND, str(e))
        except StorageError as e:
            return self._storage_failure("update_transaction", e, correlation_id)

        self._logger.log_transaction_saved(
            owner_id=self._owner_id,
            transaction_id=tx.id,
            tx_type=tx.type.value,
            month=tx.month,
            created=False,
            correlation_id=correlation_id,
        )
        return LedgerResult.ok(
            "Transaction updated",
            transaction=tx,
            issues=validation.issues,
        )

    async def delete_transaction(
        self,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerResult:
        correlation_id = correlation_id or create_correlation_id()

        try:
            existing = await self._transactions.get_transaction_by_id(self._owner_id, transaction_id)
            closed_months = await self._closed_months()
        except StorageError as e:
            return self._storage_failure("delete_transaction", e, correlation_id)

        if existing is None:
            return LedgerResult.fail(
                LedgerErrorCode.NOT_FOUND, f"Transaction not found: {transaction_id}"
            )

        locked = self._validator.check_month_open(existing.month, closed_months)
        if locked is not None:
            return LedgerResult.fail(LedgerErrorCode.MONTH_CLOSED, locked.message, issues=[locked])

        try:
            deleted = await self._transactions.delete_transaction(self._owner_id, transaction_id)
        except StorageError as e:
            return self._storage_failure("delete_transaction", e, correlation_id)

        if not deleted:
            return LedgerResult.fail(
                LedgerErrorCode.NOT_FOUND, f"Transaction not found: {transaction_id}"
            )

        self._logger.log_transaction_deleted(
            owner_id=self._owner_id,
            transaction_id=transaction_id,
            month=existing.month,
            correlation_id=correlation_id,
        )
        return LedgerResult.ok("Transaction deleted", transaction=existing)

    # -------------------------------------------------------------------------
    # Capital
    # -------------------------------------------------------------------------

    async def set_initial_capital(
        self,
        value,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerResult:
        """
        Set the capital base of the first tracked month.

        Only the earliest month reads this value directly; later months
        pick the change up on their next read.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            return LedgerResult.fail(
                LedgerErrorCode.VALIDATION_FAILED,
                f"Initial capital must be a number, got {value!r}",
            )

        if not amount.is_finite() or amount < 0:
            return LedgerResult.fail(
                LedgerErrorCode.VALIDATION_FAILED,
                "Initial capital must be a non-negative number",
            )

        try:
            await self._settings.set_initial_capital(self._owner_id, amount)
        except StorageError as e:
            return self._storage_failure("set_initial_capital", e, correlation_id)

        self._logger.log_initial_capital_updated(
            owner_id=self._owner_id,
            amount=str(amount),
            correlation_id=correlation_id,
        )
        return LedgerResult.ok("Initial capital updated", initial_capital=amount)

    # -------------------------------------------------------------------------
    # Month close
    # -------------------------------------------------------------------------

    async def close_month(
        self,
        month: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerResult:
        """
        Close `month` with KPIs recomputed from its full transaction set.

        On success the result's `next_month` is where the caller should
        move its working month.
        """
        correlation_id = correlation_id or create_correlation_id()

        if not is_month_key(month):
            return LedgerResult.fail(
                LedgerErrorCode.VALIDATION_FAILED,
                f"Invalid month key: {month!r} (expected YYYY-MM)",
            )

        try:
            snapshot = await self.load_snapshot()
        except StorageError as e:
            return self._storage_failure("load_snapshot", e, correlation_id)

        _, kpis = self.compute_month(snapshot, month)
        return await self._closer.close(self._owner_id, month, kpis, correlation_id)


def create_ledger_service(
    owner_id: str,
    use_storage: bool = True,
) -> LedgerService:
    """
    Factory function to create a ledger service.

    Args:
        owner_id: Account the service operates on
        use_storage: Whether to use Google Sheets storage.
                     Set to False for in-memory storage.
    """
    app_settings = get_settings().app
    configure_logging(app_settings.effective_log_level, app_settings.log_format)
    log = get_logger(__name__).bind(environment=app_settings.app_environment)

    transaction_storage: TransactionStorageInterface = InMemoryTransactionStorage()
    summary_storage: MonthSummaryStorageInterface = InMemoryMonthSummaryStorage()
    settings_storage: SettingsStorageInterface = InMemorySettingsStorage()

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            transaction_storage = GoogleSheetsTransactionStorage(sheets_client)
            summary_storage = GoogleSheetsMonthSummaryStorage(sheets_client)
            settings_storage = GoogleSheetsSettingsStorage(sheets_client)
        except Exception as e:
            # Storage not configured - continue in memory
            log.warning("storage_not_configured", error=str(e))

    log.info(
        "ledger_service_created",
        owner_id=owner_id,
        storage=type(transaction_storage).__name__,
    )

    return LedgerService(
        owner_id=owner_id,
        transaction_storage=transaction_storage,
        summary_storage=summary_storage,
        settings_storage=settings_storage,
    )
