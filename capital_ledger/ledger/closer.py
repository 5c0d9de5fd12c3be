"""
Month Closer

Freezes a month's KPIs into an immutable MonthSummary.

DESIGN DECISION: Closing is not idempotent. A second close of the same
month is refused with a clear message instead of overwriting the first
one. The closer checks existing summaries first; a concurrent close that
slips past the check is still caught by the store's duplicate error.

A close never touches transactions. It only freezes the summary.
"""

from typing import Optional
from uuid import UUID

from capital_ledger.logs import LedgerLogger
from capital_ledger.models.ledger import (
    LedgerErrorCode,
    LedgerKpis,
    LedgerResult,
    MonthSummary,
)
from capital_ledger.months import month_label, next_month
from capital_ledger.services.storage import (
    DuplicateError,
    MonthSummaryStorageInterface,
    StorageError,
)


class MonthCloser:
    """Validates and persists month closes for one summary store."""

    def __init__(
        self,
        summary_storage: MonthSummaryStorageInterface,
        logger: Optional[LedgerLogger] = None,
    ):
        self._storage = summary_storage
        self._logger = logger or LedgerLogger()

    def build_summary(
        self,
        owner_id: str,
        month: str,
        kpis: LedgerKpis,
    ) -> MonthSummary:
        return MonthSummary(
            owner_id=owner_id,
            month=month,
            capital_base=kpis.capital_base,
            portfolio_value_at_close=kpis.portfolio_value,
            fees=kpis.fees_this_month,
            marketing=kpis.marketing_this_month,
            net=kpis.net_this_month,
        )

    def _reject(
        self,
        owner_id: str,
        month: str,
        error_code: LedgerErrorCode,
        message: str,
        correlation_id: Optional[UUID],
    ) -> LedgerResult:
        self._logger.log_month_close_rejected(
            owner_id=owner_id,
            month=month,
            reason=message,
            correlation_id=correlation_id,
        )
        return LedgerResult.fail(error_code, message)

    async def close(
        self,
        owner_id: str,
        month: str,
        kpis: LedgerKpis,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerResult:
        """
        Close `month` with the KPIs computed from its full transaction set.

        Returns:
            LedgerResult carrying the stored summary and the month the
            caller should move to next, or a failure with the reason
        """
        label = month_label(month)

        try:
            existing = await self._storage.list_month_summaries(owner_id)
        except StorageError as e:
            self._logger.log_storage_error(owner_id, "list_month_summaries", e, correlation_id)
            return LedgerResult.fail(LedgerErrorCode.STORAGE_ERROR, str(e))

        if any(s.month == month for s in existing):
            return self._reject(
                owner_id,
                month,
                LedgerErrorCode.MONTH_ALREADY_CLOSED,
                f"{label} is already closed",
                correlation_id,
            )

        if kpis.capital_base is None or not kpis.capital_base.is_finite():
            return self._reject(
                owner_id,
                month,
                LedgerErrorCode.INVALID_CAPITAL_BASE,
                f"Capital base for {label} could not be resolved",
                correlation_id,
            )

        summary = self.build_summary(owner_id, month, kpis)

        try:
            await self._storage.create_month_summary(summary)
        except DuplicateError:
            # Another close of the same month won the race
            return self._reject(
                owner_id,
                month,
                LedgerErrorCode.MONTH_ALREADY_CLOSED,
                f"{label} is already closed",
                correlation_id,
            )
        except StorageError as e:
            self._logger.log_storage_error(owner_id, "create_month_summary", e, correlation_id)
            return LedgerResult.fail(LedgerErrorCode.STORAGE_ERROR, str(e))

        self._logger.log_month_closed(
            owner_id=owner_id,
            month=month,
            capital_base=str(summary.capital_base),
            net=str(summary.net),
            correlation_id=correlation_id,
        )

        return LedgerResult.ok(
            f"{label} closed. Net profit rolled into next month",
            summary=summary,
            next_month=next_month(month),
        )
