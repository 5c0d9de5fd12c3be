"""
Two-Stage Transaction Validation

DESIGN DECISION: Transactions are checked before they reach storage.
The reducer assumes clean input, so anything it cannot fold correctly
has to be stopped here.

STAGE 1 - SCHEMA VALIDATION:
- Zero magnitudes per transaction type (warnings; a fee-only row is legal)
- Types, dates and sign are already enforced by the Transaction model

STAGE 2 - SEMANTIC VALIDATION:
- Future date detection
- Absurd amount detection
- Trade price far from the 1:1 peg
- Dates inside a closed month (the summary would silently diverge)

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the caller can show them to the user.
"""

from collections.abc import Iterable
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from capital_ledger.config import LedgerSettings, get_settings
from capital_ledger.models.ledger import (
    Transaction,
    ValidationIssue,
    ValidationResult,
)
from capital_ledger.months import month_label, month_of


class TransactionValidator:
    """
    Validates transactions through a two-stage pipeline.

    Closed months are passed in by the caller; the validator never
    reads storage itself.
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or get_settings().ledger

    def _validate_schema(
        self,
        tx: Transaction,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if tx.type.is_stable_asset_trade:
            if tx.amount_primary == 0:
                issues.append(ValidationIssue(
                    field="amount_primary",
                    issue_type="zero_value",
                    message="Stable asset amount is zero",
                    severity="warning",
                    suggested_fix="Enter the number of units bought or sold",
                ))
            if tx.total_value == 0:
                issues.append(ValidationIssue(
                    field="total_value",
                    issue_type="zero_value",
                    message="Total value of the trade is zero",
                    severity="warning",
                    suggested_fix="Enter the cash amount spent or received",
                ))
        elif tx.total_value == 0:
            issues.append(ValidationIssue(
                field="total_value",
                issue_type="zero_value",
                message="Amount is zero",
                severity="warning",
                suggested_fix="Please verify the amount is correct",
            ))

        if not tx.client:
            issues.append(ValidationIssue(
                field="client",
                issue_type="missing",
                message="No client, source or payee was given",
                severity="warning",
                suggested_fix="Add who this transaction was with",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        tx: Transaction,
        closed_months: set[str],
        today: date,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if tx.date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Transaction date ({tx.date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        max_value = Decimal(str(self._settings.max_transaction_value))
        if tx.total_value > max_value:
            issues.append(ValidationIssue(
                field="total_value",
                issue_type="suspicious_value",
                message=f"Value ({tx.total_value:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        # Implied unit price of a trade should sit near the 1:1 peg
        if tx.type.is_stable_asset_trade and tx.amount_primary > 0 and tx.total_value > 0:
            deviation = abs(tx.total_value / tx.amount_primary - 1)
            if deviation > Decimal(str(self._settings.peg_tolerance_pct)):
                issues.append(ValidationIssue(
                    field="total_value",
                    issue_type="inconsistent",
                    message=(
                        f"Total value ({tx.total_value}) is far from the 1:1 value "
                        f"of {tx.amount_primary} units"
                    ),
                    severity="warning",
                    suggested_fix="Please verify the amount and total",
                ))

        closed_issue = self.check_month_open(month_of(tx.date), closed_months)
        if closed_issue is not None:
            issues.append(closed_issue)

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(
        self,
        tx: Transaction,
        closed_months: Iterable[str] = (),
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run the full two-stage validation pipeline.

        Args:
            tx: The transaction about to be stored
            closed_months: Month keys that already have a summary
            today: Reference day for future-date checks

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(tx)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(
                tx, set(closed_months), today or date.today()
            )
            all_issues.extend(semantic_issues)

        return ValidationResult(
            transaction_id=tx.id,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=[i.message for i in all_issues if i.severity == "warning"],
        )

    def check_month_open(
        self,
        month: str,
        closed_months: Iterable[str],
    ) -> Optional[ValidationIssue]:
        """Issue for a change touching a closed month, if the lock is on."""
        if self._settings.lock_closed_months and month in set(closed_months):
            return ValidationIssue(
                field="date",
                issue_type="month_closed",
                message=f"{month_label(month)} is closed and can no longer change",
                severity="error",
                suggested_fix="Date the transaction in an open month",
            )
        return None

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """Generate a short summary of validation results for display."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        errors = result.errors
        if errors:
            lines.append("This transaction cannot be saved:")
            for issue in errors:
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
