"""
Core Data Models for the Capital Ledger

These models define the strict schemas for all data flowing through the
ledger engine. They are designed to:
1. Enforce type safety at runtime
2. Reject malformed transactions at creation time, not during reduction
3. Be serializable for storage and logging

DESIGN DECISION: All money is Decimal. Reductions must be reproducible,
and binary floats would make repeated folds drift in the last digit.
"""

import datetime as dt
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)

from capital_ledger.months import MONTH_KEY_PATTERN, month_of


MonthKey = Annotated[
    str,
    Field(pattern=MONTH_KEY_PATTERN, description="Month bucket key, e.g. '2025-08'")
]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Supported ledger transaction types.

    DESIGN DECISION: The sign of a transaction comes from its type, never
    from the stored number. A withdrawal always decreases cash.
    Legacy types (e.g. BTC trades) are not part of this model and are
    rejected when a transaction is constructed.
    """
    DEPOSIT_CASH = "deposit-cash"
    WITHDRAW_CASH = "withdraw-cash"
    MARKETING_EXPENSE = "marketing-expense"
    BUY_STABLE_ASSET = "buy-stable-asset"
    SELL_STABLE_ASSET = "sell-stable-asset"

    @property
    def is_stable_asset_trade(self) -> bool:
        return self in (
            TransactionType.BUY_STABLE_ASSET,
            TransactionType.SELL_STABLE_ASSET,
        )


class Asset(str, Enum):
    """
    Assets a transaction can be tagged with, and units a fee can be paid in.

    USD is the base unit of account ("cash"); USDT is the tracked stable
    asset, valued 1:1 against USD.
    """
    USD = "USD"
    USDT = "USDT"


BASE_UNIT = Asset.USD
STABLE_ASSET = Asset.USDT


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A single ledger event.

    CRITICAL: Magnitudes are never negative. The direction of every
    amount is implied by `type`, so a negative number here would be
    applied with the wrong sign by the reducer.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="Account that owns this transaction"
    )

    # Ledger fields
    # Module-qualified: a bare `date` annotation clashes with the field name
    date: dt.date = Field(
        ...,
        description="Calendar day of the transaction"
    )
    type: TransactionType = Field(
        ...,
        description="Transaction type"
    )
    asset: Optional[Asset] = Field(
        default=None,
        description="Asset tag; derived from type when omitted"
    )
    amount_primary: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Quantity of the stable asset (stable asset trades only)"
    )
    total_value: Decimal = Field(
        ...,
        ge=0,
        description="Value in the base unit of account"
    )
    fee_amount: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Fee paid for this transaction"
    )
    fee_unit: Optional[Asset] = Field(
        default=None,
        description="Unit the fee was paid in"
    )

    # Display-only metadata (never used by the reducer)
    unit_price: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Quoted price per stable asset unit, as entered for a trade"
    )
    client: str = Field(
        default="",
        max_length=200,
        description="Client, source or payee"
    )
    phone: Optional[str] = Field(
        default=None,
        max_length=50,
    )
    city: Optional[str] = Field(
        default=None,
        max_length=100,
    )
    memo: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Free-text notes"
    )

    @model_validator(mode='after')
    def apply_defaults_and_check_fee(self) -> 'Transaction':
        """Derive the asset tag and require a unit for any positive fee."""
        if self.asset is None:
            self.asset = STABLE_ASSET if self.type.is_stable_asset_trade else BASE_UNIT

        if self.fee_amount and self.fee_unit is None:
            raise ValueError("Fee unit is required when a fee amount is given")

        return self

    @property
    def month(self) -> str:
        """Month bucket this transaction belongs to."""
        return month_of(self.date)


# =============================================================================
# MONTH CLOSE
# =============================================================================

class MonthSummary(BaseModel):
    """
    Immutable snapshot of a closed month.

    CRITICAL: Created exactly once per owner and month. Once stored, it is
    the authoritative capital base source for the following month.
    """
    model_config = ConfigDict(frozen=True)

    owner_id: str = Field(..., min_length=1)
    month: MonthKey
    capital_base: Decimal = Field(
        ...,
        description="Starting capital used for this month"
    )
    portfolio_value_at_close: Decimal
    fees: Decimal = Field(default=Decimal("0"), ge=0)
    marketing: Decimal = Field(default=Decimal("0"), ge=0)
    net: Decimal
    closed_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the month was closed"
    )

    @model_validator(mode='after')
    def validate_net(self) -> 'MonthSummary':
        if self.net != self.portfolio_value_at_close - self.capital_base:
            raise ValueError("Net must equal portfolio value at close minus capital base")
        return self

    @property
    def ending_capital(self) -> Decimal:
        """Value rolled forward into the next month's capital base."""
        return self.capital_base + self.net


# =============================================================================
# REDUCER OUTPUT
# =============================================================================

class PortfolioDistribution(BaseModel):
    """End-of-fold balances in their native units."""
    model_config = ConfigDict(frozen=True)

    stable_asset: Decimal
    cash: Decimal


class LedgerKpis(BaseModel):
    """KPIs for one month, as computed by the reducer."""
    model_config = ConfigDict(frozen=True)

    capital_base: Decimal
    portfolio_value: Decimal
    net_this_month: Decimal
    fees_this_month: Decimal
    marketing_this_month: Decimal
    distribution: PortfolioDistribution


# =============================================================================
# PROJECTION
# =============================================================================

class TransactionFilters(BaseModel):
    """
    Display filters for a month's transaction table.

    Empty sets and empty text mean "no restriction".
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    types: set[TransactionType] = Field(default_factory=set)
    assets: set[Asset] = Field(default_factory=set)
    search_text: str = Field(
        default="",
        max_length=200,
        description="Case-insensitive match on client or city"
    )

    @property
    def is_empty(self) -> bool:
        return not self.types and not self.assets and not self.search_text


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'month_closed')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Result of the two-stage transaction validation.

    Stage 1: Schema checks (required magnitudes per type)
    Stage 2: Semantic checks (dates, sanity thresholds, closed months)
    """

    transaction_id: UUID
    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]


# =============================================================================
# SERVICE RESULTS
# =============================================================================

class LedgerErrorCode(str, Enum):
    """Failure categories surfaced to callers."""
    VALIDATION_FAILED = "validation_failed"
    MONTH_CLOSED = "month_closed"
    MONTH_ALREADY_CLOSED = "month_already_closed"
    INVALID_CAPITAL_BASE = "invalid_capital_base"
    NOT_FOUND = "not_found"
    DUPLICATE = "duplicate"
    STORAGE_ERROR = "storage_error"


class LedgerResult(BaseModel):
    """
    Structured outcome of a ledger operation.

    CRITICAL: Validation and storage failures come back as
    success=False with a message. They are never raised across the
    service boundary.
    """

    success: bool
    message: str
    error_code: Optional[LedgerErrorCode] = None

    transaction: Optional[Transaction] = None
    summary: Optional[MonthSummary] = None
    next_month: Optional[MonthKey] = None
    initial_capital: Optional[Decimal] = None
    issues: list[ValidationIssue] = Field(default_factory=list)

    @classmethod
    def ok(cls, message: str, **data) -> 'LedgerResult':
        return cls(success=True, message=message, **data)

    @classmethod
    def fail(
        cls,
        error_code: LedgerErrorCode,
        message: str,
        **data,
    ) -> 'LedgerResult':
        return cls(success=False, error_code=error_code, message=message, **data)


class MonthView(BaseModel):
    """
    Everything needed to display one month.

    `transactions` is the full month set the KPIs were computed from;
    `visible_transactions` is the filtered projection for the table.
    """

    month: MonthKey
    executed_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    success: bool
    error_message: Optional[str] = None

    is_closed: bool = False
    summary: Optional[MonthSummary] = None
    kpis: Optional[LedgerKpis] = None
    transactions: list[Transaction] = Field(default_factory=list)
    visible_transactions: list[Transaction] = Field(default_factory=list)
    available_months: list[str] = Field(default_factory=list)
    history: list[MonthSummary] = Field(
        default_factory=list,
        description="All closed months, oldest first"
    )
