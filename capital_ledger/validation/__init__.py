"""Transaction validation package."""

from capital_ledger.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]
