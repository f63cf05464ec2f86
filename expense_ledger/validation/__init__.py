"""Input validation package."""

from expense_ledger.validation.validator import RegistrationValidator, TransactionValidator

__all__ = ["RegistrationValidator", "TransactionValidator"]
