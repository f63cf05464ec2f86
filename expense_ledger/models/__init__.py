"""
Data Models Package

Pydantic records and results used across the ledger. The SQLAlchemy tables
in `expense_ledger.models.tables` are deliberately not re-exported: only
storage implementations import them.
"""

from expense_ledger.models.ledger import (
    CENT,
    Transaction,
    TransactionKind,
    TransactionSummary,
    User,
    UserSession,
    UserSummary,
)
from expense_ledger.models.results import (
    ErrorKind,
    LoginPayload,
    ServiceResult,
    TokenClaims,
    ValidationIssue,
)

__all__ = [
    # Ledger records
    "CENT",
    "Transaction",
    "TransactionKind",
    "TransactionSummary",
    "User",
    "UserSession",
    "UserSummary",
    # Results
    "ErrorKind",
    "LoginPayload",
    "ServiceResult",
    "TokenClaims",
    "ValidationIssue",
]
