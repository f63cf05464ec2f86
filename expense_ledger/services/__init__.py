"""Services package."""

from expense_ledger.services.auth import (
    AuthService,
    TokenError,
    TokenService,
)
from expense_ledger.services.ledger import LedgerService
from expense_ledger.services.storage import (
    ConnectionError,
    Database,
    DuplicateError,
    NotFoundError,
    SessionStorageInterface,
    SQLAlchemySessionStorage,
    SQLAlchemyTransactionStorage,
    SQLAlchemyUserStorage,
    StorageError,
    TransactionStorageInterface,
    UserStorageInterface,
)

__all__ = [
    # Auth services
    "AuthService",
    "TokenError",
    "TokenService",
    # Ledger services
    "LedgerService",
    # Storage services
    "ConnectionError",
    "Database",
    "DuplicateError",
    "NotFoundError",
    "SessionStorageInterface",
    "SQLAlchemySessionStorage",
    "SQLAlchemyTransactionStorage",
    "SQLAlchemyUserStorage",
    "StorageError",
    "TransactionStorageInterface",
    "UserStorageInterface",
]
