"""
Storage Services Package

Provides abstract interfaces and the SQLAlchemy implementation for the
credential, session and transaction stores.
"""

from expense_ledger.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    NotFoundError,
    SessionStorageInterface,
    StorageError,
    TransactionStorageInterface,
    UserStorageInterface,
)
from expense_ledger.services.storage.database import Database
from expense_ledger.services.storage.sqlalchemy_store import (
    SQLAlchemySessionStorage,
    SQLAlchemyTransactionStorage,
    SQLAlchemyUserStorage,
)

__all__ = [
    # Interfaces
    "SessionStorageInterface",
    "TransactionStorageInterface",
    "UserStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # SQLAlchemy implementation
    "Database",
    "SQLAlchemySessionStorage",
    "SQLAlchemyTransactionStorage",
    "SQLAlchemyUserStorage",
]
