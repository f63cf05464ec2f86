"""
Abstract Storage Interface

DESIGN DECISION: Services talk to storage through these interfaces only.
This allows us to:
1. Swap SQLite for PostgreSQL by changing a URL
2. Replace a store with a failing double in tests
3. Keep business logic decoupled from SQLAlchemy

Every method is an explicit, self-contained unit of work. Records come back
frozen; to change one, copy it and hand the copy to an update method.
Transaction lookups are always scoped by owner: there is no way to fetch or
change a transaction by id alone.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional

from expense_ledger.models.ledger import (
    Transaction,
    TransactionKind,
    User,
    UserSession,
)


class UserStorageInterface(ABC):
    """Credential store: user rows and their cached balance."""

    @abstractmethod
    async def create_user(
        self,
        email: str,
        full_name: str,
        password_hash: str,
    ) -> User:
        """
        Insert a new active user with a zero balance.

        Raises:
            DuplicateError: If the email is already registered
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Return the user, or None."""
        pass

    @abstractmethod
    async def get_user_by_email(
        self,
        email: str,
        active_only: bool = False,
    ) -> Optional[User]:
        """
        Return the user with exactly this email (case as stored), or None.

        Args:
            email: Email to match exactly
            active_only: Ignore deactivated users
        """
        pass

    @abstractmethod
    async def update_balance(self, user_id: int, balance: Decimal) -> bool:
        """
        Overwrite the cached balance.

        Returns:
            True if the user exists and was updated
        """
        pass


class SessionStorageInterface(ABC):
    """Session store: one row per issued token."""

    @abstractmethod
    async def create_session(
        self,
        user_id: int,
        token: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> UserSession:
        """
        Persist a new valid session.

        Raises:
            DuplicateError: If the token is already stored
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def get_session_by_token(self, token: str) -> Optional[UserSession]:
        """Return the session holding this token, or None."""
        pass

    @abstractmethod
    async def get_user_session(self, user_id: int, token: str) -> Optional[UserSession]:
        """Return the session matching both the owner and the token, or None."""
        pass

    @abstractmethod
    async def invalidate_session(self, user_session: UserSession) -> bool:
        """
        Persist `is_valid = False` for the given session.

        Returns:
            True if a row was updated
        """
        pass

    @abstractmethod
    async def delete_expired_sessions(self, before: datetime) -> int:
        """
        Physically remove sessions whose expiry is not after `before`.

        Returns:
            Number of rows removed
        """
        pass


class TransactionStorageInterface(ABC):
    """Transaction store, always scoped by owning user."""

    @abstractmethod
    async def add_transaction(
        self,
        user_id: int,
        description: str,
        amount: Decimal,
        kind: TransactionKind,
        transaction_date: datetime,
        created_at: datetime,
    ) -> Transaction:
        """
        Insert a new entry.

        Raises:
            NotFoundError: If `user_id` does not exist
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def get_transaction(
        self,
        user_id: int,
        transaction_id: int,
    ) -> Optional[Transaction]:
        """Return the entry only if it belongs to `user_id`, else None."""
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> bool:
        """
        Overwrite description, amount, kind and date.

        The update is filtered on both `transaction.id` and
        `transaction.user_id`.

        Returns:
            True if a row was updated
        """
        pass

    @abstractmethod
    async def delete_transaction(self, user_id: int, transaction_id: int) -> bool:
        """
        Delete the entry if it belongs to `user_id`.

        Returns:
            True if a row was deleted
        """
        pass

    @abstractmethod
    async def list_transactions(self, user_id: int) -> list[Transaction]:
        """
        All entries of one user, newest first.

        Ordered by transaction date descending, then creation time
        descending, then id descending.
        """
        pass

    @abstractmethod
    async def sum_by_kind(self, user_id: int) -> dict[TransactionKind, Decimal]:
        """
        Sum of amounts per kind, computed from the stored rows.

        Kinds without entries map to zero.
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
