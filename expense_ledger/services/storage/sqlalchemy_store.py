"""
SQLAlchemy Storage Implementation

DESIGN DECISION: Every method issues explicit statements (INSERT ...
RETURNING, UPDATE, DELETE, SELECT) inside its own short session and
converts rows to frozen records before the session closes. No ORM object
ever leaves this module, so no caller can rely on implicit dirty tracking.

TRADEOFFS:
- A read followed by a write in a service is two units of work, not one.
  The balance recompute inherits this (see LedgerService).
- Aggregates are pushed to the database; amounts come back as Decimal.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from expense_ledger.models.ledger import (
    CENT,
    Transaction,
    TransactionKind,
    User,
    UserSession,
    utcnow,
)
from expense_ledger.models.tables import TransactionModel, UserModel, UserSessionModel
from expense_ledger.services.storage.database import Database
from expense_ledger.services.storage.interface import (
    DuplicateError,
    NotFoundError,
    SessionStorageInterface,
    StorageError,
    TransactionStorageInterface,
    UserStorageInterface,
)


def _is_unique_violation(error: IntegrityError) -> bool:
    # SQLite: "UNIQUE constraint failed", PostgreSQL: "violates unique constraint"
    return "UNIQUE" in str(error.orig).upper()


class SQLAlchemyUserStorage(UserStorageInterface):
    """Users table access."""

    def __init__(self, database: Database):
        self._db = database

    async def create_user(
        self,
        email: str,
        full_name: str,
        password_hash: str,
    ) -> User:
        """Insert a user with a zero balance."""
        now = utcnow()
        values = {
            "email": email,
            "full_name": full_name,
            "password_hash": password_hash,
            "balance": Decimal("0.00"),
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        try:
            async with self._db.session() as session, session.begin():
                rows = await session.scalars(insert(UserModel).returning(UserModel), [values])
                return User.model_validate(rows.one())
        except IntegrityError as e:
            if _is_unique_violation(e):
                raise DuplicateError("Email is already registered") from e
            raise StorageError(f"Failed to create user: {e}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to create user: {e}") from e

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        try:
            async with self._db.session() as session:
                row = await session.get(UserModel, user_id)
                return User.model_validate(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get user: {e}") from e

    async def get_user_by_email(
        self,
        email: str,
        active_only: bool = False,
    ) -> Optional[User]:
        stmt = select(UserModel).where(UserModel.email == email)
        if active_only:
            stmt = stmt.where(UserModel.is_active.is_(True))
        try:
            async with self._db.session() as session:
                row = (await session.scalars(stmt)).first()
                return User.model_validate(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get user by email: {e}") from e

    async def update_balance(self, user_id: int, balance: Decimal) -> bool:
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(balance=balance, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            async with self._db.session() as session, session.begin():
                result = await session.execute(stmt)
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to update balance: {e}") from e


class SQLAlchemySessionStorage(SessionStorageInterface):
    """User sessions table access."""

    def __init__(self, database: Database):
        self._db = database

    async def create_session(
        self,
        user_id: int,
        token: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> UserSession:
        values = {
            "user_id": user_id,
            "token": token,
            "created_at": created_at,
            "expires_at": expires_at,
            "is_valid": True,
        }
        try:
            async with self._db.session() as session, session.begin():
                rows = await session.scalars(
                    insert(UserSessionModel).returning(UserSessionModel), [values]
                )
                return UserSession.model_validate(rows.one())
        except IntegrityError as e:
            if _is_unique_violation(e):
                raise DuplicateError("Session token already stored") from e
            raise StorageError(f"Failed to create session: {e}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to create session: {e}") from e

    async def get_session_by_token(self, token: str) -> Optional[UserSession]:
        stmt = select(UserSessionModel).where(UserSessionModel.token == token)
        try:
            async with self._db.session() as session:
                row = (await session.scalars(stmt)).first()
                return UserSession.model_validate(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get session: {e}") from e

    async def get_user_session(self, user_id: int, token: str) -> Optional[UserSession]:
        stmt = select(UserSessionModel).where(
            UserSessionModel.user_id == user_id,
            UserSessionModel.token == token,
        )
        try:
            async with self._db.session() as session:
                row = (await session.scalars(stmt)).first()
                return UserSession.model_validate(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get session: {e}") from e

    async def invalidate_session(self, user_session: UserSession) -> bool:
        stmt = (
            update(UserSessionModel)
            .where(
                UserSessionModel.id == user_session.id,
                UserSessionModel.user_id == user_session.user_id,
            )
            .values(is_valid=False)
            .execution_options(synchronize_session=False)
        )
        try:
            async with self._db.session() as session, session.begin():
                result = await session.execute(stmt)
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to invalidate session: {e}") from e

    async def delete_expired_sessions(self, before: datetime) -> int:
        stmt = (
            delete(UserSessionModel)
            .where(UserSessionModel.expires_at <= before)
            .execution_options(synchronize_session=False)
        )
        try:
            async with self._db.session() as session, session.begin():
                result = await session.execute(stmt)
                return result.rowcount
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete expired sessions: {e}") from e


class SQLAlchemyTransactionStorage(TransactionStorageInterface):
    """
    Transactions table access.

    Every statement filters on `user_id`; ids alone never select a row.
    """

    def __init__(self, database: Database):
        self._db = database

    async def add_transaction(
        self,
        user_id: int,
        description: str,
        amount: Decimal,
        kind: TransactionKind,
        transaction_date: datetime,
        created_at: datetime,
    ) -> Transaction:
        values = {
            "user_id": user_id,
            "description": description,
            "amount": amount,
            "kind": kind,
            "transaction_date": transaction_date,
            "created_at": created_at,
        }
        try:
            async with self._db.session() as session, session.begin():
                rows = await session.scalars(
                    insert(TransactionModel).returning(TransactionModel), [values]
                )
                return Transaction.model_validate(rows.one())
        except IntegrityError as e:
            # Only the user_id foreign key can fail here
            raise NotFoundError(f"User {user_id} not found") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to add transaction: {e}") from e

    async def get_transaction(
        self,
        user_id: int,
        transaction_id: int,
    ) -> Optional[Transaction]:
        stmt = select(TransactionModel).where(
            TransactionModel.id == transaction_id,
            TransactionModel.user_id == user_id,
        )
        try:
            async with self._db.session() as session:
                row = (await session.scalars(stmt)).first()
                return Transaction.model_validate(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get transaction: {e}") from e

    async def update_transaction(self, transaction: Transaction) -> bool:
        stmt = (
            update(TransactionModel)
            .where(
                TransactionModel.id == transaction.id,
                TransactionModel.user_id == transaction.user_id,
            )
            .values(
                description=transaction.description,
                amount=transaction.amount,
                kind=transaction.kind,
                transaction_date=transaction.transaction_date,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            async with self._db.session() as session, session.begin():
                result = await session.execute(stmt)
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to update transaction: {e}") from e

    async def delete_transaction(self, user_id: int, transaction_id: int) -> bool:
        stmt = (
            delete(TransactionModel)
            .where(
                TransactionModel.id == transaction_id,
                TransactionModel.user_id == user_id,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            async with self._db.session() as session, session.begin():
                result = await session.execute(stmt)
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete transaction: {e}") from e

    async def list_transactions(self, user_id: int) -> list[Transaction]:
        stmt = (
            select(TransactionModel)
            .where(TransactionModel.user_id == user_id)
            .order_by(
                TransactionModel.transaction_date.desc(),
                TransactionModel.created_at.desc(),
                TransactionModel.id.desc(),
            )
        )
        try:
            async with self._db.session() as session:
                rows = (await session.scalars(stmt)).all()
                return [Transaction.model_validate(row) for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list transactions: {e}") from e

    async def sum_by_kind(self, user_id: int) -> dict[TransactionKind, Decimal]:
        stmt = (
            select(TransactionModel.kind, func.sum(TransactionModel.amount))
            .where(TransactionModel.user_id == user_id)
            .group_by(TransactionModel.kind)
        )
        totals = {kind: Decimal("0.00") for kind in TransactionKind}
        try:
            async with self._db.session() as session:
                rows = (await session.execute(stmt)).all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to sum transactions: {e}") from e

        for kind, total in rows:
            if total is not None:
                totals[kind] = Decimal(str(total)).quantize(CENT)
        return totals
