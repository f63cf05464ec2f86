"""Tests for the SQLAlchemy stores against in-memory SQLite."""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import delete, func, select

from expense_ledger.config import DatabaseSettings
from expense_ledger.models import TransactionKind
from expense_ledger.models.ledger import utcnow
from expense_ledger.models.tables import TransactionModel, UserModel, UserSessionModel
from expense_ledger.services.storage import DuplicateError, NotFoundError, StorageError
from expense_ledger.validation.validator import MAX_AMOUNT


async def make_user(user_storage, email="alice@fastmail.com"):
    return await user_storage.create_user(email=email, full_name="Alice Andrews", password_hash="hash")


async def add_entry(transaction_storage, user_id, amount, kind, description="Entry"):
    now = utcnow()
    return await transaction_storage.add_transaction(
        user_id=user_id,
        description=description,
        amount=Decimal(amount),
        kind=kind,
        transaction_date=now,
        created_at=now,
    )


class TestDatabaseSettings:
    """Tests for URL classification."""

    @pytest.mark.parametrize("url", ["sqlite+aiosqlite://", "sqlite+aiosqlite:///:memory:"])
    def test_in_memory(self, url):
        assert DatabaseSettings(url=url).is_in_memory

    def test_file_database(self):
        settings = DatabaseSettings(url="sqlite+aiosqlite:///./ledger.db")
        assert settings.is_sqlite
        assert not settings.is_in_memory

    def test_postgres(self):
        settings = DatabaseSettings(url="postgresql+asyncpg://user:pw@localhost/ledger")
        assert not settings.is_sqlite


class TestUserStorage:
    """Tests for the credential store."""

    async def test_create_and_fetch(self, user_storage):
        user = await make_user(user_storage)

        assert user.id is not None
        assert user.balance == Decimal("0.00")
        assert user.created_at.tzinfo is not None
        assert await user_storage.get_user_by_email("alice@fastmail.com") == user

    async def test_duplicate_email(self, user_storage):
        await make_user(user_storage)

        with pytest.raises(DuplicateError):
            await make_user(user_storage)

    async def test_non_unique_integrity_error_is_not_duplicate(self, database, user_storage):
        async with database.engine.begin() as connection:
            await connection.exec_driver_sql(
                "CREATE TRIGGER reject_users BEFORE INSERT ON users "
                "BEGIN SELECT RAISE(ABORT, 'inserts disabled'); END"
            )

        with pytest.raises(StorageError) as excinfo:
            await make_user(user_storage)
        assert not isinstance(excinfo.value, DuplicateError)

    async def test_update_balance(self, user_storage):
        user = await make_user(user_storage)

        assert await user_storage.update_balance(user.id, Decimal("12.34"))
        assert (await user_storage.get_user_by_id(user.id)).balance == Decimal("12.34")

    async def test_update_balance_unknown_user(self, user_storage):
        assert not await user_storage.update_balance(999, Decimal("1.00"))


class TestTransactionStorage:
    """Tests for the transaction store."""

    async def test_sum_by_kind_defaults_to_zero(self, user_storage, transaction_storage):
        user = await make_user(user_storage)

        totals = await transaction_storage.sum_by_kind(user.id)
        assert totals == {TransactionKind.INCOME: Decimal("0.00"), TransactionKind.EXPENSE: Decimal("0.00")}

    async def test_sum_by_kind(self, user_storage, transaction_storage):
        user = await make_user(user_storage)
        await add_entry(transaction_storage, user.id, "100.10", TransactionKind.INCOME)
        await add_entry(transaction_storage, user.id, "0.20", TransactionKind.INCOME)
        await add_entry(transaction_storage, user.id, "30.05", TransactionKind.EXPENSE)

        totals = await transaction_storage.sum_by_kind(user.id)
        assert totals[TransactionKind.INCOME] == Decimal("100.30")
        assert totals[TransactionKind.EXPENSE] == Decimal("30.05")

    async def test_largest_amount_is_stored_exactly(self, user_storage, transaction_storage):
        """Amounts keep every cent, even where the backend has no native decimals."""
        user = await make_user(user_storage)
        entry = await add_entry(transaction_storage, user.id, str(MAX_AMOUNT), TransactionKind.INCOME)
        await add_entry(transaction_storage, user.id, "0.01", TransactionKind.EXPENSE)

        stored = await transaction_storage.get_transaction(user.id, entry.id)
        totals = await transaction_storage.sum_by_kind(user.id)

        assert stored.amount == MAX_AMOUNT
        assert totals[TransactionKind.INCOME] == MAX_AMOUNT
        assert totals[TransactionKind.EXPENSE] == Decimal("0.01")

    async def test_negative_balance_round_trips(self, user_storage):
        user = await make_user(user_storage)

        assert await user_storage.update_balance(user.id, Decimal("-123456789012.34"))
        assert (await user_storage.get_user_by_id(user.id)).balance == Decimal("-123456789012.34")

    async def test_get_is_owner_scoped(self, user_storage, transaction_storage):
        alice = await make_user(user_storage)
        bob = await make_user(user_storage, "bob@fastmail.com")
        entry = await add_entry(transaction_storage, alice.id, "5.00", TransactionKind.EXPENSE)

        assert await transaction_storage.get_transaction(alice.id, entry.id) == entry
        assert await transaction_storage.get_transaction(bob.id, entry.id) is None

    async def test_update_writes_copy(self, user_storage, transaction_storage):
        user = await make_user(user_storage)
        entry = await add_entry(transaction_storage, user.id, "5.00", TransactionKind.EXPENSE)

        changed = entry.model_copy(update={"description": "Lunch", "amount": Decimal("7.50")})
        assert await transaction_storage.update_transaction(changed)

        stored = await transaction_storage.get_transaction(user.id, entry.id)
        assert stored.description == "Lunch"
        assert stored.amount == Decimal("7.50")

    async def test_add_for_unknown_user(self, transaction_storage):
        with pytest.raises(NotFoundError):
            await add_entry(transaction_storage, 999, "5.00", TransactionKind.EXPENSE)


class TestSessionStorage:
    """Tests for the session store."""

    async def test_duplicate_token(self, user_storage, session_storage):
        user = await make_user(user_storage)
        now = utcnow()
        await session_storage.create_session(user.id, "same-token", now, now + timedelta(hours=1))

        with pytest.raises(DuplicateError):
            await session_storage.create_session(user.id, "same-token", now, now + timedelta(hours=1))

    async def test_invalidate(self, user_storage, session_storage):
        user = await make_user(user_storage)
        now = utcnow()
        created = await session_storage.create_session(user.id, "token", now, now + timedelta(hours=1))

        assert await session_storage.invalidate_session(created)
        assert not (await session_storage.get_session_by_token("token")).is_valid


class TestCascade:
    """Deleting a user removes their sessions and transactions."""

    async def test_user_delete_cascades(self, database, user_storage, session_storage, transaction_storage):
        user = await make_user(user_storage)
        now = utcnow()
        await session_storage.create_session(user.id, "token", now, now + timedelta(hours=1))
        await add_entry(transaction_storage, user.id, "5.00", TransactionKind.INCOME)

        async with database.session() as session, session.begin():
            await session.execute(delete(UserModel).where(UserModel.id == user.id))

        async with database.session() as session:
            sessions = await session.scalar(select(func.count()).select_from(UserSessionModel))
            transactions = await session.scalar(select(func.count()).select_from(TransactionModel))

        assert sessions == 0
        assert transactions == 0
