"""
Shared fixtures.

Every test gets its own in-memory SQLite database, so tests never see each
other's rows. bcrypt runs at its minimum cost to keep the suite fast.
"""

from datetime import datetime, timedelta

import pytest

from expense_ledger.config import AppSettings, DatabaseSettings, JwtSettings
from expense_ledger.events import EventLogger
from expense_ledger.models.ledger import utcnow
from expense_ledger.services.auth import AuthService, TokenService
from expense_ledger.services.ledger import LedgerService
from expense_ledger.services.storage import (
    Database,
    SQLAlchemySessionStorage,
    SQLAlchemyTransactionStorage,
    SQLAlchemyUserStorage,
)


TEST_JWT_KEY = "unit-test-signing-key-0123456789-abcdef"
IN_MEMORY_URL = "sqlite+aiosqlite://"
TEST_ROUNDS = 4

PASSWORD = "s3cret-pass"


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = None):
        self.now = start or utcnow()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def jwt_settings():
    return JwtSettings(key=TEST_JWT_KEY)


@pytest.fixture
def database_settings():
    return DatabaseSettings(url=IN_MEMORY_URL)


@pytest.fixture
def app_settings():
    return AppSettings(password_hash_rounds=TEST_ROUNDS)


@pytest.fixture
async def database(database_settings):
    db = Database(database_settings)
    await db.create_schema()
    yield db
    await db.dispose()


@pytest.fixture
def user_storage(database):
    return SQLAlchemyUserStorage(database)


@pytest.fixture
def session_storage(database):
    return SQLAlchemySessionStorage(database)


@pytest.fixture
def transaction_storage(database):
    return SQLAlchemyTransactionStorage(database)


@pytest.fixture
def token_service(jwt_settings):
    return TokenService.from_settings(jwt_settings)


@pytest.fixture
def auth_service(user_storage, session_storage, token_service):
    return AuthService(
        user_storage=user_storage,
        session_storage=session_storage,
        token_service=token_service,
        password_hash_rounds=TEST_ROUNDS,
        event_logger=EventLogger("expense_ledger.tests"),
    )


@pytest.fixture
def ledger_service(user_storage, transaction_storage):
    return LedgerService(
        user_storage=user_storage,
        transaction_storage=transaction_storage,
        event_logger=EventLogger("expense_ledger.tests"),
    )


async def register(auth: AuthService, email: str, full_name: str = "Test User"):
    """Register a user and return its UserSummary."""
    result = await auth.register(email, full_name, PASSWORD, PASSWORD)
    assert result.success, result.message
    return result.data


@pytest.fixture
async def alice(auth_service):
    return await register(auth_service, "alice@fastmail.com", "Alice Andrews")


@pytest.fixture
async def bob(auth_service):
    return await register(auth_service, "bob@fastmail.com", "Bob Brown")
