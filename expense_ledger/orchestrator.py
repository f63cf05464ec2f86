"""
Component Wiring for Expense Ledger

This module builds the object graph shared by every entry point:
database -> stores -> token service -> auth / ledger services.

DESIGN DECISION: The signing key is resolved here, at startup. A missing
or too short JWT_KEY raises MissingSigningKeyError before any request is
served instead of failing on the first login.

The services never see each other: the HTTP layer authenticates with
AuthService and passes the resulting user id to LedgerService.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from expense_ledger.config import AppSettings, DatabaseSettings, JwtSettings, get_settings
from expense_ledger.events import EventLogger
from expense_ledger.services.auth import AuthService, TokenService
from expense_ledger.services.ledger import LedgerService
from expense_ledger.services.storage import (
    Database,
    SQLAlchemySessionStorage,
    SQLAlchemyTransactionStorage,
    SQLAlchemyUserStorage,
)


@dataclass
class AppComponents:
    """Everything an entry point needs; `database` must be disposed on shutdown."""

    database: Database
    auth: AuthService
    ledger: LedgerService
    tokens: TokenService
    events: EventLogger

    async def start(self) -> None:
        await self.database.create_schema()

    async def close(self) -> None:
        await self.database.dispose()


def create_app_components(
    database: Optional[Database] = None,
    database_settings: Optional[DatabaseSettings] = None,
    jwt_settings: Optional[JwtSettings] = None,
    app_settings: Optional[AppSettings] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        database: An existing Database to share. Built from
                  `database_settings` (or the environment) when omitted.
        jwt_settings: Token configuration. Read from the environment when
                      omitted.
        app_settings: bcrypt cost and other application settings.
        clock: Time source shared by tokens, sessions and ledger entries.

    Raises:
        MissingSigningKeyError: If no usable signing key is configured
    """
    tokens = TokenService.from_settings(jwt_settings, clock=clock)
    app_settings = app_settings or get_settings().app
    database = database or Database(database_settings)
    events = EventLogger()

    user_storage = SQLAlchemyUserStorage(database)

    auth = AuthService(
        user_storage=user_storage,
        session_storage=SQLAlchemySessionStorage(database),
        token_service=tokens,
        password_hash_rounds=app_settings.password_hash_rounds,
        event_logger=events,
        clock=clock,
    )

    ledger = LedgerService(
        user_storage=user_storage,
        transaction_storage=SQLAlchemyTransactionStorage(database),
        event_logger=events,
        clock=clock,
    )

    return AppComponents(
        database=database,
        auth=auth,
        ledger=ledger,
        tokens=tokens,
        events=events,
    )
