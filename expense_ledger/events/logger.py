"""
Event Logger

Every significant action in the core emits one structured log event.
This gives:
1. Traceability of logins, logouts and ledger mutations
2. Debugging context for internal failures
3. A visible warning whenever the cached balance may have gone stale

Events are logged locally through structlog only; nothing is persisted.

Secrets never reach this module: callers pass user ids, emails and
transaction ids, never passwords, password hashes or tokens.
"""

from decimal import Decimal
from typing import Any, Optional

import structlog


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class EventLogger:
    """
    Central event logging for the auth and ledger services.

    One instance can be shared by every service; it holds no state besides
    the bound logger.
    """

    def __init__(self, name: str = "expense_ledger"):
        self._logger = structlog.get_logger(name)

    # -------------------------------------------------------------------------
    # Auth events
    # -------------------------------------------------------------------------

    def user_registered(self, user_id: int, email: str) -> None:
        self._logger.info("user_registered", user_id=user_id, email=email)

    def registration_rejected(self, email: str, reason: str) -> None:
        self._logger.warning("registration_rejected", email=email, reason=reason)

    def login_succeeded(self, user_id: int, session_id: int) -> None:
        self._logger.info("login_succeeded", user_id=user_id, session_id=session_id)

    def login_failed(self, email: str, reason: str) -> None:
        """`reason` is internal only; callers always see the same message."""
        self._logger.warning("login_failed", email=email, reason=reason)

    def logged_out(self, user_id: int, session_found: bool) -> None:
        self._logger.info("logged_out", user_id=user_id, session_found=session_found)

    def token_rejected(self, reason: str) -> None:
        self._logger.info("token_rejected", reason=reason)

    def sessions_purged(self, count: int) -> None:
        self._logger.info("sessions_purged", count=count)

    # -------------------------------------------------------------------------
    # Ledger events
    # -------------------------------------------------------------------------

    def transaction_added(self, user_id: int, transaction_id: int) -> None:
        self._logger.info("transaction_added", user_id=user_id, transaction_id=transaction_id)

    def transaction_updated(self, user_id: int, transaction_id: int) -> None:
        self._logger.info("transaction_updated", user_id=user_id, transaction_id=transaction_id)

    def transaction_deleted(self, user_id: int, transaction_id: int) -> None:
        self._logger.info("transaction_deleted", user_id=user_id, transaction_id=transaction_id)

    def balance_recomputed(self, user_id: int, balance: Decimal) -> None:
        self._logger.info("balance_recomputed", user_id=user_id, balance=str(balance))

    def balance_recompute_failed(self, user_id: int, error: BaseException) -> None:
        """The mutation committed but the cached balance is now stale."""
        self._logger.warning(
            "balance_recompute_failed",
            user_id=user_id,
            error_type=type(error).__name__,
            error=str(error),
        )

    # -------------------------------------------------------------------------
    # Failures
    # -------------------------------------------------------------------------

    def internal_failure(
        self,
        operation: str,
        error: BaseException,
        user_id: Optional[int] = None,
        **context: Any,
    ) -> None:
        """Log an unexpected fault with its traceback."""
        self._logger.error(
            "internal_failure",
            operation=operation,
            user_id=user_id,
            error_type=type(error).__name__,
            error=str(error),
            exc_info=error,
            **context,
        )
