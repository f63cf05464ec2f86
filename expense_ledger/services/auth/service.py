"""
Auth Service

Composes the credential store, the session store and the token service into
register / login / logout / token validation.

SECURITY BOUNDARIES:
1. Unknown email, inactive account and wrong password are indistinguishable
   to the caller (same error kind, same message, a bcrypt check either way).
2. A token is accepted only while its session row is valid and unexpired,
   so logout revokes a token before its own expiry.
3. Passwords, hashes and tokens are never logged.
"""

import asyncio
from datetime import datetime
from typing import Callable, Optional

from expense_ledger.events import EventLogger
from expense_ledger.models.ledger import UserSummary, utcnow
from expense_ledger.models.results import (
    ErrorKind,
    LoginPayload,
    ServiceResult,
    TokenClaims,
)
from expense_ledger.services.auth.passwords import hash_password, verify_password
from expense_ledger.services.auth.tokens import TokenError, TokenService
from expense_ledger.services.storage import (
    DuplicateError,
    SessionStorageInterface,
    UserStorageInterface,
)
from expense_ledger.validation import RegistrationValidator


INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."
DUPLICATE_EMAIL_MESSAGE = "This email is already registered."
UNAUTHORIZED_MESSAGE = "Authentication is required."
INTERNAL_FAILURE_MESSAGE = "An internal error occurred. Please try again later."


class AuthService:
    """
    Identity operations for the HTTP layer.

    Every public method returns a ServiceResult (or a plain bool for
    `validate_token`) and never raises.
    """

    def __init__(
        self,
        user_storage: UserStorageInterface,
        session_storage: SessionStorageInterface,
        token_service: TokenService,
        password_hash_rounds: int = 12,
        validator: Optional[RegistrationValidator] = None,
        event_logger: Optional[EventLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._users = user_storage
        self._sessions = session_storage
        self._tokens = token_service
        self._rounds = password_hash_rounds
        self._validator = validator or RegistrationValidator()
        self._events = event_logger or EventLogger()
        self._clock = clock or utcnow
        self._dummy_hash: Optional[str] = None

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    async def register(
        self,
        email: str,
        full_name: str,
        password: str,
        confirm_password: str,
    ) -> ServiceResult[UserSummary]:
        """
        Create an active user with a zero balance. Does not log the user in.

        Fails with VALIDATION, DUPLICATE_EMAIL or INTERNAL.
        """
        issues = self._validator.validate(email, full_name, password, confirm_password)
        if issues:
            self._events.registration_rejected(email or "", reason="validation")
            return ServiceResult.fail(
                ErrorKind.VALIDATION,
                "Registration data is invalid.",
                issues=issues,
            )

        try:
            if await self._users.get_user_by_email(email) is not None:
                self._events.registration_rejected(email, reason="duplicate_email")
                return ServiceResult.fail(ErrorKind.DUPLICATE_EMAIL, DUPLICATE_EMAIL_MESSAGE)

            # bcrypt is deliberately slow; keep it off the event loop
            password_hash = await asyncio.to_thread(hash_password, password, self._rounds)
            user = await self._users.create_user(
                email=email,
                full_name=full_name.strip(),
                password_hash=password_hash,
            )
        except DuplicateError:
            # Lost a race with a concurrent registration of the same email
            self._events.registration_rejected(email, reason="duplicate_email")
            return ServiceResult.fail(ErrorKind.DUPLICATE_EMAIL, DUPLICATE_EMAIL_MESSAGE)
        except Exception as e:
            self._events.internal_failure("register", e, email=email)
            return ServiceResult.fail(ErrorKind.INTERNAL, INTERNAL_FAILURE_MESSAGE)

        self._events.user_registered(user.id, user.email)
        return ServiceResult.ok(
            UserSummary.model_validate(user),
            message="Registration successful. Log in to continue.",
        )

    # -------------------------------------------------------------------------
    # Login / logout
    # -------------------------------------------------------------------------

    async def login(self, email: str, password: str) -> ServiceResult[LoginPayload]:
        """
        Verify credentials, issue a token and open a new session.

        Earlier sessions of the same user stay valid.
        Fails with INVALID_CREDENTIALS or INTERNAL.
        """
        try:
            user = None
            if email and password:
                user = await self._users.get_user_by_email(email, active_only=True)

            if user is None:
                await self._burn_password_check(password or "")
                self._events.login_failed(email or "", reason="unknown_or_inactive")
                return ServiceResult.fail(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

            if not await asyncio.to_thread(verify_password, password, user.password_hash):
                self._events.login_failed(email, reason="wrong_password")
                return ServiceResult.fail(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

            issued = self._tokens.issue(user)
            session = await self._sessions.create_session(
                user_id=user.id,
                token=issued.token,
                created_at=issued.claims.issued_at,
                expires_at=issued.expires_at,
            )
        except Exception as e:
            self._events.internal_failure("login", e, email=email)
            return ServiceResult.fail(ErrorKind.INTERNAL, INTERNAL_FAILURE_MESSAGE)

        self._events.login_succeeded(user.id, session.id)
        return ServiceResult.ok(
            LoginPayload(
                token=issued.token,
                expires_at=issued.expires_at,
                user=UserSummary.model_validate(user),
            ),
            message="Login successful.",
        )

    async def logout(self, user_id: int, token: str) -> ServiceResult[None]:
        """
        Revoke the session matching (user_id, token).

        Idempotent: an unknown or already revoked session is not an error.
        """
        try:
            session = await self._sessions.get_user_session(user_id, token)
            if session is not None and session.is_valid:
                revoked = session.model_copy(update={"is_valid": False})
                await self._sessions.invalidate_session(revoked)
        except Exception as e:
            self._events.internal_failure("logout", e, user_id=user_id)
            return ServiceResult.fail(ErrorKind.INTERNAL, INTERNAL_FAILURE_MESSAGE)

        self._events.logged_out(user_id, session_found=session is not None)
        return ServiceResult.ok(message="Logged out.")

    # -------------------------------------------------------------------------
    # Token checks
    # -------------------------------------------------------------------------

    async def validate_token(self, token: str) -> bool:
        """
        True iff a session holds this token, is valid and has not expired.

        Pure read. Storage faults are logged and reported as False.
        """
        try:
            return await self._session_is_usable(token)
        except Exception as e:
            self._events.internal_failure("validate_token", e)
            return False

    async def authenticate(self, token: str) -> ServiceResult[TokenClaims]:
        """
        Full bearer check: signature, issuer, audience, expiry, then session.

        Fails with UNAUTHORIZED (without saying which check failed) or
        INTERNAL.
        """
        if not token:
            return ServiceResult.fail(ErrorKind.UNAUTHORIZED, UNAUTHORIZED_MESSAGE)

        try:
            claims = self._tokens.validate(token)
        except TokenError as e:
            self._events.token_rejected(reason=type(e).__name__)
            return ServiceResult.fail(ErrorKind.UNAUTHORIZED, UNAUTHORIZED_MESSAGE)

        try:
            usable = await self._session_is_usable(token)
        except Exception as e:
            self._events.internal_failure("authenticate", e, user_id=claims.user_id)
            return ServiceResult.fail(ErrorKind.INTERNAL, INTERNAL_FAILURE_MESSAGE)

        if not usable:
            self._events.token_rejected(reason="session_inactive")
            return ServiceResult.fail(ErrorKind.UNAUTHORIZED, UNAUTHORIZED_MESSAGE)

        return ServiceResult.ok(claims)

    async def purge_expired_sessions(
        self,
        before: Optional[datetime] = None,
    ) -> ServiceResult[int]:
        """Delete session rows whose expiry has passed. Never called implicitly."""
        cutoff = before or self._clock()
        try:
            count = await self._sessions.delete_expired_sessions(cutoff)
        except Exception as e:
            self._events.internal_failure("purge_expired_sessions", e)
            return ServiceResult.fail(ErrorKind.INTERNAL, INTERNAL_FAILURE_MESSAGE)

        self._events.sessions_purged(count)
        return ServiceResult.ok(count)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _session_is_usable(self, token: str) -> bool:
        if not token:
            return False
        session = await self._sessions.get_session_by_token(token)
        return session is not None and session.is_usable(self._clock())

    async def _burn_password_check(self, password: str) -> None:
        """Spend a bcrypt check so unknown emails take as long as wrong passwords."""
        if self._dummy_hash is None:
            self._dummy_hash = await asyncio.to_thread(hash_password, "not-a-real-password", self._rounds)
        await asyncio.to_thread(verify_password, password, self._dummy_hash)
