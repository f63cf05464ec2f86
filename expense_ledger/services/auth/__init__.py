"""Authentication services package."""

from expense_ledger.services.auth.passwords import hash_password, verify_password
from expense_ledger.services.auth.service import (
    INVALID_CREDENTIALS_MESSAGE,
    AuthService,
)
from expense_ledger.services.auth.tokens import (
    TOKEN_LIFETIME,
    InvalidTokenSignatureError,
    IssuedToken,
    MalformedTokenError,
    MissingSigningKeyError,
    TokenError,
    TokenExpiredError,
    TokenService,
)

__all__ = [
    "AuthService",
    "INVALID_CREDENTIALS_MESSAGE",
    "TOKEN_LIFETIME",
    "InvalidTokenSignatureError",
    "IssuedToken",
    "MalformedTokenError",
    "MissingSigningKeyError",
    "TokenError",
    "TokenExpiredError",
    "TokenService",
    "hash_password",
    "verify_password",
]
