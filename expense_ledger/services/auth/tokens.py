"""
Bearer Token Issuer/Validator

Issues and verifies HS256 JWTs carrying the user's identity. The service is
pure: it holds immutable configuration only and performs no I/O, so one
instance can be shared by any number of concurrent requests.

Cryptographic validity is necessary but not sufficient: AuthService also
requires a live session row for the token, which is what makes logout
effective before the token's own expiry.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from uuid import uuid4

import jwt
from pydantic import BaseModel, ValidationError

from expense_ledger.config import JwtSettings, get_settings
from expense_ledger.models.ledger import User, utcnow
from expense_ledger.models.results import TokenClaims


TOKEN_LIFETIME = timedelta(hours=24)
ALGORITHM = "HS256"

REQUIRED_CLAIMS = ["sub", "email", "name", "jti", "iss", "aud", "iat", "exp"]


class TokenError(Exception):
    """Base exception for rejected tokens."""
    pass


class InvalidTokenSignatureError(TokenError):
    """Signature does not match the configured key."""
    pass


class TokenExpiredError(TokenError):
    """The `exp` claim lies in the past."""
    pass


class MalformedTokenError(TokenError):
    """Not a decodable token, or its claims are missing or foreign."""
    pass


class MissingSigningKeyError(Exception):
    """No usable signing key is configured. Fatal at startup."""
    pass


class IssuedToken(BaseModel):
    """A freshly signed token and the claims it carries."""

    token: str
    expires_at: datetime
    claims: TokenClaims


class TokenService:
    """
    Signs and verifies identity tokens.

    Every token gets a fresh `jti`, so two tokens for the same user issued
    in the same second still differ.
    """

    def __init__(
        self,
        key: str,
        issuer: str,
        audience: str,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not key:
            raise MissingSigningKeyError("JWT signing key is not configured")
        self._key = key
        self._issuer = issuer
        self._audience = audience
        self._clock = clock or utcnow

    @classmethod
    def from_settings(
        cls,
        settings: Optional[JwtSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "TokenService":
        """
        Build from configuration.

        Raises:
            MissingSigningKeyError: If JWT_KEY is absent or unusable
        """
        if settings is None:
            try:
                settings = get_settings().jwt
            except ValidationError as e:
                raise MissingSigningKeyError(f"JWT signing key is missing or invalid: {e}") from e
        return cls(
            key=settings.key,
            issuer=settings.issuer,
            audience=settings.audience,
            clock=clock,
        )

    def issue(self, user: User) -> IssuedToken:
        """Sign a token for `user` valid for TOKEN_LIFETIME from now."""
        # Whole seconds, so the session row matches the `exp` claim exactly
        issued_at = self._clock().astimezone(timezone.utc).replace(microsecond=0)
        expires_at = issued_at + TOKEN_LIFETIME
        jti = uuid4().hex

        payload = {
            "sub": str(user.id),
            "email": user.email,
            "name": user.full_name,
            "jti": jti,
            "iss": self._issuer,
            "aud": self._audience,
            "iat": issued_at,
            "exp": expires_at,
        }
        token = jwt.encode(payload, self._key, algorithm=ALGORITHM)

        return IssuedToken(
            token=token,
            expires_at=expires_at,
            claims=TokenClaims(
                user_id=user.id,
                email=user.email,
                full_name=user.full_name,
                jti=jti,
                issued_at=issued_at,
                expires_at=expires_at,
            ),
        )

    def validate(self, token: str) -> TokenClaims:
        """
        Verify signature, issuer, audience and expiry with zero leeway.

        Raises:
            InvalidTokenSignatureError: Signed with a different key
            TokenExpiredError: Past its `exp`
            MalformedTokenError: Anything else wrong with the token
        """
        try:
            payload = jwt.decode(
                token,
                self._key,
                algorithms=[ALGORITHM],
                audience=self._audience,
                issuer=self._issuer,
                leeway=0,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidSignatureError as e:
            raise InvalidTokenSignatureError("Token signature is invalid") from e
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError(f"Token is malformed: {e}") from e

        try:
            return TokenClaims(
                user_id=int(payload["sub"]),
                email=payload["email"],
                full_name=payload["name"],
                jti=payload["jti"],
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (TypeError, ValueError) as e:
            raise MalformedTokenError(f"Token claims are malformed: {e}") from e
