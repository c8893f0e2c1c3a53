"""Admin authentication: credential check and bearer tokens.

A single admin account is configured through the environment. A successful
login yields an HS256 JWT carrying the username and a fixed expiry; tokens
are never stored and are verified on every protected call.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from core import get_logger
from core.constants import TokenDefaults
from core.exceptions import (
    ConfigurationError,
    InvalidCredentials,
    TokenExpired,
    TokenMalformed,
    Unauthenticated,
)

logger = get_logger(__name__)

HASH_PREFIXES = ("pbkdf2:", "scrypt:")


@dataclass
class AdminCredentials:
    """The admin account the gate checks logins against."""
    username: str
    password_hash: str

    @classmethod
    def from_config(cls, username: str, password: str) -> "AdminCredentials":
        """Build credentials, hashing a plaintext password once."""
        if password.startswith(HASH_PREFIXES):
            return cls(username=username, password_hash=password)
        return cls(username=username, password_hash=generate_password_hash(password))


@dataclass(frozen=True)
class TokenClaims:
    username: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime
    ttl_hours: int

    @property
    def expires_in(self) -> str:
        return f"{self.ttl_hours}h"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CredentialGate:
    """Issues and verifies admin bearer tokens."""

    def __init__(
        self,
        credentials: AdminCredentials,
        secret: str,
        ttl_hours: int = TokenDefaults.TTL_HOURS,
        clock: Callable[[], datetime] = _utc_now,
    ):
        if not secret:
            raise ConfigurationError("JWT_SECRET must be set")
        self.credentials = credentials
        self._secret = secret
        self.ttl_hours = ttl_hours
        self._clock = clock

    def check_credentials(self, username: str, password: str) -> bool:
        # Both comparisons always run so timing does not reveal which one failed
        username_ok = hmac.compare_digest(
            str(username or "").encode("utf-8"), self.credentials.username.encode("utf-8")
        )
        password_ok = check_password_hash(self.credentials.password_hash, str(password or ""))
        return username_ok and password_ok

    def login(self, username: str, password: str) -> IssuedToken:
        """Exchange admin credentials for a signed token.

        Raises:
            InvalidCredentials: If the username or password does not match
        """
        if not self.check_credentials(username, password):
            logger.warning("Rejected admin login", extra={"username": username})
            raise InvalidCredentials()

        issued_at = self._clock()
        expires_at = issued_at + timedelta(hours=self.ttl_hours)
        token = jwt.encode(
            {
                "username": self.credentials.username,
                "iat": int(issued_at.timestamp()),
                "exp": int(expires_at.timestamp()),
            },
            self._secret,
            algorithm=TokenDefaults.ALGORITHM,
        )
        logger.info("Admin logged in", extra={"username": self.credentials.username})
        return IssuedToken(token=token, expires_at=expires_at, ttl_hours=self.ttl_hours)

    def verify(self, token: Optional[str]) -> TokenClaims:
        """Validate a bearer token.

        Raises:
            Unauthenticated: If no token was supplied
            TokenExpired: If the token's expiry has passed
            TokenMalformed: If the signature or structure is invalid
        """
        if not token:
            raise Unauthenticated()

        now = self._clock()
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[TokenDefaults.ALGORITHM],
                options={"require": ["exp", "iat"], "verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidTokenError as e:
            logger.info(f"Token verification failed: {e}")
            raise TokenMalformed() from e

        try:
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
            issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError) as e:
            raise TokenMalformed() from e

        # Expiry is checked against the gate's clock rather than PyJWT's
        if now >= expires_at:
            raise TokenExpired()

        username = payload.get("username")
        if not isinstance(username, str) or not username:
            raise TokenMalformed()

        return TokenClaims(
            username=username,
            issued_at=issued_at,
            expires_at=expires_at,
        )
