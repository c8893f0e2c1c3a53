"""Tests for admin login and token verification."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from conftest import ADMIN_PASSWORD, ADMIN_USERNAME, JWT_SECRET
from core.exceptions import (
    ConfigurationError,
    InvalidCredentials,
    InvalidToken,
    TokenExpired,
    TokenMalformed,
    Unauthenticated,
)
from services.credential_gate import AdminCredentials, CredentialGate

ISSUED_AT = datetime(2024, 7, 20, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _gate(clock=None, secret=JWT_SECRET) -> CredentialGate:
    kwargs = {"clock": clock} if clock else {}
    return CredentialGate(
        AdminCredentials.from_config(ADMIN_USERNAME, ADMIN_PASSWORD), secret=secret, **kwargs
    )


def test_login_issues_verifiable_token():
    gate = _gate()
    issued = gate.login(ADMIN_USERNAME, ADMIN_PASSWORD)

    assert issued.expires_in == "24h"
    claims = gate.verify(issued.token)
    assert claims.username == ADMIN_USERNAME
    assert claims.expires_at - claims.issued_at == timedelta(hours=24)


@pytest.mark.parametrize("username,password", [
    (ADMIN_USERNAME, "wrong"),
    ("someone", ADMIN_PASSWORD),
    ("", ""),
    (None, None),
    (5, ADMIN_PASSWORD),
    (ADMIN_USERNAME, 123456),
    (["admin"], {"p": 1}),
])
def test_login_rejects_bad_credentials(username, password):
    with pytest.raises(InvalidCredentials):
        _gate().login(username, password)


def test_prehashed_password_is_kept():
    credentials = AdminCredentials.from_config(ADMIN_USERNAME, ADMIN_PASSWORD)
    again = AdminCredentials.from_config(ADMIN_USERNAME, credentials.password_hash)

    assert again.password_hash == credentials.password_hash
    gate = CredentialGate(again, secret=JWT_SECRET)
    assert gate.check_credentials(ADMIN_USERNAME, ADMIN_PASSWORD)


@pytest.mark.parametrize("token", [None, ""])
def test_verify_without_token(token):
    with pytest.raises(Unauthenticated):
        _gate().verify(token)


def test_verify_rejects_expired_token_with_valid_signature():
    clock = FakeClock(ISSUED_AT)
    gate = _gate(clock)
    token = gate.login(ADMIN_USERNAME, ADMIN_PASSWORD).token

    clock.now = ISSUED_AT + timedelta(hours=23, minutes=59)
    assert gate.verify(token).username == ADMIN_USERNAME

    clock.now = ISSUED_AT + timedelta(hours=24)
    with pytest.raises(TokenExpired):
        gate.verify(token)


@pytest.mark.parametrize("token", ["not-a-jwt", "a.b.c"])
def test_verify_rejects_garbage(token):
    with pytest.raises(TokenMalformed):
        _gate().verify(token)


def test_verify_rejects_foreign_signature():
    token = _gate(secret="another-secret-key-that-is-long-enough").login(
        ADMIN_USERNAME, ADMIN_PASSWORD
    ).token

    with pytest.raises(TokenMalformed):
        _gate().verify(token)


def test_verify_requires_username_and_expiry():
    now = int(datetime.now(timezone.utc).timestamp())
    without_username = jwt.encode({"iat": now, "exp": now + 60}, JWT_SECRET, algorithm="HS256")
    without_exp = jwt.encode({"username": "admin", "iat": now}, JWT_SECRET, algorithm="HS256")

    for token in (without_username, without_exp):
        with pytest.raises(TokenMalformed):
            _gate().verify(token)


def test_token_errors_map_to_forbidden():
    assert issubclass(TokenExpired, InvalidToken)
    assert TokenExpired.status_code == TokenMalformed.status_code == 403
    assert Unauthenticated.status_code == 401


def test_gate_requires_secret():
    with pytest.raises(ConfigurationError):
        _gate(secret="")
