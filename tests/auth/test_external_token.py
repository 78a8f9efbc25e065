from __future__ import annotations

import time

import pytest

from prismasdk.auth.external import ExternalTokenProvider, decode_claims, token_from_env
from prismasdk.errors import (
    ConfigurationError,
    DecodeError,
    TokenExpiredError,
    UnsupportedOperationError,
)


def test_valid_token_from_env(monkeypatch, make_jwt) -> None:
    token = make_jwt(
        {
            "realm": "certificate",
            "exp": int(time.time()) + 600,
            "iss": "https://api.test",
            "data": {"commonName": "enforcer", "serialNumber": "42"},
        }
    )
    monkeypatch.setenv("PRISMA_TOKEN", token)

    provider = ExternalTokenProvider()

    assert provider.token() == token
    assert provider.claims.data.common_name == "enforcer"
    assert provider.claims.data.serial_number == "42"


def test_expired_token_is_terminal(monkeypatch, make_jwt) -> None:
    monkeypatch.setenv("PRISMA_TOKEN", make_jwt({"exp": int(time.time()) - 1}))
    provider = ExternalTokenProvider()

    with pytest.raises(TokenExpiredError):
        provider.token()
    with pytest.raises(TokenExpiredError):
        provider.token()


def test_account_id_is_unsupported(make_jwt) -> None:
    provider = ExternalTokenProvider(make_jwt({"exp": int(time.time()) + 600}))

    with pytest.raises(UnsupportedOperationError):
        provider.account_id()


def test_env_priority(monkeypatch) -> None:
    monkeypatch.setenv("APOCTL_TOKEN", "apoctl")
    monkeypatch.setenv("ENFORCERD_TOKEN", "enforcerd")
    assert token_from_env() == "apoctl"

    monkeypatch.setenv("PRISMA_TOKEN", "prisma")
    assert token_from_env() == "prisma"

    monkeypatch.setenv("PRISMA_TOKEN", "  ")
    assert token_from_env() == "apoctl"


def test_explicit_token_wins_over_env(monkeypatch, make_jwt) -> None:
    monkeypatch.setenv("PRISMA_TOKEN", "not-a-jwt")
    token = make_jwt({"exp": int(time.time()) + 600})

    assert ExternalTokenProvider(token).token() == token


def test_missing_token() -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        ExternalTokenProvider()

    assert "token not set" in str(exc_info.value)


@pytest.mark.parametrize("token", ["abc", "a.b", "a.!!!.c", "a.bm90IGpzb24.c"])
def test_malformed_tokens(token: str) -> None:
    with pytest.raises(DecodeError):
        decode_claims(token)


def test_claims_without_padding(make_jwt) -> None:
    claims = decode_claims(make_jwt({"exp": 1, "sub": "x"}))

    assert claims.exp == 1
    assert claims.sub == "x"
