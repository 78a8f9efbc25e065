"""Provider for bearer tokens issued outside this process.

Tools such as ``apoctl`` or ``enforcerd`` already hold a complete API token.
Nothing is exchanged here: the token's own claims are decoded to learn when it
expires, and it is handed out unchanged until then. The signature is not
checked; the API does that.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
from collections.abc import Sequence

from pydantic import ValidationError

from ..errors import ConfigurationError, DecodeError, TokenExpiredError, UnsupportedOperationError
from ..models.token import ExternalClaims
from .expiry import is_expired

logger = logging.getLogger(__name__)

PRISMA_TOKEN_ENV = "PRISMA_TOKEN"
APOCTL_TOKEN_ENV = "APOCTL_TOKEN"
ENFORCERD_TOKEN_ENV = "ENFORCERD_TOKEN"

# Checked in order; the first non-empty value wins.
TOKEN_ENV_VARS = (PRISMA_TOKEN_ENV, APOCTL_TOKEN_ENV, ENFORCERD_TOKEN_ENV)


def token_from_env(env_vars: Sequence[str] = TOKEN_ENV_VARS) -> str | None:
    for name in env_vars:
        value = os.getenv(name, "").strip()
        if value:
            logger.debug("Got token from env var %s", name)
            return value
    logger.debug("Token not found in env vars %s", ", ".join(env_vars))
    return None


def decode_claims(token: str) -> ExternalClaims:
    """Decode the claim segment of a dot-separated token without verifying it."""

    parts = token.split(".")
    if len(parts) != 3:
        raise DecodeError("token is not of the form header.claims.signature")
    segment = parts[1]
    padded = segment + "=" * (-len(segment) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise DecodeError(f"token claims are not base64url: {exc}") from exc
    try:
        return ExternalClaims.model_validate_json(raw)
    except ValidationError as exc:
        raise DecodeError(f"token claims are not valid: {exc}") from exc


class ExternalTokenProvider:
    """Serve a pre-issued token until its own expiry; it cannot be refreshed."""

    def __init__(self, token: str | None = None, *, env_vars: Sequence[str] = TOKEN_ENV_VARS) -> None:
        if token:
            logger.debug("Token set in config")
        else:
            token = token_from_env(env_vars)
        if not token:
            raise ConfigurationError("token not set in config or found in env vars")
        self._token = token
        self._claims = decode_claims(token)

    @property
    def claims(self) -> ExternalClaims:
        return self._claims

    def token(self) -> str:
        if is_expired(self._claims.exp):
            raise TokenExpiredError(self._claims.exp)
        return self._token

    def account_id(self) -> str:
        raise UnsupportedOperationError("externally supplied tokens do not carry an account ID")


__all__ = [
    "APOCTL_TOKEN_ENV",
    "ENFORCERD_TOKEN_ENV",
    "ExternalTokenProvider",
    "PRISMA_TOKEN_ENV",
    "TOKEN_ENV_VARS",
    "decode_claims",
    "token_from_env",
]
