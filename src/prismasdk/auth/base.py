from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..errors import UnsupportedOperationError
from ..models.token import ExchangeMaterial


@runtime_checkable
class TokenProvider(Protocol):
    def token(self) -> str:
        """Return a bearer token string for ``Authorization: Bearer``."""
        ...

    def account_id(self) -> str:
        """Return the cloud account identifier the token was issued for."""
        ...


class CredentialSource(Protocol):
    def obtain(self) -> ExchangeMaterial:
        """Produce fresh exchange material for one exchange attempt."""
        ...


class StaticTokenProvider:
    """Provider returning a fixed bearer token, mostly for tests and scripts."""

    def __init__(self, token: str, account_id: str | None = None) -> None:
        self._token = token
        self._account_id = account_id

    def token(self) -> str:
        return self._token

    def account_id(self) -> str:
        if not self._account_id:
            raise UnsupportedOperationError("static token provider has no account ID")
        return self._account_id


__all__ = ["CredentialSource", "StaticTokenProvider", "TokenProvider"]
