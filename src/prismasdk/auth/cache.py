from __future__ import annotations

from ..models.token import IssuedToken
from .expiry import is_expired


class TokenCache:
    """Single-slot holder for the most recently issued token.

    Not synchronized; the owning provider holds its lock around every call.
    """

    def __init__(self) -> None:
        self._token: IssuedToken | None = None

    @property
    def current(self) -> IssuedToken | None:
        return self._token

    def is_valid(self) -> bool:
        if self._token is None:
            return False
        return not is_expired(self._token.claims.exp)

    def replace(self, token: IssuedToken) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None
