from __future__ import annotations

import logging
import threading

from ..errors import MissingClaimError
from ..models.token import IssuedToken
from .base import CredentialSource
from .cache import TokenCache
from .exchange import TokenExchanger

logger = logging.getLogger(__name__)

AWS_ACCOUNT_CLAIM = "organization"
GCP_ACCOUNT_CLAIM = "projectnumber"


class ExchangeTokenProvider:
    """Token provider that exchanges cloud credentials for API tokens.

    The cached token is served until its ``exp`` passes; then credentials are
    obtained again and exchanged for a new token. The check and the whole
    refresh run under one lock per instance, so concurrent callers racing on a
    stale cache cause a single exchange. A failed refresh leaves the cache
    empty and the next call starts over; there is no retry here.
    """

    def __init__(
        self,
        source: CredentialSource,
        exchanger: TokenExchanger,
        *,
        account_claim: str = AWS_ACCOUNT_CLAIM,
    ) -> None:
        self._source = source
        self._exchanger = exchanger
        self._account_claim = account_claim
        self._cache = TokenCache()
        self._lock = threading.Lock()

    @property
    def account_claim(self) -> str:
        return self._account_claim

    @property
    def cached_token(self) -> IssuedToken | None:
        with self._lock:
            return self._cache.current

    def _ensure_token(self) -> IssuedToken:
        with self._lock:
            if self._cache.is_valid():
                logger.debug("Token in cache is valid")
                return self._cache.current  # type: ignore[return-value]
            if self._cache.current is None:
                logger.debug("No token in cache; fetching")
            else:
                logger.debug("Token in cache is expired; fetching a new one")
                self._cache.clear()
            material = self._source.obtain()
            issued = self._exchanger.exchange(material)
            self._cache.replace(issued)
            logger.info("Obtained token for realm %s valid until %s", material.realm, issued.claims.exp)
            return issued

    def token(self) -> str:
        return self._ensure_token().token

    def account_id(self) -> str:
        issued = self._ensure_token()
        result = issued.claims.data.get(self._account_claim)
        if not result:
            raise MissingClaimError(self._account_claim)
        return result

    def invalidate(self) -> None:
        """Drop the cached token so the next call performs a fresh exchange."""

        with self._lock:
            self._cache.clear()

    def close(self) -> None:
        """Release the HTTP clients owned by the exchanger and the credential source."""

        self._exchanger.close()
        close_source = getattr(self._source, "close", None)
        if callable(close_source):
            close_source()

    def __enter__(self) -> ExchangeTokenProvider:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["AWS_ACCOUNT_CLAIM", "ExchangeTokenProvider", "GCP_ACCOUNT_CLAIM"]
