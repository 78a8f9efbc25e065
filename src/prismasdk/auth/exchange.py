from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from ..errors import ConfigurationError, DecodeError, IssuerError, TokenExpiredError
from ..http_client import JSON_HEADERS, HttpClient
from ..models.token import ExchangeMaterial, IssuedToken, IssueRequest
from .expiry import is_expired

logger = logging.getLogger(__name__)

ISSUE_PATH = "issue"


class TokenExchanger:
    """Trade exchange material for an API token at ``<api>/issue``.

    One POST per call, never retried. A token that comes back already expired
    is an error, so callers never cache it.
    """

    def __init__(self, api: str, client: httpx.Client | None = None) -> None:
        if not api:
            raise ConfigurationError("attribute API is required")
        self.api = api.rstrip("/")
        self._http = HttpClient(
            self.api,
            default_headers=dict(JSON_HEADERS),
            client=client,
            timeout=None,
            max_retries=0,
            error_factory=IssuerError.from_response,
        )

    def exchange(self, material: ExchangeMaterial) -> IssuedToken:
        request = IssueRequest.from_material(material)
        logger.debug("Requesting token for realm %s", request.realm)
        resp = self._http.post(ISSUE_PATH, json=request.model_dump(), expect=(200,))
        try:
            issued = IssuedToken.model_validate_json(resp.text)
        except ValidationError as exc:
            raise DecodeError(f"invalid token envelope from {self.api}/{ISSUE_PATH}: {exc}") from exc
        if is_expired(issued.claims.exp):
            logger.debug("Issuer returned a token that expired at %s", issued.claims.exp)
            raise TokenExpiredError(issued.claims.exp)
        return issued

    def close(self) -> None:
        self._http.close()


__all__ = ["ISSUE_PATH", "TokenExchanger"]
