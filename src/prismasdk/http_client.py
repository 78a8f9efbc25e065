from __future__ import annotations

import logging
import time
from collections.abc import Callable, Collection, Iterable, Mapping, Sequence
from types import TracebackType
from typing import Any, Union

import httpx

from .errors import ApiError, HttpError, TransportError

logger = logging.getLogger(__name__)

HeaderInput = Union[Mapping[str, str], Sequence[tuple[str, str]]]
ErrorFactory = Callable[[httpx.Response], HttpError]

JSON_HEADERS = {"Accept": "application/json", "Content-Type": "application/json"}


class HttpClient:
    """Thin httpx wrapper that injects Authorization and handles errors + basic retry.

    The underlying :class:`httpx.Client` may be shared; a client passed in is
    never closed here, only one created by this wrapper is.
    """

    def __init__(
        self,
        base_url: str,
        token_getter: Callable[[], str] | None = None,
        default_headers: dict[str, str] | None = None,
        *,
        client: httpx.Client | None = None,
        timeout: float | None = 60.0,
        max_retries: int = 2,
        retry_statuses: Iterable[int] | None = None,
        backoff_factor: float = 0.5,
        error_factory: ErrorFactory = ApiError.from_response,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token_getter = token_getter
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout)
        self._default_headers = default_headers or {}
        self._max_retries = max_retries
        self._retry_statuses: set[int] = set(retry_statuses or {429, 500, 502, 503, 504})
        self._backoff_factor = backoff_factor
        self._error_factory = error_factory

    def _auth_header(self) -> dict[str, str]:
        if not self._token_getter:
            return {}
        token = self._token_getter()
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _merge_headers(self, headers: HeaderInput | None) -> httpx.Headers:
        extra = httpx.Headers(headers or {})
        auth = self._auth_header()
        overridden = {key.lower() for key in extra.keys()} | {key.lower() for key in auth}
        items = [
            (key, value)
            for key, value in self._default_headers.items()
            if key.lower() not in overridden
        ]
        items.extend(extra.multi_items())
        items.extend(auth.items())
        return httpx.Headers(items)

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
        headers: HeaderInput | None = None,
        data: bytes | str | None = None,
        content: bytes | str | None = None,
        expect: Collection[int] | None = None,
    ) -> httpx.Response:
        """Send a request and return the response.

        Without ``expect`` any status below 400 is a success; with it, only
        the listed statuses are.
        """

        if path.startswith(("http://", "https://")):
            url = path
        else:
            url = f"{self.base_url}/{path.lstrip('/')}" if path else self.base_url
        merged_headers = self._merge_headers(headers)
        attempt = 0
        while True:
            try:
                request_kwargs: dict[str, Any] = {
                    "params": params,
                    "headers": merged_headers,
                }
                if json is not None:
                    request_kwargs["json"] = json
                if content is not None:
                    request_kwargs["content"] = content
                else:
                    request_kwargs["data"] = data
                resp = self._client.request(method, url, **request_kwargs)
            except httpx.TransportError as e:
                if attempt < self._max_retries:
                    logger.debug("Transport error on %s %s, retrying: %s", method, url, e)
                    time.sleep(self._backoff_factor * (2**attempt))
                    attempt += 1
                    continue
                raise TransportError(f"{method} {url} failed: {e}") from e

            if resp.status_code in self._retry_statuses and attempt < self._max_retries:
                ra = resp.headers.get("Retry-After")
                delay = float(ra) if ra and ra.isdigit() else self._backoff_factor * (2**attempt)
                logger.debug("HTTP %s on %s %s, retrying in %ss", resp.status_code, method, url, delay)
                time.sleep(delay)
                attempt += 1
                continue

            failed = resp.status_code not in expect if expect is not None else resp.status_code >= 400
            if failed:
                logger.debug("HTTP %s on %s %s", resp.status_code, method, url)
                raise self._error_factory(resp)
            return resp

    def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("PUT", path, **kwargs)

    def patch(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("DELETE", path, **kwargs)

    def close(self) -> None:
        """Close the underlying :class:`httpx.Client` when this wrapper created it."""

        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
