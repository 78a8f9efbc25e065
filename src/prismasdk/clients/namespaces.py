"""Client helpers for namespace management and configuration import."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from types import TracebackType
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from ..auth.base import TokenProvider
from ..errors import ApiError, ConfigurationError, DecodeError, NamespaceNotFoundError
from ..http_client import JSON_HEADERS, HttpClient
from ..models.namespace import Namespace, PolicyConfig

logger = logging.getLogger(__name__)

NAMESPACE_FIELDS = (
    "name",
    "ID",
    "defaultPUIncomingTrafficAction",
    "defaultPUOutgoingTrafficAction",
    "description",
    "annotations",
)

T = TypeVar("T")


class NamespaceClient:
    """HTTP client scoped to one namespace path of the policy API.

    The child namespaces are fetched when the client is created and kept in
    sync with changes made through this client. Changes made elsewhere are
    only seen after :meth:`sync_namespaces`.
    """

    def __init__(
        self,
        api: str,
        namespace: str,
        token_provider: TokenProvider | None,
        *,
        client: httpx.Client | None = None,
        sync: bool = True,
    ) -> None:
        problems = []
        if not api:
            problems.append("attribute API is required")
        if not namespace:
            problems.append("attribute Namespace is required")
        if token_provider is None:
            problems.append("interface TokenProvider is required")
        if problems:
            raise ConfigurationError(problems)
        assert token_provider is not None
        self.api = api.rstrip("/")
        self._namespace_path = namespace.rstrip("/")
        self.token_provider = token_provider
        self._client = client
        self.http = HttpClient(
            self.api,
            token_getter=token_provider.token,
            default_headers=dict(JSON_HEADERS),
            client=client,
        )
        self._namespaces: list[Namespace] = []
        self._lock = threading.Lock()
        if sync:
            self.sync_namespaces()

    def close(self) -> None:
        """Close the underlying HTTP transport when this client owns it."""

        self.http.close()

    def __enter__(self) -> NamespaceClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def namespace_path(self) -> str:
        return self._namespace_path

    def _scoped_headers(self, *, with_fields: bool = False) -> list[tuple[str, str]]:
        headers = [("X-Namespace", self._namespace_path)]
        if with_fields:
            headers.extend(("X-Fields", name) for name in NAMESPACE_FIELDS)
        return headers

    def _call(self, func: Callable[[], T]) -> T:
        try:
            return func()
        except ApiError as exc:
            if exc.status_code == 401:
                invalidate = getattr(self.token_provider, "invalidate", None)
                if callable(invalidate):
                    logger.debug("API rejected the token; dropping it from the cache")
                    invalidate()
            raise

    @staticmethod
    def _parse_namespace(payload: Any) -> Namespace:
        try:
            return Namespace.model_validate(payload)
        except ValidationError as exc:
            raise DecodeError(f"invalid namespace payload: {exc}") from exc

    def sync_namespaces(self) -> list[Namespace]:
        """Fetch the child namespaces of this namespace, replacing the known set."""

        resp = self._call(
            lambda: self.http.get(
                "namespaces", headers=self._scoped_headers(with_fields=True), expect=(200,)
            )
        )
        try:
            payload = resp.json()
        except ValueError as exc:
            raise DecodeError(f"invalid namespace list: {exc}") from exc
        if not isinstance(payload, list):
            raise DecodeError("invalid namespace list: expected a JSON array")
        namespaces = [self._parse_namespace(item) for item in payload]
        with self._lock:
            self._namespaces = namespaces
        logger.debug("Received %d children for namespace %s", len(namespaces), self._namespace_path)
        return list(namespaces)

    @property
    def namespaces(self) -> list[Namespace]:
        with self._lock:
            return list(self._namespaces)

    def _find(self, name: str) -> Namespace | None:
        with self._lock:
            for namespace in self._namespaces:
                if namespace.name == name:
                    return namespace
        return None

    def has_namespace(self, name: str) -> bool:
        return self._find(name) is not None

    def get_namespace(self, name: str) -> Namespace:
        namespace = self._find(name)
        if namespace is None:
            raise NamespaceNotFoundError(name)
        return namespace

    def create_namespace(self, namespace: Namespace | dict[str, Any]) -> Namespace:
        """Create a child namespace and return it with its ID.

        An already known child with the same name is returned unchanged.
        """

        if isinstance(namespace, dict):
            namespace = self._parse_namespace(namespace)
        existing = self._find(namespace.name)
        if existing is not None:
            logger.debug("Namespace %s already exists", namespace.name)
            return existing
        payload = namespace.to_create_payload()
        resp = self._call(
            lambda: self.http.post(
                "namespaces",
                json=payload,
                headers=self._scoped_headers(with_fields=True),
                expect=(200,),
            )
        )
        try:
            created = self._parse_namespace(resp.json())
        except ValueError as exc:
            raise DecodeError(f"invalid namespace payload: {exc}") from exc
        with self._lock:
            self._namespaces.append(created)
        logger.info("Namespace %s created with ID %s", created.name, created.id)
        return created

    def delete_namespace(self, name: str) -> None:
        namespace = self.get_namespace(name)
        if not namespace.id:
            raise ConfigurationError(f"namespace {name} is missing ID")
        self._call(
            lambda: self.http.delete(
                f"namespaces/{namespace.id}",
                headers=self._scoped_headers(),
                expect=(200, 204),
            )
        )
        with self._lock:
            self._namespaces = [item for item in self._namespaces if item.name != name]
        logger.info("Namespace %s deleted", name)

    def child(self, name: str) -> NamespaceClient:
        """Return a client scoped to the child namespace ``name``."""

        namespace = self.get_namespace(name)
        return NamespaceClient(
            self.api,
            f"{self._namespace_path}/{namespace.name}",
            self.token_provider,
            client=self._client,
        )

    def import_config(self, config: PolicyConfig | dict[str, Any]) -> None:
        """Import a labelled policy bundle into this namespace."""

        if isinstance(config, dict):
            try:
                config = PolicyConfig.model_validate(config)
            except ValidationError as exc:
                raise ConfigurationError(f"invalid import payload: {exc}") from exc
        body = {"data": config.model_dump(mode="json")}
        logger.debug("Importing %s into namespace %s", config.label, self._namespace_path)
        self._call(
            lambda: self.http.post(
                "import", json=body, headers=self._scoped_headers(), expect=(200, 204)
            )
        )
        logger.info("Configuration %s imported into namespace %s", config.label, self._namespace_path)

    def account_id(self) -> str:
        return self.token_provider.account_id()


__all__ = ["NAMESPACE_FIELDS", "NamespaceClient"]
