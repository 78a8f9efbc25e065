from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

import httpx

from ..errors import ConfigurationError
from .base import TokenProvider
from .exchange import TokenExchanger
from .external import ExternalTokenProvider
from .provider import AWS_ACCOUNT_CLAIM, GCP_ACCOUNT_CLAIM, ExchangeTokenProvider
from .sources import (
    AWS_ACCESS_KEY_ID_ENV,
    AWS_SECRET_ACCESS_KEY_ENV,
    AWS_SESSION_TOKEN_ENV,
    AwsInstanceMetadataSource,
    GcpIdentitySource,
    StaticKeysSource,
)

if TYPE_CHECKING:
    from ..clients.namespaces import NamespaceClient

logger = logging.getLogger(__name__)

API_ENV = "PRISMA_API"
NAMESPACE_ENV = "PRISMA_NAMESPACE"
PROVIDER_ENV = "PRISMA_PROVIDER"


class ProviderKind(str, Enum):
    AWS = "aws"
    AWS_METADATA = "aws-metadata"
    GCP = "gcp"
    TOKEN = "token"  # nosec B105 - provider name, not a credential


@dataclass
class ProviderConfig:
    """Everything needed to build a token provider and its API client.

    Providers and clients built from one config share a single
    :class:`httpx.Client`, created on first use unless one is supplied.
    """

    api: str = ""
    namespace: str = ""
    provider: ProviderKind | str = ProviderKind.AWS
    access_key_id: str | None = None
    secret_access_key: str | None = field(default=None, repr=False)
    session_token: str | None = field(default=None, repr=False)
    token: str | None = field(default=None, repr=False)
    audience: str | None = None
    timeout: float | None = None
    http_client: httpx.Client | None = field(default=None, repr=False)
    _client_lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not isinstance(self.provider, ProviderKind):
            try:
                self.provider = ProviderKind(self.provider)
            except ValueError as exc:
                choices = ", ".join(kind.value for kind in ProviderKind)
                raise ConfigurationError(
                    f"unknown provider {self.provider!r}; expected one of {choices}"
                ) from exc

    @classmethod
    def from_env(cls) -> ProviderConfig:
        return cls(
            api=os.getenv(API_ENV, ""),
            namespace=os.getenv(NAMESPACE_ENV, ""),
            provider=os.getenv(PROVIDER_ENV) or ProviderKind.AWS,
            access_key_id=os.getenv(AWS_ACCESS_KEY_ID_ENV),
            secret_access_key=os.getenv(AWS_SECRET_ACCESS_KEY_ENV),
            session_token=os.getenv(AWS_SESSION_TOKEN_ENV),
        )

    def get_http_client(self) -> httpx.Client:
        with self._client_lock:
            if self.http_client is None:
                self.http_client = httpx.Client(timeout=self.timeout)
                logger.debug("HTTP client created new")
            return self.http_client

    def build_token_provider(self) -> TokenProvider:
        if self.provider is ProviderKind.TOKEN:
            return external_token_provider(self)
        if self.provider is ProviderKind.AWS_METADATA:
            return aws_metadata_provider(self)
        if self.provider is ProviderKind.GCP:
            return gcp_provider(self)
        return aws_static_provider(self)

    def build_namespace_client(self, *, sync: bool = True) -> NamespaceClient:
        from ..clients.namespaces import NamespaceClient

        return NamespaceClient(
            self.api,
            self.namespace,
            self.build_token_provider(),
            client=self.get_http_client(),
            sync=sync,
        )


def _exchanger(config: ProviderConfig) -> TokenExchanger:
    return TokenExchanger(config.api, client=config.get_http_client())


def aws_static_provider(config: ProviderConfig) -> ExchangeTokenProvider:
    problems = [] if config.api else ["attribute API is required"]
    try:
        source = StaticKeysSource(
            config.access_key_id or "",
            config.secret_access_key or "",
            config.session_token or "",
        )
    except ConfigurationError as exc:
        raise ConfigurationError(problems + exc.problems) from None
    if problems:
        raise ConfigurationError(problems)
    return ExchangeTokenProvider(source, _exchanger(config), account_claim=AWS_ACCOUNT_CLAIM)


def aws_metadata_provider(config: ProviderConfig) -> ExchangeTokenProvider:
    exchanger = _exchanger(config)
    source = AwsInstanceMetadataSource(config.get_http_client())
    return ExchangeTokenProvider(source, exchanger, account_claim=AWS_ACCOUNT_CLAIM)


def gcp_provider(config: ProviderConfig) -> ExchangeTokenProvider:
    exchanger = _exchanger(config)
    if config.audience:
        source = GcpIdentitySource(config.get_http_client(), audience=config.audience)
    else:
        source = GcpIdentitySource(config.get_http_client())
    return ExchangeTokenProvider(source, exchanger, account_claim=GCP_ACCOUNT_CLAIM)


def external_token_provider(config: ProviderConfig) -> ExternalTokenProvider:
    return ExternalTokenProvider(config.token)


__all__ = [
    "API_ENV",
    "NAMESPACE_ENV",
    "PROVIDER_ENV",
    "ProviderConfig",
    "ProviderKind",
    "aws_metadata_provider",
    "aws_static_provider",
    "external_token_provider",
    "gcp_provider",
]
