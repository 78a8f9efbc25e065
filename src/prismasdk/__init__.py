"""Token acquisition and namespace client for the Prisma microsegmentation API."""

from __future__ import annotations

from .auth import (
    ExchangeTokenProvider,
    ExternalTokenProvider,
    ProviderConfig,
    ProviderKind,
    TokenProvider,
)
from .clients import NamespaceClient
from .errors import (
    ApiError,
    ConfigurationError,
    DecodeError,
    IssuerError,
    MissingClaimError,
    PrismaError,
    TokenExpiredError,
    TransportError,
    UnsupportedOperationError,
)

__version__ = "0.1.0"

__all__ = [
    "ApiError",
    "ConfigurationError",
    "DecodeError",
    "ExchangeTokenProvider",
    "ExternalTokenProvider",
    "IssuerError",
    "MissingClaimError",
    "NamespaceClient",
    "PrismaError",
    "ProviderConfig",
    "ProviderKind",
    "TokenExpiredError",
    "TokenProvider",
    "TransportError",
    "UnsupportedOperationError",
    "__version__",
]
