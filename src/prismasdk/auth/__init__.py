from .base import CredentialSource, StaticTokenProvider, TokenProvider
from .cache import TokenCache
from .exchange import TokenExchanger
from .expiry import is_expired
from .external import ExternalTokenProvider
from .factory import ProviderConfig, ProviderKind
from .provider import ExchangeTokenProvider
from .sources import AwsInstanceMetadataSource, GcpIdentitySource, StaticKeysSource

__all__ = [
    "AwsInstanceMetadataSource",
    "CredentialSource",
    "ExchangeTokenProvider",
    "ExternalTokenProvider",
    "GcpIdentitySource",
    "ProviderConfig",
    "ProviderKind",
    "StaticKeysSource",
    "StaticTokenProvider",
    "TokenCache",
    "TokenExchanger",
    "TokenProvider",
    "is_expired",
]
