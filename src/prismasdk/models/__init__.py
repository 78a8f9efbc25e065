"""Re-export typed models for the prismasdk SDK."""

from __future__ import annotations

from .errors import ErrorData, ErrorDetail, ErrorEnvelope
from .namespace import Namespace, NamespaceType, PolicyConfig, PolicyConfigData, TrafficAction
from .token import (
    ExchangeMaterial,
    ExternalClaims,
    IssuedToken,
    IssueRequest,
    TokenClaims,
    TokenClaimsData,
)

__all__ = [
    "ErrorData",
    "ErrorDetail",
    "ErrorEnvelope",
    "ExchangeMaterial",
    "ExternalClaims",
    "IssueRequest",
    "IssuedToken",
    "Namespace",
    "NamespaceType",
    "PolicyConfig",
    "PolicyConfigData",
    "TokenClaims",
    "TokenClaimsData",
    "TrafficAction",
]
