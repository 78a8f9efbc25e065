"""Typed models for token exchange requests and issued tokens."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

AWS_SECURITY_TOKEN_REALM = "AWSSecurityToken"
GCP_IDENTITY_TOKEN_REALM = "GCPIdentityToken"

# Fixed exchange parameters, never set per call.
TOKEN_VALIDITY = "12h"
TOKEN_QUOTA = 0


@dataclass(frozen=True)
class ExchangeMaterial:
    """Provider-specific payload identifying the caller to the issuer."""

    realm: str
    metadata: dict[str, str] = field(default_factory=dict)

    def __repr__(self) -> str:
        # Metadata holds secrets; only the keys are safe to show.
        return f"ExchangeMaterial(realm={self.realm!r}, metadata_keys={sorted(self.metadata)!r})"


class IssueRequest(BaseModel):
    realm: str
    validity: str = TOKEN_VALIDITY
    quota: int = TOKEN_QUOTA
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_material(cls, material: ExchangeMaterial) -> IssueRequest:
        return cls(realm=material.realm, metadata=dict(material.metadata))


class TokenClaimsData(BaseModel):
    """Provider-specific identity attributes embedded by the issuer."""

    account: str = ""
    arn: str = ""
    organization: str = ""
    partition: str = ""
    realm: str = ""
    resource: str = ""
    resourcetype: str = ""
    rolename: str = ""
    rolesessionname: str = ""
    service: str = ""
    subject: str = ""
    userid: str = ""
    email: str = ""
    instancename: str = ""
    projectid: str = ""
    projectnumber: str = ""
    zone: str = ""

    model_config = ConfigDict(extra="allow", frozen=True)

    def get(self, name: str) -> str:
        """Return claim ``name`` as a string, or ``""`` when absent."""

        value = getattr(self, name, None)
        if value is None and self.model_extra:
            value = self.model_extra.get(name)
        return value if isinstance(value, str) else ""


class TokenClaims(BaseModel):
    iss: str = ""
    sub: str = ""
    exp: int
    iat: int = 0
    realm: str = ""
    data: TokenClaimsData = Field(default_factory=TokenClaimsData)
    restrictions: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore", frozen=True)


class IssuedToken(BaseModel):
    """Result of a successful exchange: the bearer string and its decoded claims."""

    token: str = Field(min_length=1)
    claims: TokenClaims
    audience: str | None = None
    realm: str | None = None
    validity: str | None = None
    quota: int | None = None

    model_config = ConfigDict(extra="ignore", frozen=True)

    @property
    def expires_at(self) -> int:
        return self.claims.exp


class ExternalClaimsData(BaseModel):
    common_name: str = Field(default="", alias="commonName")
    organization: str = ""
    realm: str = ""
    serial_number: str = Field(default="", alias="serialNumber")
    subject: str = ""

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)


class ExternalClaims(BaseModel):
    """Claim set carried inside an externally issued bearer token."""

    realm: str = ""
    exp: int
    iat: int = 0
    iss: str = ""
    sub: str = ""
    data: ExternalClaimsData = Field(default_factory=ExternalClaimsData)
    restrictions: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore", frozen=True)


__all__ = [
    "AWS_SECURITY_TOKEN_REALM",
    "ExchangeMaterial",
    "ExternalClaims",
    "ExternalClaimsData",
    "GCP_IDENTITY_TOKEN_REALM",
    "IssueRequest",
    "IssuedToken",
    "TOKEN_QUOTA",
    "TOKEN_VALIDITY",
    "TokenClaims",
    "TokenClaimsData",
]
