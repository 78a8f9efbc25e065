"""Typed models for namespaces and configuration imports."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class NamespaceType(str, Enum):
    DEFAULT = "Default"
    TENANT = "Tenant"
    CLOUD_ACCOUNT = "CloudAccount"
    GROUP = "Group"
    KUBERNETES = "Kubernetes"


class TrafficAction(str, Enum):
    ALLOW = "Allow"
    REJECT = "Reject"
    INHERIT = "Inherit"


def _enum_or_none(enum_cls: type[Enum], value: Any) -> Any:
    if value is None or value == "" or isinstance(value, enum_cls):
        return value or None
    try:
        return enum_cls(value)
    except ValueError:
        return None


class Namespace(BaseModel):
    """A namespace as returned by ``GET /namespaces``.

    ``name`` is always the last path segment; the API reports the full path.
    Unknown type or traffic action values are dropped rather than rejected.
    """

    id: str | None = Field(default=None, alias="ID")
    name: str
    namespace_type: NamespaceType | None = Field(default=None, alias="type")
    description: str | None = None
    default_incoming_action: TrafficAction | None = Field(
        default=None, alias="defaultPUIncomingTrafficAction"
    )
    default_outgoing_action: TrafficAction | None = Field(
        default=None, alias="defaultPUOutgoingTrafficAction"
    )
    annotations: dict[str, list[str]] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("name")
    @classmethod
    def _basename(cls, value: str) -> str:
        return value.rstrip("/").split("/")[-1]

    @field_validator("namespace_type", mode="before")
    @classmethod
    def _namespace_type(cls, value: Any) -> Any:
        return _enum_or_none(NamespaceType, value)

    @field_validator("default_incoming_action", "default_outgoing_action", mode="before")
    @classmethod
    def _traffic_action(cls, value: Any) -> Any:
        return _enum_or_none(TrafficAction, value)

    @field_validator("annotations", mode="before")
    @classmethod
    def _annotations(cls, value: Any) -> Any:
        return value or {}

    def to_create_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "group": self.namespace_type.value if self.namespace_type else "",
            "defaultPUIncomingTrafficAction": (
                self.default_incoming_action.value if self.default_incoming_action else ""
            ),
            "defaultPUOutgoingTrafficAction": (
                self.default_outgoing_action.value if self.default_outgoing_action else ""
            ),
            "annotations": self.annotations,
        }


# Known importable kinds and the identity each one registers.
IMPORT_IDENTITIES = {
    "apiauthorizationpolicies": "apiauthorizationpolicy",
    "externalnetworks": "externalnetwork",
    "networkrulesetpolicies": "networkrulesetpolicy",
}


class PolicyConfigData(BaseModel):
    apiauthorizationpolicies: list[dict[str, Any]] = Field(default_factory=list)
    externalnetworks: list[dict[str, Any]] = Field(default_factory=list)
    networkrulesetpolicies: list[dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class PolicyConfig(BaseModel):
    """A labelled bundle of policy objects for ``POST /import``.

    ``identities`` always lists the identity of every non-empty known kind in
    ``data``, in addition to any given explicitly.
    """

    label: str = Field(min_length=1)
    data: PolicyConfigData = Field(default_factory=PolicyConfigData)
    identities: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="after")
    def _derive_identities(self) -> PolicyConfig:
        for kind, identity in IMPORT_IDENTITIES.items():
            if getattr(self.data, kind) and identity not in self.identities:
                self.identities.append(identity)
        return self


__all__ = [
    "IMPORT_IDENTITIES",
    "Namespace",
    "NamespaceType",
    "PolicyConfig",
    "PolicyConfigData",
    "TrafficAction",
]
