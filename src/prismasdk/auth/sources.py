"""Credential sources producing exchange material for the token issuer.

Each source covers one way a workload proves its cloud identity:

* :class:`StaticKeysSource` packages AWS keys handed to the process, typically
  the ``AWS_*`` variables the Lambda runtime injects. No network access.
* :class:`AwsInstanceMetadataSource` asks the EC2 instance metadata service
  (IMDSv2) for the temporary credentials of the instance role.
* :class:`GcpIdentitySource` asks the GCE metadata server for a signed
  identity token of the default service account.

Every call to ``obtain`` builds new material; nothing is cached here.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import ConfigurationError, DecodeError, HttpError, MetadataServiceError
from ..http_client import JSON_HEADERS, HttpClient
from ..models.token import AWS_SECURITY_TOKEN_REALM, GCP_IDENTITY_TOKEN_REALM, ExchangeMaterial

logger = logging.getLogger(__name__)

AWS_ACCESS_KEY_ID_ENV = "AWS_ACCESS_KEY_ID"
AWS_SECRET_ACCESS_KEY_ENV = "AWS_SECRET_ACCESS_KEY"
AWS_SESSION_TOKEN_ENV = "AWS_SESSION_TOKEN"

AWS_METADATA_URL = "http://169.254.169.254"
AWS_METADATA_TOKEN_PATH = "latest/api/token"
AWS_CREDENTIALS_PATH = "latest/meta-data/iam/security-credentials/"
AWS_METADATA_TOKEN_TTL_HEADER = "X-aws-ec2-metadata-token-ttl-seconds"
AWS_METADATA_TOKEN_HEADER = "X-aws-ec2-metadata-token"
AWS_METADATA_TOKEN_TTL_SECONDS = 21600

GCP_METADATA_URL = "http://metadata.google.internal/computeMetadata/v1"
GCP_IDENTITY_PATH = "instance/service-accounts/default/identity"
GCP_DEFAULT_AUDIENCE = "aporeto"

_TEXT_HEADERS = {"Accept": "application/text", "Content-Type": "application/text"}


def _metadata_error(resp: httpx.Response) -> HttpError:
    return MetadataServiceError(resp.status_code, resp.text, details=resp.text)


def _metadata_http(base_url: str, client: httpx.Client | None) -> HttpClient:
    return HttpClient(
        base_url,
        client=client,
        timeout=None,
        max_retries=0,
        error_factory=_metadata_error,
    )


def _aws_material(access_key_id: str, secret_access_key: str, session_token: str) -> ExchangeMaterial:
    return ExchangeMaterial(
        realm=AWS_SECURITY_TOKEN_REALM,
        metadata={
            "accessKeyID": access_key_id,
            "secretAccessKey": secret_access_key,
            "token": session_token,
        },
    )


class StaticKeysSource:
    """AWS access key triple supplied up front."""

    def __init__(self, access_key_id: str, secret_access_key: str, session_token: str) -> None:
        problems = []
        if not access_key_id:
            problems.append("attribute accessKeyID is required")
        if not secret_access_key:
            problems.append("attribute secretAccessKey is required")
        if not session_token:
            problems.append("attribute sessionToken is required")
        if problems:
            raise ConfigurationError(problems)
        self._access_key_id = access_key_id
        self._secret_access_key = secret_access_key
        self._session_token = session_token

    @classmethod
    def from_env(cls) -> StaticKeysSource:
        return cls(
            os.getenv(AWS_ACCESS_KEY_ID_ENV, ""),
            os.getenv(AWS_SECRET_ACCESS_KEY_ENV, ""),
            os.getenv(AWS_SESSION_TOKEN_ENV, ""),
        )

    def obtain(self) -> ExchangeMaterial:
        return _aws_material(self._access_key_id, self._secret_access_key, self._session_token)


class AwsRoleCredentials(BaseModel):
    """Temporary credential document served for the instance role."""

    code: str | None = Field(default=None, alias="Code")
    last_updated: datetime | None = Field(default=None, alias="LastUpdated")
    type: str | None = Field(default=None, alias="Type")
    access_key_id: str = Field(alias="AccessKeyId", min_length=1)
    secret_access_key: str = Field(alias="SecretAccessKey", min_length=1)
    token: str = Field(alias="Token", min_length=1)
    expiration: datetime | None = Field(default=None, alias="Expiration")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class AwsInstanceMetadataSource:
    """Temporary role credentials from the EC2 instance metadata service."""

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        base_url: str = AWS_METADATA_URL,
        token_ttl_seconds: int = AWS_METADATA_TOKEN_TTL_SECONDS,
    ) -> None:
        self._http = _metadata_http(base_url, client)
        self._token_ttl_seconds = token_ttl_seconds

    def _session_token(self) -> str:
        headers = {**_TEXT_HEADERS, AWS_METADATA_TOKEN_TTL_HEADER: str(self._token_ttl_seconds)}
        resp = self._http.put(AWS_METADATA_TOKEN_PATH, headers=headers, expect=(200,))
        return resp.text.strip()

    def _role_name(self, session_token: str) -> str:
        headers = {**_TEXT_HEADERS, AWS_METADATA_TOKEN_HEADER: session_token}
        resp = self._http.get(AWS_CREDENTIALS_PATH, headers=headers, expect=(200,))
        lines = resp.text.strip().splitlines()
        if not lines or not lines[0].strip():
            raise DecodeError("instance metadata service reported no IAM role")
        return lines[0].strip()

    def role_credentials(self) -> AwsRoleCredentials:
        session_token = self._session_token()
        role = self._role_name(session_token)
        logger.debug("Fetching temporary credentials for role %s", role)
        headers = {**JSON_HEADERS, AWS_METADATA_TOKEN_HEADER: session_token}
        resp = self._http.get(f"{AWS_CREDENTIALS_PATH}{role}", headers=headers, expect=(200,))
        try:
            return AwsRoleCredentials.model_validate_json(resp.text)
        except ValidationError as exc:
            raise DecodeError(f"invalid credential document for role {role}: {exc}") from exc

    def obtain(self) -> ExchangeMaterial:
        creds = self.role_credentials()
        return _aws_material(creds.access_key_id, creds.secret_access_key, creds.token)

    def close(self) -> None:
        self._http.close()


class GcpIdentitySource:
    """Signed identity token of the default service account on GCE."""

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        base_url: str = GCP_METADATA_URL,
        audience: str = GCP_DEFAULT_AUDIENCE,
    ) -> None:
        if not audience:
            raise ConfigurationError("attribute audience is required")
        self._http = _metadata_http(base_url, client)
        self._audience = audience

    def identity_token(self) -> str:
        resp = self._http.get(
            GCP_IDENTITY_PATH,
            params={"audience": self._audience, "format": "full"},
            headers={"Metadata-Flavor": "Google"},
            expect=(200,),
        )
        token = resp.text.strip()
        if not token:
            raise DecodeError("metadata server returned an empty identity token")
        return token

    def obtain(self) -> ExchangeMaterial:
        return ExchangeMaterial(realm=GCP_IDENTITY_TOKEN_REALM, metadata={"token": self.identity_token()})

    def close(self) -> None:
        self._http.close()


__all__ = [
    "AwsInstanceMetadataSource",
    "AwsRoleCredentials",
    "GcpIdentitySource",
    "StaticKeysSource",
]
