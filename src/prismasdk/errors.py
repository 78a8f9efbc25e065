from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any, Optional

import httpx
from pydantic import ValidationError


class PrismaError(Exception):
    """Base error for prismasdk."""


class ConfigurationError(PrismaError):
    """A required construction parameter is missing or invalid."""

    def __init__(self, problems: str | Iterable[str]) -> None:
        self.problems = [problems] if isinstance(problems, str) else list(problems)
        super().__init__("; ".join(self.problems))


class TransportError(PrismaError):
    pass


class DecodeError(PrismaError):
    pass


class TokenExpiredError(PrismaError):
    def __init__(self, expired_at: int | None = None) -> None:
        super().__init__("Token is expired")
        self.expired_at = expired_at


class MissingClaimError(PrismaError):
    def __init__(self, claim: str) -> None:
        super().__init__("unable to get cloud account ID")
        self.claim = claim


class UnsupportedOperationError(PrismaError):
    pass


class HttpError(PrismaError):
    def __init__(self, status_code: int, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.details = details


class MetadataServiceError(HttpError):
    """A cloud instance metadata endpoint answered with a non-200 status."""


class ApiError(HttpError):
    """Structured error returned by the API as an error envelope.

    The API answers failures with a JSON array of error objects; the first
    element is surfaced here. ``str(error)`` is the description, matching what
    the API shows to humans.
    """

    def __init__(
        self,
        status_code: int,
        *,
        code: int | None = None,
        description: str = "",
        subject: str = "",
        title: str = "",
        trace: str = "",
        attribute: str = "",
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(status_code, description or title or "API error", details=details)
        self.code = code if code is not None else status_code
        self.description = description
        self.subject = subject
        self.title = title
        self.trace = trace
        self.attribute = attribute

    def __str__(self) -> str:
        return self.description or self.title or f"HTTP {self.status_code}"

    def is_forbidden_or_unauthorized(self) -> bool:
        return self.code in (401, 403)

    def is_not_found(self) -> bool:
        return self.code == 404

    @classmethod
    def from_response(cls, resp: httpx.Response) -> ApiError:
        """Build an error from a non-success response carrying an error envelope."""

        from .models.errors import ErrorEnvelope

        text = resp.text
        try:
            envelope = ErrorEnvelope.model_validate_json(text)
        except (ValidationError, ValueError):
            envelope = None
        if envelope is None or not envelope.root:
            return cls(resp.status_code, description=text.strip(), details=text or None)
        first = envelope.root[0]
        try:
            details: Any = json.loads(text)
        except ValueError:  # pragma: no cover - envelope already parsed
            details = text
        return cls(
            resp.status_code,
            code=first.code,
            description=first.description,
            subject=first.subject,
            title=first.title,
            trace=first.trace,
            attribute=first.data.attribute,
            details=details,
        )


class IssuerError(ApiError):
    """The token issuing endpoint refused an exchange."""


class NamespaceNotFoundError(ApiError):
    def __init__(self, name: str) -> None:
        super().__init__(404, code=404, description=f"Namespace {name} not found")
        self.name = name
