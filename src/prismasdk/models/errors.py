"""Typed models for the API error envelope."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator


class ErrorData(BaseModel):
    attribute: str = ""

    model_config = ConfigDict(extra="allow")


class ErrorDetail(BaseModel):
    """One entry of the error envelope returned on non-success answers."""

    code: int | None = None
    description: str = ""
    subject: str = ""
    title: str = ""
    trace: str = ""
    data: ErrorData = Field(default_factory=ErrorData)

    model_config = ConfigDict(extra="allow")

    @field_validator("data", mode="before")
    @classmethod
    def _data(cls, value: Any) -> Any:
        return value or {}


class ErrorEnvelope(RootModel[list[ErrorDetail]]):
    pass


__all__ = ["ErrorData", "ErrorDetail", "ErrorEnvelope"]
