"""Pydantic models for W3C WebDriver responses."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field


class NewSession(BaseModel):
    """Value of a successful New Session response."""

    session_id: str = Field(alias="sessionId")
    capabilities: Mapping[str, Any] = Field(default_factory=dict)


class NewSessionResponse(BaseModel):
    """Response from the New Session command."""

    value: NewSession


class CommandResponse(BaseModel):
    """Response from any command that returns a plain value."""

    value: Any = None


class WebDriverFailure(BaseModel):
    """Error details from a failed command."""

    error: str
    message: str = ""


class ErrorResponse(BaseModel):
    """Response body of a failed command."""

    value: WebDriverFailure
