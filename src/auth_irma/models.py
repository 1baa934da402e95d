"""
Request and response models of the bridge HTTP API.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class StartAuthRequest(BaseModel):
    """Request to authenticate a user by disclosing the given attributes."""

    attributes: list[str] = Field(..., min_length=1)
    continuation: str
    attr_url: str | None = None


class StartAuthResponse(BaseModel):
    client_url: str


class SessionCompletePost(BaseModel):
    """Callback body posted by the IRMA server when a session finishes."""

    token: str


class ErrorResponse(BaseModel):
    error: str
    detail: str
