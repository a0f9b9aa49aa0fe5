"""Pydantic schemas for the FastAPI endpoints.

The wire format is camelCase (``sessionId``, ``collectedData``…) to match
the chat front-end; Python attributes stay snake_case.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SendMessageRequest(CamelModel):
    """Incoming chat message from the frontend.

    Both fields are optional at the schema level so that a missing value is
    reported as a 400 by the handler rather than a 422.
    """

    session_id: str | None = Field(None, max_length=100, description="Session identifier")
    message: str | None = Field(None, max_length=2000, description="The user's message")


class SessionSnapshot(CamelModel):
    """Fields shared by every response that describes a session."""

    collected_data: dict[str, dict[str, Any]]
    current_section: str
    completion_percentage: int


class InitializeResponse(SessionSnapshot):
    """Returned by initialize and reset."""

    session_id: str
    message: str


class SendMessageResponse(SessionSnapshot):
    session_id: str
    message: str = Field(..., description="The agent's reply")
    section_complete: bool = False
    application_complete: bool = False
    summary: str | None = None


class SessionStateResponse(SessionSnapshot):
    session_id: str
    updated_at: int | None = None


class SessionListResponse(CamelModel):
    sessions: list[dict[str, Any]]
    next_token: str | None = None
    count: int
    limit: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    service: str = "intake-agent"
