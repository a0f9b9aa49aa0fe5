"""FastAPI route definitions for the intake chat API."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Query, Request

from intake_agent import handlers
from intake_agent.api.schemas import (
    HealthResponse,
    InitializeResponse,
    SendMessageRequest,
    SendMessageResponse,
    SessionListResponse,
    SessionStateResponse,
)
from intake_agent.config import EXTRACTION_STRATEGY
from intake_agent.errors import IntakeError

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_resources(request: Request):
    """Retrieve the session store and LLM clients from app state.

    They are created once during the FastAPI lifespan (see ``server.py``).
    """
    state = request.app.state
    store = getattr(state, "store", None)
    if store is None:
        raise HTTPException(
            status_code=503,
            detail="The service is still starting up. Please try again in a moment.",
        )
    return store, getattr(state, "chat_llm", None), getattr(state, "extractor", None)


async def _run(http_request: Request, failure_message: str, fn, *args, **kwargs):
    """Run a blocking handler in a worker thread and normalise failures.

    ``IntakeError``s pass through to the app's error handler; anything else
    is logged with its traceback and reported without internal details.
    """
    request_id = getattr(http_request.state, "request_id", "?")
    try:
        return await asyncio.to_thread(fn, *args, **kwargs)
    except (IntakeError, HTTPException):
        raise
    except Exception as e:
        logger.exception("[%s] %s", request_id, failure_message)
        raise HTTPException(status_code=500, detail=failure_message) from e


# ── Endpoints ────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse()


@router.post("/chat/initialize", response_model=InitializeResponse)
async def initialize_chat(http_request: Request):
    """Start a new application session."""
    store, _, _ = _get_resources(http_request)
    return await _run(
        http_request, "Failed to initialize chat session",
        handlers.initialize_session, store,
    )


@router.post("/chat/send", response_model=SendMessageResponse)
async def send_message(request: SendMessageRequest, http_request: Request):
    """Send one applicant message and get the agent's reply.

    Extraction and the reply are two blocking model calls, so the whole
    handler runs in a worker thread to keep the event loop free.
    """
    store, chat_llm, extractor = _get_resources(http_request)
    return await _run(
        http_request, "Failed to process your request",
        handlers.send_message, store, chat_llm, request.session_id, request.message,
        extractor=extractor, strategy=EXTRACTION_STRATEGY,
    )


@router.get("/chat/state/{session_id}", response_model=SessionStateResponse)
async def get_state(session_id: str, http_request: Request):
    """Return the collected data for a session."""
    store, _, _ = _get_resources(http_request)
    return await _run(
        http_request, "Failed to fetch session state",
        handlers.get_session_state, store, session_id,
    )


@router.post("/chat/reset/{session_id}", response_model=InitializeResponse)
async def reset_chat(session_id: str, http_request: Request):
    """Delete a session and start a fresh one under a new id."""
    store, _, _ = _get_resources(http_request)
    return await _run(
        http_request, "Failed to reset chat session",
        handlers.reset_session, store, session_id,
    )


@router.get("/chat/sessions", response_model=SessionListResponse)
async def list_sessions(
    http_request: Request,
    limit: int | None = Query(None),
    exclusive_start_key: str | None = Query(None, alias="exclusiveStartKey"),
):
    """Page through stored sessions."""
    store, _, _ = _get_resources(http_request)
    return await _run(
        http_request, "Failed to list sessions",
        handlers.list_sessions, store, limit, exclusive_start_key,
    )
