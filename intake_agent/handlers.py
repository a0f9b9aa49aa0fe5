"""Request handlers for the intake chat API.

Each handler is a plain function that receives its collaborators (session
store, language models) explicitly, loads whatever state it needs, does its
work and persists the result.  Nothing is kept between calls, so the same
functions back the FastAPI routes and the terminal chat loop.

Send-message flow::

    load session → rehydrate agent → extract fields (failures swallowed)
      → conversational reply → advance section? → save → respond
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import uuid
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage

from intake_agent.agent import ApplicationAgent
from intake_agent.errors import BadRequestError, SessionNotFoundError
from intake_agent.extraction import LLMExtractor, run_extraction
from intake_agent.prompts import WELCOME_MESSAGE
from intake_agent.sections import Section
from intake_agent.services.llm_client import classify_upstream_error, complete
from intake_agent.services.session_store import KEY_ATTRIBUTE, SessionStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def _new_session(store: SessionStore) -> dict[str, Any]:
    session_id = str(uuid.uuid4())
    agent = ApplicationAgent()
    store.save(session_id, agent)
    logger.info("Created session %s", session_id)
    return {
        "sessionId": session_id,
        "message": WELCOME_MESSAGE,
        "collectedData": agent.collected_data,
        "currentSection": agent.current_section.value,
        "completionPercentage": agent.get_completion_percentage(),
    }


def _load_session(store: SessionStore, session_id: str | None) -> dict[str, Any]:
    if not session_id:
        raise BadRequestError("Missing sessionId")
    record = store.get(session_id)
    if record is None:
        raise SessionNotFoundError()
    return record


def initialize_session(store: SessionStore) -> dict[str, Any]:
    """Create a session with an empty application and return the greeting."""
    return _new_session(store)


def send_message(
    store: SessionStore,
    chat_llm,
    session_id: str | None,
    message: str | None,
    *,
    extractor: LLMExtractor | None = None,
    strategy: str = "llm",
) -> dict[str, Any]:
    """Process one user message and return the next conversational turn.

    Raises ``BadRequestError`` for missing input, ``SessionNotFoundError``
    for an unknown session and an ``UpstreamError`` subclass when the
    conversational reply cannot be produced.  Extraction problems never
    surface.
    """
    if not session_id or not message or not message.strip():
        raise BadRequestError("Missing sessionId or message")

    record = _load_session(store, session_id)
    agent = ApplicationAgent.from_record(record)

    run_extraction(agent, message, strategy=strategy, extractor=extractor)

    # Only the fresh system prompt and the latest message are sent; no
    # earlier turns are replayed.
    messages = [
        SystemMessage(content=agent.get_system_prompt()),
        HumanMessage(content=message),
    ]
    try:
        reply = complete(chat_llm, messages, operation="chat_reply")
    except Exception as exc:
        logger.error("Chat completion failed for session %s: %s", session_id, exc)
        raise classify_upstream_error(exc) from exc

    section_complete = False
    application_complete = False
    if agent.is_current_section_complete() and agent.current_section is not Section.FAMILY:
        finished = agent.current_section
        section_complete = agent.move_to_next_section()
        logger.info(
            "Session %s finished section %s, now on %s",
            session_id, finished.value, agent.current_section.value,
        )
    if agent.is_application_complete():
        application_complete = True
        logger.info("Session %s completed the application", session_id)

    store.save(session_id, agent, expected_version=record.get("version"))

    response: dict[str, Any] = {
        "sessionId": session_id,
        "message": reply,
        "collectedData": agent.collected_data,
        "currentSection": agent.current_section.value,
        "completionPercentage": agent.get_completion_percentage(),
        "sectionComplete": section_complete,
        "applicationComplete": application_complete,
    }
    if application_complete:
        response["summary"] = agent.get_summary()
    return response


def get_session_state(store: SessionStore, session_id: str | None) -> dict[str, Any]:
    """Current collected data for a session."""
    record = _load_session(store, session_id)
    agent = ApplicationAgent.from_record(record)
    return {
        "sessionId": session_id,
        "collectedData": agent.collected_data,
        "currentSection": agent.current_section.value,
        "completionPercentage": agent.get_completion_percentage(),
        "updatedAt": record.get("updatedAt"),
    }


def reset_session(store: SessionStore, session_id: str | None) -> dict[str, Any]:
    """Discard a session and start over under a new session id."""
    _load_session(store, session_id)
    store.delete(session_id)
    logger.info("Deleted session %s for reset", session_id)
    return _new_session(store)


# ── Listing ──────────────────────────────────────────────────────────


def encode_page_token(key: dict[str, Any] | None) -> str | None:
    if not key:
        return None
    return base64.b64encode(json.dumps(key).encode("utf-8")).decode("ascii")


def decode_page_token(token: str | None) -> dict[str, Any] | None:
    if not token:
        return None
    try:
        key = json.loads(base64.b64decode(token, validate=True))
    except (binascii.Error, ValueError) as exc:
        raise BadRequestError("Invalid exclusiveStartKey") from exc
    if (
        not isinstance(key, dict)
        or set(key) != {KEY_ATTRIBUTE}
        or not isinstance(key[KEY_ATTRIBUTE], str)
    ):
        raise BadRequestError("Invalid exclusiveStartKey")
    return key


def list_sessions(
    store: SessionStore,
    limit: int | None = None,
    exclusive_start_key: str | None = None,
) -> dict[str, Any]:
    """One page of stored sessions with an opaque continuation token."""
    limit = DEFAULT_PAGE_SIZE if limit is None else max(1, min(limit, MAX_PAGE_SIZE))
    items, last_key = store.list(limit, decode_page_token(exclusive_start_key))
    return {
        "sessions": items,
        "nextToken": encode_page_token(last_key),
        "count": len(items),
        "limit": limit,
    }
