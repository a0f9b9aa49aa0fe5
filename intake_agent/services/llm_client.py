"""Language-model access for the intake agent.

Two Claude models are used per user message:

* the **chat** model writes the conversational reply, and
* the **extraction** model turns the message into JSON field values.

Both are plain ``ChatAnthropic`` instances without tools; this module only
builds them, runs one completion with metrics around it, and translates
provider errors into the API's error taxonomy.  There is no retry layer.
"""

from __future__ import annotations

import logging

import anthropic
from langchain_anthropic import ChatAnthropic
from langchain_core.messages import BaseMessage

from intake_agent.config import (
    ANTHROPIC_API_KEY,
    CHAT_MAX_TOKENS,
    CHAT_TEMPERATURE,
    CHAT_TOP_P,
    EXTRACTION_MAX_TOKENS,
    EXTRACTION_MODEL_NAME,
    EXTRACTION_TEMPERATURE,
    MODEL_NAME,
)
from intake_agent.errors import UpstreamAuthError, UpstreamError, UpstreamRateLimitError
from intake_agent.services.metrics import metrics

logger = logging.getLogger(__name__)


# ── LLM builders ────────────────────────────────────────────────────


def build_chat_llm() -> ChatAnthropic:
    """Build the model that writes the conversational reply."""
    kwargs = {}
    if CHAT_TOP_P is not None:
        kwargs["top_p"] = CHAT_TOP_P
    return ChatAnthropic(
        model=MODEL_NAME,
        api_key=ANTHROPIC_API_KEY,
        temperature=CHAT_TEMPERATURE,
        max_tokens=CHAT_MAX_TOKENS,
        **kwargs,
    )


def build_extraction_llm() -> ChatAnthropic:
    """Build the low-temperature model used for JSON field extraction."""
    return ChatAnthropic(
        model=EXTRACTION_MODEL_NAME,
        api_key=ANTHROPIC_API_KEY,
        temperature=EXTRACTION_TEMPERATURE,
        max_tokens=EXTRACTION_MAX_TOKENS,
    )


# ── Completion ──────────────────────────────────────────────────────


def _content_text(content) -> str:
    """Flatten an AIMessage ``content`` (string or list of blocks) to text."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def complete(llm, messages: list[BaseMessage], operation: str) -> str:
    """Run one completion and return its text.

    Provider errors propagate unchanged; callers decide whether to swallow
    them (extraction) or translate them (conversational reply).
    """
    with metrics.timed("llm", operation):
        response = llm.invoke(messages)
    text = _content_text(getattr(response, "content", response))
    logger.debug("LLM %s returned %d chars", operation, len(text))
    return text


# ── Error classification ────────────────────────────────────────────


def classify_upstream_error(exc: Exception) -> UpstreamError:
    """Map a provider exception onto the API's upstream error types."""
    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    if isinstance(exc, anthropic.AuthenticationError) or status == 401:
        return UpstreamAuthError()
    if isinstance(exc, anthropic.RateLimitError) or status == 429:
        return UpstreamRateLimitError()
    return UpstreamError()
