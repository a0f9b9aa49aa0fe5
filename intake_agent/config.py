"""Centralized configuration for the financial application intake agent.

Secret resolution order (per variable):
  1. Environment variable / ``.env`` file  (local dev)
  2. AWS SSM Parameter Store SecureString  (when ``AWS_EXECUTION_ENV`` is set)

The SSM paths follow the convention ``/intake-agent/<VARIABLE_NAME>``.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# ── Feature flag: running on AWS? ────────────────────────────────────
_ON_AWS = bool(os.getenv("AWS_EXECUTION_ENV"))


# ── Secret resolution ────────────────────────────────────────────────

def _get_ssm_parameter(name: str) -> str | None:
    """Fetch a SecureString from SSM Parameter Store.

    Returns ``None`` if the parameter does not exist or the call fails, so
    that the caller can raise its own, clearer error.
    """
    try:
        import boto3  # noqa: PLC0415 — only needed on AWS

        ssm = boto3.client("ssm")
        resp = ssm.get_parameter(Name=f"/intake-agent/{name}", WithDecryption=True)
        return resp["Parameter"]["Value"]
    except Exception:
        logger.debug("SSM lookup for %s failed (expected locally)", name)
        return None


def _require_env(name: str) -> str:
    """Return a config value from env-var or SSM, or raise a clear error."""
    value = os.getenv(name)
    if value and not value.startswith("your_"):
        return value

    if _ON_AWS:
        ssm_value = _get_ssm_parameter(name)
        if ssm_value:
            return ssm_value

    raise OSError(
        f"Missing required configuration: {name}. "
        f"Set it in .env (local) or SSM Parameter Store /intake-agent/{name} (AWS)."
    )


def _optional_float(name: str) -> float | None:
    raw = os.getenv(name)
    return float(raw) if raw else None


# ── LLM ─────────────────────────────────────────────────────────────
ANTHROPIC_API_KEY: str = _require_env("ANTHROPIC_API_KEY")

# Conversational replies
MODEL_NAME: str = os.getenv("MODEL_NAME", "claude-sonnet-4-5")
CHAT_TEMPERATURE: float = float(os.getenv("CHAT_TEMPERATURE", "0.7"))
CHAT_MAX_TOKENS: int = int(os.getenv("CHAT_MAX_TOKENS", "300"))
# Some Claude models reject temperature and top_p together, so nucleus
# sampling is opt-in.
CHAT_TOP_P: float | None = _optional_float("CHAT_TOP_P")

# Field extraction: cheap model, low temperature
EXTRACTION_MODEL_NAME: str = os.getenv("EXTRACTION_MODEL_NAME", "claude-haiku-4-5")
EXTRACTION_TEMPERATURE: float = float(os.getenv("EXTRACTION_TEMPERATURE", "0.3"))
EXTRACTION_MAX_TOKENS: int = int(os.getenv("EXTRACTION_MAX_TOKENS", "500"))

# "llm", "pattern" or "hybrid"
EXTRACTION_STRATEGY: str = os.getenv("EXTRACTION_STRATEGY", "llm").lower()

# ── Session persistence ─────────────────────────────────────────────
# Unset -> sessions live in process memory (local dev only).
DYNAMODB_TABLE: str | None = os.getenv("DYNAMODB_TABLE") or None
SESSION_TTL_SECONDS: int = int(os.getenv("SESSION_TTL_SECONDS", str(24 * 60 * 60)))

# ── Server ──────────────────────────────────────────────────────────
SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("SERVER_PORT", "8000"))
CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
