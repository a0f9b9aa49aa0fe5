"""Shared test fixtures for the intake agent test suite."""

from __future__ import annotations

import os
from unittest.mock import MagicMock

import pytest


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    This runs before any imports, so config.py won't fail on module load.
    """
    os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key-123")
    os.environ.pop("DYNAMODB_TABLE", None)
    os.environ["METRICS_ENABLED"] = "false"


@pytest.fixture
def store():
    """A fresh in-memory session store."""
    from intake_agent.services.session_store import InMemorySessionStore

    return InMemorySessionStore()


@pytest.fixture
def make_llm():
    """Factory for a mock chat model that answers with fixed text."""
    from langchain_core.messages import AIMessage

    def _make(content: str = "Thanks! What is your email address?"):
        llm = MagicMock()
        llm.invoke.return_value = AIMessage(content=content)
        return llm

    return _make


@pytest.fixture
def chat_llm(make_llm):
    return make_llm()


JOHN_MESSAGE = (
    "My name is John Smith, email john@example.com, phone 1234567890, "
    "born 1990-01-01, American"
)


def fill_personal(agent):
    """Set every personal field, including both confirmation flags."""
    agent.apply_extracted_data({
        "firstName": "John",
        "middleName": "Paul",
        "lastName": "Smith",
        "email": "john@example.com",
        "phoneNumber": "1234567890",
        "dateOfBirth": "1990-01-01",
        "nationality": "American",
    })


def fill_section(agent, values: dict):
    assert agent.apply_extracted_data(values), "nothing was accepted"
