"""Durable per-session storage for ``ApplicationAgent`` state.

Record shape (one per session)::

    {
        "sessionId": "…",             # key
        "collectedData": {...},
        "currentSection": "personal",
        "completionPercentage": 41,   # derived, recomputed on every save
        "createdAt": 1760000000000,   # epoch ms
        "updatedAt": 1760000000000,   # epoch ms
        "expiresAt": 1760086400,      # epoch s, the table's TTL attribute
        "version": 3,
    }

Two implementations share the ``SessionStore`` interface:

• ``DynamoDBSessionStore`` — production.  ``expiresAt`` is the table's TTL
  attribute, so DynamoDB deletes stale sessions on its own.  Saves can carry
  an ``expected_version`` that is enforced with a conditional put.
• ``InMemorySessionStore`` — local development and tests.  Thread-safe
  ``OrderedDict`` with lazy expiry; lost on process restart.

Without ``expected_version`` a save is last-write-wins.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from decimal import Decimal
from typing import Any

from botocore.exceptions import ClientError

from intake_agent.agent import ApplicationAgent
from intake_agent.config import SESSION_TTL_SECONDS
from intake_agent.errors import SessionConflictError, SessionStoreError
from intake_agent.services.metrics import metrics

logger = logging.getLogger(__name__)

KEY_ATTRIBUTE = "sessionId"


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionStore:
    """Interface for session persistence."""

    def __init__(self, ttl_seconds: int = SESSION_TTL_SECONDS) -> None:
        self._ttl_seconds = ttl_seconds

    def _build_item(
        self,
        session_id: str,
        agent: ApplicationAgent,
        expected_version: int | None,
    ) -> dict[str, Any]:
        now_ms = _now_ms()
        item = agent.to_record()
        item.update(
            sessionId=session_id,
            updatedAt=now_ms,
            expiresAt=now_ms // 1000 + self._ttl_seconds,
            version=(expected_version or 0) + 1,
        )
        return item

    @staticmethod
    def _is_expired(item: dict[str, Any]) -> bool:
        expires_at = item.get("expiresAt")
        return expires_at is not None and expires_at <= time.time()

    def get(self, session_id: str) -> dict[str, Any] | None:
        raise NotImplementedError

    def save(
        self,
        session_id: str,
        agent: ApplicationAgent,
        expected_version: int | None = None,
    ) -> dict[str, Any]:
        raise NotImplementedError

    def delete(self, session_id: str) -> bool:
        raise NotImplementedError

    def list(
        self,
        limit: int = 10,
        exclusive_start_key: dict[str, Any] | None = None,
    ) -> tuple[list[dict[str, Any]], dict[str, Any] | None]:
        """Return one page of records and the key to continue from (or ``None``)."""
        raise NotImplementedError


# ── DynamoDB ─────────────────────────────────────────────────────────


def _from_dynamo(value: Any) -> Any:
    """Convert DynamoDB ``Decimal`` numbers back to ``int``/``float``."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: _from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_dynamo(v) for v in value]
    return value


class DynamoDBSessionStore(SessionStore):
    """Sessions in a DynamoDB table keyed by ``sessionId``."""

    def __init__(
        self,
        table_name: str | None = None,
        *,
        table=None,
        ttl_seconds: int = SESSION_TTL_SECONDS,
    ) -> None:
        super().__init__(ttl_seconds)
        if table is None:
            import boto3

            table = boto3.resource("dynamodb").Table(table_name)
        self._table = table

    def get(self, session_id: str) -> dict[str, Any] | None:
        try:
            with metrics.timed("session_store", "get"):
                resp = self._table.get_item(Key={KEY_ATTRIBUTE: session_id})
        except Exception as exc:
            logger.exception("Error retrieving session %s", session_id)
            raise SessionStoreError("Failed to retrieve chat session") from exc

        item = resp.get("Item")
        if item is None:
            return None
        item = _from_dynamo(item)
        # TTL deletion is eventual; hide records that are already past it.
        if self._is_expired(item):
            logger.debug("Session %s is past expiresAt, treating as missing", session_id)
            return None
        return item

    def save(
        self,
        session_id: str,
        agent: ApplicationAgent,
        expected_version: int | None = None,
    ) -> dict[str, Any]:
        item = self._build_item(session_id, agent, expected_version)
        kwargs: dict[str, Any] = {"Item": item}
        if expected_version is not None:
            kwargs["ConditionExpression"] = "#v = :expected"
            kwargs["ExpressionAttributeNames"] = {"#v": "version"}
            kwargs["ExpressionAttributeValues"] = {":expected": expected_version}

        try:
            with metrics.timed("session_store", "save"):
                self._table.put_item(**kwargs)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                logger.warning("Version conflict saving session %s", session_id)
                raise SessionConflictError() from exc
            logger.exception("Error saving session %s", session_id)
            raise SessionStoreError("Failed to save chat session") from exc
        except Exception as exc:
            logger.exception("Error saving session %s", session_id)
            raise SessionStoreError("Failed to save chat session") from exc
        return item

    def delete(self, session_id: str) -> bool:
        try:
            with metrics.timed("session_store", "delete"):
                resp = self._table.delete_item(
                    Key={KEY_ATTRIBUTE: session_id}, ReturnValues="ALL_OLD",
                )
        except Exception as exc:
            logger.exception("Error deleting session %s", session_id)
            raise SessionStoreError("Failed to delete chat session") from exc
        return bool(resp.get("Attributes"))

    def list(
        self,
        limit: int = 10,
        exclusive_start_key: dict[str, Any] | None = None,
    ) -> tuple[list[dict[str, Any]], dict[str, Any] | None]:
        kwargs: dict[str, Any] = {"Limit": limit}
        if exclusive_start_key:
            kwargs["ExclusiveStartKey"] = exclusive_start_key
        try:
            with metrics.timed("session_store", "list"):
                resp = self._table.scan(**kwargs)
        except Exception as exc:
            logger.exception("Error listing sessions")
            raise SessionStoreError("Failed to list chat sessions") from exc

        # TTL deletion lags, so expired items can still come back from a scan.
        items = [_from_dynamo(item) for item in resp.get("Items", [])]
        items = [item for item in items if not self._is_expired(item)]
        last_key = resp.get("LastEvaluatedKey")
        return items, _from_dynamo(last_key) if last_key else None


# ── In-memory ────────────────────────────────────────────────────────


class InMemorySessionStore(SessionStore):
    """Process-local session store with TTL expiry.

    Insertion-ordered so that ``list`` pages are stable.  Expired records
    are dropped on every save and list.  When ``max_entries`` is set, the
    oldest record is evicted to make room.
    """

    def __init__(
        self,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        max_entries: int | None = None,
    ) -> None:
        super().__init__(ttl_seconds)
        self._max_entries = max_entries
        self._store: OrderedDict[str, dict[str, Any]] = OrderedDict()
        self._lock = threading.Lock()

    def _purge_expired(self) -> None:
        expired = [k for k, item in self._store.items() if self._is_expired(item)]
        for key in expired:
            del self._store[key]
        if expired:
            logger.debug("Session store: expired %d sessions", len(expired))

    def get(self, session_id: str) -> dict[str, Any] | None:
        with self._lock:
            item = self._store.get(session_id)
            if item is None:
                return None
            if self._is_expired(item):
                del self._store[session_id]
                return None
            return _copy(item)

    def save(
        self,
        session_id: str,
        agent: ApplicationAgent,
        expected_version: int | None = None,
    ) -> dict[str, Any]:
        item = self._build_item(session_id, agent, expected_version)
        with self._lock:
            self._purge_expired()
            current = self._store.get(session_id)
            if (
                expected_version is not None
                and (current is None or current.get("version") != expected_version)
            ):
                logger.warning("Version conflict saving session %s", session_id)
                raise SessionConflictError()

            self._store[session_id] = item
            if self._max_entries is not None:
                while len(self._store) > self._max_entries:
                    evicted, _ = self._store.popitem(last=False)
                    logger.debug("Session store: evicted %s", evicted)
        return _copy(item)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._store.pop(session_id, None) is not None

    def list(
        self,
        limit: int = 10,
        exclusive_start_key: dict[str, Any] | None = None,
    ) -> tuple[list[dict[str, Any]], dict[str, Any] | None]:
        with self._lock:
            self._purge_expired()
            keys = list(self._store)
            start = 0
            if exclusive_start_key:
                after = exclusive_start_key.get(KEY_ATTRIBUTE)
                start = keys.index(after) + 1 if after in self._store else len(keys)
            page = keys[start : start + limit]
            items = [_copy(self._store[k]) for k in page]

        has_more = start + limit < len(keys)
        last_key = {KEY_ATTRIBUTE: page[-1]} if page and has_more else None
        return items, last_key

    @property
    def entry_count(self) -> int:
        return len(self._store)


def _copy(item: dict[str, Any]) -> dict[str, Any]:
    copied = dict(item)
    copied["collectedData"] = {k: dict(v) for k, v in item["collectedData"].items()}
    return copied


def create_session_store(table_name: str | None = None) -> SessionStore:
    """DynamoDB when a table is configured, otherwise process memory."""
    if table_name:
        logger.info("Using DynamoDB session store (table=%s)", table_name)
        return DynamoDBSessionStore(table_name)
    logger.warning("DYNAMODB_TABLE not set; sessions are kept in process memory")
    return InMemorySessionStore()
