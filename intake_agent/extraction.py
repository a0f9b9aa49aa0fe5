"""Turn a free-text user message into candidate field values.

Two interchangeable strategies produce a ``{field_name: candidate}`` dict:

* **pattern** — regular expressions and a few heuristics for the personal
  section (email, phone, date of birth, name, nationality).
* **llm** — ask the extraction model for a JSON object holding exactly the
  fields still missing in the current section.

Neither strategy writes to the agent.  Candidates always go through
``ApplicationAgent.apply_extracted_data`` so both obey the same rules:
validated, never overwriting, unknown keys ignored.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from langchain_core.messages import HumanMessage

from intake_agent.agent import ApplicationAgent
from intake_agent.prompts import build_extraction_prompt
from intake_agent.services.llm_client import complete
from intake_agent.validators import is_valid_date_of_birth

logger = logging.getLogger(__name__)

STRATEGIES = ("llm", "pattern", "hybrid")

# ── Pattern strategy ────────────────────────────────────────────────

_EMAIL_SEARCH_RE = re.compile(r"[^\s@,;:<>()\"']+@[^\s@,;:<>()\"']+\.[A-Za-z]{2,}")
_DATE_SEARCH_RES = (
    re.compile(r"\b\d{4}-\d{2}-\d{2}\b", re.ASCII),
    re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b", re.ASCII),
    re.compile(r"\b\d{1,2}-\d{1,2}-\d{4}\b", re.ASCII),
)
_PHONE_SEARCH_RE = re.compile(r"\+?\(?\d[\d \-()]{8,}\d", re.ASCII)

# Strong cues accept any casing; weak cues only count capitalised words.
_STRONG_NAME_CUE_RE = re.compile(r"\b(?:my name is|name is|name:)\s*([A-Za-z][A-Za-z' \-]*)", re.IGNORECASE)
_WEAK_NAME_CUE_RE = re.compile(r"\b(?:i am|i'm|call me|this is)\s+([A-Za-z][A-Za-z' \-]*)", re.IGNORECASE)
_NATIONALITY_CUE_RE = re.compile(
    r"\b(?:nationality(?:\s+is)?:?|citizen of)\s+([A-Za-z][A-Za-z \-]*[A-Za-z])",
    re.IGNORECASE,
)

NATIONALITY_KEYWORDS = (
    "American", "Argentinian", "Australian", "Austrian", "Bangladeshi",
    "Belgian", "Brazilian", "British", "Canadian", "Chilean", "Chinese",
    "Colombian", "Danish", "Dutch", "Egyptian", "Emirati", "Filipino",
    "Finnish", "French", "German", "Greek", "Indian", "Indonesian", "Irish",
    "Israeli", "Italian", "Japanese", "Kenyan", "Korean", "Malaysian",
    "Mexican", "Nigerian", "Norwegian", "Pakistani", "Peruvian", "Polish",
    "Portuguese", "Russian", "Saudi", "Singaporean", "South African",
    "Spanish", "Swedish", "Swiss", "Thai", "Turkish", "Ukrainian",
    "Vietnamese",
)
_NATIONALITY_RE = re.compile(
    r"\b(" + "|".join(re.escape(k) for k in NATIONALITY_KEYWORDS) + r")\b",
    re.IGNORECASE,
)
_NATIONALITY_LOOKUP = {k.lower(): k for k in NATIONALITY_KEYWORDS}

_NAME_STOP_WORDS = {
    "and", "my", "email", "e-mail", "phone", "mobile", "number", "born",
    "from", "dob", "nationality", "i", "im", "the", "a", "an", "here",
    "with", "at", "on", "is", "of",
}


def _name_tokens(chunk: str, require_capitalised: bool) -> list[str]:
    tokens: list[str] = []
    for token in chunk.split():
        token = token.strip("-'")
        if not token:
            continue
        lowered = token.lower()
        if lowered in _NAME_STOP_WORDS or lowered in _NATIONALITY_LOOKUP:
            break
        if require_capitalised and not token[0].isupper():
            break
        tokens.append(token)
        if len(tokens) == 4:
            break
    return tokens


def _find_name_tokens(text: str) -> list[str]:
    strong = _STRONG_NAME_CUE_RE.search(text)
    if strong:
        tokens = _name_tokens(strong.group(1), require_capitalised=False)
        if tokens:
            return tokens

    weak = _WEAK_NAME_CUE_RE.search(text)
    if weak:
        tokens = _name_tokens(weak.group(1), require_capitalised=True)
        if tokens:
            return tokens

    # "John Smith, john@example.com, ...": a leading chunk of 2-3
    # capitalised words with nothing else in it.
    head = re.split(r"[,;\n]", text, maxsplit=1)[0].strip()
    words = head.split()
    if 2 <= len(words) <= 3 and all(re.fullmatch(r"[A-Z][a-zA-Z'\-]+", w) for w in words):
        tokens = _name_tokens(head, require_capitalised=True)
        if len(tokens) == len(words):
            return tokens
    return []


def _split_name(tokens: list[str]) -> dict[str, str]:
    if not tokens:
        return {}
    if len(tokens) == 1:
        return {"firstName": tokens[0]}
    parts = {"firstName": tokens[0], "lastName": tokens[-1]}
    if len(tokens) > 2:
        parts["middleName"] = " ".join(tokens[1:-1])
    return parts


def _find_nationality(text: str) -> str | None:
    keyword = _NATIONALITY_RE.search(text)
    if keyword:
        return _NATIONALITY_LOOKUP[keyword.group(1).lower()]
    cue = _NATIONALITY_CUE_RE.search(text)
    if cue:
        return cue.group(1).strip()
    return None


def extract_with_patterns(message: str) -> dict[str, str]:
    """Scan *message* for personal-section values without calling a model.

    Matched substrings are blanked out as they are consumed so that, for
    example, the digits of a date are never read back as a phone number.
    """
    candidates: dict[str, str] = {}
    remaining = message

    email = _EMAIL_SEARCH_RE.search(remaining)
    if email:
        candidates["email"] = email.group(0)
        remaining = remaining.replace(email.group(0), " ")

    dates = [m.group(0) for pattern in _DATE_SEARCH_RES for m in pattern.finditer(remaining)]
    if dates:
        valid = [d for d in dates if is_valid_date_of_birth(d)]
        candidates["dateOfBirth"] = (valid or dates)[0]
        for found in dates:
            remaining = remaining.replace(found, " ")

    phone = _PHONE_SEARCH_RE.search(remaining)
    if phone:
        candidates["phoneNumber"] = phone.group(0).strip()
        remaining = remaining.replace(phone.group(0), " ")

    candidates.update(_split_name(_find_name_tokens(remaining)))

    nationality = _find_nationality(remaining)
    if nationality:
        candidates["nationality"] = nationality

    return candidates


# ── Model-assisted strategy ─────────────────────────────────────────

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def parse_extraction_response(text: str) -> dict[str, Any]:
    """Parse the model's JSON, tolerating prose around the object.

    Raises ``ValueError`` when no JSON object can be recovered.
    """
    text = text.strip()
    try:
        data = json.loads(text)
    except ValueError:
        match = _JSON_OBJECT_RE.search(text)
        if not match:
            raise ValueError("No JSON object in extraction response") from None
        data = json.loads(match.group(0))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


class LLMExtractor:
    """Ask the extraction model for the current section's missing fields."""

    def __init__(self, llm) -> None:
        self._llm = llm

    def extract(self, agent: ApplicationAgent, message: str) -> dict[str, Any]:
        """Return candidate values, or ``{}`` on any failure.

        Failures are logged and swallowed: the conversation carries on with
        whatever was already collected.
        """
        missing = agent.get_missing_fields()
        if not missing:
            return {}

        prompt = build_extraction_prompt(agent.current_section, missing, message)
        try:
            text = complete(self._llm, [HumanMessage(content=prompt)], operation="extract")
            return parse_extraction_response(text)
        except Exception as exc:
            logger.warning("Field extraction failed, continuing without updates: %s", exc)
            return {}


def run_extraction(
    agent: ApplicationAgent,
    message: str,
    strategy: str = "llm",
    extractor: LLMExtractor | None = None,
) -> list[str]:
    """Extract candidates with *strategy* and apply them to *agent*.

    ``hybrid`` runs the patterns first and only calls the model if the
    current section still has missing fields.  Without an ``extractor`` the
    model-assisted strategies degrade to patterns.  Returns the names of the
    fields that were set.
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown extraction strategy: {strategy!r}")

    updated: list[str] = []
    if strategy in ("pattern", "hybrid") or extractor is None:
        updated += agent.apply_extracted_data(extract_with_patterns(message))

    if strategy in ("llm", "hybrid") and extractor is not None and agent.get_missing_fields():
        updated += agent.apply_extracted_data(extractor.extract(agent, message))

    if updated:
        logger.info("Extracted fields (%s): %s", strategy, ", ".join(updated))
    return updated
