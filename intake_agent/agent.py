"""Section-progression state machine for the financial application.

An ``ApplicationAgent`` owns one applicant's collected data and a pointer to
the section currently being filled in.  It is rebuilt from the session store
at the start of every request and serialised back at the end, so nothing in
here is shared between requests.

Progression is forward-only::

    personal → educational → professional → family → (complete)

The agent never advances on its own.  The request handler decides when to
call ``move_to_next_section()`` after extraction has run.
"""

from __future__ import annotations

import copy
import json
import logging
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from intake_agent.prompts import (
    SECTION_GUIDELINES,
    SYSTEM_PROMPT_TEMPLATE,
    VALIDATION_RULES,
)
from intake_agent.sections import (
    SECTION_FIELDS,
    TOTAL_FIELD_COUNT,
    Section,
    empty_collected_data,
    get_field,
    is_filled,
)

logger = logging.getLogger(__name__)


class ApplicationAgent:
    """Collected data plus the current-section pointer."""

    def __init__(
        self,
        collected_data: dict[str, dict] | None = None,
        current_section: Section = Section.PERSONAL,
        created_at: int | None = None,
    ) -> None:
        self.collected_data = empty_collected_data()
        if collected_data:
            # Only known fields survive; anything missing keeps its default.
            for section_name, fields in self.collected_data.items():
                stored = collected_data.get(section_name) or {}
                for name in fields:
                    if name in stored:
                        fields[name] = stored[name]
        self.current_section = current_section
        self.created_at = created_at if created_at is not None else int(time.time() * 1000)

    # ── Persistence ──────────────────────────────────────────────────

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> ApplicationAgent:
        """Rehydrate an agent from a stored session record."""
        return cls(
            collected_data=record.get("collectedData"),
            current_section=Section.parse(record.get("currentSection")),
            created_at=record.get("createdAt"),
        )

    def to_record(self) -> dict[str, Any]:
        """Serialisable state (without store bookkeeping such as TTL)."""
        return {
            "collectedData": copy.deepcopy(self.collected_data),
            "currentSection": self.current_section.value,
            "completionPercentage": self.get_completion_percentage(),
            "createdAt": self.created_at,
        }

    # ── Section state ────────────────────────────────────────────────

    def _section_data(self, section: Section | None = None) -> dict[str, Any]:
        return self.collected_data[(section or self.current_section).value]

    def get_missing_fields(self, section: Section | None = None) -> list[str]:
        """Unset, non-flag fields of *section* (default: current), in order."""
        section = section or self.current_section
        data = self._section_data(section)
        return [
            spec.name
            for spec in SECTION_FIELDS[section]
            if not spec.is_flag and data[spec.name] is None
        ]

    def is_current_section_complete(self) -> bool:
        """Every required field of the current section is filled.

        In the personal section this includes the email and date-of-birth
        confirmation flags; the middle name is optional.
        """
        data = self._section_data()
        return all(
            is_filled(data[spec.name])
            for spec in SECTION_FIELDS[self.current_section]
            if spec.required
        )

    def move_to_next_section(self) -> bool:
        """Advance the pointer.  Returns ``False`` when already at the last section."""
        following = self.current_section.next()
        if following is None:
            return False
        logger.debug("Section %s complete, moving to %s", self.current_section.value, following.value)
        self.current_section = following
        return True

    def is_application_complete(self) -> bool:
        return self.current_section is Section.FAMILY and self.is_current_section_complete()

    # ── Data updates ─────────────────────────────────────────────────

    def apply_extracted_data(self, extracted: dict[str, Any]) -> list[str]:
        """Validate candidate values and store the accepted ones.

        Only fields of the current section are considered.  Already-set
        fields are never overwritten, unknown keys and confirmation flags
        are ignored, and each value must pass the field's acceptor.
        Returns the names of the fields that were set.
        """
        data = self._section_data()
        updated: list[str] = []

        for key, raw in extracted.items():
            if raw is None:
                continue
            spec = get_field(self.current_section, key)
            if spec is None or spec.is_flag:
                continue
            if data[key] is not None:
                continue

            value = spec.accept(str(raw).strip())
            if value is None:
                logger.debug("Rejected candidate for %s", key)
                continue

            data[key] = value
            if spec.confirms:
                data[spec.confirms] = True
            updated.append(key)

        return updated

    # ── Derived views ────────────────────────────────────────────────

    def get_completion_percentage(self) -> int:
        """Filled fields across all sections as a rounded whole percentage."""
        filled = sum(
            1
            for section_data in self.collected_data.values()
            for value in section_data.values()
            if is_filled(value)
        )
        ratio = Decimal(filled * 100) / Decimal(TOTAL_FIELD_COUNT)
        return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def get_system_prompt(self) -> str:
        """Instructions for the conversational model for the current turn.

        Deterministic: two calls without an intervening mutation return the
        same text.
        """
        section = self.current_section
        missing = self.get_missing_fields()
        field_lines = "\n".join(
            f"- {spec.label} ({'required' if spec.required else 'optional'})"
            + (f" - {spec.description}" if spec.description else "")
            for spec in SECTION_FIELDS[section]
            if not spec.is_flag
        )

        return SYSTEM_PROMPT_TEMPLATE.format(
            section=section.value,
            section_upper=section.value.upper(),
            collected_json=json.dumps(self.collected_data, indent=2),
            missing_focus=", ".join(missing) or "all fields are collected",
            field_lines=field_lines,
            missing=", ".join(missing) or "None",
            validation_rules=VALIDATION_RULES[section],
            guidelines=SECTION_GUIDELINES[section],
        )

    def get_summary(self) -> str:
        """Human-readable summary of every section and field."""
        lines = ["📋 **Application Summary**", ""]
        for section, fields in SECTION_FIELDS.items():
            data = self._section_data(section)
            lines.append(f"**{section.heading} Information:**")
            for spec in fields:
                value = data[spec.name]
                if value is True:
                    shown = "Yes"
                elif is_filled(value):
                    shown = value
                else:
                    shown = "Not provided"
                lines.append(f"- {spec.label}: {shown}")
            lines.append("")
        return "\n".join(lines)
