"""Declarative schema of the four application sections.

Prompt text, the extraction schema, section-completion checks, the
completion-percentage denominator and the summary are all derived from
``SECTION_FIELDS``.  Adding or renaming a field happens here and nowhere
else.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from intake_agent.validators import (
    is_valid_date_of_birth,
    is_valid_email,
    is_valid_name,
    is_valid_phone_number,
)

_FIRST_DIGITS_RE = re.compile(r"\d+", re.ASCII)


class Section(str, Enum):
    """Sections in the order the applicant must complete them."""

    PERSONAL = "personal"
    EDUCATIONAL = "educational"
    PROFESSIONAL = "professional"
    FAMILY = "family"

    @property
    def heading(self) -> str:
        return self.value.capitalize()

    def next(self) -> Section | None:
        order = list(Section)
        index = order.index(self)
        return order[index + 1] if index + 1 < len(order) else None

    @classmethod
    def parse(cls, value: str | None) -> Section:
        """Map a stored section name back to a ``Section`` (default: personal)."""
        try:
            return cls(value)
        except ValueError:
            return cls.PERSONAL


# ── Value acceptors ─────────────────────────────────────────────────
# Each takes a trimmed candidate string and returns the value to store,
# or ``None`` to reject it.


def _accept_if(predicate: Callable[[str], bool]) -> Callable[[str], str | None]:
    def accept(value: str) -> str | None:
        return value if predicate(value) else None

    return accept


def _accept_non_empty(value: str) -> str | None:
    return value or None


def _accept_contact(value: str) -> str | None:
    return value if len(value) >= 3 else None


def _accept_years(value: str) -> str | None:
    """``"about 5 years"`` -> ``"5"``; values without a digit are rejected."""
    match = _FIRST_DIGITS_RE.search(value)
    return match.group(0) if match else None


@dataclass(frozen=True)
class FieldSpec:
    """One field of a section.

    ``confirms`` names the boolean flag set alongside this field when a
    value is accepted.  Flag fields themselves have ``is_flag=True`` and are
    never extracted directly.
    """

    name: str
    label: str
    required: bool = True
    description: str = ""
    accept: Callable[[str], str | None] = _accept_non_empty
    confirms: str | None = None
    is_flag: bool = False

    @property
    def default(self):
        return False if self.is_flag else None


def _flag(name: str, label: str) -> FieldSpec:
    return FieldSpec(name=name, label=label, is_flag=True)


_NAME = _accept_if(is_valid_name)

SECTION_FIELDS: dict[Section, tuple[FieldSpec, ...]] = {
    Section.PERSONAL: (
        FieldSpec("firstName", "First Name",
                  description="Must be 2+ characters, letters only", accept=_NAME),
        FieldSpec("middleName", "Middle Name", required=False,
                  description="If applicable", accept=_NAME),
        FieldSpec("lastName", "Last Name",
                  description="Must be 2+ characters, letters only", accept=_NAME),
        FieldSpec("email", "Email",
                  description="Must be in valid format (e.g., user@example.com)",
                  accept=_accept_if(is_valid_email), confirms="emailConfirmed"),
        _flag("emailConfirmed", "Email Confirmed"),
        FieldSpec("phoneNumber", "Phone Number",
                  description="Must have at least 10 digits",
                  accept=_accept_if(is_valid_phone_number)),
        FieldSpec("dateOfBirth", "Date of Birth",
                  description="Must be 18+ years old and in the past",
                  accept=_accept_if(is_valid_date_of_birth), confirms="dobConfirmed"),
        _flag("dobConfirmed", "Date of Birth Confirmed"),
        FieldSpec("nationality", "Nationality",
                  description="Applicant's country of citizenship"),
    ),
    Section.EDUCATIONAL: (
        FieldSpec("highestQualification", "Highest Qualification",
                  description="e.g., High School, Bachelor's, Master's, PhD"),
        FieldSpec("university", "University",
                  description="Name of the institution attended"),
        FieldSpec("fieldOfStudy", "Field of Study",
                  description="e.g., Computer Science, Business Administration"),
        FieldSpec("graduationYear", "Graduation Year",
                  description="Year of graduation (YYYY format)"),
    ),
    Section.PROFESSIONAL: (
        FieldSpec("currentDesignation", "Current Designation",
                  description="Job title or role"),
        FieldSpec("company", "Company",
                  description="Name of current/last employer"),
        FieldSpec("yearsOfExperience", "Years of Experience",
                  description="Total professional experience", accept=_accept_years),
        FieldSpec("annualIncome", "Annual Income",
                  description="Gross annual income"),
        FieldSpec("employmentType", "Employment Type",
                  description="Full-time, Part-time, Self-employed, Contract, etc."),
    ),
    Section.FAMILY: (
        FieldSpec("maritalStatus", "Marital Status",
                  description="Single, Married, Divorced, Widowed, etc."),
        FieldSpec("dependents", "Dependents",
                  description="Number of dependent family members"),
        FieldSpec("spouseName", "Spouse Name",
                  description="Name if married, otherwise 'Not applicable'",
                  accept=_NAME),
        FieldSpec("emergencyContact", "Emergency Contact",
                  description="Name and relationship of emergency contact",
                  accept=_accept_contact),
    ),
}

TOTAL_FIELD_COUNT = sum(len(fields) for fields in SECTION_FIELDS.values())


def get_field(section: Section, name: str) -> FieldSpec | None:
    for spec in SECTION_FIELDS[section]:
        if spec.name == name:
            return spec
    return None


def empty_collected_data() -> dict[str, dict]:
    """A fresh record: every field unset, every flag ``False``."""
    return {
        section.value: {spec.name: spec.default for spec in fields}
        for section, fields in SECTION_FIELDS.items()
    }


def is_filled(value) -> bool:
    """Unset fields are ``None``; unset confirmation flags are ``False``."""
    return value is not None and value is not False
