"""Field validators for applicant data.

Every function here is a pure predicate: it never raises and returns
``False`` for anything that is not a string.
"""

from __future__ import annotations

import re
from datetime import date, datetime

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NAME_RE = re.compile(r"^[a-zA-Z\s\-']{2,}$")
_PHONE_STRIP_RE = re.compile(r"[\s\-+()]")
_DIGITS_RE = re.compile(r"^\d{10,}$", re.ASCII)

# Slash dates are always day-first; month-first input is not accepted.
_DATE_FORMATS = (
    (re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII), "%Y-%m-%d"),
    (re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$", re.ASCII), "%d/%m/%Y"),
    (re.compile(r"^\d{1,2}-\d{1,2}-\d{4}$", re.ASCII), "%d-%m-%Y"),
)

MINIMUM_AGE_YEARS = 18


def is_valid_email(value) -> bool:
    """``local@domain.tld`` shape; no deliverability check."""
    if not isinstance(value, str):
        return False
    return bool(_EMAIL_RE.match(value))


def parse_date_of_birth(value) -> date | None:
    """Parse one of the accepted date-of-birth formats, or return ``None``."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    for pattern, fmt in _DATE_FORMATS:
        if pattern.match(value):
            try:
                return datetime.strptime(value, fmt).date()
            except ValueError:
                return None
    return None


def _years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # Feb 29 -> Feb 28 in a non-leap year
        return day.replace(year=day.year - years, day=28)


def is_valid_date_of_birth(value, today: date | None = None) -> bool:
    """Accept ``YYYY-MM-DD``, ``DD/MM/YYYY`` or ``DD-MM-YYYY`` for an adult.

    The date must be strictly in the past and on or before the applicant's
    18th-birthday cutoff (``today`` minus 18 years).
    """
    born = parse_date_of_birth(value)
    if born is None:
        return False

    today = today or date.today()
    if born >= today:
        return False
    return born <= _years_before(today, MINIMUM_AGE_YEARS)


def is_valid_name(value) -> bool:
    """Letters, spaces, hyphens and apostrophes; at least 2 characters."""
    if not value or not isinstance(value, str):
        return False
    return bool(_NAME_RE.match(value.strip()))


def is_valid_phone_number(value) -> bool:
    """At least 10 digits once common formatting characters are removed."""
    if not isinstance(value, str):
        return False
    cleaned = _PHONE_STRIP_RE.sub("", value)
    return bool(_DIGITS_RE.match(cleaned))
