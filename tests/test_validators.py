"""Tests for the applicant field validators."""

from __future__ import annotations

from datetime import date

import pytest

from intake_agent.validators import (
    is_valid_date_of_birth,
    is_valid_email,
    is_valid_name,
    is_valid_phone_number,
    parse_date_of_birth,
)


class TestEmail:
    @pytest.mark.parametrize(
        "email",
        [
            "a@b.co",
            "john@example.com",
            "bob.jones@clinic.co.uk",
            "jane+tag@gmail.com",
        ],
    )
    def test_accepts_valid_emails(self, email: str):
        assert is_valid_email(email) is True

    @pytest.mark.parametrize(
        "email",
        [
            "",
            "not-an-email",
            "missing-at.example.com",
            "no-dot@localhost",
            "spaces in@email.com",
            "user @example.com",
            "double@@at.com",
        ],
    )
    def test_rejects_invalid_emails(self, email: str):
        assert is_valid_email(email) is False

    def test_non_string_is_rejected(self):
        assert is_valid_email(None) is False
        assert is_valid_email(42) is False


class TestDateOfBirth:
    TODAY = date(2026, 10, 16)

    @pytest.mark.parametrize("years_ago", [19, 30, 65, 119])
    def test_adult_iso_dates_are_valid(self, years_ago: int):
        born = self.TODAY.replace(year=self.TODAY.year - years_ago)
        assert is_valid_date_of_birth(born.isoformat(), today=self.TODAY) is True

    @pytest.mark.parametrize("value", ["2026-09-16", "2021-10-15", "2009-10-15"])
    def test_minors_are_rejected(self, value: str):
        assert is_valid_date_of_birth(value, today=self.TODAY) is False

    def test_exactly_eighteen_today_is_valid(self):
        assert is_valid_date_of_birth("2008-10-16", today=self.TODAY) is True

    def test_one_day_short_of_eighteen_is_rejected(self):
        assert is_valid_date_of_birth("2008-10-17", today=self.TODAY) is False

    def test_future_date_is_rejected(self):
        assert is_valid_date_of_birth("2030-01-01", today=self.TODAY) is False

    def test_today_is_rejected(self):
        assert is_valid_date_of_birth(self.TODAY.isoformat(), today=self.TODAY) is False

    @pytest.mark.parametrize("value", ["15/06/1990", "5/6/1990", "15-06-1990", "5-6-1990"])
    def test_day_first_formats(self, value: str):
        assert is_valid_date_of_birth(value, today=self.TODAY) is True

    def test_slash_dates_are_day_first(self):
        assert parse_date_of_birth("03/04/1990") == date(1990, 4, 3)

    def test_month_first_slash_date_is_not_accepted(self):
        # 12/25/1990 would only make sense as MM/DD/YYYY.
        assert is_valid_date_of_birth("12/25/1990", today=self.TODAY) is False

    @pytest.mark.parametrize(
        "value",
        ["", "yesterday", "1990/01/01", "1990-1-1", "2001-02-30", "31/02/1990", "01.01.1990"],
    )
    def test_unparseable_or_impossible_dates(self, value: str):
        assert is_valid_date_of_birth(value, today=self.TODAY) is False

    def test_non_ascii_digits_are_rejected(self):
        # Arabic-Indic digits for 1990-01-01
        value = "\u0661\u0669\u0669\u0660-\u0660\u0661-\u0660\u0661"
        assert parse_date_of_birth(value) is None
        assert is_valid_date_of_birth(value, today=self.TODAY) is False

    def test_leap_day_cutoff(self):
        # On 2028-02-29 the cutoff falls back to 2010-02-28.
        leap_today = date(2028, 2, 29)
        assert is_valid_date_of_birth("2010-02-28", today=leap_today) is True
        assert is_valid_date_of_birth("2010-03-01", today=leap_today) is False

    def test_defaults_to_real_today(self):
        assert is_valid_date_of_birth("1990-01-01") is True
        assert is_valid_date_of_birth(date.today().isoformat()) is False

    def test_non_string_is_rejected(self):
        assert is_valid_date_of_birth(None) is False


class TestName:
    @pytest.mark.parametrize("name", ["John", "Mary-Jane", "O'Brien", "Jo", "Anne Marie", "  Li  "])
    def test_accepts_names(self, name: str):
        assert is_valid_name(name) is True

    @pytest.mark.parametrize("name", ["", "J", "   ", "John3", "N/A", "José"])
    def test_rejects_invalid_names(self, name: str):
        assert is_valid_name(name) is False

    def test_non_string_is_rejected(self):
        assert is_valid_name(None) is False
        assert is_valid_name(["John"]) is False


class TestPhoneNumber:
    @pytest.mark.parametrize(
        "phone",
        ["+1 (234) 567-8900", "1234567890", "+44 20 7946 0958", "123-456-7890"],
    )
    def test_accepts_phone_numbers(self, phone: str):
        assert is_valid_phone_number(phone) is True

    @pytest.mark.parametrize("phone", ["12345", "", "123-456-789", "phone 1234567890", "123.456.7890"])
    def test_rejects_invalid_numbers(self, phone: str):
        assert is_valid_phone_number(phone) is False

    def test_non_string_is_rejected(self):
        assert is_valid_phone_number(1234567890) is False

    @pytest.mark.parametrize(
        "phone",
        [
            "\u0661\u0662\u0663\u0664\u0665\u0666\u0667\u0668\u0669\u0660",  # Arabic-Indic
            "\uff11\uff12\uff13\uff14\uff15\uff16\uff17\uff18\uff19\uff10",  # fullwidth
        ],
    )
    def test_non_ascii_digits_are_rejected(self, phone: str):
        assert is_valid_phone_number(phone) is False
