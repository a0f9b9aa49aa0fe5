"""Tests for pattern-based and model-assisted field extraction."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from conftest import JOHN_MESSAGE
from langchain_core.messages import AIMessage, HumanMessage

from intake_agent.agent import ApplicationAgent
from intake_agent.extraction import (
    LLMExtractor,
    extract_with_patterns,
    parse_extraction_response,
    run_extraction,
)
from intake_agent.sections import Section


def _mock_llm(content: str):
    llm = MagicMock()
    llm.invoke.return_value = AIMessage(content=content)
    return llm


# ── Pattern strategy ─────────────────────────────────────────────────


class TestPatternExtraction:
    def test_full_introduction(self):
        found = extract_with_patterns(JOHN_MESSAGE)
        assert found["firstName"] == "John"
        assert found["lastName"] == "Smith"
        assert "middleName" not in found
        assert found["email"] == "john@example.com"
        assert found["phoneNumber"] == "1234567890"
        assert found["dateOfBirth"] == "1990-01-01"
        assert "American" in found["nationality"]

    def test_date_digits_are_not_read_as_phone(self):
        found = extract_with_patterns("I was born on 1990-01-01")
        assert found == {"dateOfBirth": "1990-01-01"}

    def test_formatted_phone(self):
        found = extract_with_patterns("you can reach me at +1 (234) 567-8900.")
        assert found["phoneNumber"] == "+1 (234) 567-8900"

    def test_short_digit_runs_are_not_phones(self):
        assert "phoneNumber" not in extract_with_patterns("I have 2 kids and 12345 reasons")

    def test_non_ascii_digits_are_not_phones(self):
        found = extract_with_patterns("reach me on \u0661\u0662\u0663\u0664\u0665\u0666\u0667\u0668\u0669\u0660")
        assert "phoneNumber" not in found

    def test_day_first_dates(self):
        assert extract_with_patterns("born 15/06/1985")["dateOfBirth"] == "15/06/1985"
        assert extract_with_patterns("born 15-06-1985")["dateOfBirth"] == "15-06-1985"

    def test_three_part_name(self):
        found = extract_with_patterns("my name is Mary Ann Jones")
        assert found == {"firstName": "Mary", "middleName": "Ann", "lastName": "Jones"}

    def test_single_name(self):
        assert extract_with_patterns("My name is Priya.") == {"firstName": "Priya"}

    def test_name_stops_at_conjunction(self):
        found = extract_with_patterns("I'm Carlos Diaz and my email is carlos@example.org")
        assert found["firstName"] == "Carlos"
        assert found["lastName"] == "Diaz"
        assert found["email"] == "carlos@example.org"

    def test_weak_cue_needs_capitalised_words(self):
        assert "firstName" not in extract_with_patterns("i'm a software engineer")

    def test_leading_name_without_cue(self):
        found = extract_with_patterns("Aisha Khan, aisha.khan@example.com")
        assert found["firstName"] == "Aisha"
        assert found["lastName"] == "Khan"

    def test_plain_sentence_is_not_a_name(self):
        assert "firstName" not in extract_with_patterns("Hello there, how are you?")

    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("I am Canadian", "Canadian"),
            ("i'm british by birth", "British"),
            ("nationality: Kenyan", "Kenyan"),
            ("I'm a citizen of New Zealand", "New Zealand"),
        ],
    )
    def test_nationality(self, message: str, expected: str):
        assert extract_with_patterns(message)["nationality"] == expected

    def test_nationality_is_not_taken_as_name(self):
        found = extract_with_patterns("I am American")
        assert "firstName" not in found

    def test_nothing_found(self):
        assert extract_with_patterns("sure, go ahead") == {}


# ── Model response parsing ───────────────────────────────────────────


class TestParseExtractionResponse:
    def test_plain_json(self):
        assert parse_extraction_response('{"firstName": "John"}') == {"firstName": "John"}

    def test_json_wrapped_in_prose(self):
        text = 'Here is the data:\n```json\n{"firstName": "John", "lastName": null}\n```'
        assert parse_extraction_response(text) == {"firstName": "John", "lastName": None}

    def test_no_json_raises(self):
        with pytest.raises(ValueError):
            parse_extraction_response("I could not find anything.")

    def test_non_object_raises(self):
        with pytest.raises(ValueError):
            parse_extraction_response('["John"]')


# ── Model-assisted strategy ──────────────────────────────────────────


class TestLLMExtractor:
    def test_prompt_names_only_missing_fields(self):
        agent = ApplicationAgent()
        agent.apply_extracted_data({"firstName": "John", "email": "john@example.com"})
        llm = _mock_llm("{}")

        LLMExtractor(llm).extract(agent, "Smith")

        (messages,), _ = llm.invoke.call_args
        assert len(messages) == 1 and isinstance(messages[0], HumanMessage)
        prompt = messages[0].content
        assert "Missing fields to extract from: middleName, lastName, phoneNumber" in prompt
        assert '"lastName": "string or null"' in prompt
        assert '"firstName"' not in prompt
        assert "Confirmed" not in prompt
        assert 'User message: "Smith"' in prompt

    def test_returns_parsed_candidates(self):
        agent = ApplicationAgent(current_section=Section.PROFESSIONAL)
        llm = _mock_llm('{"company": "Acme", "yearsOfExperience": "about 7 years"}')
        found = LLMExtractor(llm).extract(agent, "I've been at Acme about 7 years")
        assert found == {"company": "Acme", "yearsOfExperience": "about 7 years"}

    def test_skips_call_when_nothing_missing(self):
        agent = ApplicationAgent(current_section=Section.EDUCATIONAL)
        agent.apply_extracted_data({
            "highestQualification": "PhD", "university": "MIT",
            "fieldOfStudy": "Physics", "graduationYear": "2010",
        })
        llm = _mock_llm("{}")
        assert LLMExtractor(llm).extract(agent, "hello") == {}
        llm.invoke.assert_not_called()

    def test_llm_error_is_swallowed(self):
        llm = MagicMock()
        llm.invoke.side_effect = RuntimeError("provider down")
        assert LLMExtractor(llm).extract(ApplicationAgent(), "John") == {}

    def test_unparseable_output_is_swallowed(self):
        llm = _mock_llm("Sorry, I can't help with that.")
        assert LLMExtractor(llm).extract(ApplicationAgent(), "John") == {}


# ── Strategy selection ───────────────────────────────────────────────


class TestRunExtraction:
    def test_pattern_strategy_completes_personal_section(self):
        agent = ApplicationAgent()
        updated = run_extraction(agent, JOHN_MESSAGE, strategy="pattern")
        assert set(updated) == {
            "firstName", "lastName", "email", "phoneNumber", "dateOfBirth", "nationality",
        }
        personal = agent.collected_data["personal"]
        assert personal["emailConfirmed"] is True
        assert personal["dobConfirmed"] is True
        assert agent.is_current_section_complete() is True

    def test_llm_strategy_validates_model_output(self):
        agent = ApplicationAgent()
        llm = _mock_llm(
            '{"firstName": "John", "email": "not-an-email", '
            '"dateOfBirth": "2015-05-05", "nationality": "Irish", "pet": "cat"}'
        )
        updated = run_extraction(agent, "...", strategy="llm", extractor=LLMExtractor(llm))
        assert updated == ["firstName", "nationality"]
        personal = agent.collected_data["personal"]
        assert personal["email"] is None
        assert personal["dateOfBirth"] is None
        assert personal["dobConfirmed"] is False

    def test_llm_strategy_does_not_run_patterns(self):
        agent = ApplicationAgent()
        llm = _mock_llm("{}")
        run_extraction(agent, JOHN_MESSAGE, strategy="llm", extractor=LLMExtractor(llm))
        assert agent.get_completion_percentage() == 0

    def test_hybrid_skips_model_when_patterns_fill_section(self):
        agent = ApplicationAgent()
        agent.apply_extracted_data({"middleName": "Paul"})
        llm = _mock_llm("{}")
        run_extraction(agent, JOHN_MESSAGE, strategy="hybrid", extractor=LLMExtractor(llm))
        assert agent.is_current_section_complete() is True
        llm.invoke.assert_not_called()

    def test_hybrid_asks_model_for_the_rest(self):
        agent = ApplicationAgent()
        llm = _mock_llm('{"lastName": "Smith", "firstName": "Ignored"}')
        run_extraction(agent, "My name is John", strategy="hybrid", extractor=LLMExtractor(llm))
        personal = agent.collected_data["personal"]
        assert personal["firstName"] == "John"
        assert personal["lastName"] == "Smith"

    def test_missing_extractor_falls_back_to_patterns(self):
        agent = ApplicationAgent()
        run_extraction(agent, "email me at a@b.co", strategy="llm", extractor=None)
        assert agent.collected_data["personal"]["email"] == "a@b.co"

    def test_extraction_failure_leaves_data_untouched(self):
        agent = ApplicationAgent()
        llm = MagicMock()
        llm.invoke.side_effect = RuntimeError("boom")
        assert run_extraction(agent, "John", strategy="llm", extractor=LLMExtractor(llm)) == []
        assert agent.get_completion_percentage() == 0

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            run_extraction(ApplicationAgent(), "hi", strategy="magic")
