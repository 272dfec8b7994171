"""
Tests for the prompt composer.
"""

import random
from datetime import date

import pytest

from nomad.conversation.prompts import SLOT_TEMPLATES, PromptComposer
from nomad.conversation.schemas import CollectedData, SlotAnalysis
from nomad.shared.contracts.trip_input import TravelerInfo, TripPreferences


def _make_composer(seed: int = 7) -> PromptComposer:
    return PromptComposer(rng=random.Random(seed))


def _make_analysis(field: str, reason: str, value=None) -> SlotAnalysis:
    return SlotAnalysis(
        field=field,
        value=value,
        confidence="low",
        needs_clarification=True,
        reason=reason,
    )


class TestQuestions:
    """Tests for slot questions."""

    def test_question_comes_from_slot_pool(self):
        composer = _make_composer()
        assert composer.question("duration") in SLOT_TEMPLATES["duration"].questions

    def test_seeded_rng_is_deterministic(self):
        first = [_make_composer(3).question("destination") for _ in range(3)]
        second = [_make_composer(3).question("destination") for _ in range(3)]
        assert first == second

    def test_travelers_question_mentions_trip(self):
        """Known destination and duration are echoed back."""
        data = CollectedData(destination="Lisbon", duration=4)
        question = _make_composer().question("travelers", data)
        assert question.startswith("A 4-day trip to Lisbon.")

    def test_unknown_slot_falls_back(self):
        assert "budget" in _make_composer().question("budget")

    def test_suggested_options(self):
        assert _make_composer().suggested_options("destination")[0] == "Paris"
        assert _make_composer().suggested_options("nonexistent") == []


class TestClarifications:
    """Tests for reason-specific clarification text."""

    def test_uncertain(self):
        text = _make_composer().clarification(_make_analysis("destination", "uncertain"), "dunno")
        assert text.startswith("No worries! Popular destinations include")

    def test_too_vague_names_region(self):
        analysis = _make_analysis("destination", "too_vague", ["Europe"])
        text = _make_composer().clarification(analysis, "Europe")
        assert text.startswith("Europe is a great region!")

    def test_too_many_destinations_quotes_cap(self):
        analysis = _make_analysis("destination", "too_many_destinations")
        assert "up to 5 destinations" in _make_composer().clarification(analysis, "")

    def test_season(self):
        analysis = _make_analysis("dates", "season_too_vague", {"season": "summer"})
        text = _make_composer().clarification(analysis, "in summer")
        assert text.startswith("Summer is a great time")

    def test_too_long_quotes_value_and_cap(self):
        analysis = _make_analysis("duration", "too_long", 45)
        text = _make_composer().clarification(analysis, "45 days")
        assert "45 days" in text
        assert "30 days" in text

    def test_too_short_for_destinations(self):
        analysis = _make_analysis("duration", "too_short_for_destinations", 3)
        text = _make_composer().clarification(analysis, "2 days")
        assert "With 3 destinations you'll need at least 3 days" in text

    def test_unknown_reason_falls_back_to_question(self):
        analysis = _make_analysis("dates", "something_new")
        text = _make_composer().clarification(analysis, "")
        assert text in SLOT_TEMPLATES["dates"].questions


class TestConfirmation:
    """Tests for the confirmation summary."""

    def test_summary_lists_collected_data(self):
        data = CollectedData(
            destination="London and Paris",
            destinations=["London", "Paris"],
            days_per_city=[3, 2],
            date_phrase="next week",
            start_date=date(2025, 9, 15),
            duration=5,
            travelers=TravelerInfo(count=1, type="solo"),
            preferences=TripPreferences(activities=["food"], needs_coworking=True),
        )
        summary = _make_composer().confirmation(data)
        lines = summary.splitlines()

        assert lines[0] == "Perfect! Let me confirm the details:"
        assert "• Destination: London and Paris" in lines
        assert "• Starting: Monday, 15 September 2025 (next week)" in lines
        assert "• Duration: 5 days" in lines
        assert "• Split: London 3d, Paris 2d" in lines
        assert "• Travelers: Solo traveler" in lines
        assert "• Including coworking spaces" in lines
        assert "• Interests: food" in lines
        assert summary.endswith("Is this correct? (Yes to proceed, or tell me what to change)")

    def test_summary_skips_missing_fields(self):
        summary = _make_composer().confirmation(CollectedData(destination="Rome", duration=3))
        assert "Starting" not in summary
        assert "Travelers" not in summary

    def test_generating_message_mentions_trip(self):
        message = _make_composer().generating_message(CollectedData(destination="Rome", duration=3))
        assert "Rome" in message


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
