"""
Tests for the conversation state machine.

Drives whole conversations through process_message with a fixed clock and
a seeded prompt composer.
"""

import asyncio
import random
from datetime import date, datetime, timedelta, timezone

import pytest

from nomad.conversation.graph import get_config
from nomad.conversation.prompts import PromptComposer
from nomad.conversation.prompts.templates import CLOSING_MESSAGE, STILL_GENERATING_MESSAGE
from nomad.conversation.schemas import (
    ConfirmationResponse,
    ConversationState,
    ErrorResponse,
    QuestionResponse,
    StartGenerationResponse,
)
from nomad.conversation.state_machine import (
    ConversationStateMachine,
    can_generate,
    deserialize_context,
    new_context,
    serialize_context,
)
from nomad.generation.mock_data import MockCompletionClient
from nomad.generation.orchestrator import ProgressiveGenerator
from nomad.shared.errors import ContextDeserializationError


# Wednesday
NOW = datetime(2025, 9, 10, 12, 0, tzinfo=timezone.utc)


def _make_machine(**config_overrides) -> ConversationStateMachine:
    return ConversationStateMachine(
        composer=PromptComposer(rng=random.Random(1)),
        config=get_config(**config_overrides),
    )


def _converse(machine, messages, context=None):
    """Send messages in order; return the final context and every response."""
    context = context or new_context(session_id="test-session", now=NOW)
    responses = []
    for text in messages:
        context, response = machine.process_message(context, text, now=NOW)
        responses.append(response)
    return context, responses


FULL_FLOW = ["Paris", "next week", "5 days", "solo", "museums"]


# ============================================================================
# Slot Filling
# ============================================================================


class TestSlotFilling:
    """Tests for collecting slots one message at a time."""

    def test_bare_greeting_asks_for_destination(self):
        machine = _make_machine()
        context, (response,) = _converse(machine, ["hello"])

        assert context.state == ConversationState.COLLECTING_DESTINATION
        assert context.pending_question == "destination"
        assert isinstance(response, QuestionResponse)
        assert response.awaiting == "destination"

    def test_destination_after_greeting(self):
        machine = _make_machine()
        context, responses = _converse(machine, ["hello", "Paris"])

        assert context.state == ConversationState.COLLECTING_DATES
        assert context.collected_data.destination == "Paris"
        assert responses[-1].awaiting == "dates"

    def test_destination_in_opening_message(self):
        machine = _make_machine()
        context, _ = _converse(machine, ["I want to visit Tokyo"])

        assert context.state == ConversationState.COLLECTING_DATES
        assert context.collected_data.destinations == ["Tokyo"]

    def test_multi_city_opening_fills_duration_and_split(self):
        machine = _make_machine()
        context, _ = _converse(machine, ["Hi! 3 days in London then 2 days in Paris"])
        data = context.collected_data

        assert context.state == ConversationState.COLLECTING_DATES
        assert data.destinations == ["London", "Paris"]
        assert data.destination == "London and Paris"
        assert data.duration == 5
        assert data.days_per_city == [3, 2]

    def test_vague_destination_stays_in_state(self):
        machine = _make_machine()
        context, responses = _converse(machine, ["hello", "Europe"])

        assert context.state == ConversationState.COLLECTING_DESTINATION
        assert context.collected_data.destination is None
        assert responses[-1].reason == "too_vague"

    def test_full_flow_reaches_confirmation(self):
        machine = _make_machine()
        context, responses = _converse(machine, FULL_FLOW)
        data = context.collected_data

        assert context.state == ConversationState.CONFIRMING_DETAILS
        assert context.pending_question == "confirmation"
        assert isinstance(responses[-1], ConfirmationResponse)
        assert data.start_date == date(2025, 9, 15)
        assert data.end_date == date(2025, 9, 19)
        assert data.travelers.type == "solo"
        assert data.preferences.activities == ["museum"]

    def test_optional_slots_can_be_skipped(self):
        machine = _make_machine()
        context, responses = _converse(
            machine, ["Paris", "next week", "5 days", "not sure", "nothing"]
        )

        assert context.state == ConversationState.CONFIRMING_DETAILS
        assert context.collected_data.travelers is None
        assert context.collected_data.preferences is None
        assert set(context.skipped_slots) == {"travelers", "preferences"}
        assert "Travelers" not in responses[-1].message

    def test_too_few_days_for_destinations(self):
        machine = _make_machine()
        context, responses = _converse(
            machine, ["London, Paris and Rome", "next week", "2 days"]
        )

        assert context.state == ConversationState.COLLECTING_DURATION
        assert context.collected_data.duration is None
        assert responses[-1].reason == "too_short_for_destinations"

    def test_configured_destination_cap(self):
        machine = _make_machine(max_destinations=3)
        context, responses = _converse(machine, ["hello", "London, Paris, Rome and Berlin"])

        assert context.state == ConversationState.COLLECTING_DESTINATION
        assert context.collected_data.destination is None
        assert responses[-1].reason == "too_many_destinations"
        assert "up to 3 destinations" in responses[-1].message

    def test_configured_duration_cap(self):
        machine = _make_machine(max_duration=14)
        context, responses = _converse(machine, ["Paris", "next week", "25 days"])

        assert context.state == ConversationState.COLLECTING_DURATION
        assert context.collected_data.duration is None
        assert responses[-1].reason == "too_long"
        assert "up to 14 days" in responses[-1].message

    def test_duration_under_configured_cap_is_accepted(self):
        machine = _make_machine(max_duration=14)
        context, _ = _converse(machine, ["Paris", "next week", "10 days"])

        assert context.state == ConversationState.COLLECTING_TRAVELERS
        assert context.collected_data.duration == 10

    def test_history_records_both_sides(self):
        machine = _make_machine()
        context, _ = _converse(machine, ["hello", "Paris"])

        roles = [message.role for message in context.conversation_history]
        assert roles == ["user", "assistant", "user", "assistant"]
        assert context.last_update_time == NOW


# ============================================================================
# Confirmation and Modification
# ============================================================================


class TestConfirmation:
    """Tests for the confirming_details state."""

    def test_yes_starts_generation(self):
        machine = _make_machine()
        context, responses = _converse(machine, FULL_FLOW + ["yes"])
        response = responses[-1]

        assert context.state == ConversationState.GENERATING
        assert isinstance(response, StartGenerationResponse)
        assert response.params.destinations == ["Paris"]
        assert response.params.duration == 5
        assert response.params.start_date == date(2025, 9, 15)
        assert response.params.session_id == "test-session"

    def test_multi_city_allocation_carried_into_params(self):
        machine = _make_machine()
        context, responses = _converse(
            machine,
            ["Hi! 3 days in London then 2 days in Paris", "next week", "solo", "nothing", "yes"],
        )

        assert isinstance(responses[-1], StartGenerationResponse)
        assert responses[-1].params.days_per_city == [3, 2]

    def test_no_with_target_reopens_that_slot(self):
        machine = _make_machine()
        context, responses = _converse(machine, FULL_FLOW + ["no, change the dates"])

        assert context.state == ConversationState.COLLECTING_DATES
        assert context.collected_data.start_date is None
        assert context.collected_data.destination == "Paris"
        assert responses[-1].message.startswith("Sure!")

    def test_plain_no_asks_what_to_change(self):
        machine = _make_machine()
        context, responses = _converse(machine, FULL_FLOW + ["no"])

        assert context.state == ConversationState.MODIFYING
        assert responses[-1].awaiting == "modification"

        context, responses = _converse(machine, ["the duration"], context=context)
        assert context.state == ConversationState.COLLECTING_DURATION
        assert context.collected_data.duration is None

    def test_unclear_reply_stays_in_confirmation(self):
        machine = _make_machine()
        context, responses = _converse(machine, FULL_FLOW + ["hmm"])

        assert context.state == ConversationState.CONFIRMING_DETAILS
        assert isinstance(responses[-1], ConfirmationResponse)

    def test_generation_never_starts_without_required_data(self):
        """No message sequence gets to start_generation early."""
        machine = _make_machine()
        context = new_context(session_id="test-session", now=NOW)
        for text in ["yes", "hello", "yes", "Paris", "yes", "next week", "yes", "ok"]:
            context, response = machine.process_message(context, text, now=NOW)
            if isinstance(response, StartGenerationResponse):
                assert can_generate(context)
        assert context.state != ConversationState.GENERATING


# ============================================================================
# Generation Lifecycle
# ============================================================================


class TestGenerationLifecycle:
    """Tests for the generating, itinerary and feedback states."""

    def _generating_context(self, machine):
        context, responses = _converse(machine, FULL_FLOW + ["yes"])
        return context, responses[-1].params

    def test_message_while_generating(self):
        machine = _make_machine()
        context, _ = self._generating_context(machine)
        context, response = machine.process_message(context, "is it ready?", now=NOW)

        assert context.state == ConversationState.GENERATING
        assert response.message == STILL_GENERATING_MESSAGE

    def test_attach_itinerary_then_feedback(self):
        machine = _make_machine()
        context, params = self._generating_context(machine)
        itinerary = asyncio.run(
            ProgressiveGenerator(MockCompletionClient()).generate_progressive(params)
        )

        context, response = machine.attach_itinerary(context, itinerary, now=NOW)
        assert context.state == ConversationState.SHOWING_ITINERARY
        assert response.awaiting == "feedback"
        assert context.current_itinerary["metadata"]["duration"] == 5
        assert context.conversation_history[-1].message_type == "itinerary"

        context, response = machine.process_message(context, "thanks!", now=NOW)
        assert context.state == ConversationState.AWAITING_FEEDBACK
        assert response.message == CLOSING_MESSAGE

        context, response = machine.process_message(context, "change the duration", now=NOW)
        assert context.state == ConversationState.COLLECTING_DURATION
        assert context.collected_data.duration is None

    def test_fail_generation_returns_to_confirmation(self):
        machine = _make_machine()
        context, _ = self._generating_context(machine)
        context.job_id = "job-1"

        context, response = machine.fail_generation(context, "upstream down", now=NOW)
        assert context.state == ConversationState.CONFIRMING_DETAILS
        assert context.job_id is None
        assert isinstance(response, ErrorResponse)
        assert "upstream down" in response.message


# ============================================================================
# Serialization and Timeout
# ============================================================================


class TestContextLifecycle:
    """Tests for context serialization and the idle timeout."""

    def test_round_trip(self):
        machine = _make_machine()
        context, _ = _converse(machine, FULL_FLOW)

        restored = deserialize_context(serialize_context(context))
        assert restored.model_dump() == context.model_dump()
        assert restored.state == ConversationState.CONFIRMING_DETAILS

    def test_invalid_context_raises(self):
        with pytest.raises(ContextDeserializationError):
            deserialize_context("not a context")

    def test_caller_context_is_not_mutated(self):
        machine = _make_machine()
        original = new_context(session_id="test-session", now=NOW)
        machine.process_message(original, "Paris", now=NOW)

        assert original.state == ConversationState.GREETING
        assert original.conversation_history == []

    def test_idle_session_starts_fresh(self):
        machine = _make_machine(session_timeout_minutes=5)
        context, _ = _converse(machine, ["Paris"])

        later = NOW + timedelta(minutes=6)
        context, response = machine.process_message(context, "hello", now=later)

        assert context.session_id != "test-session"
        assert context.state == ConversationState.COLLECTING_DESTINATION
        assert context.collected_data.destination is None
        assert len(context.conversation_history) == 2

    def test_active_session_is_kept(self):
        machine = _make_machine(session_timeout_minutes=5)
        context, _ = _converse(machine, ["Paris"])

        context, _ = machine.process_message(context, "next week", now=NOW + timedelta(minutes=4))
        assert context.session_id == "test-session"
        assert context.state == ConversationState.COLLECTING_DURATION


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
