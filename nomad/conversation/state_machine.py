"""
Conversation state machine.

Drives the slot-filling conversation one message at a time. The context is
a plain pydantic model that round-trips through a single JSON string, so a
stateless caller can keep it between requests.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from pydantic import ValidationError

from nomad.conversation.graph.build import create_conversation_graph
from nomad.conversation.graph.config import ConversationConfig, DEFAULT_CONFIG
from nomad.conversation.nodes.handlers import can_generate, missing_information, next_missing_slot
from nomad.conversation.prompts.composer import PromptComposer
from nomad.conversation.prompts.templates import GENERATION_FAILED_MESSAGE
from nomad.conversation.schemas import (
    ConversationContext,
    ConversationState,
    ErrorResponse,
    Message,
    OutgoingResponse,
    QuestionResponse,
)
from nomad.shared.contracts.itinerary_output import FinalItinerary
from nomad.shared.errors import ContextDeserializationError
from nomad.shared.logging.config import log_state_transition


logger = logging.getLogger(__name__)

__all__ = [
    "ConversationStateMachine",
    "new_context",
    "serialize_context",
    "deserialize_context",
    "can_generate",
    "missing_information",
    "next_missing_slot",
]

_MESSAGE_TYPES = {
    "question": "question",
    "confirmation": "confirmation",
    "start_generation": "answer",
    "error": "error",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_context(session_id: Optional[str] = None, now: Optional[datetime] = None) -> ConversationContext:
    """Create an empty context in the greeting state."""
    return ConversationContext(
        session_id=session_id or str(uuid.uuid4()),
        last_update_time=now or _utcnow(),
    )


def serialize_context(context: ConversationContext) -> str:
    return context.model_dump_json()


def deserialize_context(raw: str) -> ConversationContext:
    """
    Restore a context produced by serialize_context.

    Raises:
        ContextDeserializationError: If the string is not a valid context
    """
    try:
        return ConversationContext.model_validate_json(raw)
    except ValidationError as e:
        raise ContextDeserializationError(f"Invalid conversation context: {e}") from e


class ConversationStateMachine:
    """
    Processes one user message at a time against a conversation context.

    Args:
        composer: Prompt composer (inject one with a seeded random source for
            deterministic phrasing)
        config: Conversation configuration
    """

    def __init__(
        self,
        composer: Optional[PromptComposer] = None,
        config: ConversationConfig = DEFAULT_CONFIG,
    ):
        self.config = config
        self.composer = composer or PromptComposer(
            max_destinations=config.max_destinations,
            max_duration=config.max_duration,
        )
        self._graph = create_conversation_graph(self.composer, config)

    def is_expired(self, context: ConversationContext, now: datetime) -> bool:
        idle = now - context.last_update_time
        return idle > timedelta(minutes=self.config.session_timeout_minutes)

    def process_message(
        self,
        context: ConversationContext,
        text: str,
        now: Optional[datetime] = None,
    ) -> Tuple[ConversationContext, OutgoingResponse]:
        """
        Handle one user message.

        Args:
            context: The caller's current context (left untouched)
            text: The user's message
            now: Current time, for the session timeout and history timestamps

        Returns:
            The new context and the outgoing response
        """
        now = now or _utcnow()
        working = context.model_copy(deep=True)
        previous_state = working.state

        if self.is_expired(working, now):
            logger.info(
                f"[session={working.session_id}] [graph=conversation] "
                f"Session idle past {self.config.session_timeout_minutes} min -> starting fresh"
            )
            working = new_context(now=now)
            previous_state = working.state

        _log = f"[session={working.session_id}] [graph=conversation] "
        logger.info(f"{_log}Message received | state={working.state.value}, chars={len(text)}")

        working.conversation_history.append(
            Message(role="user", content=text, timestamp=now, message_type="answer")
        )

        result = self._graph.invoke(
            {"context": working, "text": text, "today": now.date(), "response": None},
            {"recursion_limit": self.config.recursion_limit},
        )
        working = result["context"]
        response = result["response"]

        working.conversation_history.append(
            Message(
                role="assistant",
                content=response.message,
                timestamp=now,
                message_type=_MESSAGE_TYPES[response.type],
            )
        )
        working.last_update_time = now

        log_state_transition(
            "conversation_transition",
            {
                "session_id": working.session_id,
                "state": working.state.value,
                "pending_question": working.pending_question,
            },
            extra={"from_state": previous_state.value, "response_type": response.type},
        )
        logger.info(
            f"{_log}Transition | {previous_state.value} -> {working.state.value}, "
            f"response={response.type}"
        )
        return working, response

    def attach_itinerary(
        self,
        context: ConversationContext,
        itinerary: FinalItinerary,
        now: Optional[datetime] = None,
    ) -> Tuple[ConversationContext, QuestionResponse]:
        """Store a finished itinerary and ask for feedback on it."""
        now = now or _utcnow()
        working = context.model_copy(deep=True)
        working.current_itinerary = itinerary.model_dump(mode="json")
        working.state = ConversationState.SHOWING_ITINERARY
        working.pending_question = "feedback"

        response = QuestionResponse(message=self.composer.feedback_prompt(), awaiting="feedback")
        working.conversation_history.append(
            Message(role="assistant", content=response.message, timestamp=now, message_type="itinerary")
        )
        working.last_update_time = now

        log_state_transition(
            "itinerary_attached",
            {"session_id": working.session_id, "job_id": working.job_id, "state": working.state.value},
        )
        return working, response

    def fail_generation(
        self,
        context: ConversationContext,
        error: str,
        now: Optional[datetime] = None,
    ) -> Tuple[ConversationContext, ErrorResponse]:
        """Return to confirmation after a failed generation job."""
        now = now or _utcnow()
        working = context.model_copy(deep=True)
        working.state = ConversationState.CONFIRMING_DETAILS
        working.pending_question = "confirmation"
        working.job_id = None

        response = ErrorResponse(message=GENERATION_FAILED_MESSAGE.format(error=error))
        working.conversation_history.append(
            Message(role="assistant", content=response.message, timestamp=now, message_type="error")
        )
        working.last_update_time = now

        logger.warning(f"[session={working.session_id}] [graph=conversation] Generation failed | error={error}")
        return working, response
