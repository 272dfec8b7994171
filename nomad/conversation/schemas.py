"""
Schemas for the conversation state machine.

Defines the conversation states, the collected trip data, the serializable
conversation context, the LangGraph per-turn state schema, slot analysis
results and the discriminated outgoing responses.
"""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, TypedDict, Union

from pydantic import BaseModel, Field

from nomad.generation.schemas import GenerationParams
from nomad.shared.contracts.trip_input import TravelerInfo, TripPreferences


class ConversationState(str, Enum):
    GREETING = "greeting"
    COLLECTING_DESTINATION = "collecting_destination"
    COLLECTING_DATES = "collecting_dates"
    COLLECTING_DURATION = "collecting_duration"
    COLLECTING_TRAVELERS = "collecting_travelers"
    COLLECTING_PREFERENCES = "collecting_preferences"
    CONFIRMING_DETAILS = "confirming_details"
    GENERATING = "generating"
    SHOWING_ITINERARY = "showing_itinerary"
    AWAITING_FEEDBACK = "awaiting_feedback"
    MODIFYING = "modifying"


# Slots in the order they are asked for
SLOT_ORDER = ("destination", "dates", "duration", "travelers", "preferences")

# Slots that never block progress once they have been asked
OPTIONAL_SLOTS = ("travelers", "preferences")

STATE_BY_SLOT = {
    "destination": ConversationState.COLLECTING_DESTINATION,
    "dates": ConversationState.COLLECTING_DATES,
    "duration": ConversationState.COLLECTING_DURATION,
    "travelers": ConversationState.COLLECTING_TRAVELERS,
    "preferences": ConversationState.COLLECTING_PREFERENCES,
}

SLOT_BY_STATE = {state: slot for slot, state in STATE_BY_SLOT.items()}


# =============================================================================
# Collected Data and Context
# =============================================================================


class CollectedData(BaseModel):
    """
    Everything the user has told us about the trip so far.

    Every field is optional and only ever populated from explicit user input.
    """

    destination: Optional[str] = Field(
        default=None, description="Display form, destinations joined with ' and '"
    )
    destinations: Optional[List[str]] = Field(default=None)
    days_per_city: Optional[List[int]] = Field(
        default=None, description="Only set when the user stated an allocation"
    )
    date_phrase: Optional[str] = Field(
        default=None, description="The user's own words for the dates"
    )
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration: Optional[int] = Field(default=None, ge=1)
    travelers: Optional[TravelerInfo] = None
    preferences: Optional[TripPreferences] = None


class Message(BaseModel):
    """A single turn in the conversation history."""

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime
    message_type: Literal["question", "answer", "confirmation", "itinerary", "error"] = "answer"


class ConversationContext(BaseModel):
    """
    The full state of one conversation.

    Round-trips through a single JSON string so a stateless caller can hand
    it back on the next request.
    """

    session_id: str
    state: ConversationState = ConversationState.GREETING
    collected_data: CollectedData = Field(default_factory=CollectedData)
    conversation_history: List[Message] = Field(default_factory=list)
    pending_question: Optional[str] = Field(
        default=None, description="The slot (or 'confirmation') currently awaited"
    )
    skipped_slots: List[str] = Field(
        default_factory=list,
        description="Optional slots already asked and left empty",
    )
    last_update_time: datetime
    job_id: Optional[str] = None
    current_itinerary: Optional[dict] = None


# =============================================================================
# Slot Analysis
# =============================================================================


class SlotAnalysis(BaseModel):
    """Result of analyzing one message against the slot being collected."""

    field: str
    value: Any = None
    confidence: Literal["high", "medium", "low"]
    needs_clarification: bool = False
    reason: Optional[str] = None


# =============================================================================
# Outgoing Responses
# =============================================================================


class QuestionResponse(BaseModel):
    """A question (or clarification) awaiting a specific slot."""

    type: Literal["question"] = "question"
    message: str
    awaiting: Optional[str] = None
    suggested_options: List[str] = Field(default_factory=list)
    reason: Optional[str] = None


class ConfirmationResponse(BaseModel):
    """A summary of collected data awaiting yes/no."""

    type: Literal["confirmation"] = "confirmation"
    message: str
    awaiting: Literal["confirmation"] = "confirmation"
    collected_data: CollectedData


class StartGenerationResponse(BaseModel):
    """Signal that all required data is present and generation should start."""

    type: Literal["start_generation"] = "start_generation"
    message: str
    collected_data: CollectedData
    params: GenerationParams


class ErrorResponse(BaseModel):
    """A fallback or failure message."""

    type: Literal["error"] = "error"
    message: str


OutgoingResponse = Annotated[
    Union[QuestionResponse, ConfirmationResponse, StartGenerationResponse, ErrorResponse],
    Field(discriminator="type"),
]


# =============================================================================
# LangGraph State Schema
# =============================================================================


class ConversationTurnState(TypedDict):
    """
    State schema for one pass through the conversation graph.

    The graph handles exactly one incoming message: the entry router picks
    a handler from `context.state` and the handler writes `context` and
    `response`.
    """

    context: ConversationContext
    text: str
    today: date
    response: Optional[Any]
