"""
FastAPI endpoints for the conversation state machine.

The API is stateless: every request carries the serialized conversation
context and every response returns the updated one. When the conversation
signals start_generation, the job is launched right away and its id is
stored in the context.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from nomad.conversation.schemas import OutgoingResponse
from nomad.conversation.state_machine import (
    ConversationStateMachine,
    deserialize_context,
    new_context,
    serialize_context,
)
from nomad.generation.generation_api import get_registry
from nomad.shared.errors import ContextDeserializationError, JobNotFoundError


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/conversation", tags=["conversation"])

# State machine instance (shared across requests)
_state_machine: Optional[ConversationStateMachine] = None


def get_state_machine() -> ConversationStateMachine:
    """Get or create the shared state machine."""
    global _state_machine
    if _state_machine is None:
        _state_machine = ConversationStateMachine()
    return _state_machine


def _restore(serialized_context: Optional[str], session_id: Optional[str] = None):
    if not serialized_context:
        return new_context(session_id=session_id)
    try:
        return deserialize_context(serialized_context)
    except ContextDeserializationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# ============================================================================
# Request/Response Models
# ============================================================================


class MessageRequest(BaseModel):
    """One user message plus the context from the previous response."""

    text: str = Field(description="The user's message")
    session_id: Optional[str] = Field(
        default=None, description="Session id for a new conversation"
    )
    serialized_context: Optional[str] = Field(
        default=None, description="Context returned by the previous call"
    )


class MessageResponse(BaseModel):
    """The assistant's reply and the updated context."""

    session_id: str
    state: str = Field(description="Conversation state after this message")
    serialized_context: str
    response: OutgoingResponse
    job_id: Optional[str] = Field(
        default=None, description="Generation job started by this message"
    )


class ItineraryRequest(BaseModel):
    """Context whose generation job should be attached."""

    serialized_context: str


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/message", response_model=MessageResponse)
async def post_message(request: MessageRequest) -> MessageResponse:
    """
    Process one user message.

    Args:
        request: Message text and the previous serialized context

    Returns:
        The reply, the updated context and, when generation starts, the job id
    """
    context = _restore(request.serialized_context, request.session_id)
    _log = f"[session={context.session_id}] [graph=conversation] [api=message] "

    try:
        machine = get_state_machine()
        context, response = machine.process_message(context, request.text)

        job_id = None
        if response.type == "start_generation":
            job_id = get_registry().start(response.params)
            context.job_id = job_id
            logger.info(f"{_log}Generation job launched | job_id={job_id}")

        return MessageResponse(
            session_id=context.session_id,
            state=context.state.value,
            serialized_context=serialize_context(context),
            response=response,
            job_id=job_id,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"{_log}Message processing failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to process message: {str(e)}",
        )


@router.post("/itinerary", response_model=MessageResponse)
async def attach_itinerary(request: ItineraryRequest) -> MessageResponse:
    """
    Attach the result of the context's generation job.

    A completed job moves the conversation to showing_itinerary; a failed
    one returns it to confirmation with an error message.
    """
    context = _restore(request.serialized_context)
    _log = f"[session={context.session_id}] [graph=conversation] [api=itinerary] "

    if not context.job_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="No generation job for this conversation",
        )

    try:
        snapshot = get_registry().poll(context.job_id)
    except JobNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job {context.job_id} not found",
        )

    if not snapshot.is_terminal:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Job {context.job_id} is still {snapshot.stage} ({snapshot.percentage}%)",
        )

    machine = get_state_machine()
    if snapshot.stage == "complete":
        context, response = machine.attach_itinerary(context, snapshot.final_itinerary)
    else:
        context, response = machine.fail_generation(context, snapshot.error or snapshot.message)
    logger.info(f"{_log}Job result attached | stage={snapshot.stage}, state={context.state.value}")

    return MessageResponse(
        session_id=context.session_id,
        state=context.state.value,
        serialized_context=serialize_context(context),
        response=response,
        job_id=context.job_id,
    )


@router.get("/health")
async def health_check():
    """Health check endpoint for the conversation service."""
    return {"status": "healthy", "agent": "conversation"}
