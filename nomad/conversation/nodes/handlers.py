"""
Handler nodes for the conversation graph.

Each node handles exactly one incoming message for one family of states and
returns the updated context plus the outgoing response. Nodes receive their
collaborators (the prompt composer and the conversation settings) as keyword
arguments bound with functools.partial when the graph is built.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from nomad.conversation.graph.config import ConversationConfig
from nomad.conversation.multi_city import extract_multi_city, format_destination
from nomad.conversation.prompts.composer import PromptComposer
from nomad.conversation.prompts.templates import (
    ASK_FOR_FEEDBACK_MESSAGE,
    CLOSING_MESSAGE,
    MODIFICATION_TARGET_OPTIONS,
    MODIFY_ITINERARY_MESSAGE,
    STILL_GENERATING_MESSAGE,
    UNCLEAR_CONFIRMATION_MESSAGE,
)
from nomad.conversation.schemas import (
    OPTIONAL_SLOTS,
    SLOT_BY_STATE,
    SLOT_ORDER,
    STATE_BY_SLOT,
    CollectedData,
    ConfirmationResponse,
    ConversationContext,
    ConversationState,
    ConversationTurnState,
    QuestionResponse,
    SlotAnalysis,
    StartGenerationResponse,
)
from nomad.conversation.slot_extractor import (
    analyze,
    detect_modification_target,
    is_modification_request,
    is_satisfied,
    strip_greeting,
)
from nomad.generation.schemas import GenerationParams


logger = logging.getLogger(__name__)


# =============================================================================
# Slot Bookkeeping
# =============================================================================

# Fields cleared when the user asks to change a slot
_SLOT_FIELDS = {
    "destination": ("destination", "destinations", "days_per_city"),
    "dates": ("date_phrase", "start_date", "end_date"),
    "duration": ("duration", "days_per_city", "end_date"),
    "travelers": ("travelers",),
    "preferences": ("preferences",),
}


def _slot_value(data: CollectedData, slot: str) -> Any:
    if slot == "dates":
        return data.start_date
    return getattr(data, slot)


def next_missing_slot(context: ConversationContext) -> Optional[str]:
    """
    First slot, in asking order, that still needs an answer.

    Optional slots count as resolved once they have been asked, even when
    the answer was empty.
    """
    data = context.collected_data
    for slot in SLOT_ORDER:
        if _slot_value(data, slot) is not None:
            continue
        if slot in OPTIONAL_SLOTS and slot in context.skipped_slots:
            continue
        return slot
    return None


def can_generate(context: ConversationContext) -> bool:
    """True when destination, start date and duration are all known."""
    data = context.collected_data
    return bool(data.destination) and data.duration is not None and data.start_date is not None


def missing_information(context: ConversationContext) -> List[str]:
    """Required slots that are still empty."""
    data = context.collected_data
    return [
        slot
        for slot in SLOT_ORDER
        if slot not in OPTIONAL_SLOTS and _slot_value(data, slot) is None
    ]


def _refresh_end_date(data: CollectedData) -> None:
    if data.start_date is not None and data.duration is not None:
        data.end_date = data.start_date + timedelta(days=data.duration - 1)
    else:
        data.end_date = None


def _set_destinations(data: CollectedData, places: List[str]) -> None:
    if data.destinations != places:
        data.days_per_city = None
    data.destinations = list(places)
    data.destination = " and ".join(places)


def _apply_slot(context: ConversationContext, analysis: SlotAnalysis) -> bool:
    """
    Merge a successful analysis into the collected data.

    Returns:
        False when an optional slot was answered without a usable value
    """
    data = context.collected_data
    slot = analysis.field
    value = analysis.value

    if slot == "destination":
        _set_destinations(data, value)
    elif slot == "dates":
        data.date_phrase = value["phrase"]
        data.start_date = value["start_date"]
    elif slot == "duration":
        data.duration = value
        if data.days_per_city is not None and sum(data.days_per_city) != value:
            data.days_per_city = None
    elif slot in OPTIONAL_SLOTS:
        setattr(data, slot, value)
        if value is None:
            if slot not in context.skipped_slots:
                context.skipped_slots.append(slot)
            return False
        if slot in context.skipped_slots:
            context.skipped_slots.remove(slot)

    _refresh_end_date(data)
    return True


def _clear_slot(context: ConversationContext, slot: str) -> None:
    data = context.collected_data
    for name in _SLOT_FIELDS[slot]:
        setattr(data, name, None)
    if slot in context.skipped_slots:
        context.skipped_slots.remove(slot)


# =============================================================================
# Response Helpers
# =============================================================================


def _ask(
    context: ConversationContext,
    slot: str,
    composer: PromptComposer,
    prefix: str = "",
    message: Optional[str] = None,
    reason: Optional[str] = None,
) -> QuestionResponse:
    context.state = STATE_BY_SLOT[slot]
    context.pending_question = slot
    text = message or composer.question(slot, context.collected_data)
    return QuestionResponse(
        message=f"{prefix} {text}" if prefix else text,
        awaiting=slot,
        suggested_options=composer.suggested_options(slot),
        reason=reason,
    )


def _advance(context: ConversationContext, composer: PromptComposer, prefix: str = ""):
    """Ask the next missing slot, or summarize for confirmation."""
    slot = next_missing_slot(context)
    if slot is not None:
        return _ask(context, slot, composer, prefix=prefix)

    context.state = ConversationState.CONFIRMING_DETAILS
    context.pending_question = "confirmation"
    summary = composer.confirmation(context.collected_data)
    return ConfirmationResponse(
        message=f"{prefix} {summary}" if prefix else summary,
        collected_data=context.collected_data.model_copy(deep=True),
    )


def _ask_for_modification(context: ConversationContext, message: str) -> QuestionResponse:
    context.state = ConversationState.MODIFYING
    context.pending_question = "modification"
    return QuestionResponse(
        message=message,
        awaiting="modification",
        suggested_options=list(MODIFICATION_TARGET_OPTIONS),
    )


def _start_modification(
    context: ConversationContext,
    text: str,
    composer: PromptComposer,
    fallback: str,
    _log: str,
) -> QuestionResponse:
    target = detect_modification_target(text)
    if target is None:
        logger.info(f"{_log}No modification target named -> asking which detail")
        return _ask_for_modification(context, fallback)

    logger.info(f"{_log}Modification target detected | slot={target}")
    _clear_slot(context, target)
    return _ask(context, target, composer, prefix="Sure!")


def _too_few_days(count: int) -> SlotAnalysis:
    return SlotAnalysis(
        field="duration",
        value=count,
        confidence="low",
        needs_clarification=True,
        reason="too_short_for_destinations",
    )


def _duration_conflict(data: CollectedData) -> Optional[SlotAnalysis]:
    count = len(data.destinations or [])
    if data.duration is not None and count > data.duration:
        return _too_few_days(count)
    return None


def _generation_params(context: ConversationContext) -> GenerationParams:
    data = context.collected_data
    return GenerationParams(
        destinations=data.destinations or [data.destination],
        duration=data.duration,
        start_date=data.start_date,
        days_per_city=data.days_per_city,
        travelers=data.travelers,
        preferences=data.preferences,
        session_id=context.session_id,
    )


# =============================================================================
# Nodes
# =============================================================================


def greeting_node(
    state: ConversationTurnState,
    *,
    composer: PromptComposer,
    settings: ConversationConfig,
) -> Dict[str, Any]:
    """
    Handle the opening message.

    Tries the multi-city extractor on the raw text first; otherwise takes a
    confident destination from the slot extractor. Whatever was found is
    kept and the next missing slot is asked.
    """
    context = state["context"]
    text = state["text"]
    data = context.collected_data
    _log = f"[session={context.session_id}] [graph=conversation] [node=greeting] "

    applied = False
    intent = extract_multi_city(text)
    if 2 <= len(intent.destinations) <= settings.max_destinations:
        _set_destinations(data, intent.destinations)
        applied = True
        if intent.is_complete and intent.total_duration <= settings.max_duration:
            data.duration = intent.total_duration
            data.days_per_city = list(intent.days_per_city)
        _refresh_end_date(data)
        logger.info(
            f"{_log}Multi-city plan applied | destination={format_destination(intent)}, "
            f"duration={data.duration}, allocation={data.days_per_city}"
        )
    else:
        remainder = strip_greeting(text)
        if remainder:
            analysis = analyze(
                remainder,
                "destination",
                data,
                today=state["today"],
                max_destinations=settings.max_destinations,
                max_duration=settings.max_duration,
            )
            if not analysis.needs_clarification and analysis.confidence == "high":
                applied = _apply_slot(context, analysis)
                logger.info(f"{_log}Destination taken from opening message | destination={data.destination}")

    if not applied:
        logger.info(f"{_log}Nothing extracted -> asking for destination")
        context.state = ConversationState.COLLECTING_DESTINATION
        context.pending_question = "destination"
        response = QuestionResponse(
            message=composer.greeting(),
            awaiting="destination",
            suggested_options=composer.suggested_options("destination"),
        )
        return {"context": context, "response": response}

    response = _advance(context, composer, prefix=composer.acknowledgement("destination", data))
    logger.info(f"{_log}Advanced | state={context.state.value}, pending={context.pending_question}")
    return {"context": context, "response": response}


def collect_slot_node(
    state: ConversationTurnState,
    *,
    composer: PromptComposer,
    settings: ConversationConfig,
) -> Dict[str, Any]:
    """Analyze the message against the slot the current state is collecting."""
    context = state["context"]
    text = state["text"]
    slot = SLOT_BY_STATE[context.state]
    _log = f"[session={context.session_id}] [graph=conversation] [node=collect_slot] "

    analysis = analyze(
        text,
        slot,
        context.collected_data,
        today=state["today"],
        max_destinations=settings.max_destinations,
        max_duration=settings.max_duration,
    )
    logger.info(
        f"{_log}Analyzed | slot={slot}, confidence={analysis.confidence}, "
        f"needs_clarification={analysis.needs_clarification}, reason={analysis.reason}"
    )

    if slot == "duration" and not analysis.needs_clarification:
        count = len(context.collected_data.destinations or [])
        if count > analysis.value:
            analysis = _too_few_days(count)

    if analysis.needs_clarification:
        response = _ask(
            context,
            slot,
            composer,
            message=composer.clarification(analysis, text),
            reason=analysis.reason,
        )
        return {"context": context, "response": response}

    filled = _apply_slot(context, analysis)
    prefix = composer.acknowledgement(slot, context.collected_data) if filled else ""
    response = _advance(context, composer, prefix=prefix)
    logger.info(f"{_log}Advanced | state={context.state.value}, pending={context.pending_question}")
    return {"context": context, "response": response}


def confirm_node(
    state: ConversationTurnState,
    *,
    composer: PromptComposer,
    settings: ConversationConfig,
) -> Dict[str, Any]:
    """Handle the yes/no reply to the confirmation summary."""
    context = state["context"]
    text = state["text"]
    _log = f"[session={context.session_id}] [graph=conversation] [node=confirm] "

    analysis = analyze(text, "confirmation", context.collected_data, today=state["today"])
    logger.info(f"{_log}Confirmation analyzed | value={analysis.value}, reason={analysis.reason}")

    if analysis.value is True:
        if not can_generate(context):
            logger.warning(f"{_log}Confirmed without required data | missing={missing_information(context)}")
            return {"context": context, "response": _advance(context, composer)}

        conflict = _duration_conflict(context.collected_data)
        if conflict is not None:
            context.collected_data.duration = None
            _refresh_end_date(context.collected_data)
            response = _ask(
                context,
                "duration",
                composer,
                message=composer.clarification(conflict, text),
                reason=conflict.reason,
            )
            return {"context": context, "response": response}

        params = _generation_params(context)
        context.state = ConversationState.GENERATING
        context.pending_question = None
        response = StartGenerationResponse(
            message=composer.generating_message(context.collected_data),
            collected_data=context.collected_data.model_copy(deep=True),
            params=params,
        )
        logger.info(
            f"{_log}Starting generation | destinations={params.destinations}, "
            f"duration={params.duration}d, start={params.start_date}"
        )
        return {"context": context, "response": response}

    if analysis.value is False:
        response = _start_modification(
            context, text, composer, composer.modification_prompt(), _log
        )
        return {"context": context, "response": response}

    response = ConfirmationResponse(
        message=UNCLEAR_CONFIRMATION_MESSAGE,
        collected_data=context.collected_data.model_copy(deep=True),
    )
    return {"context": context, "response": response}


def generating_node(
    state: ConversationTurnState,
    *,
    composer: PromptComposer,
    settings: ConversationConfig,
) -> Dict[str, Any]:
    context = state["context"]
    return {"context": context, "response": QuestionResponse(message=STILL_GENERATING_MESSAGE)}


def feedback_node(
    state: ConversationTurnState,
    *,
    composer: PromptComposer,
    settings: ConversationConfig,
) -> Dict[str, Any]:
    """Handle a reply to a shown itinerary."""
    context = state["context"]
    text = state["text"]
    _log = f"[session={context.session_id}] [graph=conversation] [node=feedback] "

    if is_modification_request(text):
        response = _start_modification(context, text, composer, MODIFY_ITINERARY_MESSAGE, _log)
        return {"context": context, "response": response}

    context.state = ConversationState.AWAITING_FEEDBACK
    context.pending_question = "feedback"
    if is_satisfied(text):
        logger.info(f"{_log}User satisfied -> closing")
        return {"context": context, "response": QuestionResponse(message=CLOSING_MESSAGE)}

    return {
        "context": context,
        "response": QuestionResponse(message=ASK_FOR_FEEDBACK_MESSAGE, awaiting="feedback"),
    }


def modify_node(
    state: ConversationTurnState,
    *,
    composer: PromptComposer,
    settings: ConversationConfig,
) -> Dict[str, Any]:
    """Clear and re-ask whichever slot the user names."""
    context = state["context"]
    _log = f"[session={context.session_id}] [graph=conversation] [node=modify] "
    response = _start_modification(
        context,
        state["text"],
        composer,
        "Which detail would you like to change: destination, dates, duration, travelers, or preferences?",
        _log,
    )
    return {"context": context, "response": response}
