"""
Routing logic for the conversation graph.

Picks the handler node for one incoming message from the conversation state.
"""

import logging
from typing import Literal

from nomad.conversation.schemas import ConversationState, ConversationTurnState, SLOT_BY_STATE


logger = logging.getLogger(__name__)

NodeName = Literal["greeting", "collect_slot", "confirm", "generating", "feedback", "modify"]


def route_by_state(state: ConversationTurnState) -> NodeName:
    """
    Determine which handler processes the message.

    Routing logic:
    1. greeting -> greeting (opportunistic extraction)
    2. collecting_* -> collect_slot
    3. confirming_details -> confirm
    4. generating -> generating
    5. showing_itinerary / awaiting_feedback -> feedback
    6. modifying -> modify

    Args:
        state: Current turn state

    Returns:
        Name of the node to execute
    """
    context = state["context"]
    _log = f"[session={context.session_id}] [graph=conversation] [router=route_by_state] "

    current = context.state
    if current == ConversationState.GREETING:
        node = "greeting"
    elif current in SLOT_BY_STATE:
        node = "collect_slot"
    elif current == ConversationState.CONFIRMING_DETAILS:
        node = "confirm"
    elif current == ConversationState.GENERATING:
        node = "generating"
    elif current in (ConversationState.SHOWING_ITINERARY, ConversationState.AWAITING_FEEDBACK):
        node = "feedback"
    else:
        node = "modify"

    logger.info(f"{_log}Routing to '{node}' | state={current.value}")
    return node
