"""Node functions for the conversation graph."""

from nomad.conversation.nodes.handlers import (
    can_generate,
    collect_slot_node,
    confirm_node,
    feedback_node,
    generating_node,
    greeting_node,
    missing_information,
    modify_node,
    next_missing_slot,
)
from nomad.conversation.nodes.routing import route_by_state

__all__ = [
    "can_generate",
    "collect_slot_node",
    "confirm_node",
    "feedback_node",
    "generating_node",
    "greeting_node",
    "missing_information",
    "modify_node",
    "next_missing_slot",
    "route_by_state",
]
