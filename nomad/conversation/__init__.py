"""
Slot-filling conversation for gathering trip details.

Collects destination, dates, duration, travelers and preferences one
message at a time, never filling a slot the user did not answer.
"""

from nomad.conversation.schemas import ConversationContext, ConversationState
from nomad.conversation.state_machine import ConversationStateMachine

__all__ = ["ConversationContext", "ConversationState", "ConversationStateMachine"]
