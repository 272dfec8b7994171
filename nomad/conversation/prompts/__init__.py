"""Phrasing templates and the prompt composer for the conversation."""

from nomad.conversation.prompts.templates import SlotTemplate, SLOT_TEMPLATES
from nomad.conversation.prompts.composer import PromptComposer

__all__ = [
    "SlotTemplate",
    "SLOT_TEMPLATES",
    "PromptComposer",
]
