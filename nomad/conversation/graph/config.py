"""
Graph configuration for the conversation state machine.

Centralizes the tunables for the per-message LangGraph workflow, so
behavior can change without touching the graph wiring.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _timeout_from_env() -> int:
    return int(os.getenv("NOMAD_SESSION_TIMEOUT_MINUTES", "30"))


@dataclass
class ConversationConfig:
    """
    Configuration for the conversation graph.

    Attributes:
        session_timeout_minutes: Idle time after which a context is discarded
        max_destinations: Most destinations accepted in one trip
        max_duration: Longest trip (days) accepted without clarification
        recursion_limit: Maximum number of graph steps per message
    """

    session_timeout_minutes: int = field(default_factory=_timeout_from_env)
    max_destinations: int = 5
    max_duration: int = 30
    recursion_limit: int = 10


# Default configuration instance
DEFAULT_CONFIG = ConversationConfig()


def get_config(
    session_timeout_minutes: Optional[int] = None,
    max_destinations: Optional[int] = None,
    max_duration: Optional[int] = None,
    recursion_limit: Optional[int] = None,
) -> ConversationConfig:
    """
    Create a configuration with optional overrides.

    Args:
        session_timeout_minutes: Override for the idle timeout
        max_destinations: Override for the destination cap
        max_duration: Override for the longest trip
        recursion_limit: Override for recursion limit

    Returns:
        ConversationConfig with specified overrides applied
    """
    return ConversationConfig(
        session_timeout_minutes=session_timeout_minutes
        or DEFAULT_CONFIG.session_timeout_minutes,
        max_destinations=max_destinations or DEFAULT_CONFIG.max_destinations,
        max_duration=max_duration or DEFAULT_CONFIG.max_duration,
        recursion_limit=recursion_limit or DEFAULT_CONFIG.recursion_limit,
    )
