"""
Shared infrastructure for the conversation and generation packages.

Modules:
- llm: Completion request protocol, OpenAI client, rate limiter
- logging: Structured JSON logging
- contracts: Trip input and itinerary output models
- errors: Exception hierarchy
"""

from nomad.shared.llm.client import CompletionRequest, OpenAICompletionClient
from nomad.shared.logging.config import setup_logging, log_state_transition

__all__ = [
    "CompletionRequest",
    "OpenAICompletionClient",
    "setup_logging",
    "log_state_transition",
]
