"""LLM client utilities."""

from nomad.shared.llm.client import (
    CompletionRequest,
    TextCompletionClient,
    OpenAICompletionClient,
    create_async_client,
)
from nomad.shared.llm.rate_limiter import RateLimiter

__all__ = [
    "CompletionRequest",
    "TextCompletionClient",
    "OpenAICompletionClient",
    "create_async_client",
    "RateLimiter",
]
