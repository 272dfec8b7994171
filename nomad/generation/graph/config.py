"""
Graph configuration for the generation pipeline.

Centralizes the completion, rate-limit and job-lifecycle settings so they
can be tuned without modifying the graph wiring.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


@dataclass
class GenerationConfig:
    """
    Configuration for the generation graph and job registry.

    Attributes:
        model: Chat model used for both completion tasks
        temperature: Sampling temperature
        rate_limit_requests: Completion calls allowed per window
        rate_limit_window_seconds: Length of the rate-limit window
        rate_limit_backoff_seconds: Pause after an upstream 429
        recursion_padding: Graph steps allowed beyond one per destination
        poll_interval_seconds: Poll interval suggested to callers
        completed_job_ttl_seconds: How long finished jobs stay pollable
        use_mock_llm: Answer completions offline with the mock client
    """

    # LLM configuration
    model: str = field(default_factory=lambda: os.getenv("NOMAD_MODEL", "gpt-4.1-mini"))
    temperature: float = 0.7

    # Rate limiting (used by shared/llm/rate_limiter.py)
    rate_limit_requests: int = 50
    rate_limit_window_seconds: float = 60.0
    rate_limit_backoff_seconds: float = 30.0

    # Graph execution limits
    recursion_padding: int = 10

    # Job lifecycle
    poll_interval_seconds: float = 1.0
    completed_job_ttl_seconds: float = 300.0

    # Offline mode
    use_mock_llm: bool = field(default_factory=lambda: _env_flag("NOMAD_USE_MOCK_LLM"))


# Default configuration instance
DEFAULT_CONFIG = GenerationConfig()


def get_config(
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    rate_limit_requests: Optional[int] = None,
    poll_interval_seconds: Optional[float] = None,
    completed_job_ttl_seconds: Optional[float] = None,
    use_mock_llm: Optional[bool] = None,
) -> GenerationConfig:
    """
    Create a configuration with optional overrides.

    Args:
        model: Override for the chat model
        temperature: Override for sampling temperature
        rate_limit_requests: Override for requests per window
        poll_interval_seconds: Override for the suggested poll interval
        completed_job_ttl_seconds: Override for finished-job retention
        use_mock_llm: Override for offline mode

    Returns:
        GenerationConfig with specified overrides applied
    """
    return GenerationConfig(
        model=model or DEFAULT_CONFIG.model,
        temperature=temperature
        if temperature is not None
        else DEFAULT_CONFIG.temperature,
        rate_limit_requests=rate_limit_requests or DEFAULT_CONFIG.rate_limit_requests,
        rate_limit_window_seconds=DEFAULT_CONFIG.rate_limit_window_seconds,
        rate_limit_backoff_seconds=DEFAULT_CONFIG.rate_limit_backoff_seconds,
        recursion_padding=DEFAULT_CONFIG.recursion_padding,
        poll_interval_seconds=poll_interval_seconds or DEFAULT_CONFIG.poll_interval_seconds,
        completed_job_ttl_seconds=completed_job_ttl_seconds
        if completed_job_ttl_seconds is not None
        else DEFAULT_CONFIG.completed_job_ttl_seconds,
        use_mock_llm=use_mock_llm
        if use_mock_llm is not None
        else DEFAULT_CONFIG.use_mock_llm,
    )
