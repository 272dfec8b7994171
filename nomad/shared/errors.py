"""
Exception types shared across the conversation and generation packages.

Ambiguous user input is never raised: the conversation recovers from it by
re-prompting. Everything here represents a failure a caller has to handle.
"""

from typing import Optional


class NomadError(Exception):
    """Base class for all planner errors."""

    pass


class UpstreamError(NomadError):
    """Raised when the text-completion capability fails or returns malformed data."""

    pass


class CityGenerationError(UpstreamError):
    """Raised when a single destination's itinerary cannot be generated."""

    def __init__(self, city: str, reason: str):
        self.city = city
        self.reason = reason
        super().__init__(f"Failed to generate itinerary for {city}: {reason}")


class GenerationCancelled(NomadError):
    """Raised inside a generation run once its cancellation token is set."""

    def __init__(self, job_id: Optional[str] = None):
        self.job_id = job_id
        super().__init__("Generation cancelled")


class JobNotFoundError(NomadError):
    """Raised when polling or cancelling an unknown (or evicted) job id."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Generation job not found: {job_id}")


class ContextDeserializationError(NomadError):
    """Raised when a serialized conversation context cannot be restored."""

    pass
