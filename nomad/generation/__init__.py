"""
Progressive itinerary generation.

Produces trip metadata, then one itinerary per destination, then the
combined itinerary, reporting progress to a poll-based job registry.
"""

from nomad.generation.schemas import GenerationParams, JobSnapshot
from nomad.generation.orchestrator import ProgressiveGenerator
from nomad.generation.registry import JobRegistry

__all__ = ["GenerationParams", "JobSnapshot", "ProgressiveGenerator", "JobRegistry"]
