"""
FastAPI endpoints for the generation pipeline.

Starts generation jobs in the background and exposes their progress for
polling. Callers poll GET /api/generation/{job_id} until the stage is
complete or error.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from nomad.generation.graph.config import DEFAULT_CONFIG
from nomad.generation.mock_data import MockCompletionClient
from nomad.generation.orchestrator import ProgressiveGenerator
from nomad.generation.registry import JobRegistry
from nomad.generation.schemas import GenerationParams, JobSnapshot
from nomad.shared.errors import JobNotFoundError
from nomad.shared.llm.client import OpenAICompletionClient
from nomad.shared.llm.rate_limiter import RateLimiter


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/generation", tags=["generation"])

# Registry instance (shared across requests)
_registry: Optional[JobRegistry] = None


def get_registry() -> JobRegistry:
    """Get or create the shared job registry."""
    global _registry
    if _registry is None:
        config = DEFAULT_CONFIG
        if config.use_mock_llm:
            logger.info("Generation running with the offline mock completion client")
            client = MockCompletionClient()
        else:
            client = OpenAICompletionClient(
                model=config.model,
                temperature=config.temperature,
                rate_limiter=RateLimiter(
                    max_requests=config.rate_limit_requests,
                    window_seconds=config.rate_limit_window_seconds,
                    backoff_seconds=config.rate_limit_backoff_seconds,
                ),
            )
        _registry = JobRegistry(ProgressiveGenerator(client, config), config)
    return _registry


async def shutdown_registry() -> None:
    """Cancel running jobs, if a registry was ever created."""
    if _registry is not None:
        await _registry.shutdown()


# ============================================================================
# Request/Response Models
# ============================================================================


class JobStartedResponse(BaseModel):
    """Response after a generation job is launched."""

    job_id: str = Field(description="Id to poll")
    poll_interval_seconds: float = Field(description="Suggested delay between polls")


class JobCancelledResponse(BaseModel):
    """Response to a cancellation request."""

    job_id: str
    cancelled: bool = Field(description="False if the job had already finished")


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/start", response_model=JobStartedResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_generation(params: GenerationParams) -> JobStartedResponse:
    """
    Launch a generation job and return immediately.

    Args:
        params: Finalized trip parameters

    Returns:
        Job id and the suggested poll interval
    """
    registry = get_registry()
    try:
        job_id = registry.start(params)
    except Exception as e:
        logger.exception(f"[api=generation/start] Failed to start job: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to start generation: {str(e)}",
        )

    return JobStartedResponse(
        job_id=job_id,
        poll_interval_seconds=registry.config.poll_interval_seconds,
    )


@router.get("/health")
async def health_check():
    """Health check endpoint for the generation service."""
    registry = get_registry()
    return {
        "status": "healthy",
        "agent": "generation",
        "mock_llm": registry.config.use_mock_llm,
        "tracked_jobs": len(registry),
    }


@router.get("/{job_id}", response_model=JobSnapshot, response_model_exclude_none=True)
async def poll_generation(job_id: str) -> JobSnapshot:
    """
    Current progress of a generation job.

    Fields that are not set (for example final_itinerary on an error) are
    omitted from the response.
    """
    try:
        return get_registry().poll(job_id)
    except JobNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job {job_id} not found",
        )


@router.delete("/{job_id}", response_model=JobCancelledResponse)
async def cancel_generation(job_id: str) -> JobCancelledResponse:
    """Request cancellation of a running job."""
    try:
        cancelled = get_registry().cancel(job_id)
    except JobNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job {job_id} not found",
        )
    return JobCancelledResponse(job_id=job_id, cancelled=cancelled)
