"""
Schemas for the progressive generation pipeline.

Defines the LangGraph state schema, the generation parameters, the progress
events and job snapshots exposed to pollers, and the pydantic models used
to validate what the completion capability returns.
"""

import operator
from datetime import date
from typing import Annotated, List, Literal, Optional, TypedDict

from pydantic import BaseModel, ConfigDict, Field, model_validator

from nomad.shared.contracts.itinerary_output import (
    Activity,
    CityItinerary,
    CostEstimate,
    FinalItinerary,
    TripMetadata,
)
from nomad.shared.contracts.trip_input import TravelerInfo, TripPreferences


GenerationStage = Literal[
    "started",
    "metadata_ready",
    "generating_city",
    "combining",
    "complete",
    "error",
]

TERMINAL_STAGES = frozenset({"complete", "error"})


# =============================================================================
# Generation Parameters
# =============================================================================


class GenerationParams(BaseModel):
    """Finalized trip parameters that start one generation job."""

    destinations: List[str] = Field(min_length=1, description="Destinations in visiting order")
    duration: int = Field(ge=1, description="Total trip length in days")
    start_date: date = Field(description="First day of the trip")
    days_per_city: Optional[List[int]] = Field(
        default=None, description="User-stated allocation, if any"
    )
    travelers: Optional[TravelerInfo] = None
    preferences: Optional[TripPreferences] = None
    session_id: Optional[str] = Field(
        default=None, description="Conversation that requested the job"
    )

    @model_validator(mode="after")
    def _check_allocation(self) -> "GenerationParams":
        if self.duration < len(self.destinations):
            raise ValueError(
                f"duration ({self.duration}) must give every destination at least one day"
            )
        if self.days_per_city is not None:
            if len(self.days_per_city) != len(self.destinations):
                raise ValueError("days_per_city must have one entry per destination")
            if any(days < 1 for days in self.days_per_city):
                raise ValueError("days_per_city entries must be at least 1")
            if sum(self.days_per_city) != self.duration:
                raise ValueError(
                    f"days_per_city sums to {sum(self.days_per_city)}, "
                    f"expected {self.duration}"
                )
        return self


# =============================================================================
# Progress and Job Snapshots
# =============================================================================


class ProgressEvent(BaseModel):
    """One progress notification emitted by the orchestrator."""

    model_config = ConfigDict(frozen=True)

    stage: GenerationStage
    percentage: int = Field(ge=0, le=100)
    message: str
    city: Optional[str] = None
    metadata: Optional[TripMetadata] = None
    city_itinerary: Optional[CityItinerary] = None
    itinerary: Optional[FinalItinerary] = None
    error: Optional[str] = None


class JobSnapshot(BaseModel):
    """
    Immutable view of a job at one point in time.

    The registry replaces a job's snapshot wholesale on every write, so a
    poller always sees a consistent record.
    """

    model_config = ConfigDict(frozen=True)

    job_id: str
    stage: GenerationStage
    percentage: int = Field(ge=0, le=100)
    message: str
    city: Optional[str] = None
    metadata: Optional[TripMetadata] = None
    city_data: Optional[List[CityItinerary]] = None
    final_itinerary: Optional[FinalItinerary] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES


# =============================================================================
# Completion Response Validation
# =============================================================================


class MetadataCompletion(BaseModel):
    """Expected shape of a trip_metadata completion."""

    title: str = Field(min_length=1)
    destinations: List[str] = Field(min_length=1)
    days_per_city: List[int] = Field(min_length=1)
    estimated_cost: Optional[CostEstimate] = None
    quick_tips: List[str] = Field(default_factory=list)


class DraftDay(BaseModel):
    """A day as returned by a city_itinerary completion, before re-basing."""

    day: Optional[int] = None
    date: Optional[str] = None
    title: Optional[str] = None
    activities: List[Activity] = Field(min_length=1)


class CityCompletion(BaseModel):
    """Expected shape of a city_itinerary completion."""

    city: Optional[str] = None
    days: List[DraftDay]


# =============================================================================
# LangGraph State Schema
# =============================================================================


class GenerationState(TypedDict):
    """
    State schema for the generation graph.

    `next_date` and `next_day` carry the running calendar date and day index
    from one city stage to the next.
    """

    params: GenerationParams
    job_id: Optional[str]
    metadata: Optional[TripMetadata]
    cities: Annotated[List[CityItinerary], operator.add]
    next_date: Optional[date]
    next_day: int
    itinerary: Optional[FinalItinerary]
