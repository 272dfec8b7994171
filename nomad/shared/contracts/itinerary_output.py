"""
Itinerary output contracts.

Defines the trip metadata, per-city itineraries and the combined itinerary
produced by the progressive generation pipeline. Every model is frozen:
once a stage publishes one, pollers may hold on to it indefinitely.
"""

from typing import List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Activity(BaseModel):
    """A single scheduled activity within a day."""

    model_config = ConfigDict(frozen=True)

    time: str = Field(description="Start time (e.g., '09:00')")
    description: str = Field(min_length=1, description="What the traveler does")
    category: str = Field(
        min_length=1,
        description="Category (Attraction, Food, Leisure, Work, Travel, Accommodation)",
    )
    address: Optional[str] = Field(default=None, description="Street address")
    venue_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("venue_name", "venueName"),
        description="Named venue",
    )
    tips: Optional[str] = Field(default=None, description="Short practical tip")


class DayPlan(BaseModel):
    """One day of the trip, indexed across all destinations."""

    model_config = ConfigDict(frozen=True)

    day: int = Field(ge=1, description="Trip-wide day index (1-indexed)")
    date: str = Field(description="Date in YYYY-MM-DD format")
    city: str = Field(description="City for this day")
    title: Optional[str] = Field(default=None, description="Day title")
    activities: List[Activity] = Field(default_factory=list)


class CityItinerary(BaseModel):
    """One destination's days and the trip-wide day range it occupies."""

    model_config = ConfigDict(frozen=True)

    city: str
    start_day: int = Field(ge=1)
    end_day: int = Field(ge=1)
    days: List[DayPlan] = Field(default_factory=list)


class CostEstimate(BaseModel):
    """Coarse trip cost estimate."""

    model_config = ConfigDict(frozen=True)

    total: float = Field(ge=0)
    currency: str = Field(default="USD")


class TripMetadata(BaseModel):
    """Trip-level facts produced once per generation job."""

    model_config = ConfigDict(frozen=True)

    title: str
    destinations: List[str]
    start_date: str = Field(description="Trip start date (YYYY-MM-DD)")
    end_date: str = Field(description="Trip end date (YYYY-MM-DD)")
    duration: int = Field(ge=1)
    days_per_city: List[int]
    estimated_cost: Optional[CostEstimate] = None
    quick_tips: List[str] = Field(default_factory=list)


class FinalItinerary(BaseModel):
    """
    Combined result of a generation job.

    `days` is the trip-wide day list sorted by day index; `cities` keeps the
    per-destination grouping in destination order.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "metadata": {
                    "title": "London & Brussels Journey",
                    "destinations": ["London", "Brussels"],
                    "start_date": "2025-09-25",
                    "end_date": "2025-09-26",
                    "duration": 2,
                    "days_per_city": [1, 1],
                    "estimated_cost": {"total": 500.0, "currency": "USD"},
                    "quick_tips": ["Get an Oyster card for London transport"],
                },
                "cities": [],
                "days": [
                    {
                        "day": 1,
                        "date": "2025-09-25",
                        "city": "London",
                        "title": "Day 1 - London",
                        "activities": [
                            {
                                "time": "09:00",
                                "description": "Visit the Tower of London",
                                "category": "Attraction",
                                "venue_name": "Tower of London",
                            }
                        ],
                    }
                ],
            }
        },
    )

    metadata: TripMetadata
    cities: List[CityItinerary] = Field(default_factory=list)
    days: List[DayPlan] = Field(default_factory=list)
