"""
Trip input contracts.

Traveler and preference details collected by the conversation and handed
to the generation pipeline as part of its parameters.
"""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class TravelerInfo(BaseModel):
    """Who is travelling. The count stays empty unless the user gave one."""

    count: Optional[int] = Field(default=None, ge=1, description="Number of travelers")
    type: Literal["solo", "couple", "family", "group"] = Field(
        description="Traveler group type"
    )
    description: Optional[str] = Field(
        default=None, description="User's own words about the group"
    )


class TripPreferences(BaseModel):
    """Free-form preferences accumulated from recognized keywords."""

    trip_type: Optional[Literal["vacation", "business", "workation"]] = Field(
        default=None, description="Kind of trip"
    )
    activities: List[str] = Field(default_factory=list, description="Activity interests")
    budget: Optional[Literal["budget", "moderate", "luxury"]] = Field(
        default=None, description="Budget tier"
    )
    dietary: List[str] = Field(default_factory=list, description="Dietary needs")
    needs_coworking: bool = Field(default=False, description="Needs coworking spaces")
    special_requests: List[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (
            self.trip_type
            or self.activities
            or self.budget
            or self.dietary
            or self.needs_coworking
            or self.special_requests
        )
