"""Data contracts passed between the conversation and generation packages."""

from nomad.shared.contracts.trip_input import TravelerInfo, TripPreferences
from nomad.shared.contracts.itinerary_output import (
    Activity,
    DayPlan,
    CityItinerary,
    CostEstimate,
    TripMetadata,
    FinalItinerary,
)

__all__ = [
    "TravelerInfo",
    "TripPreferences",
    "Activity",
    "DayPlan",
    "CityItinerary",
    "CostEstimate",
    "TripMetadata",
    "FinalItinerary",
]
