"""
Offline completion client for the generation pipeline.

Answers trip_metadata and city_itinerary requests from their structured
payloads with hardcoded but destination-aware content, for demos and tests
without LLM calls. Individual cities can be made to fail, or to return the
wrong number of days.
"""

import asyncio
import logging
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from nomad.conversation.multi_city import distribute_days
from nomad.shared.errors import UpstreamError
from nomad.shared.llm.client import CompletionRequest


logger = logging.getLogger(__name__)


# Daily cost per budget level (USD)
_DAILY_COST = {
    "budget": 150,
    "moderate": 250,
    "luxury": 500,
}

_DESTINATION_TIPS = {
    "london": "Get an Oyster card for London transport",
    "paris": "Book Eiffel Tower tickets in advance",
    "brussels": "Try authentic Belgian waffles and chocolate",
    "rome": "Book Vatican tickets online to skip lines",
    "barcelona": "Visit Sagrada Familia early morning",
    "amsterdam": "Rent bikes to explore like a local",
    "berlin": "Get the Berlin Welcome Card for transport",
    "prague": "Exchange money - many places don't accept cards",
    "vienna": "Try the famous Sachertorte cake",
    "budapest": "Visit the thermal baths for relaxation",
}

_GENERAL_TIPS = [
    "Check visa requirements for your nationality",
    "Get travel insurance before departure",
]

# Daily activity templates by time slot: (time, description, category)
_MORNING = [
    ("09:00", "Walking tour of the old town", "Attraction"),
    ("09:30", "Visit the city museum", "Attraction"),
    ("09:00", "Morning market visit", "Leisure"),
]

_MIDDAY = [
    ("11:00", "Explore a historic landmark", "Attraction"),
    ("11:00", "Guided cultural site visit", "Attraction"),
]

_LUNCH = [
    ("12:30", "Lunch at a local restaurant", "Food"),
    ("13:00", "Street food tasting", "Food"),
]

_AFTERNOON = [
    ("14:00", "Neighborhood exploration", "Leisure"),
    ("16:00", "Park stroll and coffee", "Leisure"),
    ("14:00", "Shopping for local crafts", "Leisure"),
]

_DINNER = [
    ("19:00", "Dinner at a recommended restaurant", "Food"),
    ("19:30", "Evening food market", "Food"),
]


def _trip_title(destinations: List[str]) -> str:
    if len(destinations) == 1:
        return f"{destinations[0]} Adventure"
    if len(destinations) == 2:
        return f"{' & '.join(destinations)} Journey"
    return f"{' & '.join(destinations)} Tour"


def _quick_tips(destinations: Iterable[str]) -> List[str]:
    tips = []
    for destination in destinations:
        lower = destination.lower()
        tips.extend(tip for key, tip in _DESTINATION_TIPS.items() if key in lower)
    if len(tips) < 2:
        tips.extend(_GENERAL_TIPS)
    return tips[:4]


def _day_activities(day_number: int, city: str, coworking: bool) -> List[Dict[str, Any]]:
    """
    Generate activities for a single day.

    Args:
        day_number: Trip-wide day number
        city: City for this day
        coworking: Whether to add a coworking block

    Returns:
        List of activity dicts in the completion wire format
    """
    idx = day_number - 1
    slots = [
        _MORNING[idx % len(_MORNING)],
        _MIDDAY[idx % len(_MIDDAY)],
        _LUNCH[idx % len(_LUNCH)],
        _AFTERNOON[idx % len(_AFTERNOON)],
        _DINNER[idx % len(_DINNER)],
    ]
    if coworking:
        slots[1] = ("10:30", "Work session at a coworking space", "Work")

    return [
        {
            "time": time,
            "description": f"{description} in {city}",
            "category": category,
            "venueName": f"{city} {category} spot {day_number}",
        }
        for time, description, category in slots
    ]


class MockCompletionClient:
    """
    Deterministic, offline TextCompletionClient.

    Args:
        fail_cities: Cities whose itinerary request raises UpstreamError
        day_count_overrides: Number of days to return for specific cities
        delay_seconds: Simulated latency per request
    """

    def __init__(
        self,
        fail_cities: Optional[Iterable[str]] = None,
        day_count_overrides: Optional[Dict[str, int]] = None,
        delay_seconds: float = 0.0,
    ):
        self.fail_cities = {city.casefold() for city in (fail_cities or [])}
        self.day_count_overrides = dict(day_count_overrides or {})
        self.delay_seconds = delay_seconds
        self.requests: List[CompletionRequest] = []

    async def complete(self, request: CompletionRequest) -> Dict[str, Any]:
        self.requests.append(request)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

        if request.task == "trip_metadata":
            return self._metadata(request.payload)
        return self._city(request.payload)

    def _metadata(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        destinations = payload["destinations"]
        duration = payload["duration"]
        allocation = payload.get("days_per_city") or distribute_days(duration, len(destinations))
        budget = (payload.get("preferences") or {}).get("budget")

        return {
            "title": _trip_title(destinations),
            "destinations": destinations,
            "days_per_city": allocation,
            "estimated_cost": {
                "total": float(duration * _DAILY_COST.get(budget, 250)),
                "currency": "USD",
            },
            "quick_tips": _quick_tips(destinations),
        }

    def _city(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        city = payload["city"]
        if city.casefold() in self.fail_cities:
            logger.info(f"Mock completion failing for {city}")
            raise UpstreamError(f"Mock failure for {city}")

        count = self.day_count_overrides.get(city, payload["days"])
        start_day = payload["start_day"]
        start = date.fromisoformat(payload["start_date"])
        coworking = bool((payload.get("preferences") or {}).get("needs_coworking"))

        days = []
        for offset in range(count):
            day_number = start_day + offset
            days.append(
                {
                    "day": day_number,
                    "date": (start + timedelta(days=offset)).isoformat(),
                    "title": f"Day {day_number} - {city}",
                    "activities": _day_activities(day_number, city, coworking),
                }
            )

        return {"city": city, "days": days}
