"""
Prompt builders for the generation pipeline.

These functions turn generation parameters into CompletionRequests. The
structured parameters travel alongside the prompts in `payload`, so offline
clients can answer without parsing prose.
"""

from datetime import date, timedelta
from typing import List

from nomad.generation.prompts.templates import (
    ACTIVITY_CATEGORIES,
    CITY_SYSTEM_PROMPT,
    CITY_USER_TEMPLATE,
    METADATA_SYSTEM_PROMPT,
    METADATA_USER_TEMPLATE,
)
from nomad.generation.schemas import GenerationParams
from nomad.shared.llm.client import CompletionRequest


def build_trip_details(params: GenerationParams) -> str:
    """
    Build the optional traveler and preference lines.

    Args:
        params: Generation parameters

    Returns:
        Newline-terminated lines, or an empty string when nothing is known
    """
    lines: List[str] = []

    if params.travelers is not None:
        travelers = params.travelers
        who = travelers.type if travelers.count is None else f"{travelers.count} ({travelers.type})"
        lines.append(f"Travelers: {who}")

    prefs = params.preferences
    if prefs is not None:
        if prefs.trip_type:
            lines.append(f"Trip type: {prefs.trip_type}")
        if prefs.activities:
            lines.append(f"Interests: {', '.join(prefs.activities)}")
        if prefs.budget:
            lines.append(f"Budget level: {prefs.budget}")
        if prefs.dietary:
            lines.append(f"Dietary needs: {', '.join(prefs.dietary)}")
        if prefs.needs_coworking:
            lines.append("Include a coworking space on weekdays (category Work).")
        if prefs.special_requests:
            lines.append(f"Special requests: {'; '.join(prefs.special_requests)}")

    return "".join(f"{line}\n" for line in lines)


def build_metadata_request(params: GenerationParams) -> CompletionRequest:
    """Build the single trip_metadata request for a job."""
    user_prompt = METADATA_USER_TEMPLATE.format(
        destinations=", ".join(params.destinations),
        duration=params.duration,
        start_date=params.start_date.isoformat(),
        details=build_trip_details(params),
    )
    return CompletionRequest(
        task="trip_metadata",
        system_prompt=METADATA_SYSTEM_PROMPT,
        user_prompt=user_prompt,
        payload=params.model_dump(mode="json"),
    )


def build_city_request(
    city: str,
    days: int,
    start_day: int,
    start_date: date,
    params: GenerationParams,
) -> CompletionRequest:
    """
    Build the city_itinerary request for one destination.

    Args:
        city: Destination name
        days: Allocated day count
        start_day: Trip-wide index of the city's first day
        start_date: Calendar date of the city's first day
        params: Generation parameters (for travelers and preferences)

    Returns:
        CompletionRequest asking for exactly `days` days
    """
    end_day = start_day + days - 1
    user_prompt = CITY_USER_TEMPLATE.format(
        city=city,
        days=days,
        start_day=start_day,
        end_day=end_day,
        start_date=start_date.isoformat(),
        details=build_trip_details(params),
        categories=", ".join(ACTIVITY_CATEGORIES),
    )
    return CompletionRequest(
        task="city_itinerary",
        system_prompt=CITY_SYSTEM_PROMPT,
        user_prompt=user_prompt,
        payload={
            "city": city,
            "days": days,
            "start_day": start_day,
            "start_date": start_date.isoformat(),
            "end_date": (start_date + timedelta(days=days - 1)).isoformat(),
            "preferences": params.preferences.model_dump(mode="json") if params.preferences else None,
        },
    )
