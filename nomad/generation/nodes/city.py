"""
City stage of the generation graph.

Runs once per destination, in order. Each run asks for exactly the
allocated number of days and re-bases whatever comes back onto the
city's slice of the trip calendar.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict

from langchain_core.runnables import RunnableConfig
from pydantic import ValidationError

from nomad.generation.nodes.metadata import METADATA_PERCENTAGE
from nomad.generation.prompts.builders import build_city_request
from nomad.generation.schemas import CityCompletion, GenerationState, ProgressEvent
from nomad.shared.contracts.itinerary_output import CityItinerary, DayPlan
from nomad.shared.errors import CityGenerationError, UpstreamError


logger = logging.getLogger(__name__)

# Share of the progress bar spent on the per-city stages
CITY_PERCENTAGE_SPAN = 60


def city_percentage(done: int, total: int) -> int:
    return METADATA_PERCENTAGE + (CITY_PERCENTAGE_SPAN * done) // total


def build_city_itinerary(
    raw: Dict[str, Any],
    city: str,
    allocated: int,
    start_day: int,
    start_date: date,
) -> CityItinerary:
    """
    Validate a city_itinerary completion and re-base it.

    Days are renumbered and re-dated by position from `start_day` and
    `start_date`. Surplus days are dropped; a shortfall is kept as-is.

    Raises:
        UpstreamError: If the response is malformed, empty, or more than
            twice the allocation
    """
    try:
        completion = CityCompletion.model_validate(raw)
    except ValidationError as e:
        raise UpstreamError(f"Malformed itinerary: {e}") from e

    returned = len(completion.days)
    if returned == 0:
        raise UpstreamError("No days returned")
    if returned > 2 * allocated:
        raise UpstreamError(f"Expected {allocated} days but got {returned}")
    if returned != allocated:
        logger.warning(f"{city} expected {allocated} days but got {returned}")

    days = [
        DayPlan(
            day=start_day + offset,
            date=(start_date + timedelta(days=offset)).isoformat(),
            city=city,
            title=draft.title,
            activities=draft.activities,
        )
        for offset, draft in enumerate(completion.days[:allocated])
    ]

    return CityItinerary(
        city=city,
        start_day=start_day,
        end_day=start_day + allocated - 1,
        days=days,
    )


async def city_node(state: GenerationState, config: RunnableConfig) -> Dict[str, Any]:
    """
    Generate the next destination's itinerary.

    Args:
        state: Current generation state
        config: Run config; `configurable` carries client, emitter and token

    Returns:
        State updates appending one CityItinerary and advancing the cursor
    """
    configurable = config["configurable"]
    client = configurable["client"]
    emitter = configurable["emitter"]
    token = configurable["token"]

    params = state["params"]
    metadata = state["metadata"]
    job_id = state.get("job_id")

    index = len(state.get("cities") or [])
    total = len(metadata.destinations)
    city = metadata.destinations[index]
    allocated = metadata.days_per_city[index]
    start_date = state["next_date"]
    start_day = state["next_day"]
    _log = f"[job={job_id or 'unknown'}] [graph=generation] [node=city] "

    token.raise_if_cancelled(job_id)
    logger.info(
        f"{_log}Entering node | city={city} ({index + 1}/{total}), "
        f"days={allocated}, start_day={start_day}, start_date={start_date}"
    )
    emitter.emit(
        ProgressEvent(
            stage="generating_city",
            percentage=city_percentage(index, total),
            message=f"Generating itinerary for {city}",
            city=city,
        )
    )

    request = build_city_request(city, allocated, start_day, start_date, params)
    try:
        raw = await client.complete(request)
        itinerary = build_city_itinerary(raw, city, allocated, start_day, start_date)
    except UpstreamError as e:
        logger.error(f"{_log}City generation failed | city={city}, error={e}")
        raise CityGenerationError(city, str(e)) from e

    logger.info(f"{_log}City complete | city={city}, days={len(itinerary.days)}")
    emitter.emit(
        ProgressEvent(
            stage="generating_city",
            percentage=city_percentage(index + 1, total),
            message=f"{city} itinerary ready",
            city=city,
            city_itinerary=itinerary,
        )
    )

    return {
        "cities": [itinerary],
        "next_date": start_date + timedelta(days=allocated),
        "next_day": start_day + allocated,
    }
