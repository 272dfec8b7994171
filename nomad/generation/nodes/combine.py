"""
Combine stage of the generation graph.

Merges the per-city itineraries into one trip-wide day list.
"""

import logging
from typing import Any, Dict

from langchain_core.runnables import RunnableConfig

from nomad.generation.schemas import GenerationState, ProgressEvent
from nomad.shared.contracts.itinerary_output import FinalItinerary


logger = logging.getLogger(__name__)

COMBINING_PERCENTAGE = 80


async def combine_node(state: GenerationState, config: RunnableConfig) -> Dict[str, Any]:
    """
    Combine city itineraries into the final itinerary.

    Days are sorted by trip-wide index and untitled days get a
    "Day N - City" title.

    Args:
        state: Current generation state
        config: Run config; `configurable` carries emitter and token

    Returns:
        State updates with the final itinerary
    """
    configurable = config["configurable"]
    emitter = configurable["emitter"]
    token = configurable["token"]

    metadata = state["metadata"]
    cities = state.get("cities") or []
    job_id = state.get("job_id")
    _log = f"[job={job_id or 'unknown'}] [graph=generation] [node=combine] "

    token.raise_if_cancelled(job_id)
    emitter.emit(
        ProgressEvent(
            stage="combining",
            percentage=COMBINING_PERCENTAGE,
            message="Combining city itineraries",
        )
    )

    days = sorted((day for city in cities for day in city.days), key=lambda day: day.day)
    days = [
        day if day.title else day.model_copy(update={"title": f"Day {day.day} - {day.city}"})
        for day in days
    ]

    indices = [day.day for day in days]
    if indices != list(range(1, metadata.duration + 1)):
        logger.warning(
            f"{_log}Combined itinerary has {len(indices)} of {metadata.duration} days"
        )

    itinerary = FinalItinerary(metadata=metadata, cities=list(cities), days=days)

    logger.info(f"{_log}Itinerary complete | cities={len(cities)}, days={len(days)} -> END")
    emitter.emit(
        ProgressEvent(
            stage="complete",
            percentage=100,
            message="Itinerary ready",
            itinerary=itinerary,
        )
    )

    return {"itinerary": itinerary}
