"""
Routing logic for the generation graph.

Determines which stage runs next based on what has been produced so far.
"""

import logging
from typing import Literal

from nomad.generation.schemas import GenerationState


logger = logging.getLogger(__name__)


def route_next_stage(
    state: GenerationState,
) -> Literal["metadata_node", "city_node", "combine_node"]:
    """
    Determine the next stage to execute based on populated state.

    Routing logic:
    1. If metadata is missing -> run metadata
    2. If some destination has no itinerary yet -> run city (next in order)
    3. Otherwise -> combine

    Args:
        state: Current generation state

    Returns:
        Name of the next node to execute
    """
    job_id = state.get("job_id") or "unknown"
    _log = f"[job={job_id}] [graph=generation] [router=route_next_stage] "

    metadata = state.get("metadata")
    done = len(state.get("cities") or [])

    if metadata is None:
        logger.info(f"{_log}Routing to 'metadata_node'")
        return "metadata_node"

    total = len(metadata.destinations)
    if done < total:
        logger.info(
            f"{_log}Routing to 'city_node' | city={metadata.destinations[done]}, "
            f"done={done}/{total}"
        )
        return "city_node"

    logger.info(f"{_log}Routing to 'combine_node' | done={done}/{total}")
    return "combine_node"
