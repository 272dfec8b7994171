"""
Metadata stage of the generation graph.

Asks the completion capability for trip-level metadata and validates it
against the generation parameters before anything else runs.
"""

import logging
from datetime import timedelta
from typing import Any, Dict

from langchain_core.runnables import RunnableConfig
from pydantic import ValidationError

from nomad.generation.prompts.builders import build_metadata_request
from nomad.generation.schemas import (
    GenerationParams,
    GenerationState,
    MetadataCompletion,
    ProgressEvent,
)
from nomad.shared.contracts.itinerary_output import TripMetadata
from nomad.shared.errors import UpstreamError


logger = logging.getLogger(__name__)

METADATA_PERCENTAGE = 20


def build_trip_metadata(raw: Dict[str, Any], params: GenerationParams) -> TripMetadata:
    """
    Validate a trip_metadata completion and build TripMetadata from it.

    A user-stated allocation always wins over the model's. Start and end
    dates are computed locally from the parameters.

    Args:
        raw: Decoded completion response
        params: Generation parameters

    Returns:
        Validated TripMetadata

    Raises:
        UpstreamError: If the response is malformed, names different
            destinations, or carries an unusable allocation
    """
    try:
        completion = MetadataCompletion.model_validate(raw)
    except ValidationError as e:
        raise UpstreamError(f"Malformed trip metadata: {e}") from e

    returned = [d.strip().casefold() for d in completion.destinations]
    expected = [d.strip().casefold() for d in params.destinations]
    if returned != expected:
        raise UpstreamError(
            f"Trip metadata lists destinations {completion.destinations}, "
            f"expected {params.destinations}"
        )

    if params.days_per_city is not None:
        allocation = list(params.days_per_city)
        if completion.days_per_city != allocation:
            logger.warning(
                f"Ignoring model allocation {completion.days_per_city}, "
                f"user asked for {allocation}"
            )
    else:
        allocation = list(completion.days_per_city)
        if len(allocation) != len(params.destinations):
            raise UpstreamError(
                f"Allocation {allocation} does not match {len(params.destinations)} destinations"
            )
        if any(days < 1 for days in allocation):
            raise UpstreamError(f"Allocation {allocation} gives a destination no days")
        if sum(allocation) != params.duration:
            raise UpstreamError(
                f"Allocation {allocation} sums to {sum(allocation)}, expected {params.duration}"
            )

    end_date = params.start_date + timedelta(days=params.duration - 1)
    return TripMetadata(
        title=completion.title,
        destinations=list(params.destinations),
        start_date=params.start_date.isoformat(),
        end_date=end_date.isoformat(),
        duration=params.duration,
        days_per_city=allocation,
        estimated_cost=completion.estimated_cost,
        quick_tips=completion.quick_tips,
    )


async def metadata_node(state: GenerationState, config: RunnableConfig) -> Dict[str, Any]:
    """
    Produce trip metadata.

    Args:
        state: Current generation state
        config: Run config; `configurable` carries client, emitter and token

    Returns:
        State updates with metadata and the running date/day cursor
    """
    configurable = config["configurable"]
    client = configurable["client"]
    emitter = configurable["emitter"]
    token = configurable["token"]

    params = state["params"]
    job_id = state.get("job_id")
    _log = f"[job={job_id or 'unknown'}] [graph=generation] [node=metadata] "

    token.raise_if_cancelled(job_id)
    logger.info(
        f"{_log}Entering node | destinations={params.destinations}, "
        f"duration={params.duration}d, start={params.start_date}"
    )

    raw = await client.complete(build_metadata_request(params))
    metadata = build_trip_metadata(raw, params)

    logger.info(f"{_log}Metadata ready | title={metadata.title!r}, allocation={metadata.days_per_city}")
    emitter.emit(
        ProgressEvent(
            stage="metadata_ready",
            percentage=METADATA_PERCENTAGE,
            message=f"Planned {metadata.title}",
            metadata=metadata,
        )
    )

    return {
        "metadata": metadata,
        "next_date": params.start_date,
        "next_day": 1,
    }
