"""
Progressive generation orchestrator.

Runs the generation graph for one job and reports progress as it goes:
started -> metadata_ready -> generating_city* -> combining -> complete, or
error from anywhere. Progress callbacks are fire-and-forget; a failing
callback never stops generation.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Set, Union

from nomad.generation.graph.build import create_generation_graph
from nomad.generation.graph.config import GenerationConfig, DEFAULT_CONFIG
from nomad.generation.schemas import GenerationParams, ProgressEvent
from nomad.shared.contracts.itinerary_output import FinalItinerary
from nomad.shared.errors import GenerationCancelled
from nomad.shared.llm.client import TextCompletionClient
from nomad.shared.logging.config import log_state_transition


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], Union[None, Awaitable[None]]]


class CancellationToken:
    """Cooperative cancellation flag checked between generation stages."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self, job_id: Optional[str] = None) -> None:
        if self._cancelled:
            raise GenerationCancelled(job_id)


class ProgressEmitter:
    """
    Delivers progress events to an optional callback.

    Percentages are clamped so they never decrease. Coroutine callbacks are
    scheduled as tasks and not awaited; synchronous callbacks that raise are
    logged and ignored.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None, job_id: Optional[str] = None):
        self._callback = callback
        self.job_id = job_id
        self.last_percentage = 0
        self._pending: Set["asyncio.Future[Any]"] = set()

    def emit(self, event: ProgressEvent) -> None:
        if event.percentage < self.last_percentage:
            event = event.model_copy(update={"percentage": self.last_percentage})
        self.last_percentage = event.percentage

        log_state_transition(
            "job_stage",
            {"job_id": self.job_id, "stage": event.stage, "percentage": event.percentage},
            extra={"city": event.city} if event.city else None,
        )

        if self._callback is None:
            return

        try:
            result = self._callback(event)
        except Exception:
            logger.exception(f"[job={self.job_id}] Progress callback failed | stage={event.stage}")
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._pending.add(task)
            task.add_done_callback(self._on_callback_done)

    def _on_callback_done(self, task: "asyncio.Future[Any]") -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"[job={self.job_id}] Async progress callback failed: {task.exception()}")


class ProgressiveGenerator:
    """
    Generates an itinerary in stages through the generation graph.

    Args:
        client: Completion client used by every stage
        config: Generation configuration
    """

    def __init__(self, client: TextCompletionClient, config: GenerationConfig = DEFAULT_CONFIG):
        self.client = client
        self.config = config
        self._graph = create_generation_graph()

    async def generate_progressive(
        self,
        params: GenerationParams,
        on_progress: Optional[ProgressCallback] = None,
        token: Optional[CancellationToken] = None,
        job_id: Optional[str] = None,
    ) -> FinalItinerary:
        """
        Run one generation job to completion.

        Args:
            params: Finalized trip parameters
            on_progress: Optional progress callback (sync or async)
            token: Optional cancellation token
            job_id: Optional id used in logs and transition events

        Returns:
            The combined itinerary

        Raises:
            UpstreamError: If metadata generation fails
            CityGenerationError: If a destination's itinerary fails
            GenerationCancelled: If the token is cancelled mid-run
        """
        token = token or CancellationToken()
        emitter = ProgressEmitter(on_progress, job_id)
        _log = f"[job={job_id or 'unknown'}] [graph=generation] "

        logger.info(
            f"{_log}Generation starting | destinations={params.destinations}, "
            f"duration={params.duration}d, start={params.start_date}"
        )
        emitter.emit(ProgressEvent(stage="started", percentage=0, message="Generation started"))

        initial_state = {
            "params": params,
            "job_id": job_id,
            "metadata": None,
            "cities": [],
            "next_date": None,
            "next_day": 1,
            "itinerary": None,
        }
        run_config = {
            "configurable": {"client": self.client, "emitter": emitter, "token": token},
            "recursion_limit": len(params.destinations) + self.config.recursion_padding,
        }

        try:
            final_state = await self._graph.ainvoke(initial_state, run_config)
        except Exception as e:
            logger.error(f"{_log}Generation failed: {e}")
            emitter.emit(
                ProgressEvent(
                    stage="error",
                    percentage=emitter.last_percentage,
                    message=str(e),
                    error=str(e),
                )
            )
            raise

        logger.info(f"{_log}Generation finished | days={len(final_state['itinerary'].days)}")
        return final_state["itinerary"]
