"""
Generation job registry.

Starts generation jobs as background asyncio tasks and lets callers poll
them by id. Each job has exactly one writer (its own task); every write
replaces the job's frozen snapshot, so readers never see a half-updated
record.
"""

import asyncio
import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from nomad.generation.graph.config import GenerationConfig, DEFAULT_CONFIG
from nomad.generation.orchestrator import CancellationToken, ProgressiveGenerator
from nomad.generation.schemas import GenerationParams, JobSnapshot, ProgressEvent
from nomad.shared.errors import GenerationCancelled, JobNotFoundError, NomadError


logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Generation cancelled"


@dataclass
class GenerationJob:
    """Registry record for one generation job."""

    job_id: str
    params: GenerationParams
    snapshot: JobSnapshot
    token: CancellationToken = field(default_factory=CancellationToken)
    task: Optional["asyncio.Task[None]"] = None
    created_at: float = 0.0
    finished_at: Optional[float] = None


class JobRegistry:
    """
    In-memory registry of generation jobs.

    Finished jobs stay pollable for `completed_job_ttl_seconds` and are
    evicted lazily on the next start or poll.

    Args:
        generator: Orchestrator that runs each job
        config: Generation configuration
        clock: Monotonic clock, injectable for tests
    """

    def __init__(
        self,
        generator: ProgressiveGenerator,
        config: GenerationConfig = DEFAULT_CONFIG,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.generator = generator
        self.config = config
        self._clock = clock
        self._jobs: Dict[str, GenerationJob] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._jobs)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def start(self, params: GenerationParams) -> str:
        """
        Register a job and launch it in the background.

        Must be called from inside a running event loop. Returns as soon as
        the task is scheduled.

        Args:
            params: Finalized trip parameters

        Returns:
            The new job id
        """
        self._evict_expired()

        job_id = str(uuid.uuid4())
        job = GenerationJob(
            job_id=job_id,
            params=params,
            snapshot=JobSnapshot(
                job_id=job_id,
                stage="started",
                percentage=0,
                message="Generation started",
            ),
            created_at=self._clock(),
        )
        with self._lock:
            self._jobs[job_id] = job

        job.task = asyncio.create_task(self._run(job))
        logger.info(
            f"[job={job_id}] [registry] Job started | session={params.session_id}, "
            f"destinations={params.destinations}, duration={params.duration}d"
        )
        return job_id

    def poll(self, job_id: str) -> JobSnapshot:
        """
        Current snapshot of a job.

        Raises:
            JobNotFoundError: If the id is unknown or the job was evicted
        """
        self._evict_expired()
        return self._get(job_id).snapshot

    def cancel(self, job_id: str) -> bool:
        """
        Request cancellation of a running job.

        The job stops at its next stage boundary and ends in the error
        stage with "Generation cancelled".

        Returns:
            False if the job had already finished, True otherwise

        Raises:
            JobNotFoundError: If the id is unknown or the job was evicted
        """
        job = self._get(job_id)
        if job.snapshot.is_terminal:
            return False
        job.token.cancel()
        logger.info(f"[job={job_id}] [registry] Cancellation requested")
        return True

    async def wait(self, job_id: str) -> JobSnapshot:
        """Wait for a job's task to finish and return its final snapshot."""
        job = self._get(job_id)
        if job.task is not None:
            await job.task
        return job.snapshot

    async def shutdown(self) -> None:
        """Cancel every running job and wait for their tasks to finish."""
        running = [job for job in list(self._jobs.values()) if not job.snapshot.is_terminal]
        for job in running:
            job.token.cancel()

        tasks = [job.task for job in running if job.task is not None]
        if tasks:
            logger.info(f"[registry] Shutting down | cancelling {len(tasks)} running job(s)")
            await asyncio.gather(*tasks, return_exceptions=True)

    # -------------------------------------------------------------------------
    # Job execution
    # -------------------------------------------------------------------------

    async def _run(self, job: GenerationJob) -> None:
        _log = f"[job={job.job_id}] [registry] "
        try:
            await self.generator.generate_progressive(
                job.params,
                on_progress=lambda event: self._publish(job, event),
                token=job.token,
                job_id=job.job_id,
            )
        except GenerationCancelled:
            logger.info(f"{_log}Job cancelled")
            self._fail(job, CANCELLED_MESSAGE)
        except NomadError as e:
            logger.warning(f"{_log}Job failed: {e}")
            self._fail(job, str(e))
        except asyncio.CancelledError:
            self._fail(job, CANCELLED_MESSAGE)
            raise
        except Exception as e:
            logger.exception(f"{_log}Job failed unexpectedly: {e}")
            self._fail(job, f"Unexpected error: {e}")
        finally:
            job.finished_at = self._clock()
            logger.info(
                f"{_log}Job finished | stage={job.snapshot.stage}, "
                f"percentage={job.snapshot.percentage}"
            )

    def _publish(self, job: GenerationJob, event: ProgressEvent) -> None:
        current = job.snapshot
        if current.is_terminal:
            return

        if event.stage == "error":
            job.snapshot = JobSnapshot(
                job_id=job.job_id,
                stage="error",
                percentage=current.percentage,
                message=event.message,
                error=event.error or event.message,
            )
            return

        city_data = list(current.city_data or [])
        if event.city_itinerary is not None:
            city_data.append(event.city_itinerary)

        job.snapshot = JobSnapshot(
            job_id=job.job_id,
            stage=event.stage,
            percentage=max(current.percentage, event.percentage),
            message=event.message,
            city=event.city,
            metadata=event.metadata or current.metadata,
            city_data=city_data or None,
            final_itinerary=event.itinerary,
        )

    def _fail(self, job: GenerationJob, error: str) -> None:
        self._publish(job, ProgressEvent(stage="error", percentage=0, message=error, error=error))

    # -------------------------------------------------------------------------
    # Bookkeeping
    # -------------------------------------------------------------------------

    def _get(self, job_id: str) -> GenerationJob:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def _evict_expired(self) -> None:
        now = self._clock()
        ttl = self.config.completed_job_ttl_seconds
        with self._lock:
            expired = [
                job_id
                for job_id, job in self._jobs.items()
                if job.finished_at is not None and now - job.finished_at >= ttl
            ]
            for job_id in expired:
                del self._jobs[job_id]

        if expired:
            logger.info(f"[registry] Evicted {len(expired)} finished job(s)")
