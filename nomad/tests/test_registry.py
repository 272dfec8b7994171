"""
Tests for the generation job registry.
"""

import asyncio
from datetime import date

import pytest

from nomad.generation.graph import get_config
from nomad.generation.mock_data import MockCompletionClient
from nomad.generation.orchestrator import ProgressiveGenerator
from nomad.generation.registry import CANCELLED_MESSAGE, JobRegistry
from nomad.generation.schemas import GenerationParams
from nomad.shared.errors import JobNotFoundError


def _make_params() -> GenerationParams:
    return GenerationParams(
        destinations=["London", "Brussels"],
        duration=14,
        start_date=date(2025, 9, 25),
        session_id="test-session",
    )


def _make_registry(client=None, clock=None, ttl=300.0) -> JobRegistry:
    config = get_config(completed_job_ttl_seconds=ttl, use_mock_llm=True)
    generator = ProgressiveGenerator(client or MockCompletionClient(), config)
    if clock is None:
        return JobRegistry(generator, config)
    return JobRegistry(generator, config, clock=clock)


class TestJobLifecycle:
    """Tests for starting and polling jobs."""

    def test_successful_job(self):
        async def run():
            registry = _make_registry()
            job_id = registry.start(_make_params())
            initial = registry.poll(job_id)
            final = await registry.wait(job_id)
            return initial, final

        initial, final = asyncio.run(run())

        assert initial.stage == "started"
        assert initial.percentage == 0
        assert final.stage == "complete"
        assert final.percentage == 100
        assert len(final.final_itinerary.days) == 14
        assert [city.city for city in final.city_data] == ["London", "Brussels"]
        assert final.metadata.days_per_city == [7, 7]

    def test_failed_city_reports_error_only(self):
        async def run():
            registry = _make_registry(MockCompletionClient(fail_cities=["Brussels"]))
            job_id = registry.start(_make_params())
            return await registry.wait(job_id)

        snapshot = asyncio.run(run())

        assert snapshot.stage == "error"
        assert "Brussels" in snapshot.error
        assert snapshot.final_itinerary is None
        assert snapshot.metadata is None
        assert snapshot.city_data is None

    def test_unknown_job(self):
        registry = _make_registry()
        with pytest.raises(JobNotFoundError):
            registry.poll("missing")
        with pytest.raises(JobNotFoundError):
            registry.cancel("missing")

    def test_percentages_never_decrease(self):
        async def run():
            registry = _make_registry(MockCompletionClient(delay_seconds=0.01))
            job_id = registry.start(_make_params())
            seen = []
            while True:
                snapshot = registry.poll(job_id)
                seen.append(snapshot.percentage)
                if snapshot.is_terminal:
                    return seen
                await asyncio.sleep(0.005)

        seen = asyncio.run(run())
        assert seen == sorted(seen)
        assert seen[-1] == 100


class TestCancellation:
    """Tests for cooperative cancellation."""

    def test_cancel_running_job(self):
        async def run():
            registry = _make_registry(MockCompletionClient(delay_seconds=0.05))
            job_id = registry.start(_make_params())
            await asyncio.sleep(0.01)
            cancelled = registry.cancel(job_id)
            return cancelled, await registry.wait(job_id)

        cancelled, snapshot = asyncio.run(run())

        assert cancelled is True
        assert snapshot.stage == "error"
        assert snapshot.error == CANCELLED_MESSAGE

    def test_cancel_finished_job(self):
        async def run():
            registry = _make_registry()
            job_id = registry.start(_make_params())
            await registry.wait(job_id)
            return registry.cancel(job_id)

        assert asyncio.run(run()) is False

    def test_shutdown_cancels_running_jobs(self):
        async def run():
            registry = _make_registry(MockCompletionClient(delay_seconds=0.05))
            job_id = registry.start(_make_params())
            await asyncio.sleep(0.01)
            await registry.shutdown()
            return registry.poll(job_id)

        snapshot = asyncio.run(run())
        assert snapshot.stage == "error"
        assert snapshot.error == CANCELLED_MESSAGE


class TestEviction:
    """Tests for finished-job retention."""

    def test_finished_job_evicted_after_ttl(self):
        now = [0.0]

        async def run():
            registry = _make_registry(clock=lambda: now[0], ttl=60.0)
            job_id = registry.start(_make_params())
            await registry.wait(job_id)

            now[0] = 59.0
            still_there = registry.poll(job_id).stage
            now[0] = 60.0
            with pytest.raises(JobNotFoundError):
                registry.poll(job_id)
            return still_there, len(registry)

        stage, remaining = asyncio.run(run())
        assert stage == "complete"
        assert remaining == 0

    def test_running_job_is_never_evicted(self):
        now = [0.0]

        async def run():
            registry = _make_registry(
                MockCompletionClient(delay_seconds=0.05), clock=lambda: now[0], ttl=1.0
            )
            job_id = registry.start(_make_params())
            await asyncio.sleep(0.01)
            now[0] = 1000.0
            snapshot = registry.poll(job_id)
            registry.cancel(job_id)
            await registry.wait(job_id)
            return snapshot

        assert asyncio.run(run()).is_terminal is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
