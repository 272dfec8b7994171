"""
Tests for the progressive generation orchestrator.

Runs the generation graph end to end against the offline completion client.
"""

import asyncio
import logging
from datetime import date

import pytest

from nomad.generation.mock_data import MockCompletionClient
from nomad.generation.nodes.city import build_city_itinerary, city_percentage
from nomad.generation.nodes.metadata import build_trip_metadata
from nomad.generation.orchestrator import CancellationToken, ProgressiveGenerator
from nomad.generation.schemas import GenerationParams
from nomad.shared.errors import CityGenerationError, GenerationCancelled, UpstreamError


def _make_params(**overrides) -> GenerationParams:
    values = {
        "destinations": ["London", "Brussels"],
        "duration": 14,
        "start_date": date(2025, 9, 25),
    }
    values.update(overrides)
    return GenerationParams(**values)


def _run(client, params, **kwargs):
    generator = ProgressiveGenerator(client)
    return asyncio.run(generator.generate_progressive(params, **kwargs))


def _activity():
    return {"time": "09:00", "description": "Walk", "category": "Leisure"}


# ============================================================================
# End-to-end Generation
# ============================================================================


class TestGenerateProgressive:
    """Tests for a full generation run."""

    def test_two_city_trip(self):
        """14 days across two cities split 7/7 with a continuous calendar."""
        itinerary = _run(MockCompletionClient(), _make_params())

        assert itinerary.metadata.days_per_city == [7, 7]
        assert itinerary.metadata.start_date == "2025-09-25"
        assert itinerary.metadata.end_date == "2025-10-08"
        assert [day.day for day in itinerary.days] == list(range(1, 15))

        london, brussels = itinerary.cities
        assert (london.start_day, london.end_day) == (1, 7)
        assert (brussels.start_day, brussels.end_day) == (8, 14)
        assert brussels.days[0].date == "2025-10-02"
        assert itinerary.days[7].city == "Brussels"

    def test_progress_stages_in_order(self):
        events = []
        _run(MockCompletionClient(), _make_params(), on_progress=events.append)

        assert [e.stage for e in events] == [
            "started",
            "metadata_ready",
            "generating_city",
            "generating_city",
            "generating_city",
            "generating_city",
            "combining",
            "complete",
        ]
        assert [e.percentage for e in events] == [0, 20, 20, 50, 50, 80, 80, 100]
        assert events[-1].itinerary is not None

    def test_user_allocation_wins(self):
        itinerary = _run(MockCompletionClient(), _make_params(days_per_city=[10, 4]))

        assert itinerary.metadata.days_per_city == [10, 4]
        assert itinerary.cities[1].start_day == 11
        assert len(itinerary.cities[1].days) == 4

    def test_single_city(self):
        params = _make_params(destinations=["Paris"], duration=3)
        itinerary = _run(MockCompletionClient(), params)

        assert itinerary.metadata.title == "Paris Adventure"
        assert [day.title for day in itinerary.days] == [
            "Day 1 - Paris",
            "Day 2 - Paris",
            "Day 3 - Paris",
        ]

    def test_city_requests_carry_running_calendar(self):
        client = MockCompletionClient()
        _run(client, _make_params())

        tasks = [request.task for request in client.requests]
        assert tasks == ["trip_metadata", "city_itinerary", "city_itinerary"]
        brussels = client.requests[2].payload
        assert brussels["start_day"] == 8
        assert brussels["start_date"] == "2025-10-02"
        assert brussels["days"] == 7


# ============================================================================
# Day-count Mismatches
# ============================================================================


class TestDayCountMismatch:
    """Tests for cities that return the wrong number of days."""

    def test_shortfall_keeps_following_cities_aligned(self, caplog):
        client = MockCompletionClient(day_count_overrides={"London": 5})
        with caplog.at_level(logging.WARNING):
            itinerary = _run(client, _make_params())

        assert "London expected 7 days but got 5" in caplog.text
        london, brussels = itinerary.cities
        assert len(london.days) == 5
        assert brussels.start_day == 8
        assert brussels.days[0].date == "2025-10-02"

    def test_surplus_is_truncated(self):
        client = MockCompletionClient(day_count_overrides={"London": 9})
        itinerary = _run(client, _make_params())

        assert len(itinerary.cities[0].days) == 7
        assert [day.day for day in itinerary.days] == list(range(1, 15))

    def test_more_than_double_fails(self):
        client = MockCompletionClient(day_count_overrides={"London": 15})
        with pytest.raises(CityGenerationError) as exc_info:
            _run(client, _make_params())
        assert exc_info.value.city == "London"


# ============================================================================
# Failure, Cancellation and Callbacks
# ============================================================================


class TestFailureHandling:
    """Tests for errors, cancellation and misbehaving callbacks."""

    def test_city_failure_emits_error(self):
        events = []
        client = MockCompletionClient(fail_cities=["Brussels"])
        with pytest.raises(CityGenerationError) as exc_info:
            _run(client, _make_params(), on_progress=events.append)

        assert "Brussels" in str(exc_info.value)
        assert events[-1].stage == "error"
        assert events[-1].percentage == 50
        assert "Brussels" in events[-1].error

    def test_cancelled_token_stops_generation(self):
        token = CancellationToken()
        token.cancel()
        client = MockCompletionClient()

        with pytest.raises(GenerationCancelled):
            _run(client, _make_params(), token=token)
        assert client.requests == []

    def test_raising_callback_does_not_stop_generation(self):
        def callback(event):
            raise RuntimeError("listener crashed")

        itinerary = _run(MockCompletionClient(), _make_params(), on_progress=callback)
        assert len(itinerary.days) == 14

    def test_async_callback(self):
        events = []

        async def callback(event):
            events.append(event.stage)

        async def run():
            generator = ProgressiveGenerator(MockCompletionClient())
            await generator.generate_progressive(_make_params(), on_progress=callback)
            await asyncio.sleep(0.01)

        asyncio.run(run())
        assert events[0] == "started"
        assert events[-1] == "complete"


# ============================================================================
# Stage Builders
# ============================================================================


class TestBuildTripMetadata:
    """Tests for metadata validation."""

    def _raw(self, **overrides):
        raw = {
            "title": "London & Brussels Journey",
            "destinations": ["London", "Brussels"],
            "days_per_city": [7, 7],
            "quick_tips": [],
        }
        raw.update(overrides)
        return raw

    def test_valid(self):
        metadata = build_trip_metadata(self._raw(), _make_params())
        assert metadata.duration == 14
        assert metadata.end_date == "2025-10-08"

    def test_destination_case_is_ignored(self):
        raw = self._raw(destinations=["london", "BRUSSELS"])
        assert build_trip_metadata(raw, _make_params()).destinations == ["London", "Brussels"]

    def test_malformed(self):
        with pytest.raises(UpstreamError, match="Malformed trip metadata"):
            build_trip_metadata({"destinations": ["London"]}, _make_params())

    def test_wrong_destinations(self):
        with pytest.raises(UpstreamError):
            build_trip_metadata(self._raw(destinations=["London", "Paris"]), _make_params())

    def test_allocation_must_sum_to_duration(self):
        with pytest.raises(UpstreamError, match="sums to 12"):
            build_trip_metadata(self._raw(days_per_city=[6, 6]), _make_params())

    def test_allocation_needs_a_day_per_city(self):
        with pytest.raises(UpstreamError):
            build_trip_metadata(self._raw(days_per_city=[14, 0]), _make_params())


class TestBuildCityItinerary:
    """Tests for city re-basing."""

    def test_days_are_rebased_by_position(self):
        raw = {
            "city": "Brussels",
            "days": [
                {"day": 1, "date": "2030-01-01", "activities": [_activity()]},
                {"day": 1, "date": "2030-01-01", "title": "Waffles", "activities": [_activity()]},
            ],
        }
        itinerary = build_city_itinerary(raw, "Brussels", 2, 8, date(2025, 10, 2))

        assert [day.day for day in itinerary.days] == [8, 9]
        assert [day.date for day in itinerary.days] == ["2025-10-02", "2025-10-03"]
        assert itinerary.days[0].title is None
        assert itinerary.days[1].title == "Waffles"
        assert (itinerary.start_day, itinerary.end_day) == (8, 9)

    def test_no_days(self):
        with pytest.raises(UpstreamError, match="No days returned"):
            build_city_itinerary({"days": []}, "Paris", 3, 1, date(2025, 9, 25))

    def test_malformed(self):
        with pytest.raises(UpstreamError, match="Malformed itinerary"):
            build_city_itinerary({"city": "Paris"}, "Paris", 3, 1, date(2025, 9, 25))

    def test_city_percentage(self):
        assert city_percentage(0, 3) == 20
        assert city_percentage(1, 3) == 40
        assert city_percentage(3, 3) == 80


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
