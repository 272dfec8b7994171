"""
Tests for multi-city intent extraction and day distribution.
"""

import pytest

from nomad.conversation.multi_city import (
    MultiCityIntent,
    distribute_days,
    extract_multi_city,
    format_destination,
)


class TestExtractMultiCity:
    """Tests for the pattern cascade."""

    def test_explicit_pairs(self):
        """'N days in City' pairs keep order and per-city counts."""
        intent = extract_multi_city("3 days in London then 2 days in Paris")
        assert intent.pattern == "explicit_pairs"
        assert intent.destinations == ["London", "Paris"]
        assert intent.days_per_city == [3, 2]
        assert intent.total_duration == 5
        assert intent.is_complete

    def test_ordinal_weeks(self):
        """'first week in X, second week in Y' gives each city seven days."""
        intent = extract_multi_city("first week in Rome, then the second week in Florence")
        assert intent.pattern == "explicit_pairs"
        assert intent.destinations == ["Rome", "Florence"]
        assert intent.days_per_city == [7, 7]
        assert intent.total_duration == 14

    def test_ordinal_week_mixed_with_day_counts(self):
        """Ordinal weeks and day counts combine in message order."""
        intent = extract_multi_city("3 days in Lisbon and the second week in porto")
        assert intent.destinations == ["Lisbon", "Porto"]
        assert intent.days_per_city == [3, 7]

    def test_equal_split(self):
        """'one week in each city' gives every city seven days."""
        intent = extract_multi_city(
            "I want to visit Rome and Florence for 2 weeks, one week in each city"
        )
        assert intent.pattern == "equal_split"
        assert intent.destinations == ["Rome", "Florence"]
        assert intent.days_per_city == [7, 7]
        assert intent.total_duration == 14

    def test_known_cities_with_total(self):
        """Known cities plus an overall duration are split evenly."""
        intent = extract_multi_city("London and Brussels for 14 days")
        assert intent.pattern == "known_cities"
        assert intent.destinations == ["London", "Brussels"]
        assert intent.days_per_city == [7, 7]
        assert intent.is_complete

    def test_known_cities_without_duration_is_incomplete(self):
        """Destinations alone do not determine an allocation."""
        intent = extract_multi_city("Paris and Rome")
        assert intent.destinations == ["Paris", "Rome"]
        assert intent.days_per_city is None
        assert not intent.is_complete

    def test_across(self):
        """'N days across A, B and C' works for cities outside the known list."""
        intent = extract_multi_city("9 days across Hanoi, Hue and Hoi An")
        assert intent.pattern == "across"
        assert intent.destinations == ["Hanoi", "Hue", "Hoi An"]
        assert intent.days_per_city == [3, 3, 3]

    def test_single_city_no_match(self):
        intent = extract_multi_city("Just Paris")
        assert intent.pattern is None
        assert intent.destinations == []
        assert not intent.is_complete

    def test_format_destination(self):
        intent = MultiCityIntent(destinations=["London", "Paris"])
        assert format_destination(intent) == "London and Paris"


class TestDistributeDays:
    """Tests for even day distribution."""

    @pytest.mark.parametrize(
        "total,count,expected",
        [
            (10, 3, [4, 3, 3]),
            (14, 2, [7, 7]),
            (5, 5, [1, 1, 1, 1, 1]),
            (7, 1, [7]),
        ],
    )
    def test_remainder_goes_to_earliest(self, total, count, expected):
        result = distribute_days(total, count)
        assert result == expected
        assert sum(result) == total

    def test_zero_cities_rejected(self):
        with pytest.raises(ValueError):
            distribute_days(5, 0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
