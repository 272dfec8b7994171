"""
Tests for date phrase recognition and resolution.
"""

from datetime import date

import pytest

from nomad.conversation.dates import match_date_phrase, resolve_date_phrase


# Wednesday
TODAY = date(2025, 9, 10)


def _resolve(text: str):
    found = match_date_phrase(text)
    assert found is not None, f"no date phrase recognized in {text!r}"
    kind, match = found
    return kind, resolve_date_phrase(kind, match, TODAY)


class TestMatchDatePhrase:
    """Tests for phrase kind detection."""

    @pytest.mark.parametrize(
        "text,kind",
        [
            ("next week", "next_week"),
            ("next month please", "next_month"),
            ("2025-10-02", "iso_date"),
            ("September 25th", "month_day"),
            ("25th of September", "day_month"),
            ("in March", "in_month"),
            ("25/09", "specific_date"),
            ("in the winter", "season"),
            ("next weekend", "relative"),
        ],
    )
    def test_kinds(self, text, kind):
        assert match_date_phrase(text)[0] == kind

    def test_no_match(self):
        assert match_date_phrase("soonish") is None


class TestResolveDatePhrase:
    """Tests for resolving phrases against a fixed 'today'."""

    def test_next_week_is_following_monday(self):
        assert _resolve("next week")[1] == date(2025, 9, 15)

    def test_next_month_is_first_of_month(self):
        assert _resolve("next month")[1] == date(2025, 10, 1)

    def test_tomorrow(self):
        assert _resolve("tomorrow")[1] == date(2025, 9, 11)

    def test_day_after_tomorrow(self):
        assert _resolve("the day after tomorrow")[1] == date(2025, 9, 12)

    def test_this_weekend_is_upcoming_saturday(self):
        assert _resolve("this weekend")[1] == date(2025, 9, 13)

    def test_next_weekend(self):
        assert _resolve("next weekend")[1] == date(2025, 9, 20)

    def test_in_current_month_is_today(self):
        assert _resolve("in September")[1] == TODAY

    def test_in_later_month_this_year(self):
        assert _resolve("in December")[1] == date(2025, 12, 1)

    def test_in_earlier_month_rolls_to_next_year(self):
        assert _resolve("in March")[1] == date(2026, 3, 1)

    def test_iso_date(self):
        assert _resolve("2025-10-02")[1] == date(2025, 10, 2)

    def test_month_day_with_year(self):
        assert _resolve("September 25, 2025")[1] == date(2025, 9, 25)

    def test_day_first_numeric(self):
        assert _resolve("02/10")[1] == date(2025, 10, 2)

    def test_yearless_past_date_rolls_forward(self):
        """A date earlier this year means next year."""
        assert _resolve("05/09")[1] == date(2026, 9, 5)

    def test_impossible_date_is_none(self):
        assert _resolve("31/02")[1] is None

    def test_season_does_not_resolve(self):
        assert _resolve("summer") == ("season", None)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
