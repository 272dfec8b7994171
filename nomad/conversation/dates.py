"""
Date phrase recognition and resolution.

Recognizes the fixed set of date phrasings the conversation accepts and
resolves a recognized phrase to a concrete start date relative to `today`.
Calendar parsing is delegated to python-dateutil (day-first, as users
outside the US write "25/09").
"""

import logging
import re
from datetime import date, datetime
from typing import Optional, Tuple

from dateutil import parser as dtparser
from dateutil.relativedelta import relativedelta, MO, SA


logger = logging.getLogger(__name__)

_MONTHS = (
    "january|february|march|april|may|june|july|august|september|october|november|december"
)

# Checked in order; the first pattern that matches decides the phrase kind
DATE_PATTERNS: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("next_week", re.compile(r"\bnext week\b", re.IGNORECASE)),
    ("next_month", re.compile(r"\bnext month\b", re.IGNORECASE)),
    ("iso_date", re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")),
    ("month_day", re.compile(rf"\b({_MONTHS})\s+(\d{{1,2}})(?:st|nd|rd|th)?\b(?:,?\s*(\d{{4}}))?", re.IGNORECASE)),
    ("day_month", re.compile(rf"\b(\d{{1,2}})(?:st|nd|rd|th)?\s+(?:of\s+)?({_MONTHS})\b(?:,?\s*(\d{{4}}))?", re.IGNORECASE)),
    ("in_month", re.compile(rf"\b(?:in|during)\s+({_MONTHS})\b", re.IGNORECASE)),
    ("specific_date", re.compile(r"\b(\d{1,2})[/.\-](\d{1,2})(?:[/.\-](\d{2,4}))?\b")),
    ("season", re.compile(r"\b(spring|summer|fall|autumn|winter)\b", re.IGNORECASE)),
    ("relative", re.compile(r"\b(day after tomorrow|tomorrow|today|this weekend|next weekend)\b", re.IGNORECASE)),
)


def match_date_phrase(text: str) -> Optional[Tuple[str, "re.Match[str]"]]:
    """
    Find the first recognized date phrasing in `text`.

    Returns:
        (kind, match) for the first matching pattern, or None
    """
    for kind, pattern in DATE_PATTERNS:
        match = pattern.search(text)
        if match:
            return kind, match
    return None


def _parse_calendar_date(fragment: str, today: date, has_year: bool) -> Optional[date]:
    """Parse a calendar fragment, rolling a yearless past date into next year."""
    default = datetime(today.year, 1, 1)
    try:
        parsed = dtparser.parse(fragment, dayfirst=True, default=default).date()
    except (ValueError, OverflowError) as e:
        logger.debug(f"Could not parse date fragment '{fragment}': {e}")
        return None

    if not has_year and parsed < today:
        parsed = parsed + relativedelta(years=1)
    return parsed


def resolve_date_phrase(kind: str, match: "re.Match[str]", today: date) -> Optional[date]:
    """
    Resolve a recognized phrase to a concrete start date.

    Args:
        kind: Pattern kind from `match_date_phrase`
        match: The regex match for that pattern
        today: Reference date for relative phrases

    Returns:
        The resolved date, or None when the phrase names an impossible date
        (e.g. 31/02) or only a season
    """
    if kind == "next_week":
        return today + relativedelta(days=+1, weekday=MO(+1))

    if kind == "next_month":
        return today + relativedelta(months=+1, day=1)

    if kind == "iso_date":
        year, month, day = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None

    if kind in ("month_day", "day_month"):
        has_year = match.group(3) is not None
        return _parse_calendar_date(match.group(0), today, has_year)

    if kind == "in_month":
        month = dtparser.parse(match.group(1), default=datetime(today.year, 1, 1)).month
        if month == today.month:
            return today
        year = today.year if month > today.month else today.year + 1
        return date(year, month, 1)

    if kind == "specific_date":
        has_year = match.group(3) is not None
        return _parse_calendar_date(match.group(0), today, has_year)

    if kind == "relative":
        phrase = match.group(1).lower()
        if phrase == "today":
            return today
        if phrase == "tomorrow":
            return today + relativedelta(days=+1)
        if phrase == "day after tomorrow":
            return today + relativedelta(days=+2)
        upcoming_saturday = today + relativedelta(weekday=SA(+1))
        if phrase == "this weekend":
            return upcoming_saturday
        return upcoming_saturday + relativedelta(weeks=+1)

    return None
