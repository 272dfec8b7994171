"""
Multi-city intent extraction.

Recognizes a complete multi-destination plan in a single message so the
conversation can skip slot-by-slot collection of destinations and duration.
Patterns are tried in priority order and the first match wins; results from
different patterns are never combined.
"""

import logging
import re
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


KNOWN_CITIES = (
    "london", "paris", "tokyo", "kyoto", "osaka", "rome", "florence", "venice",
    "barcelona", "madrid", "seville", "dubai", "abu dhabi", "singapore", "bali",
    "amsterdam", "brussels", "lisbon", "porto", "mexico city", "cancun",
    "athens", "santorini", "tel aviv", "jerusalem", "berlin", "munich",
    "prague", "vienna", "budapest", "copenhagen", "stockholm", "oslo",
    "reykjavik", "dublin", "edinburgh", "new york", "los angeles", "san francisco",
    "miami", "boston", "chicago", "seattle", "vancouver", "toronto", "montreal",
)

_NUMBER_WORDS = {
    "a": 1, "an": 1, "another": 1, "one": 1, "two": 2,
    "three": 3, "four": 4, "five": 5, "six": 6,
}
_NUMBER = r"(\d+|an|another|a|one|two|three|four|five|six)"

# "3 days in London", also "one week at Paris"
_PAIR = re.compile(
    rf"\b{_NUMBER}\s+(days?|nights?|weeks?)\s+(?:in|at)\s+([a-z][a-z\s]*?)"
    r"(?=\s*(?:,|;|\.|$|\bthen\b|\band\b|\bfollowed by\b|\bfor\b))",
    re.IGNORECASE,
)

# "first week in Rome, then the second week in Florence"
_ORDINAL_WEEK = re.compile(
    r"\b(?:the\s+)?(?:first|second|third|fourth|last|final)\s+week\s+(?:in|at)\s+([a-z][a-z\s]*?)"
    r"(?=\s*(?:,|;|\.|$|\bthen\b|\band\b|\bfollowed by\b|\bfor\b))",
    re.IGNORECASE,
)

# "2 weeks, one week in each city"
_EQUAL_SPLIT = re.compile(
    rf"(?:\b{_NUMBER}\s*weeks?\b.*?)?\b(?:one|each|a)\s+week\s+(?:in|at)\s+each\b",
    re.IGNORECASE,
)
_CAPITALIZED_CITY = re.compile(
    r"(?:\b(?:to|in|at|and|of|visit|visiting)\s+|,\s*)([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)"
)

# Overall duration for the known-city pattern
_TOTAL_DURATION = re.compile(rf"\b{_NUMBER}\s*(days?|nights?|weeks?)\b|\b(weekend|fortnight|week)\b", re.IGNORECASE)

# "10 days across Rome, Florence and Venice"
_ACROSS = re.compile(rf"\b{_NUMBER}\s+(days?|weeks?)\s+(?:across|through|around)\s+(.+)", re.IGNORECASE)
_LIST_SPLIT = re.compile(r"\s*,\s*(?:and\s+)?|\s+and\s+|\s+then\s+", re.IGNORECASE)


class MultiCityIntent(BaseModel):
    """
    A multi-destination plan recognized in one message.

    `pattern` names the rule that matched (explicit_pairs, equal_split,
    known_cities, across) or is None when nothing matched.
    """

    destinations: List[str] = Field(default_factory=list)
    total_duration: int = 0
    days_per_city: Optional[List[int]] = None
    pattern: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        """True when the intent fully determines destinations and allocation."""
        return (
            len(self.destinations) >= 2
            and self.total_duration > 0
            and self.days_per_city is not None
            and len(self.days_per_city) == len(self.destinations)
            and sum(self.days_per_city) == self.total_duration
        )


def capitalize_city(city: str) -> str:
    return " ".join(word.capitalize() for word in city.strip().split())


def distribute_days(total_days: int, city_count: int) -> List[int]:
    """
    Split `total_days` evenly across `city_count` cities.

    The remainder goes one extra day at a time to the earliest cities, so
    the result always sums to `total_days`.
    """
    if city_count < 1:
        raise ValueError("city_count must be at least 1")
    base, remainder = divmod(total_days, city_count)
    return [base + 1 if i < remainder else base for i in range(city_count)]


def _to_number(token: str) -> int:
    token = token.lower()
    return _NUMBER_WORDS[token] if token in _NUMBER_WORDS else int(token)


def _to_days(amount: int, unit: str) -> int:
    return amount * 7 if unit.lower().startswith("week") else amount


def _stays_in(message: str) -> List[Tuple[str, int]]:
    """(city, days) for every "N days in City" or "first week in City", in message order."""
    found = [
        (match.start(), capitalize_city(match.group(3)), _to_days(_to_number(match.group(1)), match.group(2)))
        for match in _PAIR.finditer(message)
    ]
    found += [
        (match.start(), capitalize_city(match.group(1)), 7)
        for match in _ORDINAL_WEEK.finditer(message)
    ]
    return [(city, days) for _, city, days in sorted(found)]


def _match_explicit_pairs(message: str) -> Optional[MultiCityIntent]:
    destinations: List[str] = []
    allocation: List[int] = []
    for city, days in _stays_in(message):
        if not city or days < 1:
            continue
        if city in destinations:
            allocation[destinations.index(city)] += days
            continue
        destinations.append(city)
        allocation.append(days)

    if len(destinations) < 2:
        return None

    return MultiCityIntent(
        destinations=destinations,
        total_duration=sum(allocation),
        days_per_city=allocation,
        pattern="explicit_pairs",
    )


def _match_equal_split(message: str) -> Optional[MultiCityIntent]:
    match = _EQUAL_SPLIT.search(message)
    if not match:
        return None

    destinations: List[str] = []
    for city_match in _CAPITALIZED_CITY.finditer(message):
        city = city_match.group(1).strip()
        if city not in destinations:
            destinations.append(city)

    if len(destinations) < 2:
        return None

    stated_weeks = _to_number(match.group(1)) if match.group(1) else None
    if stated_weeks is not None and stated_weeks != len(destinations):
        logger.info(
            f"Equal-split phrasing names {stated_weeks} weeks for "
            f"{len(destinations)} cities, using one week per city"
        )

    return MultiCityIntent(
        destinations=destinations,
        total_duration=7 * len(destinations),
        days_per_city=[7] * len(destinations),
        pattern="equal_split",
    )


def _known_cities_in(lower: str) -> List[str]:
    found = []
    for city in KNOWN_CITIES:
        match = re.search(rf"\b{re.escape(city)}\b", lower)
        if match:
            found.append((match.start(), capitalize_city(city)))
    return [city for _, city in sorted(found)]


def _match_known_cities(message: str) -> Optional[MultiCityIntent]:
    lower = message.lower()
    destinations = _known_cities_in(lower)
    if len(destinations) < 2:
        return None

    total = 0
    duration_match = _TOTAL_DURATION.search(lower)
    if duration_match:
        if duration_match.group(1):
            total = _to_days(_to_number(duration_match.group(1)), duration_match.group(2))
        else:
            total = {"weekend": 2, "fortnight": 14, "week": 7}[duration_match.group(3)]

    if total < len(destinations):
        return MultiCityIntent(destinations=destinations, pattern="known_cities")

    return MultiCityIntent(
        destinations=destinations,
        total_duration=total,
        days_per_city=distribute_days(total, len(destinations)),
        pattern="known_cities",
    )


def _match_across(message: str) -> Optional[MultiCityIntent]:
    match = _ACROSS.search(message)
    if not match:
        return None

    total = _to_days(_to_number(match.group(1)), match.group(2))
    tail = re.split(r"[.!?]", match.group(3))[0]
    destinations = []
    for part in _LIST_SPLIT.split(tail):
        city = capitalize_city(re.sub(r"^(?:the|and)\s+", "", part.strip(), flags=re.IGNORECASE))
        if city and city not in destinations:
            destinations.append(city)

    if len(destinations) < 2 or total < len(destinations):
        return None

    return MultiCityIntent(
        destinations=destinations,
        total_duration=total,
        days_per_city=distribute_days(total, len(destinations)),
        pattern="across",
    )


_MATCHERS = (
    _match_explicit_pairs,
    _match_equal_split,
    _match_known_cities,
    _match_across,
)


def extract_multi_city(message: str) -> MultiCityIntent:
    """
    Recognize a complete multi-destination plan in `message`.

    Tries, in order: explicit "N days in City" or "first week in City"
    pairs, the "one week in each" equal split, known city names with one
    overall duration, and "N days across City, City". The first pattern
    that matches wins.

    Args:
        message: The raw user message

    Returns:
        MultiCityIntent; `pattern` is None when nothing matched
    """
    for matcher in _MATCHERS:
        intent = matcher(message)
        if intent is not None:
            logger.info(
                f"Multi-city intent recognized | pattern={intent.pattern}, "
                f"destinations={intent.destinations}, total={intent.total_duration}, "
                f"allocation={intent.days_per_city}"
            )
            return intent
    return MultiCityIntent()


def format_destination(intent: MultiCityIntent) -> str:
    """Display form of the destination list ("London and Paris")."""
    return " and ".join(intent.destinations)
