"""
Slot extraction for the conversation state machine.

Classifies one free-text message against the slot currently being collected
and extracts a candidate value. Every function here is pure: the same text,
slot and reference date always give the same SlotAnalysis.

The policy is "ask, never assume": when a message does not clearly carry a
value the result asks for clarification instead of guessing one. The only
exceptions are the optional slots (travelers, preferences), which never
block progress.
"""

import logging
import re
from datetime import date
from typing import List, Optional

from nomad.conversation.dates import match_date_phrase, resolve_date_phrase
from nomad.conversation.schemas import CollectedData, SlotAnalysis
from nomad.shared.contracts.trip_input import TravelerInfo, TripPreferences


logger = logging.getLogger(__name__)

MAX_DESTINATIONS = 5
MAX_DURATION_DAYS = 30


# =============================================================================
# Phrase Tables
# =============================================================================

GREETINGS = (
    "hello", "hi", "hey", "greetings", "good morning",
    "good afternoon", "good evening", "howdy",
)

HELP_PHRASES = (
    "help", "assist", "plan", "create", "make", "build",
    "can you", "could you", "would you", "will you",
)

TRAVEL_PHRASES = (
    "i want to travel", "help me plan", "plan a trip", "need a vacation",
    "looking for a trip", "want to go somewhere", "planning to travel",
    "thinking about traveling", "book a trip", "organize a trip",
    "i want to go", "i'd like to go", "i would like to go", "take me",
    "i want to visit", "i'd like to visit", "i would like to visit",
    "going to", "heading to", "trip to", "travel to", "fly to",
)

UNCERTAIN_PHRASES = (
    "i don't know", "i dont know", "i'm not sure", "not sure", "maybe",
    "possibly", "i guess", "whatever", "doesn't matter", "no idea", "dunno",
    "help me decide", "you choose", "you pick", "suggest something",
)

NON_DESTINATION_PREFIXES = (
    "yes", "no", "okay", "sure", "help", "please", "i need", "i want",
    "can you", "could you", "will you", "hello", "hi", "hey",
    "good morning", "good afternoon",
)

VAGUE_REGIONS = (
    "europe", "asia", "africa", "america", "south america", "north america",
    "oceania", "middle east", "somewhere", "anywhere",
)

KNOWN_PLACES = (
    "paris", "london", "tokyo", "new york", "barcelona", "rome", "amsterdam",
    "berlin", "madrid", "lisbon", "prague", "vienna", "budapest", "athens",
    "dublin", "edinburgh", "stockholm", "copenhagen", "oslo", "helsinki",
    "warsaw", "krakow", "istanbul", "dubai", "singapore", "bangkok",
    "hong kong", "seoul", "beijing", "shanghai", "sydney", "melbourne",
    "toronto", "vancouver", "montreal", "mexico city", "buenos aires",
    "rio de janeiro", "sao paulo", "lima", "bogota", "santiago", "cairo",
    "marrakech", "cape town", "mumbai", "delhi", "bangalore", "kyoto",
    "osaka", "san francisco", "los angeles", "chicago", "boston", "miami",
    "seattle", "portland", "austin", "denver", "nashville", "las vegas",
    "bali", "brussels", "porto", "florence", "venice", "munich",
)

ACTIVITY_KEYWORDS = (
    "museum", "art", "history", "culture", "food", "restaurant", "cuisine",
    "shopping", "market", "beach", "hiking", "nature", "outdoor", "adventure",
    "nightlife", "bars", "clubs", "music", "concert", "theater", "show",
    "spa", "relax", "wellness", "yoga", "photography", "architecture",
)

DIETARY_KEYWORDS = ("vegetarian", "vegan", "halal", "kosher", "gluten-free", "allergy")

POSITIVE_WORDS = (
    "yes", "yeah", "yep", "sure", "correct", "right", "perfect", "good",
    "great", "ok", "okay", "proceed", "go ahead", "confirm", "looks good",
)

CHANGE_WORDS = ("wrong", "change", "different", "modify", "update", "edit", "actually", "wait")

NEGATIVE_WORDS = ("no", "nope", "nah")

MODIFICATION_WORDS = (
    "change", "modify", "update", "add", "remove", "replace", "switch",
    "different", "instead",
)

SATISFIED_WORDS = ("thank", "thanks", "perfect", "great", "good", "nice", "love it", "awesome")

NUMBER_WORDS = {
    "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
}

# Slot keywords used to detect what the user wants to change
MODIFICATION_TARGETS = (
    ("destination", r"\b(destinations?|place|places|city|cities|country|where|location)\b"),
    ("dates", r"\b(dates?|when|start|leave|leaving|depart|departure|timing)\b"),
    ("duration", r"\b(duration|how long|length|days|nights|weeks?|longer|shorter)\b"),
    ("travelers", r"\b(travell?ers?|people|persons?|companions?|who|group|solo|family|partner)\b"),
    ("preferences", r"\b(preferences?|interests?|activities|budget|food|diet(?:ary)?|coworking|style)\b"),
)

_VERB_PATTERN = re.compile(r"\b(is|are|was|were|go|went|want|need|have|has|had|do|does|did)\b", re.IGNORECASE)
_DESTINATION_AFTER_TRAVEL = re.compile(
    r"\b(?:to|in|visit|visiting)\s+"
    r"([A-Z][\w'.-]*(?:(?:\s+|\s*,\s*(?:and\s+)?|\s+and\s+|\s+then\s+)[A-Z][\w'.-]*)*)"
)
_MULTI_SPLIT = re.compile(r"\s*,\s*(?:and\s+)?|\s+and\s+|\s+then\s+|\s+followed by\s+", re.IGNORECASE)
_LEADING_FILLER = re.compile(
    r"^(?:i'?d like to (?:go to|visit)|let'?s go to|going to|go to|visit|to)\s+",
    re.IGNORECASE,
)
_APPROXIMATE = re.compile(r"\b(about|around|approximately|roughly|or so)\b|-ish\b", re.IGNORECASE)
_NUMBER_WITH_UNIT = re.compile(r"\b(\d+)\s*(days?|nights?|weeks?|months?)?\b", re.IGNORECASE)
_WORD_WITH_UNIT = re.compile(
    r"\b(a|an|one|two|three|four|five|six|seven|eight|nine|ten)\s+(days?|nights?|weeks?|months?)\b",
    re.IGNORECASE,
)
_INTEGER = re.compile(r"\b(\d+)\b")


def _contains_phrase(lower: str, phrases) -> bool:
    return any(re.search(rf"\b{re.escape(phrase)}\b", lower) for phrase in phrases)


def _startswith_phrase(lower: str, phrases) -> bool:
    return any(re.match(rf"{re.escape(phrase)}\b", lower) for phrase in phrases)


def is_greeting(text: str) -> bool:
    return _startswith_phrase(text.lower().strip(), GREETINGS)


def is_asking_for_help(text: str) -> bool:
    return _contains_phrase(text.lower(), HELP_PHRASES)


def is_uncertain(text: str) -> bool:
    lower = text.lower()
    return any(phrase in lower for phrase in UNCERTAIN_PHRASES)


def is_modification_request(text: str) -> bool:
    return _contains_phrase(text.lower(), MODIFICATION_WORDS)


def is_satisfied(text: str) -> bool:
    lower = text.lower()
    return any(re.search(rf"\b{re.escape(word)}", lower) for word in SATISFIED_WORDS)


def is_known_destination(lower: str) -> bool:
    return _contains_phrase(lower, KNOWN_PLACES)


def strip_greeting(text: str) -> str:
    """Remove a leading greeting ("Hi there!") so the rest can be analyzed."""
    pattern = rf"^\s*(?:{'|'.join(re.escape(g) for g in GREETINGS)})\b[\s,!.]*(?:there\b[\s,!.]*)?"
    return re.sub(pattern, "", text, flags=re.IGNORECASE).strip()


def format_place(name: str) -> str:
    """Tidy a place name; all-lowercase input is title-cased."""
    cleaned = re.sub(r"\s+", " ", name).strip(" \t.!?;:\"'")
    if cleaned.islower():
        cleaned = " ".join(word.capitalize() for word in cleaned.split(" "))
    return cleaned


# =============================================================================
# Per-slot Analysis
# =============================================================================


def _no_destination(reason: str = "no_destination_provided", value=None) -> SlotAnalysis:
    return SlotAnalysis(
        field="destination",
        value=value,
        confidence="low",
        needs_clarification=True,
        reason=reason,
    )


def known_places_in(lower: str) -> List[str]:
    """Known place names mentioned in `lower`, in order of appearance."""
    found = []
    for place in KNOWN_PLACES:
        match = re.search(rf"\b{re.escape(place)}\b", lower)
        if match:
            found.append((match.start(), format_place(place)))
    return [name for _, name in sorted(found)]


def _destination_list(places: List[str], max_destinations: int) -> SlotAnalysis:
    if len(places) > max_destinations:
        return SlotAnalysis(
            field="destination",
            value=places[:max_destinations],
            confidence="medium",
            needs_clarification=True,
            reason="too_many_destinations",
        )
    return SlotAnalysis(field="destination", value=places, confidence="high")


def analyze_destination(text: str, max_destinations: int = MAX_DESTINATIONS) -> SlotAnalysis:
    """
    Extract one or more destinations.

    The value is a list of place names in the order the user gave them.
    """
    trimmed = text.strip()
    lower = trimmed.lower()

    if not trimmed:
        return _no_destination()

    # "I want to travel to Lisbon" -> analyze "Lisbon"
    if any(phrase in lower for phrase in TRAVEL_PHRASES):
        match = _DESTINATION_AFTER_TRAVEL.search(trimmed)
        if match:
            return analyze_destination(match.group(1), max_destinations)
        known = known_places_in(lower)
        if known:
            return _destination_list(known, max_destinations)
        return _no_destination()

    if is_greeting(trimmed) or (is_asking_for_help(trimmed) and not is_known_destination(lower)):
        return _no_destination()

    if is_uncertain(trimmed):
        return _no_destination(reason="uncertain")

    if _startswith_phrase(lower, NON_DESTINATION_PREFIXES):
        if len(trimmed.split()) <= 3:
            return _no_destination()
        prefix_pattern = rf"^(?:{'|'.join(re.escape(p) for p in NON_DESTINATION_PREFIXES)})\b[\s,]*"
        remaining = re.sub(prefix_pattern, "", trimmed, flags=re.IGNORECASE).strip()
        if remaining:
            return analyze_destination(remaining, max_destinations)
        return _no_destination()

    stripped = _LEADING_FILLER.sub("", trimmed).strip()
    while stripped != trimmed:
        trimmed = stripped
        stripped = _LEADING_FILLER.sub("", trimmed).strip()
    lower = trimmed.lower()

    if lower.strip(" .!?") in VAGUE_REGIONS or lower.startswith(("somewhere", "anywhere")):
        return SlotAnalysis(
            field="destination",
            value=[format_place(trimmed)],
            confidence="low",
            needs_clarification=True,
            reason="too_vague",
        )

    places = [format_place(part) for part in _MULTI_SPLIT.split(trimmed)]
    places = [place for place in places if place]

    if len(places) > 1:
        return _destination_list(places, max_destinations)

    if len(trimmed.strip(" .!?")) < 2:
        return _no_destination(reason="too_short")

    known = is_known_destination(lower)
    looks_like_place = trimmed[0].isupper() or known
    sentence_like = len(trimmed.split()) > 4
    has_verb = bool(_VERB_PATTERN.search(lower))

    if (has_verb and not known) or (sentence_like and not looks_like_place):
        return _no_destination(reason="not_a_destination")

    return SlotAnalysis(
        field="destination",
        value=[format_place(trimmed)],
        confidence="high" if looks_like_place else "medium",
    )


def analyze_dates(text: str, today: date) -> SlotAnalysis:
    """
    Recognize a date phrase and resolve it to a start date.

    The value is a dict with the user's phrase and the resolved ISO date.
    """
    if is_uncertain(text):
        return SlotAnalysis(
            field="dates", value=None, confidence="low",
            needs_clarification=True, reason="uncertain",
        )

    found = match_date_phrase(text)
    if found is None:
        return SlotAnalysis(
            field="dates", value=None, confidence="low",
            needs_clarification=True, reason="unclear_date",
        )

    kind, match = found
    if kind == "season":
        return SlotAnalysis(
            field="dates",
            value={"phrase": text.strip(), "season": match.group(1).lower()},
            confidence="medium",
            needs_clarification=True,
            reason="season_too_vague",
        )

    resolved = resolve_date_phrase(kind, match, today)
    if resolved is None:
        return SlotAnalysis(
            field="dates", value=None, confidence="low",
            needs_clarification=True, reason="unclear_date",
        )

    return SlotAnalysis(
        field="dates",
        value={"phrase": text.strip(), "start_date": resolved},
        confidence="high",
    )


def _unit_days(amount: int, unit: Optional[str]) -> int:
    unit = (unit or "day").lower()
    if unit.startswith("week"):
        return amount * 7
    if unit.startswith("month"):
        return amount * 30
    return amount


def analyze_duration(text: str, max_duration: int = MAX_DURATION_DAYS) -> SlotAnalysis:
    """Extract a trip length in days. Anything over `max_duration` needs clarification."""
    lower = text.lower()

    if is_uncertain(text):
        return SlotAnalysis(
            field="duration", value=None, confidence="low",
            needs_clarification=True, reason="uncertain",
        )

    if _APPROXIMATE.search(lower):
        return SlotAnalysis(
            field="duration", value=text.strip(), confidence="medium",
            needs_clarification=True, reason="approximate_duration",
        )

    days: Optional[int] = None
    number_match = _NUMBER_WITH_UNIT.search(lower)
    if number_match:
        days = _unit_days(int(number_match.group(1)), number_match.group(2))
    else:
        word_match = _WORD_WITH_UNIT.search(lower)
        if word_match:
            days = _unit_days(NUMBER_WORDS[word_match.group(1)], word_match.group(2))
        elif re.search(r"\bweekend\b", lower):
            days = 2
        elif re.search(r"\bfortnight\b", lower):
            days = 14
        elif re.search(r"\bweek\b", lower):
            days = 7
        elif re.search(r"\bmonth\b", lower):
            days = 30
        else:
            bare = re.search(rf"\b({'|'.join(w for w in NUMBER_WORDS if len(w) > 2)})\b", lower)
            if bare:
                days = NUMBER_WORDS[bare.group(1)]

    if days is None:
        return SlotAnalysis(
            field="duration", value=None, confidence="low",
            needs_clarification=True, reason="unclear_duration",
        )

    if days < 1:
        return SlotAnalysis(
            field="duration", value=days, confidence="low",
            needs_clarification=True, reason="too_short",
        )

    if days > max_duration:
        return SlotAnalysis(
            field="duration", value=days, confidence="medium",
            needs_clarification=True, reason="too_long",
        )

    return SlotAnalysis(field="duration", value=days, confidence="high")


def analyze_travelers(text: str) -> SlotAnalysis:
    """
    Recognize who is travelling.

    Optional slot: never asks for clarification, and never fills a count
    the user did not give.
    """
    lower = text.lower().strip()

    if is_uncertain(text):
        return SlotAnalysis(field="travelers", value=None, confidence="low", reason="uncertain")

    if _contains_phrase(lower, ("solo", "alone", "myself", "just me", "by myself")) or lower == "me":
        return SlotAnalysis(
            field="travelers", value=TravelerInfo(count=1, type="solo"), confidence="high",
        )

    couple_words = (
        "wife", "husband", "partner", "girlfriend", "boyfriend", "spouse",
        "significant other", "couple", "fiance", "fiancee",
    )
    if _contains_phrase(lower, couple_words):
        return SlotAnalysis(
            field="travelers", value=TravelerInfo(count=2, type="couple"), confidence="high",
        )

    number_match = _INTEGER.search(lower)
    count = int(number_match.group(1)) if number_match else None
    if count is not None and count < 1:
        count = None

    if _contains_phrase(lower, ("family", "kids", "children", "child", "son", "daughter")):
        return SlotAnalysis(
            field="travelers",
            value=TravelerInfo(count=count, type="family", description=text.strip()),
            confidence="medium",
        )

    if _contains_phrase(lower, ("friends", "group", "colleagues", "team")):
        return SlotAnalysis(
            field="travelers",
            value=TravelerInfo(count=count, type="group", description=text.strip()),
            confidence="medium",
        )

    if count is not None:
        kind = "solo" if count == 1 else "couple" if count == 2 else "group"
        return SlotAnalysis(
            field="travelers", value=TravelerInfo(count=count, type=kind), confidence="high",
        )

    return SlotAnalysis(field="travelers", value=None, confidence="low", reason="unclear_travelers")


def analyze_preferences(text: str) -> SlotAnalysis:
    """Accumulate recognized preference keywords. An empty result is valid."""
    lower = text.lower()
    preferences = TripPreferences()
    updates = {}

    if _contains_phrase(lower, ("work", "working", "coworking", "remote", "digital nomad", "laptop")):
        updates["needs_coworking"] = True
        updates["trip_type"] = "workation"

    if _contains_phrase(lower, ("business", "meeting", "meetings", "conference")):
        updates["trip_type"] = "business"

    activities = [kw for kw in ACTIVITY_KEYWORDS if re.search(rf"\b{re.escape(kw)}", lower)]
    if activities:
        updates["activities"] = activities

    if _contains_phrase(lower, ("budget", "cheap", "affordable", "backpacking")):
        updates["budget"] = "budget"
    elif _contains_phrase(lower, ("luxury", "premium", "high-end", "5-star")):
        updates["budget"] = "luxury"
    elif _contains_phrase(lower, ("moderate", "mid-range", "midrange")):
        updates["budget"] = "moderate"

    dietary = [kw for kw in DIETARY_KEYWORDS if kw in lower]
    if dietary:
        updates["dietary"] = dietary

    if updates:
        preferences = preferences.model_copy(update=updates)
        return SlotAnalysis(field="preferences", value=preferences, confidence="high")

    return SlotAnalysis(field="preferences", value=None, confidence="high")


def analyze_confirmation(text: str) -> SlotAnalysis:
    """Classify a yes/no reply to the confirmation summary."""
    lower = text.lower()

    if _contains_phrase(lower, CHANGE_WORDS):
        return SlotAnalysis(
            field="confirmation", value=False, confidence="high", reason="wants_changes",
        )

    if _contains_phrase(lower, POSITIVE_WORDS):
        return SlotAnalysis(field="confirmation", value=True, confidence="high")

    if _contains_phrase(lower, NEGATIVE_WORDS):
        return SlotAnalysis(
            field="confirmation", value=False, confidence="high", reason="wants_changes",
        )

    return SlotAnalysis(
        field="confirmation", value=None, confidence="low",
        needs_clarification=True, reason="unclear_confirmation",
    )


def detect_modification_target(text: str) -> Optional[str]:
    """Return the slot the user wants to change, picking the earliest mention."""
    lower = text.lower()
    best: Optional[str] = None
    best_position: Optional[int] = None
    for slot, pattern in MODIFICATION_TARGETS:
        match = re.search(pattern, lower)
        if match and (best_position is None or match.start() < best_position):
            best, best_position = slot, match.start()
    return best


def analyze(
    text: str,
    expected_slot: str,
    context: Optional[CollectedData] = None,
    today: Optional[date] = None,
    max_destinations: int = MAX_DESTINATIONS,
    max_duration: int = MAX_DURATION_DAYS,
) -> SlotAnalysis:
    """
    Analyze a message against the slot currently being collected.

    Args:
        text: The user's message
        expected_slot: destination, dates, duration, travelers, preferences
            or confirmation
        context: Data collected so far (currently informational only)
        today: Reference date for relative date phrases
        max_destinations: Most destinations accepted before clarifying
        max_duration: Longest trip (days) accepted before clarifying

    Returns:
        SlotAnalysis with the candidate value, confidence and, when the
        value is unusable, the clarification reason
    """
    if expected_slot == "destination":
        return analyze_destination(text, max_destinations)
    if expected_slot == "dates":
        return analyze_dates(text, today or date.today())
    if expected_slot == "duration":
        return analyze_duration(text, max_duration)
    if expected_slot == "travelers":
        return analyze_travelers(text)
    if expected_slot == "preferences":
        return analyze_preferences(text)
    if expected_slot == "confirmation":
        return analyze_confirmation(text)

    logger.warning(f"Unknown slot '{expected_slot}' requested for analysis")
    return SlotAnalysis(
        field=expected_slot, value=None, confidence="low",
        needs_clarification=True, reason="unknown_slot",
    )
