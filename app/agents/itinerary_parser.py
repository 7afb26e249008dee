"""
Parse-with-fallback adapter for LLM itinerary output

The model is asked for a single JSON object, but compliance is partial:
fields go missing, change type, or days arrive out of order. Everything
here is pure so the defaulting policy can be tested without the network.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from ..schemas.response import Activity, GeneratedItinerary, ItineraryDay

logger = logging.getLogger(__name__)

MALFORMED_OUTPUT = "malformed model output"
UPSTREAM_UNAVAILABLE = "upstream unavailable"

# Activity categories the renderer shows as catalog items; anything else is a plain activity
ACTIVITY_CATEGORIES = ("evento", "passeio de barco")

# Substituted for every top-level field the model omits or mistypes
ITINERARY_DEFAULTS: Dict[str, Any] = {
    "title": "Roteiro Personalizado para Ubatuba",
    "summary": "Um roteiro incrível para descobrir Ubatuba",
    "totalDays": 1,
    "estimatedCost": "R$ 200 - R$ 500",
    "bestTimeToVisit": "Abril a Outubro",
    "days": [],
    "generalTips": [],
    "whatToBring": [],
}


class GenerationError(Exception):
    """Raised when the itinerary could not be produced by the LLM"""
    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


def _as_text(value: Any) -> Optional[str]:
    """Strings and numbers become stripped text; anything else is rejected"""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return None


def _as_positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().isdecimal():
        value = int(value.strip())
    if isinstance(value, int) and value >= 1:
        return value
    return None


def _as_text_list(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        text = _as_text(item)
        if text:
            items.append(text)
    return items


def _text_field(raw: Dict[str, Any], key: str) -> str:
    text = _as_text(raw.get(key))
    if not text:
        logger.info(f"🔧 '{key}' missing from model output, using default")
        return ITINERARY_DEFAULTS[key]
    return text


def _coerce_activity(raw: Any) -> Optional[Activity]:
    if not isinstance(raw, dict):
        return None
    difficulty = _as_text(raw.get("difficulty"))
    category = (_as_text(raw.get("category")) or "").lower()
    guide = _as_text(raw.get("guide"))
    return Activity(
        time=_as_text(raw.get("time")) or "",
        activity=_as_text(raw.get("activity")) or "",
        location=_as_text(raw.get("location")) or "",
        description=_as_text(raw.get("description")) or "",
        duration=_as_text(raw.get("duration")) or "",
        difficulty=difficulty or None,
        category=category if category in ACTIVITY_CATEGORIES else None,
        guide=guide or None,
        tips=_as_text_list(raw.get("tips")),
    )


def _coerce_days(raw_days: Any) -> List[ItineraryDay]:
    """Keep well-formed day objects and make day numbers 1..n when they are not strictly increasing"""
    if not isinstance(raw_days, list):
        if raw_days is not None:
            logger.warning(f"⚠️ 'days' is {type(raw_days).__name__}, expected list - using default")
        return []

    days = []
    for position, raw in enumerate(raw_days, start=1):
        if not isinstance(raw, dict):
            logger.warning(f"⚠️ Dropping day entry #{position}: not an object")
            continue

        activities = []
        raw_activities = raw.get("activities")
        if isinstance(raw_activities, list):
            for raw_activity in raw_activities:
                activity = _coerce_activity(raw_activity)
                if activity is not None:
                    activities.append(activity)

        days.append(ItineraryDay(
            day=_as_positive_int(raw.get("day")) or position,
            title=_as_text(raw.get("title")) or "",
            activities=activities,
        ))

    numbers = [day.day for day in days]
    if any(later <= earlier for earlier, later in zip(numbers, numbers[1:])):
        logger.warning(f"⚠️ Day numbers {numbers} are not strictly increasing - renumbering")
        for index, day in enumerate(days, start=1):
            day.day = index

    return days


def apply_itinerary_defaults(raw: Dict[str, Any]) -> GeneratedItinerary:
    """
    Build a structurally complete GeneratedItinerary from a parsed object

    Never raises for missing or mistyped fields: each one falls back to
    ITINERARY_DEFAULTS. Semantic checks (day count, accuracy) are not done.
    """
    total_days = _as_positive_int(raw.get("totalDays"))
    if total_days is None:
        logger.info("🔧 'totalDays' missing from model output, using default")
        total_days = ITINERARY_DEFAULTS["totalDays"]

    days = _coerce_days(raw.get("days"))

    itinerary = GeneratedItinerary(
        title=_text_field(raw, "title"),
        summary=_text_field(raw, "summary"),
        total_days=total_days,
        estimated_cost=_text_field(raw, "estimatedCost"),
        best_time_to_visit=_text_field(raw, "bestTimeToVisit"),
        days=days,
        general_tips=_as_text_list(raw.get("generalTips")),
        what_to_bring=_as_text_list(raw.get("whatToBring")),
    )

    if itinerary.days and len(itinerary.days) != itinerary.total_days:
        logger.warning(
            f"⚠️ Day count drift: totalDays={itinerary.total_days} but {len(itinerary.days)} days returned"
        )

    return itinerary


def parse_generated_itinerary(text: Optional[str]) -> GeneratedItinerary:
    """
    Parse the model's response text into a GeneratedItinerary

    Args:
        text: Raw message content returned by the LLM

    Returns:
        GeneratedItinerary with defaults applied

    Raises:
        GenerationError: If the text is not a JSON object
    """
    try:
        raw = json.loads(text or "")
    except (json.JSONDecodeError, TypeError) as e:
        logger.error(f"❌ Failed to parse JSON response: {str(e)}")
        logger.error(f"   Response text: {(text or '')[:1000]}")
        raise GenerationError(MALFORMED_OUTPUT, {"reason": str(e)}) from e

    if not isinstance(raw, dict):
        logger.error(f"❌ Model returned {type(raw).__name__} instead of a JSON object")
        logger.error(f"   Response text: {(text or '')[:1000]}")
        raise GenerationError(MALFORMED_OUTPUT, {"reason": f"expected object, got {type(raw).__name__}"})

    return apply_itinerary_defaults(raw)
