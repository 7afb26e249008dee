"""Preference collection and validation for itinerary requests"""
from datetime import date
from typing import Any, Dict, List, Mapping, Optional
from ..config import settings
from ..schemas.request import Budget, TripPreferences
from ..utils.prompt_injection import PromptInjectionDetector


MISSING_FIELDS_MESSAGE = "Por favor, preencha todos os campos obrigatórios."
INVALID_DATES_MESSAGE = "A data de volta deve ser igual ou posterior à data de ida."
TRIP_TOO_LONG_MESSAGE = "O roteiro pode ter no máximo {max_days} dias."
SUSPICIOUS_REQUEST_MESSAGE = "Os pedidos especiais contêm conteúdo não permitido."

# Interest pre-selected when the form opens or is reset
DEFAULT_INTERESTS = ("praias",)


class ValidationError(Exception):
    """Custom validation error"""
    def __init__(self, message: str, details: dict = None, user_message: str = None):
        self.message = message
        self.details = details or {}
        self.user_message = user_message or message
        super().__init__(self.message)


def days_between_inclusive(start_date: date, end_date: date) -> int:
    """
    Count the calendar days a trip covers, both ends included

    Examples:
        2025-03-10 -> 2025-03-10 = 1
        2025-03-10 -> 2025-03-12 = 3
    """
    return (end_date - start_date).days + 1


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    """Return the first present key, accepting camelCase and snake_case names"""
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set)):
        return len(value) == 0
    return False


def _normalize_interests(value: Any) -> List[str]:
    """De-duplicate interest tags, keeping selection order"""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set)):
        return []

    interests = []
    for tag in value:
        if not isinstance(tag, str) or not tag.strip():
            continue
        tag = tag.strip()
        if tag not in interests:
            interests.append(tag)
    return interests


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            # Accept full ISO timestamps from date pickers ("2025-03-10T00:00:00.000Z")
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def validate_special_requests(text: Optional[str]) -> Optional[str]:
    """
    Sanitize optional free text and reject prompt injection attempts

    Raises:
        ValidationError: If suspicious content is detected
    """
    if _is_blank(text):
        return None

    sanitized, detected = PromptInjectionDetector.screen(text, max_length=settings.max_preferences_length)
    if detected:
        raise ValidationError(
            "invalid special requests",
            {"detected_patterns": detected},
            user_message=SUSPICIOUS_REQUEST_MESSAGE
        )

    return sanitized or None


def collect_preferences(raw: Mapping[str, Any]) -> TripPreferences:
    """
    Turn raw form input into canonical TripPreferences

    Validation order:
        1. all required fields present -> else "missing required field"
        2. computed duration > 0 -> else "invalid date range"

    Args:
        raw: Form payload (camelCase or snake_case keys)

    Returns:
        TripPreferences with the computed duration

    Raises:
        ValidationError: If the submission is incomplete or the dates are invalid
    """
    interests = _normalize_interests(_pick(raw, "interests"))
    start_raw = _pick(raw, "startDate", "start_date")
    end_raw = _pick(raw, "endDate", "end_date")
    budget_raw = _pick(raw, "budget")
    travel_style = _pick(raw, "travelStyle", "travel_style")
    group_size = _pick(raw, "groupSize", "group_size")

    required = {
        "interests": interests,
        "startDate": start_raw,
        "endDate": end_raw,
        "budget": budget_raw,
        "travelStyle": travel_style,
        "groupSize": group_size,
    }
    missing = [name for name, value in required.items() if _is_blank(value)]

    budget = None
    if "budget" not in missing:
        budget = Budget.from_label(str(budget_raw))
        if budget is None:
            missing.append("budget")

    if missing:
        raise ValidationError(
            "missing required field",
            {"missing_fields": missing},
            user_message=MISSING_FIELDS_MESSAGE
        )

    start_date = _parse_date(start_raw)
    end_date = _parse_date(end_raw)
    if start_date is None or end_date is None:
        raise ValidationError(
            "invalid date range",
            {"start_date": str(start_raw), "end_date": str(end_raw)},
            user_message=INVALID_DATES_MESSAGE
        )

    duration = days_between_inclusive(start_date, end_date)
    if duration <= 0:
        raise ValidationError(
            "invalid date range",
            {"start_date": str(start_date), "end_date": str(end_date), "duration_days": duration},
            user_message=INVALID_DATES_MESSAGE
        )

    if duration > settings.max_trip_days:
        raise ValidationError(
            "invalid date range",
            {"duration_days": duration, "max_days": settings.max_trip_days},
            user_message=TRIP_TOO_LONG_MESSAGE.format(max_days=settings.max_trip_days)
        )

    return TripPreferences(
        interests=interests,
        start_date=start_date,
        end_date=end_date,
        duration=duration,
        budget=budget,
        travel_style=str(travel_style).strip(),
        group_size=str(group_size).strip(),
        special_requests=validate_special_requests(_pick(raw, "specialRequests", "special_requests")),
    )


class PreferenceCollector:
    """
    Per-invocation form state for the itinerary wizard

    Each flow starts from the documented defaults; closing or cancelling
    the flow calls reset() so nothing leaks into the next invocation.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        """Restore every field to its default"""
        self.interests: List[str] = list(DEFAULT_INTERESTS)
        self.start_date: Optional[date] = None
        self.end_date: Optional[date] = None
        self.budget: Optional[str] = None
        self.travel_style: Optional[str] = None
        self.group_size: Optional[str] = None
        self.special_requests: str = ""
        self.error_message: Optional[str] = None

    def toggle_interest(self, tag: str, selected: bool) -> None:
        if selected and tag not in self.interests:
            self.interests.append(tag)
        elif not selected and tag in self.interests:
            self.interests.remove(tag)

    def set_dates(self, start_date: Optional[date], end_date: Optional[date]) -> None:
        self.start_date = start_date
        self.end_date = end_date

    @property
    def duration(self) -> Optional[int]:
        """Duration preview shown next to the date pickers (None until valid)"""
        if self.start_date is None or self.end_date is None:
            return None
        days = days_between_inclusive(self.start_date, self.end_date)
        return days if days > 0 else None

    def as_payload(self) -> Dict[str, Any]:
        """Form state as the JSON body sent to /itineraries/generate"""
        return {
            "interests": list(self.interests),
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "budget": self.budget,
            "travelStyle": self.travel_style,
            "groupSize": self.group_size,
            "specialRequests": self.special_requests or None,
        }

    def submit(self) -> TripPreferences:
        """
        Validate the current form state

        On failure the user-facing message is kept in error_message and the
        error is re-raised, so the caller never reaches the generator.
        """
        try:
            preferences = collect_preferences(self.as_payload())
        except ValidationError as e:
            self.error_message = e.user_message
            raise
        self.error_message = None
        return preferences
