"""Content safety checks for LLM outputs"""
from typing import Any, Dict, List
from google.generativeai.types import HarmBlockThreshold, HarmCategory


class ContentSafetyError(Exception):
    """Raised when content fails safety checks"""
    def __init__(self, message: str, safety_ratings: List[Dict] = None):
        self.message = message
        self.safety_ratings = safety_ratings or []
        super().__init__(self.message)


def configure_safety_settings():
    """
    Configure Gemini safety settings

    Uses BLOCK_ONLY_HIGH to avoid false positives on normal travel requests
    (trail difficulty, night events and similar content).

    Returns:
        Safety settings dictionary for Gemini
    """
    return {
        HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_ONLY_HIGH,
        HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_ONLY_HIGH,
        HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_ONLY_HIGH,
        HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_ONLY_HIGH,
    }


def _enum_name(value: Any) -> str:
    return getattr(value, "name", str(value))


def check_content_safety(response: Any) -> bool:
    """
    Check if a Gemini response was blocked by the safety filters

    Args:
        response: GenerateContentResponse from google-generativeai

    Returns:
        bool: True if safe, raises ContentSafetyError if blocked

    Raises:
        ContentSafetyError: If the prompt or every candidate was blocked
    """
    prompt_feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(prompt_feedback, "block_reason", None)
    if block_reason:
        raise ContentSafetyError(
            f"Content blocked: {_enum_name(block_reason)}",
            safety_ratings=[
                {"category": _enum_name(r.category), "probability": _enum_name(r.probability)}
                for r in getattr(prompt_feedback, "safety_ratings", [])
            ]
        )

    candidates = getattr(response, "candidates", None) or []
    for candidate in candidates:
        if _enum_name(getattr(candidate, "finish_reason", "")) == "SAFETY":
            raise ContentSafetyError(
                "Response stopped by safety filters",
                safety_ratings=[
                    {"category": _enum_name(r.category), "probability": _enum_name(r.probability)}
                    for r in getattr(candidate, "safety_ratings", [])
                ]
            )

    return True
