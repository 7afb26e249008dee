"""Request schemas for API endpoints"""
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Budget(str, Enum):
    """Closed set of budget tiers offered by the preferences form"""
    ECONOMIC = "econômico"
    MEDIUM = "médio"
    PREMIUM = "premium"

    @classmethod
    def from_label(cls, label: Optional[str]) -> Optional["Budget"]:
        """Map a form value (pt-BR or English, with or without accents) to a tier"""
        if not label:
            return None
        return BUDGET_ALIASES.get(label.strip().lower())


BUDGET_ALIASES = {
    "econômico": Budget.ECONOMIC,
    "economico": Budget.ECONOMIC,
    "economic": Budget.ECONOMIC,
    "médio": Budget.MEDIUM,
    "medio": Budget.MEDIUM,
    "medium": Budget.MEDIUM,
    "premium": Budget.PREMIUM,
    "alto": Budget.PREMIUM,
    "luxo": Budget.PREMIUM,
}

# Group size bands used by the form, with the label embedded in the prompt
GROUP_SIZE_LABELS = {
    "1": "Sozinho(a)",
    "2": "Casal (2 pessoas)",
    "3-5": "Grupo pequeno (3-5 pessoas)",
    "6-10": "Grupo médio (6-10 pessoas)",
    "10+": "Grupo grande (mais de 10 pessoas)",
}


class TripPreferences(BaseModel):
    """
    Canonical trip preferences produced by the preference collector

    Built only through collect_preferences(), which guarantees the
    required fields are present and duration >= 1.
    """
    model_config = ConfigDict(populate_by_name=True)

    interests: List[str] = Field(..., min_length=1, description="Selected interest tags")
    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")
    duration: int = Field(..., ge=1, description="Inclusive day count between the dates")
    budget: Budget
    travel_style: str = Field(..., alias="travelStyle")
    group_size: str = Field(..., alias="groupSize")
    special_requests: Optional[str] = Field(None, alias="specialRequests")

    @property
    def group_size_label(self) -> str:
        return GROUP_SIZE_LABELS.get(self.group_size, self.group_size)


class GenerateItineraryRequest(BaseModel):
    """
    Request body for /itineraries/generate

    Preferences are kept as a raw mapping so the collector can apply its
    own validation order and messages.
    """
    preferences: Dict[str, Any] = Field(..., description="Raw trip preferences from the form")

    class Config:
        json_schema_extra = {
            "example": {
                "preferences": {
                    "interests": ["praias", "trilhas"],
                    "startDate": "2025-03-10",
                    "endDate": "2025-03-12",
                    "budget": "médio",
                    "travelStyle": "relaxante",
                    "groupSize": "2",
                    "specialRequests": "Gostaríamos de ver o pôr do sol"
                }
            }
        }


class AnalyzePreferencesRequest(BaseModel):
    """Request body for /itineraries/analyze"""
    model_config = ConfigDict(populate_by_name=True)

    user_input: str = Field(..., alias="userInput", max_length=1000)

    @field_validator("user_input")
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("userInput cannot be empty")
        return v.strip()


class RenderItineraryRequest(BaseModel):
    """Request body for /itineraries/render"""
    content: str = Field("", description="Markdown-like itinerary text")
    title: str = Field("Roteiro para Ubatuba")
    duration: int = Field(1, ge=1)
