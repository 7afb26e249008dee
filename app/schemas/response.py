"""Response schemas for API endpoints"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models.itinerary import Itinerary


class CamelModel(BaseModel):
    """Base model serialized with the camelCase keys the client and LLM use"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Activity(CamelModel):
    """Single scheduled activity of a day"""
    time: str = Field("", description="Time of activity (e.g., '08:00', 'Manhã')")
    activity: str = Field("", description="What to do")
    location: str = Field("", description="Named Ubatuba location")
    description: str = Field("", description="Short description")
    duration: str = Field("", description="Free-text duration (e.g., '2 horas')")
    difficulty: Optional[str] = Field(None, description="Difficulty, for trails and tours")
    category: Optional[str] = Field(None, description="'evento' or 'passeio de barco' for catalog items")
    guide: Optional[str] = Field(None, description="Suggested local guide")
    tips: List[str] = Field(default_factory=list)


class ItineraryDay(CamelModel):
    """Plan for a single day"""
    day: int = Field(..., ge=1, description="1-based day number")
    title: str = Field("", description="Theme of the day")
    activities: List[Activity] = Field(default_factory=list)


class GeneratedItinerary(CamelModel):
    """
    Structured itinerary returned by the generation service

    Always structurally complete: the parser substitutes defaults for every
    field the model omits. Content accuracy is not verified.
    """
    title: str = Field(..., min_length=1)
    summary: str
    total_days: int = Field(..., ge=1)
    estimated_cost: str
    best_time_to_visit: str
    days: List[ItineraryDay] = Field(default_factory=list)
    general_tips: List[str] = Field(default_factory=list)
    what_to_bring: List[str] = Field(default_factory=list)


class GenerateItineraryResponse(GeneratedItinerary):
    """Response for /itineraries/generate: the itinerary plus its storage outcome"""
    itinerary_id: Optional[str] = Field(None, description="Id of the stored record (null if not saved)")
    saved: bool = Field(True, description="False when generation succeeded but the save failed")
    warning: Optional[str] = Field(None, description="Non-fatal problem to show the user")


class AnalyzedPreferences(CamelModel):
    """Preference draft extracted from free text by /itineraries/analyze"""
    duration: int = Field(3, ge=1)
    interests: List[str] = Field(default_factory=lambda: ["praias", "natureza"])
    budget: str = "médio"
    travel_style: str = "relaxante"
    special_requests: Optional[str] = None


class ItineraryListResponse(BaseModel):
    """Response for GET /itineraries"""
    itineraries: List[Itinerary]
    count: int


class WeatherForecast(CamelModel):
    """Daily forecast for Ubatuba"""
    date: str
    description: str
    temperature_max: int
    temperature_min: int
    precipitation_probability: int = 0
    wind_speed: int = Field(0, description="Max wind speed in km/h")


class ErrorResponse(BaseModel):
    """Error response"""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: Optional[dict] = Field(None, description="Additional error details")
