"""Itinerary database model"""
from datetime import datetime
from typing import Any, Dict, Union
from pydantic import BaseModel, Field


class Itinerary(BaseModel):
    """
    Itinerary model matching the Supabase itineraries table schema

    Records are write-once: created after a successful generation and
    never updated or deleted by this service.
    """
    id: str
    user_id: str = Field(..., description="Foreign key to users table")
    preferences: Dict[str, Any] = Field(..., description="Preferences used to generate the itinerary")
    content: Union[Dict[str, Any], str] = Field(
        ...,
        description="Generated itinerary JSON (older records hold markdown text)"
    )
    title: str = Field(..., min_length=1)
    duration: int = Field(..., ge=1, description="Requested trip length in days")
    created_at: datetime

    class Config:
        from_attributes = True
