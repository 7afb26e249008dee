"""Display-ready structures produced by the itinerary renderer"""
from enum import Enum
from typing import List, Literal, Optional, Union
from pydantic import BaseModel, Field


class ContentKind(str, Enum):
    """Visual treatment of a single rendered line"""
    ACTIVITY = "activity"
    LOCATION = "location"
    COST = "cost"
    GUIDE = "guide"
    TIP = "tip"
    EVENT = "event"
    BOAT_TOUR = "boat_tour"
    CONTACT = "contact"
    TEXT = "text"


class ContentItem(BaseModel):
    """One classified line, markers already stripped"""
    kind: ContentKind
    text: str = Field(..., description="Line text without list, bold or keyword markers")
    name: Optional[str] = Field(None, description="Guide, event or boat tour name")
    slug: Optional[str] = Field(None, description="Guide profile slug")
    contact: Optional[str] = Field(None, description="Guide contact (phone, e-mail)")
    link: Optional[str] = Field(None, description="Catalog page for this item")


class Period(BaseModel):
    """Sub-section of a day (e.g. 'Manhã (8h-12h)')"""
    name: str
    items: List[ContentItem] = Field(default_factory=list)


class DayBlock(BaseModel):
    type: Literal["day"] = "day"
    day: int = Field(..., ge=1, description="Day number taken from the heading")
    title: str = Field(..., description="Heading text, e.g. 'Dia 1: Praias do Norte'")
    periods: List[Period] = Field(default_factory=list)


class InfoBlock(BaseModel):
    """Contacts, general tips or suggestions section"""
    type: Literal["info"] = "info"
    title: str
    items: List[ContentItem] = Field(default_factory=list)


class RenderHeader(BaseModel):
    title: str
    subtitle: str = Field(..., description="'N dia(s) em Ubatuba'")


class RenderedItinerary(BaseModel):
    header: RenderHeader
    blocks: List[Union[DayBlock, InfoBlock]] = Field(default_factory=list)
