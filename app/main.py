"""
Ubatuba Itinerary API - AI-generated travel plans for Ubatuba, SP

PIPELINE:
- Preference collection and validation (never reaches the LLM when invalid)
- Single Gemini call with JSON output and parse-with-fallback defaults
- Write-once storage per user (Supabase, in-memory for development)
- Rendering of itinerary text into day/period/info blocks
- JWT-based authentication (HttpOnly cookie or Bearer header)
"""
import logging
from datetime import date
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, Depends, Query
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .agents.itinerary_agent import ItineraryAgent
from .agents.itinerary_parser import GenerationError
from .config import settings
from .middleware.auth import require_auth
from .models.itinerary import Itinerary
from .rendering.itinerary_formatter import format_itinerary_text
from .rendering.itinerary_renderer import render_itinerary
from .schemas.render import RenderedItinerary
from .schemas.request import AnalyzePreferencesRequest, GenerateItineraryRequest, RenderItineraryRequest, TripPreferences
from .schemas.response import (
    AnalyzedPreferences,
    ErrorResponse,
    GeneratedItinerary,
    GenerateItineraryResponse,
    ItineraryListResponse,
    WeatherForecast,
)
from .tools.weather_api import WeatherAPI
from .utils.database import ItineraryStore, PersistenceError, get_itinerary_store
from .utils.prompt_injection import PromptInjectionDetector
from .validators.input_validator import ValidationError, collect_preferences

logger = logging.getLogger(__name__)

GENERATION_FAILED_MESSAGE = "Não foi possível gerar o roteiro. Tente novamente."
SAVE_FAILED_WARNING = (
    "O roteiro foi gerado, mas não pôde ser salvo. Copie o conteúdo antes de sair desta página."
)

app = FastAPI(
    title="Ubatuba Itinerary API",
    description="AI-powered itinerary generator for Ubatuba, SP",
    version="1.0.0"
)

# CORS middleware for frontend communication
allowed_origins_list = [origin.strip() for origin in settings.allowed_origins.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Errors are returned as {"error", "message", "details"} at the top level"""
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        content = exc.detail
    else:
        content = {"error": "HTTPError", "message": str(exc.detail), "details": {}}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "error": "ValidationError",
            "message": "Invalid request body",
            "details": {
                "errors": [
                    {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
                    for error in exc.errors()
                ]
            }
        }
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "message": "An unexpected error occurred. Please try again.",
            "details": {}
        }
    )


def get_itinerary_agent() -> ItineraryAgent:
    """Dependency: generation service"""
    return ItineraryAgent()


async def get_weather_api() -> AsyncIterator[WeatherAPI]:
    """Dependency: weather client, closed after the request"""
    weather = WeatherAPI()
    try:
        yield weather
    finally:
        await weather.close()


def stored_title(preferences: TripPreferences) -> str:
    """Title saved with the record, e.g. 'Roteiro 3 dias - praias, trilhas'"""
    return f"Roteiro {preferences.duration} dias - {', '.join(preferences.interests[:2])}"


async def _owned_itinerary(store: ItineraryStore, itinerary_id: str, user_id: str) -> Itinerary:
    """Load an itinerary, 404 if missing and 403 if it belongs to someone else"""
    try:
        itinerary = await store.get_by_id(itinerary_id)
    except PersistenceError as e:
        raise HTTPException(
            status_code=500,
            detail={
                "error": "PersistenceError",
                "message": "Failed to retrieve itinerary",
                "details": e.details
            }
        )

    if not itinerary:
        raise HTTPException(
            status_code=404,
            detail={
                "error": "NotFound",
                "message": "Itinerary not found",
                "details": {"itinerary_id": itinerary_id}
            }
        )

    if itinerary.user_id != user_id:
        raise HTTPException(
            status_code=403,
            detail={
                "error": "Forbidden",
                "message": "You don't have access to this itinerary",
                "details": {}
            }
        )

    return itinerary


@app.get("/")
async def root():
    """Health check endpoint"""
    return {"status": "ok", "message": "Ubatuba Itinerary API is running"}


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"status": "healthy"}


@app.post(
    "/itineraries/generate",
    response_model=GenerateItineraryResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        500: {"model": ErrorResponse}
    }
)
async def generate_itinerary(
    request: GenerateItineraryRequest,
    current_user: Dict[str, Any] = Depends(require_auth),
    agent: ItineraryAgent = Depends(get_itinerary_agent),
    store: ItineraryStore = Depends(get_itinerary_store)
):
    """
    Generate and save a personalized Ubatuba itinerary (PROTECTED)

    Args:
        request: Raw preferences from the form
        current_user: Authenticated user data from JWT token

    Returns:
        The generated itinerary with itineraryId, saved and warning.
        A failed save does not discard the itinerary: it is returned with
        saved=false and a warning.

    Raises:
        HTTPException: 400 invalid preferences, 502 generation failure
    """
    try:
        preferences = collect_preferences(request.preferences)
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "ValidationError",
                "message": e.user_message,
                "details": {"reason": e.message, **e.details}
            }
        )

    try:
        itinerary = await agent.generate_itinerary(preferences)
    except GenerationError as e:
        logger.error(f"❌ Generation failed for user {current_user['id']}: {e.message} {e.details}")
        raise HTTPException(
            status_code=502,
            detail={
                "error": "GenerationError",
                "message": GENERATION_FAILED_MESSAGE,
                "details": {"reason": e.message}
            }
        )

    itinerary_id: Optional[str] = None
    saved = True
    warning: Optional[str] = None

    try:
        record = await store.create(
            user_id=current_user["id"],
            preferences=preferences.model_dump(mode="json", by_alias=True),
            content=itinerary.model_dump(mode="json", by_alias=True),
            title=stored_title(preferences),
            duration=preferences.duration
        )
        itinerary_id = record.id
        logger.info(f"💾 Itinerary {itinerary_id} saved for user {current_user['id']}")
    except PersistenceError as e:
        logger.error(f"❌ Failed to save generated itinerary: {e.message} {e.details}")
        saved = False
        warning = SAVE_FAILED_WARNING

    return GenerateItineraryResponse(
        **itinerary.model_dump(),
        itinerary_id=itinerary_id,
        saved=saved,
        warning=warning
    )


@app.post(
    "/itineraries/analyze",
    response_model=AnalyzedPreferences,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse}
    }
)
async def analyze_preferences(
    request: AnalyzePreferencesRequest,
    current_user: Dict[str, Any] = Depends(require_auth),
    agent: ItineraryAgent = Depends(get_itinerary_agent)
):
    """
    Suggest structured preferences from a free-text request (PROTECTED)

    Model failures fall back to keyword extraction, so this only fails for
    invalid input.
    """
    user_input, detected = PromptInjectionDetector.screen(
        request.user_input, max_length=settings.max_preferences_length
    )
    if detected:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "ValidationError",
                "message": "O texto contém conteúdo não permitido.",
                "details": {"detected_patterns": detected}
            }
        )

    return await agent.analyze_preferences(user_input)


@app.post(
    "/itineraries/render",
    response_model=RenderedItinerary,
    responses={401: {"model": ErrorResponse}}
)
async def render_itinerary_text(
    request: RenderItineraryRequest,
    current_user: Dict[str, Any] = Depends(require_auth)
):
    """Render itinerary text into display blocks (PROTECTED, stateless)"""
    return render_itinerary(request.content, request.title, request.duration)


@app.get(
    "/itineraries",
    response_model=ItineraryListResponse,
    responses={
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse}
    }
)
async def list_itineraries(
    current_user: Dict[str, Any] = Depends(require_auth),
    store: ItineraryStore = Depends(get_itinerary_store)
):
    """
    Get all itineraries of the authenticated user, newest first

    Returns:
        {"itineraries": [...], "count": n}; an empty list when there are none
    """
    try:
        itineraries = await store.list_by_user(current_user["id"])
    except PersistenceError as e:
        raise HTTPException(
            status_code=500,
            detail={
                "error": "PersistenceError",
                "message": "Failed to retrieve itineraries",
                "details": e.details
            }
        )

    return ItineraryListResponse(itineraries=itineraries, count=len(itineraries))


@app.get(
    "/itineraries/{itinerary_id}",
    response_model=Itinerary,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse}
    }
)
async def get_itinerary(
    itinerary_id: str,
    current_user: Dict[str, Any] = Depends(require_auth),
    store: ItineraryStore = Depends(get_itinerary_store)
):
    """Get one of the authenticated user's itineraries"""
    return await _owned_itinerary(store, itinerary_id, current_user["id"])


@app.get(
    "/itineraries/{itinerary_id}/rendered",
    response_model=RenderedItinerary,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse}
    }
)
async def get_rendered_itinerary(
    itinerary_id: str,
    current_user: Dict[str, Any] = Depends(require_auth),
    store: ItineraryStore = Depends(get_itinerary_store)
):
    """
    Get a stored itinerary as display blocks

    Structured content is formatted to itinerary text first; records that
    already hold text are rendered as they are.
    """
    itinerary = await _owned_itinerary(store, itinerary_id, current_user["id"])

    content = itinerary.content
    if isinstance(content, dict):
        try:
            content = format_itinerary_text(GeneratedItinerary.model_validate(content))
        except PydanticValidationError as e:
            logger.warning(f"⚠️ Stored itinerary {itinerary_id} has unexpected content: {str(e)}")
            content = ""

    return render_itinerary(content, itinerary.title, itinerary.duration)


@app.get(
    "/weather",
    response_model=WeatherForecast,
    responses={503: {"model": ErrorResponse}}
)
async def get_weather(
    day: Optional[date] = Query(None, alias="date"),
    weather: WeatherAPI = Depends(get_weather_api)
):
    """Ubatuba forecast for a date (defaults to today)"""
    forecast = await weather.get_forecast(day)
    if forecast is None:
        raise HTTPException(
            status_code=503,
            detail={
                "error": "ServiceUnavailable",
                "message": "Previsão do tempo indisponível no momento.",
                "details": {"date": day.isoformat() if day else None}
            }
        )
    return forecast
