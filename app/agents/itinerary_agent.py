"""
Itinerary Agent - turns trip preferences into a structured Ubatuba itinerary

One Gemini call per request, JSON-only response, parsed through the
parse-with-fallback adapter. No retries and no caching: the caller decides
whether the user tries again.
"""
import asyncio
import json
import logging
import math
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import google.generativeai as genai

from ..config import settings
from ..schemas.request import TripPreferences
from ..schemas.response import AnalyzedPreferences, GeneratedItinerary
from ..tools.preference_parser import PreferenceParser
from ..utils.content_safety import ContentSafetyError, check_content_safety, configure_safety_settings
from .itinerary_parser import (
    MALFORMED_OUTPUT,
    UPSTREAM_UNAVAILABLE,
    GenerationError,
    parse_generated_itinerary,
)

# Configure logging
log_file = Path(__file__).parent.parent.parent / "logs.txt"
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_file, mode='a'),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

__all__ = ["ItineraryAgent", "GenerationError", "build_itinerary_prompt", "build_analysis_prompt"]

# Sent when no key is configured; the provider rejects it, so generation
# fails with "upstream unavailable" instead of crashing at startup
PLACEHOLDER_API_KEY = "default_key"

SYSTEM_INSTRUCTION = (
    "Você é um especialista em turismo de Ubatuba, SP. Crie roteiros detalhados e autênticos "
    "em português brasileiro usando apenas locais e atividades reais da região."
)

# Real places the model is pointed at instead of generic placeholders.
# Callers with live listings pass their own catalog, including "guias" and "eventos".
UBATUBA_LANDMARKS: Dict[str, List[str]] = {
    "praias": ["Praia Vermelha", "Praia do Félix", "Praia do Lázaro", "Praia Itamambuca", "Praia da Fortaleza"],
    "trilhas": ["Trilha da Praia Brava", "Pico do Corcovado", "Trilha das 7 Praias", "Trilha do Poço Verde"],
    "passeios": ["Ilha Anchieta", "Ilha das Couves", "Saco da Ribeira"],
    "cultura": ["Projeto Tamar", "Aquário de Ubatuba", "Casarão do Porto", "Quilombo da Fazenda"],
    "passeios de barco": ["Escuna para a Ilha Anchieta", "Passeio de barco à Ilha das Couves"],
}

ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "duration": {"type": "number"},
        "interests": {"type": "array", "items": {"type": "string"}},
        "budget": {"type": "string"},
        "travelStyle": {"type": "string"},
        "specialRequests": {"type": "string"},
    },
    "required": ["duration", "interests", "budget", "travelStyle"],
}


def _format_date(value) -> str:
    return value.strftime("%d/%m/%Y")


def build_itinerary_prompt(
    preferences: TripPreferences,
    catalog: Optional[Dict[str, List[str]]] = None
) -> str:
    """
    Build the generation prompt, embedding every preference field

    Args:
        preferences: Validated preferences
        catalog: Category name to real place, tour, event or guide names;
            defaults to UBATUBA_LANDMARKS
    """
    landmarks = "\n".join(
        f"- {category.capitalize()}: {', '.join(places)}"
        for category, places in (catalog or UBATUBA_LANDMARKS).items()
        if places
    )
    special = (
        f"Pedidos especiais: {preferences.special_requests}\n"
        if preferences.special_requests else ""
    )
    day_word = "dia" if preferences.duration == 1 else "dias"

    return f"""Você é um especialista em turismo de Ubatuba, São Paulo, Brasil. Crie um roteiro personalizado detalhado em português brasileiro baseado nas seguintes preferências:

Interesses: {', '.join(preferences.interests)}
Datas: {_format_date(preferences.start_date)} a {_format_date(preferences.end_date)}
Duração: {preferences.duration} {day_word}
Orçamento: {preferences.budget.value}
Estilo de viagem: {preferences.travel_style}
Tamanho do grupo: {preferences.group_size_label}
{special}
Crie um roteiro completo incluindo:
- Título atrativo para o roteiro
- Resumo do roteiro (2-3 frases)
- Número total de dias (exatamente {preferences.duration})
- Custo estimado por pessoa, coerente com o orçamento {preferences.budget.value}
- Melhor época para visitar
- Cronograma detalhado dia a dia com atividades específicas de Ubatuba
- Dicas gerais importantes
- Lista do que levar

Para cada dia, inclua:
- Título temático do dia
- Atividades com horários, locais específicos de Ubatuba, descrições, duração e dicas

Responda APENAS com um único objeto JSON válido com a seguinte estrutura:
{{
  "title": "string",
  "summary": "string",
  "totalDays": number,
  "estimatedCost": "string",
  "bestTimeToVisit": "string",
  "days": [
    {{
      "day": number,
      "title": "string",
      "activities": [
        {{
          "time": "string",
          "activity": "string",
          "location": "string",
          "description": "string",
          "duration": "string",
          "difficulty": "string (opcional)",
          "category": "evento | passeio de barco (opcional)",
          "guide": "string (opcional)",
          "tips": ["string"]
        }}
      ]
    }}
  ],
  "generalTips": ["string"],
  "whatToBring": ["string"]
}}

Use somente locais reais e específicos de Ubatuba, nunca nomes genéricos ou inventados. Exemplos:
{landmarks}

Use "category": "evento" para eventos e jantares, e "passeio de barco" para passeios de barco.
Em trilhas e passeios, sugira em "guide" um guia listado acima; se nenhum guia for listado, omita o campo.
"""


def build_analysis_prompt(user_input: str) -> str:
    """Build the prompt that extracts structured preferences from free text"""
    return f"""Analise o seguinte pedido de roteiro de viagem para Ubatuba e extraia as preferências estruturadas:

"{user_input}"

Responda APENAS com JSON válido no seguinte formato:
{{
  "duration": [número de dias, se não especificado use 3],
  "interests": [array de strings com interesses identificados],
  "budget": "[econômico/médio/premium - baseado nas pistas do texto]",
  "travelStyle": "[aventura/relaxante/cultural/família/romântico - baseado no contexto]",
  "specialRequests": "[requisições específicas mencionadas ou null]"
}}

Exemplos de interesses possíveis: {', '.join(PreferenceParser.INTEREST_KEYWORDS.keys())}"""


class ItineraryAgent:
    """Generation service wrapping the Gemini API behind typed results"""

    def __init__(
        self,
        model_name: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
        catalog: Optional[Dict[str, List[str]]] = None
    ):
        self.model_name = model_name or settings.model_name
        self.temperature = settings.model_temperature if temperature is None else temperature
        self.timeout_seconds = timeout_seconds or settings.generation_timeout_seconds
        self.catalog = catalog

    @staticmethod
    def _resolve_api_key() -> str:
        """Read the key from the process environment at call time"""
        api_key = os.getenv("GEMINI_API_KEY") or settings.gemini_api_key
        if not api_key:
            logger.error("❌ GEMINI_API_KEY is not set - the provider will reject this call")
            return PLACEHOLDER_API_KEY
        return api_key

    async def _call_gemini(self, prompt: str, response_schema: Optional[Dict[str, Any]] = None) -> str:
        """
        Send one prompt to Gemini and return the raw response text

        The SDK call is blocking, so it runs in a worker thread and the
        event loop keeps serving other requests.

        Raises:
            GenerationError: "upstream unavailable" on network, auth,
                timeout or safety-block failures
        """
        genai.configure(api_key=self._resolve_api_key())

        config = {"response_mime_type": "application/json", "temperature": self.temperature}
        if response_schema is not None:
            config["response_schema"] = response_schema
        generation_config = genai.GenerationConfig(**config)
        model = genai.GenerativeModel(
            model_name=self.model_name,
            system_instruction=SYSTEM_INSTRUCTION,
            generation_config=generation_config,
            safety_settings=configure_safety_settings(),
        )

        logger.info(f"📤 Sending request to {self.model_name} (temp={self.temperature})...")
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(model.generate_content, prompt),
                timeout=self.timeout_seconds,
            )
            check_content_safety(response)
            text = response.text
        except asyncio.TimeoutError as e:
            logger.error(f"❌ Gemini call timed out after {self.timeout_seconds}s")
            raise GenerationError(UPSTREAM_UNAVAILABLE, {"reason": "timeout"}) from e
        except ContentSafetyError as e:
            logger.error(f"❌ Gemini response blocked: {e.message}")
            raise GenerationError(UPSTREAM_UNAVAILABLE, {"reason": "safety", "safety_ratings": e.safety_ratings}) from e
        except Exception as e:
            logger.error(f"❌ Gemini API call failed: {type(e).__name__}: {str(e)}")
            raise GenerationError(UPSTREAM_UNAVAILABLE, {"reason": type(e).__name__}) from e

        logger.info(f"📥 Received response from Gemini ({len(text or '')} chars)")
        return text

    async def generate_itinerary(self, preferences: TripPreferences) -> GeneratedItinerary:
        """
        Generate a structured itinerary for the given preferences

        Args:
            preferences: Validated preferences from the collector

        Returns:
            GeneratedItinerary, structurally complete

        Raises:
            GenerationError: "upstream unavailable" or "malformed model output"
        """
        logger.info("\n" + "="*80)
        logger.info("STARTING ITINERARY GENERATION")
        logger.info("="*80)
        logger.info(f"Interests: {', '.join(preferences.interests)}")
        logger.info(f"Dates: {preferences.start_date} to {preferences.end_date} ({preferences.duration} days)")
        logger.info(f"Budget: {preferences.budget.value} | Style: {preferences.travel_style} | Group: {preferences.group_size}")

        prompt = build_itinerary_prompt(preferences, self.catalog)
        logger.info(f"Prompt length: {len(prompt)} chars")

        text = await self._call_gemini(prompt)
        itinerary = parse_generated_itinerary(text)

        if itinerary.total_days != preferences.duration:
            logger.warning(
                f"⚠️ Model planned {itinerary.total_days} days, {preferences.duration} were requested"
            )

        logger.info(f"✓ Itinerary '{itinerary.title}' generated with {len(itinerary.days)} days")
        logger.info("="*80)
        return itinerary

    async def analyze_preferences(self, user_input: str) -> AnalyzedPreferences:
        """
        Extract a preference draft from free text

        Falls back to keyword extraction when the LLM fails or answers
        with something unusable; never raises for model problems.
        """
        fallback = PreferenceParser.parse(user_input)

        try:
            text = await self._call_gemini(build_analysis_prompt(user_input), response_schema=ANALYSIS_SCHEMA)
            raw = json.loads(text or "")
            if not isinstance(raw, dict):
                raise GenerationError(MALFORMED_OUTPUT)
        except (GenerationError, json.JSONDecodeError) as e:
            logger.warning(f"⚠️ Preference analysis fell back to keyword parsing: {e}")
            return fallback

        # Field by field: whatever the model got wrong comes from the keyword parse
        duration = raw.get("duration")
        if (
            isinstance(duration, bool)
            or not isinstance(duration, (int, float))
            or not math.isfinite(duration)
            or duration < 1
        ):
            duration = fallback.duration

        interests = raw.get("interests")
        if isinstance(interests, list):
            interests = [i.strip() for i in interests if isinstance(i, str) and i.strip()]
        if not isinstance(interests, list) or not interests:
            interests = fallback.interests

        budget = raw.get("budget")
        travel_style = raw.get("travelStyle")
        special = raw.get("specialRequests")

        return AnalyzedPreferences(
            duration=int(duration),
            interests=interests,
            budget=budget.strip() if isinstance(budget, str) and budget.strip() else fallback.budget,
            travel_style=travel_style.strip() if isinstance(travel_style, str) and travel_style.strip()
            else fallback.travel_style,
            special_requests=special.strip() if isinstance(special, str) and special.strip() else None,
        )
