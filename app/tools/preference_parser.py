"""Preference parsing tool - extracts a preference draft from unstructured text"""
import re
import unicodedata
from typing import List, Optional

from ..schemas.response import AnalyzedPreferences


def _fold(text: str) -> str:
    """Lowercase and strip accents so 'Família' and 'familia' match"""
    normalized = unicodedata.normalize("NFKD", text.lower())
    return "".join(c for c in normalized if not unicodedata.combining(c))


def _mentions(folded: str, keyword: str) -> bool:
    """Keyword at the start of a word (plurals and suffixes still match)"""
    return re.search(r"\b" + re.escape(keyword), folded) is not None


class PreferenceParser:
    """Keyword-based fallback used when the LLM cannot analyze the request"""

    # Canonical interest tag -> keywords that signal it (accent-folded)
    INTEREST_KEYWORDS = {
        'praias': ['praia', 'beach', 'areia', 'surf'],
        'trilhas': ['trilha', 'hiking', 'caminhada', 'pico', 'cachoeira'],
        'mergulho': ['mergulho', 'snorkel', 'diving'],
        'culinária': ['culinaria', 'comida', 'gastronomia', 'restaurante', 'frutos do mar', 'food'],
        'vida noturna': ['vida noturna', 'balada', 'bares', 'barzinho', 'festa', 'nightlife'],
        'história': ['historia', 'historico', 'museu', 'cultura'],
        'natureza': ['natureza', 'mata atlantica', 'ecoturismo', 'nature'],
        'aventura': ['aventura', 'rapel', 'adventure', 'radical'],
        'fotografia': ['fotografia', 'fotos', 'por do sol', 'photo'],
        'passeios de barco': ['barco', 'escuna', 'ilha', 'boat'],
    }

    BUDGET_KEYWORDS = {
        'econômico': ['economico', 'barato', 'mochil', 'baixo custo', 'apertado', 'cheap'],
        'premium': ['premium', 'luxo', 'sofisticado', 'alto padrao', 'luxury'],
    }

    STYLE_KEYWORDS = {
        'família': ['familia', 'criancas', 'filhos', 'kids'],
        'romântico': ['romantico', 'lua de mel', 'namorad', 'casal'],
        'aventura': ['aventura', 'radical', 'adrenalina'],
        'cultural': ['cultura', 'historia', 'museu'],
    }

    DEFAULT_DURATION = 3
    DEFAULT_INTERESTS = ['praias', 'natureza']
    DEFAULT_BUDGET = 'médio'
    DEFAULT_STYLE = 'relaxante'

    @classmethod
    def extract_duration(cls, text: str) -> Optional[int]:
        """
        Extract the trip length in days

        Examples:
            "3 dias" -> 3
            "uma semana" -> 7
            "fim de semana" -> 2
        """
        if not text:
            return None

        folded = _fold(text)
        match = re.search(r'(\d{1,2})\s*(?:dias?|days?|noites?)', folded)
        if match:
            days = int(match.group(1))
            return days if days >= 1 else None

        if 'fim de semana' in folded or 'final de semana' in folded:
            return 2
        if 'uma semana' in folded:
            return 7

        return None

    @classmethod
    def extract_interests(cls, text: str) -> List[str]:
        """Return canonical interest tags in declaration order"""
        if not text:
            return []

        folded = _fold(text)
        return [
            interest for interest, keywords in cls.INTEREST_KEYWORDS.items()
            if any(_mentions(folded, keyword) for keyword in keywords)
        ]

    @classmethod
    def _first_match(cls, text: str, table: dict) -> Optional[str]:
        folded = _fold(text)
        for label, keywords in table.items():
            if any(_mentions(folded, keyword) for keyword in keywords):
                return label
        return None

    @classmethod
    def parse(cls, preferences_text: Optional[str]) -> AnalyzedPreferences:
        """
        Parse unstructured text into a preference draft

        Example:
            Input: "Quero 4 dias de trilhas e praias com minha família, algo barato"
            Output: AnalyzedPreferences(
                duration=4,
                interests=['praias', 'trilhas'],
                budget='econômico',
                travel_style='família'
            )
        """
        if not preferences_text:
            return AnalyzedPreferences()

        return AnalyzedPreferences(
            duration=cls.extract_duration(preferences_text) or cls.DEFAULT_DURATION,
            interests=cls.extract_interests(preferences_text) or list(cls.DEFAULT_INTERESTS),
            budget=cls._first_match(preferences_text, cls.BUDGET_KEYWORDS) or cls.DEFAULT_BUDGET,
            travel_style=cls._first_match(preferences_text, cls.STYLE_KEYWORDS) or cls.DEFAULT_STYLE,
        )
