"""Format a structured itinerary as the markdown-like text the renderer reads"""
from typing import List

from ..schemas.response import Activity, GeneratedItinerary

CATEGORY_LABELS = {"evento": "Evento", "passeio de barco": "Passeio de barco"}


def _activity_lines(activity: Activity) -> List[str]:
    lines = [f"### {activity.time or 'Atividades'}"]
    if activity.activity:
        label = CATEGORY_LABELS.get(activity.category, "Atividade")
        lines.append(f"- **{label}:** {activity.activity}")
    if activity.location:
        lines.append(f"- **Local:** {activity.location}")
    if activity.guide:
        lines.append(f"- **Guia sugerido:** {activity.guide}")
    if activity.description:
        lines.append(f"- {activity.description}")
    if activity.duration:
        lines.append(f"- Duração: {activity.duration}")
    if activity.difficulty:
        lines.append(f"- Dificuldade: {activity.difficulty}")
    lines.extend(f"- **Dica:** {tip}" for tip in activity.tips)
    return lines


def format_itinerary_text(itinerary: GeneratedItinerary) -> str:
    """
    Turn a GeneratedItinerary into "## Dia N" / "### horário" text

    Each activity becomes its own period headed by its time. General tips
    and the packing list go into "## Dicas" sections.
    """
    lines: List[str] = []

    for day in itinerary.days:
        lines.append(f"## Dia {day.day}: {day.title}" if day.title else f"## Dia {day.day}")
        for activity in day.activities:
            lines.extend(_activity_lines(activity))
        lines.append("")

    if itinerary.general_tips:
        lines.append("## Dicas Gerais")
        lines.extend(f"- {tip}" for tip in itinerary.general_tips)
        lines.append("")

    if itinerary.what_to_bring:
        lines.append("## Dicas: o que levar")
        lines.extend(f"- {item}" for item in itinerary.what_to_bring)
        lines.append("")

    return "\n".join(lines).strip()
