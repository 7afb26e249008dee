"""
Itinerary Renderer - markdown-like itinerary text to display blocks

The generated text is only loosely structured, so sections and line types
are recognised by heading and keyword markers. Anything unrecognised is
dropped or rendered as plain text; rendering never raises on model output.
"""
import re
import unicodedata
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from ..schemas.render import (
    ContentItem,
    ContentKind,
    DayBlock,
    InfoBlock,
    Period,
    RenderedItinerary,
    RenderHeader,
)

# Every "## " heading starts a section; "### " does not
SECTION_SPLIT = re.compile(r"(?m)^(?=##\s)")
DAY_HEADING = re.compile(r"^##\s+Dia\s+(\d+)")
INFO_HEADING = re.compile(r"^##\s+(?:Contatos|Dicas|Sugestões)")
PERIOD_PREFIX = "### "

LIST_MARKER = re.compile(r"^\s*-\s*")
BOLD_MARKER = re.compile(r"\*\*(.*?)\*\*")

GUIDES_LINK = "/guides"
EVENTS_LINK = "/events"
BOAT_TOURS_LINK = "/boat-tours"


class ContentRule(NamedTuple):
    kind: ContentKind
    matches: Callable[[str], bool]
    extract: Callable[[str], Dict[str, Any]]


def clean_line(line: str) -> str:
    """Strip the leading list marker and bold markers"""
    return BOLD_MARKER.sub(r"\1", LIST_MARKER.sub("", line)).strip()


def slugify(name: str) -> str:
    folded = unicodedata.normalize("NFKD", name.lower())
    folded = "".join(c for c in folded if not unicodedata.combining(c))
    return re.sub(r"[^a-z0-9-]", "", re.sub(r"\s+", "-", folded.strip()))


def _leading_name(info: str) -> str:
    """'Carlos Silva - (12) 99999-0000' -> 'Carlos Silva'"""
    return info.split(" - ")[0].split(" (")[0].strip() or info


def _contains(*markers: str) -> Callable[[str], bool]:
    return lambda line: any(marker in line for marker in markers)


def _without(pattern: str) -> Callable[[str], str]:
    compiled = re.compile(pattern)
    return lambda line: compiled.sub("", line).strip()


def _plain(pattern: str) -> Callable[[str], Dict[str, Any]]:
    strip = _without(pattern)
    return lambda line: {"text": strip(line)}


def _named(pattern: str, link: str, with_slug: bool = False) -> Callable[[str], Dict[str, Any]]:
    strip = _without(pattern)

    def extract(line: str) -> Dict[str, Any]:
        info = strip(line)
        name = _leading_name(info)
        fields = {"text": info, "name": name, "link": link}
        if with_slug:
            fields["slug"] = slugify(name)
            fields["link"] = f"{link}/{fields['slug']}"
        return fields

    return extract


# Evaluated in order, first match wins
CONTENT_RULES = (
    ContentRule(ContentKind.ACTIVITY, _contains("Atividade:"), _plain(r"Atividade:")),
    ContentRule(ContentKind.LOCATION, _contains("Local:"), _plain(r"Local:")),
    ContentRule(ContentKind.COST, _contains("Custo", "Preço"), _plain(r"Custo.*?:|Preço.*?:")),
    ContentRule(
        ContentKind.GUIDE,
        _contains("Guia sugerido:", "Guia:"),
        _named(r"Guia sugerido:|Guia:", GUIDES_LINK, with_slug=True),
    ),
    ContentRule(ContentKind.TIP, _contains("Dica:"), _plain(r"Dica:")),
    ContentRule(
        ContentKind.EVENT,
        _contains("Evento:", "Jantar:", "🎭", "🎪"),
        _named(r"Evento/Jantar:|Evento:|Jantar:|🎭|🎪", EVENTS_LINK),
    ),
    ContentRule(
        ContentKind.BOAT_TOUR,
        _contains("Passeio de barco:", "⛵", "🚤"),
        _named(r"Passeio de barco:|⛵|🚤", BOAT_TOURS_LINK),
    ),
)


def classify_line(line: str) -> Optional[ContentItem]:
    """Classify one content line; None for lines that are empty once cleaned"""
    cleaned = clean_line(line)
    if not cleaned:
        return None

    for rule in CONTENT_RULES:
        if rule.matches(cleaned):
            return ContentItem(kind=rule.kind, **rule.extract(cleaned))
    return ContentItem(kind=ContentKind.TEXT, text=cleaned)


def _heading_text(line: str) -> str:
    return line.strip().lstrip("#").strip()


def _render_day(number: int, lines: List[str]) -> DayBlock:
    periods: List[Period] = []
    current: Optional[Period] = None

    # Lines before the first "### " have no period and are not shown
    for line in lines[1:]:
        if line.strip().startswith(PERIOD_PREFIX):
            current = Period(name=_heading_text(line))
            periods.append(current)
        elif current is not None:
            item = classify_line(line)
            if item is not None:
                current.items.append(item)

    return DayBlock(day=number, title=_heading_text(lines[0]), periods=periods)


def _render_info(lines: List[str]) -> InfoBlock:
    title = _heading_text(lines[0])
    items = []

    for line in lines[1:]:
        cleaned = clean_line(line)
        if not cleaned:
            continue
        if "Contatos" in title and ":" in cleaned:
            name, contact = (part.strip() for part in cleaned.split(":", 1))
            items.append(ContentItem(
                kind=ContentKind.CONTACT, text=cleaned, name=name, contact=contact, link=GUIDES_LINK
            ))
        elif "Dicas" in title:
            items.append(ContentItem(kind=ContentKind.TIP, text=cleaned))
        else:
            items.append(ContentItem(kind=ContentKind.TEXT, text=cleaned))

    return InfoBlock(title=title, items=items)


def render_itinerary(content: str, title: str, duration: int) -> RenderedItinerary:
    """
    Render itinerary text into day and info blocks

    Args:
        content: Markdown-like text ("## Dia N", "### Período", "- Atividade: ...")
        title: Itinerary title for the header
        duration: Day count for the header badge

    Returns:
        RenderedItinerary; blocks is empty for empty or heading-less text
    """
    header = RenderHeader(
        title=title,
        subtitle=f"{duration} {'dia' if duration == 1 else 'dias'} em Ubatuba",
    )
    blocks = []

    for section in SECTION_SPLIT.split(content or ""):
        lines = [line for line in section.splitlines() if line.strip()]
        if not lines:
            continue

        heading = lines[0].strip()
        day_match = DAY_HEADING.match(heading)
        if day_match:
            blocks.append(_render_day(int(day_match.group(1)) or 1, lines))
        elif INFO_HEADING.match(heading):
            blocks.append(_render_info(lines))

    return RenderedItinerary(header=header, blocks=blocks)
