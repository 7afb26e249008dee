"""Unit tests for rendering itinerary text into display blocks."""

import pytest

from app.rendering.itinerary_renderer import (
    CONTENT_RULES,
    classify_line,
    clean_line,
    render_itinerary,
    slugify,
)
from app.schemas.render import ContentKind, DayBlock, InfoBlock

SAMPLE = """Aqui está o seu roteiro!

## Dia 1: Praias do Norte
Um dia tranquilo.
### Manhã (8h-12h)
- **Atividade:** Trilha da Praia Brava
- **Local:** Praia Brava da Almada
- **Custo:** R$ 30 por pessoa
- **Guia sugerido:** João Silva - trilhas e observação de aves

### Noite (19h-22h)
- **Evento/Jantar:** Festival do Camarão - Praça de Eventos
- ⛵ Escuna para a Ilha Anchieta (saída às 9h)
- Descanse na pousada

## Dia 2: Ilhas
### Manhã
- **Dica:** leve protetor solar

## Contatos dos Guias Sugeridos
- João Silva: (12) 99999-0000
- Telefone da pousada

## Dicas Gerais
- Leve repelente
- **Evite** horários de pico

## Orçamento
- Total: R$ 900
"""


def test_single_day_with_activity_and_tip() -> None:
    rendered = render_itinerary(
        "## Dia 1\n### Manhã\n- Atividade: Trilha da Praia Brava\n- Dica: leve água", "Roteiro", 1
    )

    assert len(rendered.blocks) == 1
    day = rendered.blocks[0]
    assert isinstance(day, DayBlock)
    assert day.title == "Dia 1"
    assert day.day == 1
    assert len(day.periods) == 1
    period = day.periods[0]
    assert period.name == "Manhã"
    assert [item.kind for item in period.items] == [ContentKind.ACTIVITY, ContentKind.TIP]
    assert period.items[0].text == "Trilha da Praia Brava"
    assert period.items[1].text == "leve água"


def test_rendering_is_idempotent() -> None:
    first = render_itinerary(SAMPLE, "Roteiro", 2)
    second = render_itinerary(SAMPLE, "Roteiro", 2)

    assert first == second
    assert first.model_dump() == second.model_dump()


@pytest.mark.parametrize("content", ["", "   \n\n", "Sem cabeçalhos aqui.\n- Atividade: nadar", "# Título\n### Manhã"])
def test_degenerate_input_renders_no_blocks(content: str) -> None:
    rendered = render_itinerary(content, "Roteiro", 1)

    assert rendered.blocks == []


def test_activity_wins_over_tip() -> None:
    item = classify_line("- Atividade: passeio de caiaque Dica: leve água")

    assert item.kind == ContentKind.ACTIVITY
    assert item.text == "passeio de caiaque Dica: leve água"


def test_rule_order() -> None:
    assert [rule.kind for rule in CONTENT_RULES] == [
        ContentKind.ACTIVITY,
        ContentKind.LOCATION,
        ContentKind.COST,
        ContentKind.GUIDE,
        ContentKind.TIP,
        ContentKind.EVENT,
        ContentKind.BOAT_TOUR,
    ]


def test_location_wins_over_cost() -> None:
    assert classify_line("Local: Praia Vermelha, Custo: grátis").kind == ContentKind.LOCATION


@pytest.mark.parametrize(
    "line, kind, text",
    [
        ("- **Local:** Praia do Félix", ContentKind.LOCATION, "Praia do Félix"),
        ("- **Custo estimado:** R$ 50", ContentKind.COST, "R$ 50"),
        ("Preço: R$ 80", ContentKind.COST, "R$ 80"),
        ("- **Dica:** chegue cedo", ContentKind.TIP, "chegue cedo"),
        ("🎭 Teatro Municipal", ContentKind.EVENT, "Teatro Municipal"),
        ("- **Jantar:** Restaurante Peixe com Banana", ContentKind.EVENT, "Restaurante Peixe com Banana"),
        ("Passeio de barco: Ilha das Couves", ContentKind.BOAT_TOUR, "Ilha das Couves"),
        ("- Aproveite o pôr do sol", ContentKind.TEXT, "Aproveite o pôr do sol"),
    ],
)
def test_line_classification(line: str, kind: ContentKind, text: str) -> None:
    item = classify_line(line)

    assert item.kind == kind
    assert item.text == text


def test_empty_lines_are_dropped() -> None:
    assert classify_line("   ") is None
    assert classify_line("- ") is None
    assert classify_line("** **") is None


def test_guide_item_exposes_name_and_profile() -> None:
    item = classify_line("- **Guia sugerido:** João Silva - trilhas (12) 99999-0000")

    assert item.kind == ContentKind.GUIDE
    assert item.name == "João Silva"
    assert item.slug == "joao-silva"
    assert item.link == "/guides/joao-silva"


def test_event_and_boat_items_link_to_catalog() -> None:
    event = classify_line("Evento: Festa de São Pedro - Centro")
    boat = classify_line("🚤 Escuna Ubatuba (2 horas)")

    assert event.name == "Festa de São Pedro"
    assert event.link == "/events"
    assert boat.kind == ContentKind.BOAT_TOUR
    assert boat.name == "Escuna Ubatuba"
    assert boat.link == "/boat-tours"


def test_clean_line_strips_list_and_bold_markers() -> None:
    assert clean_line("  - **Atividade:** Surf na **Itamambuca**") == "Atividade: Surf na Itamambuca"


def test_slugify() -> None:
    assert slugify("Maria José da Conceição") == "maria-jose-da-conceicao"
    assert slugify("Guia (Bilíngue)!") == "guia-bilingue"


class TestFullDocument:
    @pytest.fixture
    def rendered(self):
        return render_itinerary(SAMPLE, "Roteiro Ubatuba", 2)

    def test_header(self, rendered) -> None:
        assert rendered.header.title == "Roteiro Ubatuba"
        assert rendered.header.subtitle == "2 dias em Ubatuba"
        assert render_itinerary("", "X", 1).header.subtitle == "1 dia em Ubatuba"

    def test_block_order_skips_preamble_and_unknown_sections(self, rendered) -> None:
        assert [type(block) for block in rendered.blocks] == [DayBlock, DayBlock, InfoBlock, InfoBlock]
        assert rendered.blocks[0].title == "Dia 1: Praias do Norte"
        assert rendered.blocks[1].day == 2

    def test_lines_before_first_period_are_dropped(self, rendered) -> None:
        day = rendered.blocks[0]

        assert [period.name for period in day.periods] == ["Manhã (8h-12h)", "Noite (19h-22h)"]
        assert all(item.text != "Um dia tranquilo." for p in day.periods for item in p.items)

    def test_period_items(self, rendered) -> None:
        morning, night = rendered.blocks[0].periods

        assert [item.kind for item in morning.items] == [
            ContentKind.ACTIVITY, ContentKind.LOCATION, ContentKind.COST, ContentKind.GUIDE
        ]
        assert morning.items[2].text == "R$ 30 por pessoa"
        assert [item.kind for item in night.items] == [
            ContentKind.EVENT, ContentKind.BOAT_TOUR, ContentKind.TEXT
        ]
        assert night.items[0].name == "Festival do Camarão"

    def test_contacts_section(self, rendered) -> None:
        contacts = rendered.blocks[2]

        assert contacts.title == "Contatos dos Guias Sugeridos"
        assert contacts.items[0].kind == ContentKind.CONTACT
        assert contacts.items[0].name == "João Silva"
        assert contacts.items[0].contact == "(12) 99999-0000"
        assert contacts.items[1].kind == ContentKind.TEXT

    def test_tips_section(self, rendered) -> None:
        tips = rendered.blocks[3]

        assert tips.title == "Dicas Gerais"
        assert [item.kind for item in tips.items] == [ContentKind.TIP, ContentKind.TIP]
        assert tips.items[1].text == "Evite horários de pico"

    def test_day_heading_must_start_a_line(self) -> None:
        rendered = render_itinerary("Veja o ## Dia 1 abaixo\n### Manhã\n- Atividade: nadar", "X", 1)

        assert rendered.blocks == []
