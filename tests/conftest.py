"""Shared fixtures: users, tokens, in-memory store and a mocked generation service."""

from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from app.agents.itinerary_agent import ItineraryAgent
from app.main import app, get_itinerary_agent
from app.schemas.response import Activity, GeneratedItinerary, ItineraryDay
from app.utils.auth import create_access_token
from app.utils.database import InMemoryItineraryStore, get_itinerary_store

USER_ID = "00000000-0000-0000-0000-000000000002"
OTHER_USER_ID = "00000000-0000-0000-0000-000000000003"


@pytest.fixture
def valid_preferences() -> dict:
    return {
        "interests": ["praias", "trilhas"],
        "startDate": "2025-03-10",
        "endDate": "2025-03-12",
        "budget": "médio",
        "travelStyle": "relaxante",
        "groupSize": "2",
    }


@pytest.fixture
def sample_itinerary() -> GeneratedItinerary:
    return GeneratedItinerary(
        title="Ubatuba entre praias e trilhas",
        summary="Três dias de praias tranquilas e trilhas na Mata Atlântica.",
        total_days=3,
        estimated_cost="R$ 600 - R$ 900",
        best_time_to_visit="Abril a Outubro",
        days=[
            ItineraryDay(
                day=1,
                title="Praias do Norte",
                activities=[
                    Activity(
                        time="08:00",
                        activity="Trilha da Praia Brava",
                        location="Praia Brava da Almada",
                        description="Trilha leve até uma praia deserta.",
                        duration="3 horas",
                        difficulty="fácil",
                        tips=["Leve água"],
                    )
                ],
            ),
            ItineraryDay(day=2, title="Ilha Anchieta", activities=[]),
            ItineraryDay(day=3, title="Centro histórico", activities=[]),
        ],
        general_tips=["Use protetor solar"],
        what_to_bring=["Repelente"],
    )


@pytest.fixture
def store() -> InMemoryItineraryStore:
    return InMemoryItineraryStore(known_user_ids={USER_ID, OTHER_USER_ID})


@pytest.fixture
def agent(sample_itinerary: GeneratedItinerary) -> MagicMock:
    """Generation service whose Gemini-backed methods are replaced by AsyncMocks."""
    mock = MagicMock(spec=ItineraryAgent)
    mock.generate_itinerary = AsyncMock(return_value=sample_itinerary)
    mock.analyze_preferences = AsyncMock()
    return mock


def auth_headers_for(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}


@pytest.fixture
def auth_headers() -> dict:
    return auth_headers_for(USER_ID)


@pytest.fixture
def client(store: InMemoryItineraryStore, agent: MagicMock) -> Iterator[TestClient]:
    app.dependency_overrides[get_itinerary_store] = lambda: store
    app.dependency_overrides[get_itinerary_agent] = lambda: agent
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def other_auth_headers() -> dict:
    return auth_headers_for(OTHER_USER_ID)
