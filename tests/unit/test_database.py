"""Unit tests for itinerary storage."""

from unittest.mock import MagicMock

import pytest
from postgrest.exceptions import APIError

from app.utils.database import (
    FOREIGN_KEY_VIOLATION,
    InMemoryItineraryStore,
    PersistenceError,
    SupabaseItineraryStore,
)

USER_ID = "00000000-0000-0000-0000-000000000002"
OTHER_USER_ID = "00000000-0000-0000-0000-000000000003"

ROW = {
    "id": "8a6e0804-2bd0-4672-b79d-d97027f9071a",
    "user_id": USER_ID,
    "preferences": {"interests": ["praias"]},
    "content": {"title": "Roteiro"},
    "title": "Roteiro 3 dias - praias",
    "duration": 3,
    "created_at": "2025-03-01T12:00:00+00:00",
}


async def _create(store, user_id: str = USER_ID, title: str = "Roteiro 3 dias - praias"):
    return await store.create(
        user_id=user_id,
        preferences={"interests": ["praias"]},
        content={"title": "Roteiro"},
        title=title,
        duration=3,
    )


class TestInMemoryItineraryStore:
    @pytest.mark.asyncio
    async def test_list_for_user_without_itineraries_is_empty(self, store: InMemoryItineraryStore) -> None:
        assert await store.list_by_user(USER_ID) == []

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_timestamp(self, store: InMemoryItineraryStore) -> None:
        itinerary = await _create(store)

        assert itinerary.id
        assert itinerary.created_at is not None
        assert itinerary.user_id == USER_ID
        assert await store.get_by_id(itinerary.id) == itinerary

    @pytest.mark.asyncio
    async def test_list_is_newest_first_and_scoped_to_user(self, store: InMemoryItineraryStore) -> None:
        first = await _create(store, title="Primeiro")
        await _create(store, user_id=OTHER_USER_ID, title="De outra pessoa")
        second = await _create(store, title="Segundo")

        itineraries = await store.list_by_user(USER_ID)

        assert [i.id for i in itineraries] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_unknown_user_is_rejected(self, store: InMemoryItineraryStore) -> None:
        with pytest.raises(PersistenceError) as exc_info:
            await _create(store, user_id="ffffffff-0000-0000-0000-000000000000")

        assert exc_info.value.details["code"] == FOREIGN_KEY_VIOLATION
        assert await store.list_by_user("ffffffff-0000-0000-0000-000000000000") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", ["", "   "])
    async def test_empty_user_is_rejected(self, user_id: str) -> None:
        with pytest.raises(PersistenceError):
            await _create(InMemoryItineraryStore(), user_id=user_id)

    @pytest.mark.asyncio
    async def test_any_user_accepted_without_known_ids(self) -> None:
        store = InMemoryItineraryStore()

        itinerary = await _create(store, user_id="qualquer")

        assert [i.id for i in await store.list_by_user("qualquer")] == [itinerary.id]

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, store: InMemoryItineraryStore) -> None:
        itinerary = await _create(store)
        itinerary.content["title"] = "alterado"

        stored = await store.get_by_id(itinerary.id)

        assert stored.content["title"] == "Roteiro"

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store: InMemoryItineraryStore) -> None:
        assert await store.get_by_id("does-not-exist") is None


def _supabase_client(data=None, error: APIError = None) -> MagicMock:
    """Client whose query builder chain ends in execute() returning data or raising."""
    client = MagicMock()
    query = client.table.return_value
    for method in ("insert", "select", "eq", "order"):
        getattr(query, method).return_value = query
    if error is not None:
        query.execute.side_effect = error
    else:
        query.execute.return_value = MagicMock(data=data)
    return client


class TestSupabaseItineraryStore:
    @pytest.mark.asyncio
    async def test_create_inserts_row(self) -> None:
        client = _supabase_client(data=[ROW])
        store = SupabaseItineraryStore(client)

        itinerary = await _create(store)

        client.table.assert_called_with("itineraries")
        inserted = client.table.return_value.insert.call_args.args[0]
        assert inserted["user_id"] == USER_ID
        assert inserted["duration"] == 3
        assert itinerary.id == ROW["id"]

    @pytest.mark.asyncio
    async def test_constraint_violation_becomes_persistence_error(self) -> None:
        error = APIError({"message": "violates foreign key constraint", "code": FOREIGN_KEY_VIOLATION})
        store = SupabaseItineraryStore(_supabase_client(error=error))

        with pytest.raises(PersistenceError) as exc_info:
            await _create(store)

        assert exc_info.value.details["code"] == FOREIGN_KEY_VIOLATION

    @pytest.mark.asyncio
    async def test_empty_insert_result_is_an_error(self) -> None:
        store = SupabaseItineraryStore(_supabase_client(data=[]))

        with pytest.raises(PersistenceError):
            await _create(store)

    @pytest.mark.asyncio
    async def test_list_orders_newest_first(self) -> None:
        client = _supabase_client(data=[ROW])
        store = SupabaseItineraryStore(client)

        itineraries = await store.list_by_user(USER_ID)

        query = client.table.return_value
        query.eq.assert_called_with("user_id", USER_ID)
        query.order.assert_called_with("created_at", desc=True)
        assert [i.id for i in itineraries] == [ROW["id"]]

    @pytest.mark.asyncio
    async def test_list_without_rows_is_empty(self) -> None:
        store = SupabaseItineraryStore(_supabase_client(data=[]))

        assert await store.list_by_user(USER_ID) == []

    @pytest.mark.asyncio
    async def test_get_by_id_missing(self) -> None:
        store = SupabaseItineraryStore(_supabase_client(data=[]))

        assert await store.get_by_id("missing") is None
