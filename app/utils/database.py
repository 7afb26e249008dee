"""Itinerary persistence: Supabase in production, in-memory for development and tests"""
import asyncio
import itertools
import logging
import uuid
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Union

from postgrest.exceptions import APIError
from supabase import create_client, Client

from ..config import settings
from ..models.itinerary import Itinerary

logger = logging.getLogger(__name__)

ITINERARIES_TABLE = "itineraries"

# Postgres error codes reported by PostgREST for constraint violations
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"


class PersistenceError(Exception):
    """Raised when an itinerary cannot be written to or read from storage"""
    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class SupabaseClient:
    """Singleton Supabase client wrapper"""
    _instance: Optional[Client] = None

    @classmethod
    def get_client(cls) -> Client:
        """Get or create Supabase client instance"""
        if cls._instance is None:
            cls._instance = create_client(
                supabase_url=settings.supabase_url,
                supabase_key=settings.supabase_key
            )
        return cls._instance


class ItineraryStore:
    """
    Write-once storage for generated itineraries

    There is deliberately no update or delete: a record is created after a
    successful generation and only read afterwards.
    """

    async def create(
        self,
        user_id: str,
        preferences: Dict[str, Any],
        content: Union[Dict[str, Any], str],
        title: str,
        duration: int
    ) -> Itinerary:
        raise NotImplementedError

    async def list_by_user(self, user_id: str) -> List[Itinerary]:
        raise NotImplementedError

    async def get_by_id(self, itinerary_id: str) -> Optional[Itinerary]:
        raise NotImplementedError


def _require_user(user_id: str) -> None:
    if not user_id or not str(user_id).strip():
        raise PersistenceError("Invalid user reference", {"user_id": user_id})


class SupabaseItineraryStore(ItineraryStore):
    """Itineraries table in Supabase (id and created_at generated by the database)"""

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        return self._client or SupabaseClient.get_client()

    async def _execute(self, query) -> Any:
        """Run a blocking PostgREST query off the event loop"""
        try:
            return await asyncio.to_thread(query.execute)
        except APIError as e:
            logger.error(f"❌ Supabase error {e.code}: {e.message}")
            raise PersistenceError(
                "Itinerary storage rejected the operation",
                {"code": e.code, "reason": e.message}
            ) from e

    async def create(
        self,
        user_id: str,
        preferences: Dict[str, Any],
        content: Union[Dict[str, Any], str],
        title: str,
        duration: int
    ) -> Itinerary:
        """
        Insert a new itinerary

        Args:
            user_id: Owning user's UUID (foreign key)
            preferences: Preferences used for generation (JSON)
            content: Generated itinerary (JSON)
            title: Display title
            duration: Requested trip length in days

        Returns:
            Created itinerary record

        Raises:
            PersistenceError: On constraint violations (e.g. unknown user_id)
        """
        _require_user(user_id)

        result = await self._execute(
            self.client.table(ITINERARIES_TABLE).insert({
                'user_id': user_id,
                'preferences': preferences,
                'content': content,
                'title': title,
                'duration': duration
            })
        )

        if not result.data:
            raise PersistenceError("Failed to create itinerary", {"user_id": user_id})

        return Itinerary.model_validate(result.data[0])

    async def list_by_user(self, user_id: str) -> List[Itinerary]:
        """
        Get all itineraries for a user, newest first

        Returns:
            List of itineraries (empty if the user has none)
        """
        result = await self._execute(
            self.client.table(ITINERARIES_TABLE)
            .select('*')
            .eq('user_id', user_id)
            .order('created_at', desc=True)
        )

        return [Itinerary.model_validate(row) for row in (result.data or [])]

    async def get_by_id(self, itinerary_id: str) -> Optional[Itinerary]:
        """Get a single itinerary by id (ownership is checked by the caller)"""
        result = await self._execute(
            self.client.table(ITINERARIES_TABLE)
            .select('*')
            .eq('id', itinerary_id)
        )

        if result.data:
            return Itinerary.model_validate(result.data[0])
        return None


class InMemoryItineraryStore(ItineraryStore):
    """
    Process-local store with the same contract as the Supabase table

    When known_user_ids is given it plays the role of the users foreign key:
    creating an itinerary for any other id raises PersistenceError.
    """

    def __init__(self, known_user_ids: Optional[Iterable[str]] = None):
        self.known_user_ids = set(known_user_ids) if known_user_ids is not None else None
        self._records: List[Itinerary] = []
        # Insertion sequence breaks created_at ties when ordering newest first
        self._sequence: Dict[str, int] = {}
        self._counter = itertools.count()

    async def create(
        self,
        user_id: str,
        preferences: Dict[str, Any],
        content: Union[Dict[str, Any], str],
        title: str,
        duration: int
    ) -> Itinerary:
        _require_user(user_id)
        if self.known_user_ids is not None and user_id not in self.known_user_ids:
            raise PersistenceError(
                "Itinerary storage rejected the operation",
                {"code": FOREIGN_KEY_VIOLATION, "user_id": user_id}
            )

        itinerary = Itinerary(
            id=str(uuid.uuid4()),
            user_id=user_id,
            preferences=preferences,
            content=content,
            title=title,
            duration=duration,
            created_at=datetime.now(timezone.utc)
        )
        self._records.append(itinerary)
        self._sequence[itinerary.id] = next(self._counter)
        return itinerary.model_copy(deep=True)

    async def list_by_user(self, user_id: str) -> List[Itinerary]:
        owned = [record for record in self._records if record.user_id == user_id]
        owned.sort(key=lambda record: (record.created_at, self._sequence[record.id]), reverse=True)
        return [record.model_copy(deep=True) for record in owned]

    async def get_by_id(self, itinerary_id: str) -> Optional[Itinerary]:
        for record in self._records:
            if record.id == itinerary_id:
                return record.model_copy(deep=True)
        return None


@lru_cache
def get_itinerary_store() -> ItineraryStore:
    """Store selected by the ITINERARY_STORE setting (FastAPI dependency)"""
    if settings.itinerary_store == "memory":
        logger.info("Using in-memory itinerary store")
        return InMemoryItineraryStore()
    return SupabaseItineraryStore()
