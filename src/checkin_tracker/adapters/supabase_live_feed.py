"""Supabase Realtime feed producing full-snapshot streams."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar
from uuid import UUID, uuid4

from supabase import AsyncClient

from checkin_tracker.adapters.supabase_participant_repository import (
    PARTICIPANTS_TABLE,
    SupabaseParticipantRepository,
)
from checkin_tracker.adapters.supabase_session_repository import (
    SESSIONS_TABLE,
    SupabaseSessionRepository,
)
from checkin_tracker.domain.sessions import CheckinSession, Participant
from checkin_tracker.services.live import LiveFeed, SnapshotStream

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SupabaseLiveFeed(LiveFeed):
    """Re-runs a query on every Realtime change of its table.

    Realtime delivers row-level change events; each event triggers a fresh
    fetch so consumers always receive the complete current result set.
    """

    client: AsyncClient
    session_repository: SupabaseSessionRepository
    participant_repository: SupabaseParticipantRepository

    async def watch_active_sessions(self) -> SnapshotStream[CheckinSession]:
        """Subscribe to sessions flagged as active."""
        return await self._open(
            SESSIONS_TABLE,
            self.session_repository.find_active_sessions,
            name="active-sessions",
        )

    async def watch_participants(
        self, session_id: UUID
    ) -> SnapshotStream[Participant]:
        """Subscribe to a session's participants."""

        async def fetch() -> list[Participant]:
            return await self.participant_repository.list_participants(session_id)

        return await self._open(
            PARTICIPANTS_TABLE,
            fetch,
            name=f"participants-{session_id}",
            row_filter=f"session_id=eq.{session_id}",
        )

    async def watch_history(self, limit: int) -> SnapshotStream[CheckinSession]:
        """Subscribe to the most recent sessions."""

        async def fetch() -> list[CheckinSession]:
            return await self.session_repository.list_recent_sessions(limit)

        return await self._open(SESSIONS_TABLE, fetch, name="session-history")

    async def _open(
        self,
        table: str,
        fetch: Callable[[], Awaitable[list[T]]],
        *,
        name: str,
        row_filter: str | None = None,
    ) -> SnapshotStream[T]:
        channel = self.client.channel(f"{name}-{uuid4().hex[:8]}")

        async def release() -> None:
            await self.client.remove_channel(channel)
            _logger.info("Realtime channel closed: %s", name)

        stream: SnapshotStream[T] = SnapshotStream(
            fetch=fetch, name=name, on_close=release
        )

        def on_change(_payload: dict[str, object]) -> None:
            stream.notify()

        channel.on_postgres_changes(
            "*",
            schema="public",
            table=table,
            filter=row_filter,
            callback=on_change,
        )
        try:
            await channel.subscribe()
        except Exception:
            await stream.close()
            raise
        _logger.info("Realtime channel opened: %s", name)
        return stream
