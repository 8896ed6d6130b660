"""Supabase-backed check-in session repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import AsyncClient

from checkin_tracker.domain.sessions import DEFAULT_REQUIRED_CONTACTS, CheckinSession
from checkin_tracker.services.sessions import SessionRepository

SESSIONS_TABLE = "checkin_sessions"
# Postgres resolves the literal 'now' to the server time at write.
SERVER_TIMESTAMP = "now"

_COLUMNS = (
    "id, start_time, end_time, required_contacts, joined_contacts, "
    "is_active, created_by, created_by_email"
)


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for check-in sessions."""

    client: AsyncClient

    async def find_active_sessions(self) -> list[CheckinSession]:
        """Return sessions flagged as active."""
        response = (
            await self.client.table(SESSIONS_TABLE)
            .select(_COLUMNS)
            .eq("is_active", True)
            .execute()
        )
        return [_parse_session(row) for row in response.data or []]

    async def get_session(self, session_id: UUID) -> CheckinSession | None:
        """Return a session by id, if present."""
        response = (
            await self.client.table(SESSIONS_TABLE)
            .select(_COLUMNS)
            .eq("id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    async def create_session(
        self, required_contacts: int, created_by: str, created_by_email: str | None
    ) -> CheckinSession:
        """Insert an active session row and return it."""
        response = (
            await self.client.table(SESSIONS_TABLE)
            .insert(
                {
                    "start_time": SERVER_TIMESTAMP,
                    "required_contacts": required_contacts,
                    "joined_contacts": 0,
                    "is_active": True,
                    "created_by": created_by,
                    "created_by_email": created_by_email,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create session")
        return _parse_session(response.data[0])

    async def end_session(self, session_id: UUID) -> bool:
        """Flip an active session to ended; only active rows are touched."""
        response = (
            await self.client.table(SESSIONS_TABLE)
            .update({"is_active": False, "end_time": SERVER_TIMESTAMP})
            .eq("id", str(session_id))
            .eq("is_active", True)
            .execute()
        )
        return bool(response.data)

    async def increment_joined(self, session_id: UUID) -> None:
        """Increment joined_contacts in a single server-side statement."""
        await self.client.rpc(
            "increment_joined_contacts", {"p_session_id": str(session_id)}
        ).execute()

    async def list_recent_sessions(self, limit: int) -> list[CheckinSession]:
        """Return the most recent sessions by start time."""
        response = (
            await self.client.table(SESSIONS_TABLE)
            .select(_COLUMNS)
            .order("start_time", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_session(row) for row in response.data or []]


def _parse_session(row: dict[str, object]) -> CheckinSession:
    """Parse a session row into a domain model."""
    return CheckinSession(
        id=UUID(str(row["id"])),
        start_time=parse_timestamp(row.get("start_time")),
        end_time=parse_timestamp(row.get("end_time")),
        required_contacts=int(row.get("required_contacts") or DEFAULT_REQUIRED_CONTACTS),
        joined_contacts=int(row.get("joined_contacts") or 0),
        is_active=bool(row.get("is_active")),
        created_by=str(row.get("created_by") or ""),
        created_by_email=row.get("created_by_email"),
    )


def parse_timestamp(raw: object) -> datetime | None:
    """Parse an ISO timestamp column, tolerating nulls."""
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None
