"""Supabase-backed participant repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import AsyncClient

from checkin_tracker.adapters.supabase_session_repository import (
    SERVER_TIMESTAMP,
    parse_timestamp,
)
from checkin_tracker.domain.sessions import UNKNOWN_IP, Participant
from checkin_tracker.services.participants import ParticipantRepository

PARTICIPANTS_TABLE = "checkin_participants"

_COLUMNS = "id, session_id, name, phone, joined_at, ip_address"


@dataclass
class SupabaseParticipantRepository(ParticipantRepository):
    """Supabase implementation for session participants."""

    client: AsyncClient

    async def find_by_phone(self, session_id: UUID, phone: str) -> Participant | None:
        """Return the participant with this phone in the session, if any."""
        response = (
            await self.client.table(PARTICIPANTS_TABLE)
            .select(_COLUMNS)
            .eq("session_id", str(session_id))
            .eq("phone", phone)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_participant(response.data[0])

    async def create_participant(
        self, session_id: UUID, name: str, phone: str, ip_address: str
    ) -> Participant:
        """Insert a participant row and return it."""
        response = (
            await self.client.table(PARTICIPANTS_TABLE)
            .insert(
                {
                    "session_id": str(session_id),
                    "name": name,
                    "phone": phone,
                    "joined_at": SERVER_TIMESTAMP,
                    "ip_address": ip_address,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create participant")
        return _parse_participant(response.data[0])

    async def list_participants(self, session_id: UUID) -> list[Participant]:
        """Return participants of a session, newest first."""
        response = (
            await self.client.table(PARTICIPANTS_TABLE)
            .select(_COLUMNS)
            .eq("session_id", str(session_id))
            .order("joined_at", desc=True)
            .execute()
        )
        return [_parse_participant(row) for row in response.data or []]


def _parse_participant(row: dict[str, object]) -> Participant:
    return Participant(
        id=UUID(str(row["id"])),
        session_id=UUID(str(row["session_id"])),
        name=str(row.get("name") or ""),
        phone=str(row.get("phone") or ""),
        joined_at=parse_timestamp(row.get("joined_at")),
        ip_address=str(row.get("ip_address") or UNKNOWN_IP),
    )
