"""Participant registration for the active session."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from checkin_tracker.adapters.ip_lookup_client import IpLookupClient
from checkin_tracker.domain.errors import DuplicateError, StateError, ValidationError
from checkin_tracker.domain.sessions import UNKNOWN_IP, CheckinSession, Participant
from checkin_tracker.services.sessions import SessionRepository

_logger = logging.getLogger(__name__)


class ParticipantRepository(Protocol):
    """Persistence interface for session participants."""

    async def find_by_phone(self, session_id: UUID, phone: str) -> Participant | None:
        """Return the participant with this phone in the session, if any."""

    async def create_participant(
        self, session_id: UUID, name: str, phone: str, ip_address: str
    ) -> Participant:
        """Create a participant stamped with the server time."""

    async def list_participants(self, session_id: UUID) -> list[Participant]:
        """Return participants of a session, newest first."""


@dataclass
class ParticipantRegistrar:
    """Validates and records attendee registrations."""

    session_repository: SessionRepository
    participant_repository: ParticipantRepository
    ip_lookup: IpLookupClient

    async def register(
        self, session_id: UUID | None, name: str, phone: str
    ) -> Participant:
        """Register an attendee and bump the session counter by one."""
        name = (name or "").strip()
        phone = (phone or "").strip()
        if not name or not phone:
            raise ValidationError("Please fill in all fields")

        session = await self._resolve_session(session_id)
        # Check-then-insert: concurrent submissions of one phone can both pass.
        existing = await self.participant_repository.find_by_phone(session.id, phone)
        if existing is not None:
            _logger.info("Duplicate phone rejected: session=%s", session.id)
            raise DuplicateError(
                "This phone number is already registered in this session"
            )

        lookup = await self.ip_lookup.lookup()
        participant = await self.participant_repository.create_participant(
            session_id=session.id,
            name=name,
            phone=phone,
            ip_address=lookup.value_or(UNKNOWN_IP),
        )
        await self.session_repository.increment_joined(session.id)
        _logger.info(
            "Participant registered: session=%s participant=%s",
            session.id,
            participant.id,
        )
        return participant

    async def list_participants(self, session_id: UUID) -> list[Participant]:
        """Return the session's participants, newest first."""
        return await self.participant_repository.list_participants(session_id)

    async def _resolve_session(self, session_id: UUID | None) -> CheckinSession:
        if session_id is None:
            active = await self.session_repository.find_active_sessions()
            if not active:
                raise StateError("No active session")
            return active[0]
        session = await self.session_repository.get_session(session_id)
        if session is None or not session.is_active:
            raise StateError("This session is not accepting registrations")
        return session
