"""Session lifecycle: start and end check-in sessions."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from checkin_tracker.domain.errors import ConflictError, StateError, ValidationError
from checkin_tracker.domain.sessions import AdminIdentity, CheckinSession

_logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """Persistence interface for check-in sessions."""

    async def find_active_sessions(self) -> list[CheckinSession]:
        """Return every session flagged as active."""

    async def get_session(self, session_id: UUID) -> CheckinSession | None:
        """Return a session by id, if present."""

    async def create_session(
        self, required_contacts: int, created_by: str, created_by_email: str | None
    ) -> CheckinSession:
        """Create an active session stamped with the server time."""

    async def end_session(self, session_id: UUID) -> bool:
        """Mark an active session ended; return False if it was already ended."""

    async def increment_joined(self, session_id: UUID) -> None:
        """Atomically add one to the joined contacts counter."""

    async def list_recent_sessions(self, limit: int) -> list[CheckinSession]:
        """Return the most recent sessions, newest first."""


@dataclass
class SessionLifecycleService:
    """Creates and ends sessions, keeping at most one active."""

    repository: SessionRepository

    async def start_session(
        self, required_contacts: object, admin: AdminIdentity
    ) -> CheckinSession:
        """Start a new active session for the given target headcount."""
        required = _parse_required_contacts(required_contacts)
        # Not transactional: two admins starting at once may both pass this check.
        if await self.repository.find_active_sessions():
            raise ConflictError("There is already an active session")
        session = await self.repository.create_session(
            required_contacts=required,
            created_by=admin.uid,
            created_by_email=admin.email,
        )
        _logger.info(
            "Session started: id=%s required=%s by=%s",
            session.id,
            required,
            admin.email or admin.uid,
        )
        return session

    async def end_session(self, session_id: UUID | None = None) -> CheckinSession:
        """End the currently active session."""
        active = await self.get_active_session()
        if active is None:
            raise StateError("No active session to end")
        if session_id is not None and session_id != active.id:
            raise StateError("That session is no longer active")
        if not await self.repository.end_session(active.id):
            _logger.info("Session already ended: id=%s", active.id)
        else:
            _logger.info("Session ended: id=%s", active.id)
        return await self.repository.get_session(active.id) or active

    async def get_active_session(self) -> CheckinSession | None:
        """Return the active session, if any."""
        sessions = await self.repository.find_active_sessions()
        return sessions[0] if sessions else None

    async def list_history(self, limit: int = 10) -> list[CheckinSession]:
        """Return recent sessions for the history table."""
        return await self.repository.list_recent_sessions(limit)


def _parse_required_contacts(value: object) -> int:
    """Parse the target headcount from admin input."""
    if isinstance(value, bool):
        raise ValidationError("Please enter a valid number of required contacts")
    if isinstance(value, str):
        cleaned = value.strip()
        if not cleaned.isdigit():
            raise ValidationError("Please enter a valid number of required contacts")
        value = int(cleaned)
    if not isinstance(value, int) or value < 1:
        raise ValidationError("Please enter a valid number of required contacts")
    return value
