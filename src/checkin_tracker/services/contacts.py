"""vCard export of session participants."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime

from checkin_tracker.domain.errors import StateError
from checkin_tracker.domain.sessions import Participant
from checkin_tracker.services.participants import ParticipantRepository
from checkin_tracker.services.sessions import SessionRepository

VCARD_MEDIA_TYPE = "text/vcard"


@dataclass(frozen=True)
class ContactExport:
    """A rendered contact-card file."""

    filename: str
    content: str
    count: int


def render_vcards(participants: Sequence[Participant]) -> str:
    """Render one vCard 3.0 block per participant, keeping input order."""
    blocks = []
    for participant in participants:
        lines = [
            "BEGIN:VCARD",
            "VERSION:3.0",
            f"FN:{_escape_text(participant.name)}",
            f"TEL;TYPE=CELL:{_escape_text(participant.phone)}",
            "END:VCARD",
        ]
        blocks.append("\r\n".join(lines) + "\r\n")
    return "".join(blocks)


def export_filename(day: date, prefix: str) -> str:
    """Return the export filename stamped with the given date."""
    return f"{prefix}-{day.isoformat()}.vcf"


def _escape_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(",", "\\,")
        .replace(";", "\\;")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
        .replace("\r", "\\n")
    )


@dataclass
class ContactExportService:
    """Builds the contact download once the session goal is reached."""

    session_repository: SessionRepository
    participant_repository: ParticipantRepository
    filename_prefix: str = "checkin-contacts"

    async def export_active(self, today: date | None = None) -> ContactExport:
        """Export the active session's participants as vCards."""
        sessions = await self.session_repository.find_active_sessions()
        if not sessions:
            raise StateError("No active session")
        session = sessions[0]
        participants = await self.participant_repository.list_participants(session.id)
        if len(participants) < session.required_contacts:
            raise StateError("Contacts are available once the goal is reached")
        day = today or datetime.now(tz=UTC).date()
        return ContactExport(
            filename=export_filename(day, self.filename_prefix),
            content=render_vcards(participants),
            count=len(participants),
        )
