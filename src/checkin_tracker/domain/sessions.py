"""Domain models for check-in sessions."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

DEFAULT_REQUIRED_CONTACTS = 100
UNKNOWN_IP = "unknown"


@dataclass(frozen=True)
class CheckinSession:
    """Represents one check-in event with a target headcount."""

    id: UUID
    start_time: datetime | None
    end_time: datetime | None
    required_contacts: int
    joined_contacts: int
    is_active: bool
    created_by: str
    created_by_email: str | None = None


@dataclass(frozen=True)
class Participant:
    """Represents one attendee registration within a session."""

    id: UUID
    session_id: UUID
    name: str
    phone: str
    joined_at: datetime | None
    ip_address: str = UNKNOWN_IP


@dataclass(frozen=True)
class AdminIdentity:
    """Signed-in admin as reported by the identity provider."""

    uid: str
    email: str | None
    access_token: str | None = None
