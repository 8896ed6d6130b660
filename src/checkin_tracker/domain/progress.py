"""Derived presentation state for live session views."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from checkin_tracker.domain.sessions import CheckinSession


class ViewPhase(Enum):
    """Attendee-facing phase of the active session."""

    INACTIVE = "inactive"
    COLLECTING = "collecting"
    GOAL_REACHED = "goal_reached"


@dataclass(frozen=True)
class SessionProgress:
    """Progress figures shown for the active session."""

    started_at: datetime | None
    required: int
    joined: int
    remaining: int
    progress_percent: int
    fill_percent: int


@dataclass(frozen=True)
class HistoryRow:
    """Read-only row of the admin session history table."""

    session_id: str
    started_at: datetime | None
    ended_at: datetime | None
    required: int
    joined: int
    status: str


def progress_percent(joined: int, required: int) -> int:
    """Return 100 * joined / required rounded half up."""
    if required <= 0:
        return 0
    return (200 * joined + required) // (2 * required)


def fill_percent(joined: int, required: int) -> int:
    """Return the progress bar fill, capped at 100."""
    return min(progress_percent(joined, required), 100)


def build_progress(session: CheckinSession) -> SessionProgress:
    """Derive progress figures from a session snapshot."""
    required = session.required_contacts
    joined = session.joined_contacts
    return SessionProgress(
        started_at=session.start_time,
        required=required,
        joined=joined,
        remaining=required - joined,
        progress_percent=progress_percent(joined, required),
        fill_percent=fill_percent(joined, required),
    )


def attendee_phase(session: CheckinSession | None, participant_count: int) -> ViewPhase:
    """Return the attendee phase from the live participant count."""
    if session is None:
        return ViewPhase.INACTIVE
    if participant_count >= session.required_contacts:
        return ViewPhase.GOAL_REACHED
    return ViewPhase.COLLECTING


def build_history_row(session: CheckinSession) -> HistoryRow:
    """Build a history table row for a session."""
    return HistoryRow(
        session_id=str(session.id),
        started_at=session.start_time,
        ended_at=session.end_time,
        required=session.required_contacts,
        joined=session.joined_contacts,
        status="Active" if session.is_active else "Ended",
    )
