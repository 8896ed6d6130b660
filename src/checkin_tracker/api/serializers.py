"""JSON views of domain objects and live state."""

from datetime import datetime

from checkin_tracker.domain.progress import SessionProgress, build_history_row
from checkin_tracker.domain.sessions import CheckinSession, Participant
from checkin_tracker.services.live import ViewerRole, ViewState


def serialize_session(session: CheckinSession | None) -> dict[str, object] | None:
    """Return the JSON view of a session."""
    if session is None:
        return None
    return {
        "id": str(session.id),
        "start_time": _iso(session.start_time),
        "end_time": _iso(session.end_time),
        "required_contacts": session.required_contacts,
        "joined_contacts": session.joined_contacts,
        "is_active": session.is_active,
        "created_by_email": session.created_by_email,
    }


def serialize_progress(progress: SessionProgress | None) -> dict[str, object] | None:
    if progress is None:
        return None
    return {
        "started_at": _iso(progress.started_at),
        "required": progress.required,
        "joined": progress.joined,
        "remaining": progress.remaining,
        "progress_percent": progress.progress_percent,
        "fill_percent": progress.fill_percent,
    }


def serialize_participant(
    participant: Participant, *, include_audit: bool = False
) -> dict[str, object]:
    """Return the JSON view of a participant."""
    data: dict[str, object] = {
        "id": str(participant.id),
        "name": participant.name,
        "phone": participant.phone,
    }
    if include_audit:
        data["joined_at"] = _iso(participant.joined_at)
        data["ip_address"] = participant.ip_address
    return data


def serialize_history(sessions: list[CheckinSession]) -> list[dict[str, object]]:
    """Return history table rows."""
    rows = []
    for session in sessions:
        row = build_history_row(session)
        rows.append(
            {
                "session_id": row.session_id,
                "started_at": _iso(row.started_at),
                "ended_at": _iso(row.ended_at),
                "required": row.required,
                "joined": row.joined,
                "status": row.status,
            }
        )
    return rows


def serialize_view_state(state: ViewState, role: ViewerRole) -> dict[str, object]:
    """Return the payload pushed to a live viewer."""
    is_admin = role is ViewerRole.ADMIN
    data: dict[str, object] = {
        "phase": state.phase.value,
        "session": serialize_session(state.session),
        "progress": serialize_progress(state.progress),
        "participant_count": state.participant_count,
        "participants": [
            serialize_participant(participant, include_audit=is_admin)
            for participant in state.participants
        ],
    }
    if is_admin:
        data["history"] = serialize_history(list(state.history))
    return data


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
