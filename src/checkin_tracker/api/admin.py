"""Admin API endpoints guarded by identity-provider bearer tokens."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, Query, Request, WebSocket, status

from checkin_tracker.api.errors import service_failure
from checkin_tracker.api.live import run_live_view
from checkin_tracker.api.schemas import LoginRequest, StartSessionRequest
from checkin_tracker.api.serializers import (
    serialize_history,
    serialize_participant,
    serialize_progress,
    serialize_session,
)
from checkin_tracker.domain.errors import AuthenticationError, CheckinError
from checkin_tracker.domain.progress import build_progress
from checkin_tracker.domain.sessions import AdminIdentity
from checkin_tracker.services.live import ViewerRole

if TYPE_CHECKING:
    from checkin_tracker.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])
_logger = logging.getLogger(__name__)


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def require_admin(
    request: Request, authorization: str | None = Header(default=None)
) -> AdminIdentity:
    """Ensure requests carry a valid admin access token."""
    container: AppContainer = request.app.state.container
    return await container.auth_service.authenticate(_bearer_token(authorization))


@router.post("/login")
async def login(payload: LoginRequest, request: Request) -> dict[str, object]:
    """Sign an admin in and return an access token."""
    container: AppContainer = request.app.state.container
    try:
        admin = await container.auth_service.sign_in(payload.email, payload.password)
    except CheckinError:
        raise
    except Exception as exc:
        _logger.exception("Admin sign-in failed")
        raise service_failure(container, exc, "Error signing in. Please try again.") from exc
    return {"access_token": admin.access_token, "email": admin.email}


@router.post("/logout")
async def logout(
    request: Request, admin: AdminIdentity = Depends(require_admin)
) -> dict[str, str]:
    """Revoke the calling admin's session."""
    container: AppContainer = request.app.state.container
    try:
        await container.auth_service.sign_out(admin)
    except CheckinError:
        raise
    except Exception as exc:
        _logger.exception("Admin sign-out failed")
        raise service_failure(
            container, exc, "Error signing out. Please try again."
        ) from exc
    return {"status": "ok"}


@router.get("/session", dependencies=[Depends(require_admin)])
async def active_session(request: Request) -> dict[str, object]:
    """Return the active session with its participants."""
    container: AppContainer = request.app.state.container
    try:
        session = await container.lifecycle_service.get_active_session()
        participants = (
            await container.registrar.list_participants(session.id) if session else []
        )
    except Exception as exc:
        _logger.exception("Failed to load active session")
        raise service_failure(container, exc, "Error loading session.") from exc
    return {
        "session": serialize_session(session),
        "progress": serialize_progress(build_progress(session) if session else None),
        "participant_count": len(participants),
        "participants": [
            serialize_participant(participant, include_audit=True)
            for participant in participants
        ],
    }


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def start_session(
    payload: StartSessionRequest,
    request: Request,
    admin: AdminIdentity = Depends(require_admin),
) -> dict[str, object]:
    """Start a new session with the requested target headcount."""
    container: AppContainer = request.app.state.container
    try:
        session = await container.lifecycle_service.start_session(
            payload.required_contacts, admin
        )
    except CheckinError:
        raise
    except Exception as exc:
        _logger.exception("Failed to start session")
        raise service_failure(
            container, exc, "Error starting session. Please try again."
        ) from exc
    return {"session": serialize_session(session)}


@router.post("/session/end", dependencies=[Depends(require_admin)])
async def end_session(request: Request) -> dict[str, object]:
    """End the currently active session."""
    container: AppContainer = request.app.state.container
    try:
        session = await container.lifecycle_service.end_session()
    except CheckinError:
        raise
    except Exception as exc:
        _logger.exception("Failed to end session")
        raise service_failure(
            container, exc, "Error ending session. Please try again."
        ) from exc
    return {"session": serialize_session(session)}


@router.get("/sessions/history", dependencies=[Depends(require_admin)])
async def session_history(
    request: Request, limit: int = Query(10, ge=1, le=100)
) -> dict[str, object]:
    """Return the most recent sessions."""
    container: AppContainer = request.app.state.container
    try:
        sessions = await container.lifecycle_service.list_history(limit)
    except Exception as exc:
        _logger.exception("Failed to load session history")
        raise service_failure(container, exc, "Error loading history.") from exc
    return {"sessions": serialize_history(sessions)}


@router.websocket("/ws")
async def admin_live(websocket: WebSocket, token: str | None = None) -> None:
    """Push live session, participant and history state to the admin page."""
    container: AppContainer = websocket.app.state.container
    try:
        await container.auth_service.authenticate(token)
    except AuthenticationError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    await run_live_view(websocket, container, ViewerRole.ADMIN)
