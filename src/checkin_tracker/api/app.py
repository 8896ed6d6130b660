"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, WebSocket, status

from checkin_tracker.api.admin import router as admin_router
from checkin_tracker.api.errors import checkin_error_handler, service_failure
from checkin_tracker.api.live import run_live_view
from checkin_tracker.api.schemas import RegistrationRequest
from checkin_tracker.api.serializers import (
    serialize_participant,
    serialize_progress,
    serialize_session,
)
from checkin_tracker.app_logging import configure_logging
from checkin_tracker.containers import AppContainer
from checkin_tracker.domain.errors import CheckinError
from checkin_tracker.domain.progress import attendee_phase, build_progress
from checkin_tracker.services.contacts import VCARD_MEDIA_TYPE
from checkin_tracker.services.live import ViewerRole


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_exception_handler(CheckinError, checkin_error_handler)

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/session")
    async def current_session(request: Request) -> dict[str, object]:
        """Return the attendee view of the active session."""
        state_container: AppContainer = request.app.state.container
        try:
            session = await state_container.lifecycle_service.get_active_session()
            participants = (
                await state_container.registrar.list_participants(session.id)
                if session
                else []
            )
        except Exception as exc:
            logger.exception("Failed to load active session")
            raise service_failure(
                state_container, exc, "Error loading session. Please try again."
            ) from exc
        return {
            "active": session is not None,
            "phase": attendee_phase(session, len(participants)).value,
            "session": serialize_session(session),
            "progress": serialize_progress(build_progress(session) if session else None),
            "participant_count": len(participants),
            "participants": [serialize_participant(p) for p in participants],
        }

    @app.post("/session/participants", status_code=status.HTTP_201_CREATED)
    async def register_participant(
        payload: RegistrationRequest, request: Request
    ) -> dict[str, object]:
        """Register an attendee in the active session."""
        state_container: AppContainer = request.app.state.container
        try:
            participant = await state_container.registrar.register(
                None, payload.name, payload.phone
            )
        except CheckinError:
            raise
        except Exception as exc:
            logger.exception("Failed to register participant")
            raise service_failure(
                state_container, exc, "Error adding participant. Please try again."
            ) from exc
        return {"participant": serialize_participant(participant)}

    @app.get("/session/contacts.vcf")
    async def download_contacts(request: Request) -> Response:
        """Download the session's contacts once the goal is reached."""
        state_container: AppContainer = request.app.state.container
        try:
            export = await state_container.export_service.export_active()
        except CheckinError:
            raise
        except Exception as exc:
            logger.exception("Failed to export contacts")
            raise service_failure(
                state_container, exc, "Error preparing contacts. Please try again."
            ) from exc
        return Response(
            content=export.content,
            media_type=VCARD_MEDIA_TYPE,
            headers={
                "Content-Disposition": f'attachment; filename="{export.filename}"'
            },
        )

    @app.websocket("/ws/session")
    async def attendee_live(websocket: WebSocket) -> None:
        """Push live session state to an attendee page."""
        await run_live_view(websocket, websocket.app.state.container, ViewerRole.ATTENDEE)

    return app
