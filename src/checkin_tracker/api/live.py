"""WebSocket bridge for live viewers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import WebSocket, WebSocketDisconnect

from checkin_tracker.api.serializers import serialize_view_state
from checkin_tracker.services.live import LiveViewSynchronizer, ViewerRole, ViewState

if TYPE_CHECKING:
    from checkin_tracker.containers import AppContainer

_logger = logging.getLogger(__name__)


async def run_live_view(
    websocket: WebSocket, container: AppContainer, role: ViewerRole
) -> None:
    """Stream view state to one connection until it disconnects."""

    async def push(state: ViewState) -> None:
        await websocket.send_json(serialize_view_state(state, role))

    viewer = LiveViewSynchronizer(
        feed=container.live_feed,
        role=role,
        on_change=push,
        history_limit=container.settings.history_limit,
    )
    await websocket.accept()
    try:
        await viewer.start()
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        _logger.info("Live viewer disconnected: role=%s", role.value)
    except Exception:
        _logger.exception("Live view failed: role=%s", role.value)
        await websocket.close(code=1011)
    finally:
        await viewer.stop()
