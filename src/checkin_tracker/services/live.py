"""Live view synchronization over full-snapshot subscriptions."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Generic, Protocol, TypeVar
from uuid import UUID

from checkin_tracker.domain.progress import (
    SessionProgress,
    ViewPhase,
    attendee_phase,
    build_progress,
)
from checkin_tracker.domain.sessions import CheckinSession, Participant

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(eq=False)
class SnapshotStream(Generic[T]):
    """Cancellable stream of full result sets for one live query.

    The current result set is emitted once on open and again after every
    change notification. Notifications that arrive while a fetch is pending
    collapse into a single snapshot.
    """

    fetch: Callable[[], Awaitable[list[T]]]
    name: str = "snapshot"
    on_close: Callable[[], Awaitable[None]] | None = None
    _signals: asyncio.Queue = field(default_factory=asyncio.Queue, repr=False)
    _closed: bool = False

    def __post_init__(self) -> None:
        self._signals.put_nowait(True)

    @property
    def closed(self) -> bool:
        """Return true once the stream has been closed."""
        return self._closed

    def notify(self) -> None:
        """Signal that the underlying query results changed."""
        if not self._closed:
            self._signals.put_nowait(True)

    async def close(self) -> None:
        """Stop delivering snapshots and release the backend channel."""
        if self._closed:
            return
        self._closed = True
        self._signals.put_nowait(False)
        if self.on_close is not None:
            await self.on_close()

    async def __aiter__(self) -> AsyncIterator[list[T]]:
        while True:
            if not await self._signals.get() or self._closed:
                return
            while not self._signals.empty():
                if not self._signals.get_nowait():
                    return
            try:
                snapshot = await self.fetch()
            except Exception:
                _logger.exception("Failed to fetch %s snapshot", self.name)
                continue
            if self._closed:
                return
            yield snapshot


class LiveFeed(Protocol):
    """Source of live full-snapshot subscriptions."""

    async def watch_active_sessions(self) -> SnapshotStream[CheckinSession]:
        """Subscribe to sessions flagged as active."""

    async def watch_participants(
        self, session_id: UUID
    ) -> SnapshotStream[Participant]:
        """Subscribe to a session's participants, newest first."""

    async def watch_history(self, limit: int) -> SnapshotStream[CheckinSession]:
        """Subscribe to the most recent sessions, newest first."""


class ViewerRole(Enum):
    """Kind of connected viewer."""

    ATTENDEE = "attendee"
    ADMIN = "admin"


@dataclass(frozen=True)
class ViewState:
    """Presentation state derived from the latest snapshots."""

    session: CheckinSession | None = None
    participants: tuple[Participant, ...] = ()
    history: tuple[CheckinSession, ...] = ()

    @property
    def progress(self) -> SessionProgress | None:
        """Progress of the active session, if any."""
        return build_progress(self.session) if self.session else None

    @property
    def participant_count(self) -> int:
        """Number of participants in the latest snapshot."""
        return len(self.participants)

    @property
    def phase(self) -> ViewPhase:
        """Attendee phase computed from the live participant count."""
        return attendee_phase(self.session, self.participant_count)


@dataclass(eq=False)
class LiveViewSynchronizer:
    """Per-viewer context holding live subscriptions and derived state."""

    feed: LiveFeed
    role: ViewerRole
    on_change: Callable[[ViewState], Awaitable[None]]
    history_limit: int = 10
    state: ViewState = field(default_factory=ViewState)
    _streams: list[SnapshotStream] = field(default_factory=list)
    _tasks: list[asyncio.Task] = field(default_factory=list)
    _participants_stream: SnapshotStream | None = None
    _participants_task: asyncio.Task | None = None
    _watched_session_id: UUID | None = None

    async def start(self) -> None:
        """Open the session subscription, plus history for admins."""
        sessions = await self.feed.watch_active_sessions()
        self._spawn(sessions, self._apply_sessions)
        if self.role is ViewerRole.ADMIN:
            history = await self.feed.watch_history(self.history_limit)
            self._spawn(history, self._apply_history)

    async def stop(self) -> None:
        """Cancel every subscription owned by this viewer."""
        for stream in self._streams:
            await stream.close()
        for task in self._tasks:
            await _cancel(task)
        self._streams.clear()
        self._tasks.clear()
        await self._stop_participants()

    @property
    def watched_session_id(self) -> UUID | None:
        """Session whose participants are currently watched."""
        return self._watched_session_id

    def _spawn(
        self,
        stream: SnapshotStream[T],
        apply: Callable[[list[T]], Awaitable[None]],
    ) -> None:
        self._streams.append(stream)
        self._tasks.append(asyncio.create_task(_consume(stream, apply)))

    async def _apply_sessions(self, snapshot: list[CheckinSession]) -> None:
        session = snapshot[0] if snapshot else None
        if session is None or session.id != self._watched_session_id:
            await self._stop_participants()
            self.state = replace(self.state, session=session, participants=())
            if session is not None:
                try:
                    await self._watch_participants(session.id)
                except Exception:
                    # Left unwatched so the next session snapshot retries.
                    _logger.exception(
                        "Failed to watch participants: session=%s", session.id
                    )
        else:
            self.state = replace(self.state, session=session)
        await self.on_change(self.state)

    async def _apply_participants(
        self, session_id: UUID, snapshot: list[Participant]
    ) -> None:
        if session_id != self._watched_session_id:
            return
        self.state = replace(self.state, participants=tuple(snapshot))
        await self.on_change(self.state)

    async def _apply_history(self, snapshot: list[CheckinSession]) -> None:
        self.state = replace(self.state, history=tuple(snapshot))
        await self.on_change(self.state)

    async def _watch_participants(self, session_id: UUID) -> None:
        stream = await self.feed.watch_participants(session_id)
        self._watched_session_id = session_id
        self._participants_stream = stream

        async def apply(snapshot: list[Participant]) -> None:
            await self._apply_participants(session_id, snapshot)

        self._participants_task = asyncio.create_task(_consume(stream, apply))

    async def _stop_participants(self) -> None:
        if self._participants_stream is not None:
            _logger.info(
                "Stopping participant subscription: session=%s",
                self._watched_session_id,
            )
            await self._participants_stream.close()
        if self._participants_task is not None:
            await _cancel(self._participants_task)
        self._participants_stream = None
        self._participants_task = None
        self._watched_session_id = None


async def _consume(
    stream: SnapshotStream[T], apply: Callable[[list[T]], Awaitable[None]]
) -> None:
    async for snapshot in stream:
        try:
            await apply(snapshot)
        except Exception:
            _logger.exception("Live view update failed for %s", stream.name)


async def _cancel(task: asyncio.Task) -> None:
    if task is asyncio.current_task():
        return
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
