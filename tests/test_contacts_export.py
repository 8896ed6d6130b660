"""Tests for vCard export."""

import asyncio
from datetime import date
from uuid import uuid4

import pytest

from checkin_tracker.domain.errors import StateError
from checkin_tracker.domain.sessions import Participant
from checkin_tracker.services.contacts import (
    ContactExportService,
    export_filename,
    render_vcards,
)
from checkin_tracker.services.participants import ParticipantRegistrar
from checkin_tracker.services.sessions import SessionLifecycleService
from tests.conftest import (
    ADMIN,
    FakeIpLookupClient,
    InMemoryParticipantRepository,
    InMemorySessionRepository,
)


def _participant(name: str, phone: str) -> Participant:
    return Participant(
        id=uuid4(), session_id=uuid4(), name=name, phone=phone, joined_at=None
    )


def test_render_vcards_keeps_input_order() -> None:
    content = render_vcards([_participant("A", "1"), _participant("B", "2")])

    blocks = [block for block in content.split("END:VCARD\r\n") if block]
    assert len(blocks) == 2
    assert blocks[0] == "BEGIN:VCARD\r\nVERSION:3.0\r\nFN:A\r\nTEL;TYPE=CELL:1\r\n"
    assert blocks[1] == "BEGIN:VCARD\r\nVERSION:3.0\r\nFN:B\r\nTEL;TYPE=CELL:2\r\n"
    assert content.endswith("END:VCARD\r\n")


def test_render_vcards_escapes_formatted_name() -> None:
    content = render_vcards([_participant("Doe, Jane; Jr\\", "+1 555")])

    assert "FN:Doe\\, Jane\\; Jr\\\\\r\n" in content
    assert "TEL;TYPE=CELL:+1 555\r\n" in content


def test_render_vcards_keeps_injected_lines_inside_one_card() -> None:
    content = render_vcards(
        [_participant("Eve\r\nNOTE:x", "1\nEND:VCARD\nBEGIN:VCARD\nFN:Evil")]
    )

    lines = content.split("\r\n")
    assert lines.count("BEGIN:VCARD") == 1
    assert lines.count("END:VCARD") == 1
    assert "\n" not in content.replace("\r\n", "")
    assert "\r" not in content.replace("\r\n", "")
    assert lines[2] == "FN:Eve\\nNOTE:x"
    assert lines[3] == "TEL;TYPE=CELL:1\\nEND:VCARD\\nBEGIN:VCARD\\nFN:Evil"
    assert lines[4] == "END:VCARD"


def test_render_vcards_empty() -> None:
    assert render_vcards([]) == ""


def test_export_filename_is_date_stamped() -> None:
    assert export_filename(date(2026, 3, 14), "checkin-contacts") == (
        "checkin-contacts-2026-03-14.vcf"
    )


def _export_setup() -> tuple[
    SessionLifecycleService, ParticipantRegistrar, ContactExportService
]:
    sessions = InMemorySessionRepository()
    participants = InMemoryParticipantRepository()
    registrar = ParticipantRegistrar(sessions, participants, FakeIpLookupClient())
    export = ContactExportService(sessions, participants, filename_prefix="event")
    return SessionLifecycleService(sessions), registrar, export


def test_export_requires_goal_reached() -> None:
    lifecycle, registrar, export = _export_setup()
    session = asyncio.run(lifecycle.start_session(2, ADMIN))
    asyncio.run(registrar.register(session.id, "A", "1"))

    with pytest.raises(StateError):
        asyncio.run(export.export_active())


def test_export_without_active_session_fails() -> None:
    _, _, export = _export_setup()

    with pytest.raises(StateError):
        asyncio.run(export.export_active())


def test_export_after_goal_reached() -> None:
    lifecycle, registrar, export = _export_setup()
    session = asyncio.run(lifecycle.start_session(2, ADMIN))
    asyncio.run(registrar.register(session.id, "A", "1"))
    asyncio.run(registrar.register(session.id, "B", "2"))

    result = asyncio.run(export.export_active(today=date(2026, 3, 14)))

    assert result.filename == "event-2026-03-14.vcf"
    assert result.count == 2
    assert result.content.count("BEGIN:VCARD") == 2
    assert result.content.index("FN:B") < result.content.index("FN:A")
