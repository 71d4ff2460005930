"""Tests for the admin live snapshot streams."""

import asyncio
import json
from types import SimpleNamespace

import pytest

from tests.helpers import FAR_FIX, OFFICE_FIX, kst
from walkin.api.admin_routes import _dashboard, _pending_snapshot, stream_snapshots
from walkin.core.db import create_session_factory
from walkin.services import approvals, attendance
from walkin.services.events import APPROVALS_TOPIC, EventBroadcaster, attendance_topic


class StubRequest:
    """Just enough of a Starlette request for stream_snapshots"""

    def __init__(self, engine, settings):
        self.app = SimpleNamespace(state=SimpleNamespace(
            session_factory=create_session_factory(engine),
            broadcaster=EventBroadcaster(),
            settings=settings,
        ))
        self.disconnected = False

    async def is_disconnected(self):
        return self.disconnected


def _payload(frame: str):
    assert frame.startswith("data: ") and frame.endswith("\n\n")
    return json.loads(frame[len("data: "):])


async def _next(stream):
    return await asyncio.wait_for(stream.__anext__(), timeout=2)


@pytest.mark.asyncio
async def test_pending_approvals_resent_after_publish(engine, db, employee, test_settings):
    request = StubRequest(engine, test_settings)
    broadcaster = request.app.state.broadcaster
    stream = stream_snapshots(request, APPROVALS_TOPIC, _pending_snapshot, "req-1")

    assert _payload(await _next(stream)) == []
    assert broadcaster.subscriber_count(APPROVALS_TOPIC) == 1

    filed = approvals.create_approval_request(
        db, employee, "check_in", "외근으로 인해 사무실 외부에서 출근합니다", FAR_FIX, test_settings
    )
    broadcaster.publish(APPROVALS_TOPIC)

    snapshot = _payload(await _next(stream))
    assert [item["id"] for item in snapshot] == [filed.id]
    assert snapshot[0]["status"] == "pending"

    await stream.aclose()
    assert broadcaster.subscriber_count(APPROVALS_TOPIC) == 0


@pytest.mark.asyncio
async def test_dashboard_resent_after_check_in(engine, db, employee, test_settings):
    request = StubRequest(engine, test_settings)
    topic = attendance_topic("2024-03-04")
    stream = stream_snapshots(request, topic, lambda session: _dashboard(session, "2024-03-04"), "req-2")

    first = _payload(await _next(stream))
    assert first["stats"]["checked_in"] == 0

    attendance.record_check_in(db, employee, OFFICE_FIX, test_settings, at=kst(2024, 3, 4, 9, 0))
    request.app.state.broadcaster.publish(topic)

    second = _payload(await _next(stream))
    assert second["stats"]["checked_in"] == 1
    assert second["employees"][0]["attendance"]["check_in"]["status"] == "normal"

    await stream.aclose()


@pytest.mark.asyncio
async def test_keepalive_then_stops_when_client_leaves(engine, test_settings):
    config = test_settings.model_copy(update={"STREAM_KEEPALIVE_SECONDS": 0.05})
    request = StubRequest(engine, config)
    stream = stream_snapshots(request, APPROVALS_TOPIC, _pending_snapshot, "req-3")

    await _next(stream)
    assert await _next(stream) == ": keepalive\n\n"

    request.disconnected = True
    with pytest.raises(StopAsyncIteration):
        await _next(stream)
    assert request.app.state.broadcaster.subscriber_count(APPROVALS_TOPIC) == 0
