"""Tests for the in-process broadcaster behind the admin streams."""

import asyncio

import pytest

from walkin.services.events import APPROVALS_TOPIC, EventBroadcaster, attendance_topic


@pytest.mark.asyncio
async def test_subscriber_receives_published_payload():
    broadcaster = EventBroadcaster()

    with broadcaster.subscribe(APPROVALS_TOPIC) as queue:
        assert broadcaster.publish(APPROVALS_TOPIC, {"id": "r1"}) == 1
        payload = await asyncio.wait_for(queue.get(), timeout=1)

    assert payload == {"id": "r1"}


@pytest.mark.asyncio
async def test_topics_are_isolated():
    broadcaster = EventBroadcaster()

    with broadcaster.subscribe(attendance_topic("2024-03-04")) as queue:
        assert broadcaster.publish(attendance_topic("2024-03-05")) == 0
        assert queue.empty()


@pytest.mark.asyncio
async def test_full_queue_drops_oldest():
    broadcaster = EventBroadcaster(queue_size=2)

    with broadcaster.subscribe(APPROVALS_TOPIC) as queue:
        for n in range(3):
            broadcaster.publish(APPROVALS_TOPIC, n)

        assert queue.qsize() == 2
        assert [queue.get_nowait(), queue.get_nowait()] == [1, 2]


@pytest.mark.asyncio
async def test_leaving_the_context_unsubscribes():
    broadcaster = EventBroadcaster()

    with broadcaster.subscribe(APPROVALS_TOPIC):
        with broadcaster.subscribe(APPROVALS_TOPIC):
            assert broadcaster.subscriber_count(APPROVALS_TOPIC) == 2
        assert broadcaster.subscriber_count(APPROVALS_TOPIC) == 1

    assert broadcaster.subscriber_count(APPROVALS_TOPIC) == 0
    assert broadcaster.publish(APPROVALS_TOPIC) == 0


def test_attendance_topic_is_per_date():
    assert attendance_topic("2024-03-04") == "attendance:2024-03-04"
