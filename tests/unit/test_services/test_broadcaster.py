"""Tests for the fan-out broadcaster."""

import threading
import time
import pytest

from src.models.event import MutationEvent
from src.services.broadcaster import Broadcaster


def _deleted(todo_id):
    return MutationEvent.deleted(todo_id)


def _drain(subscription, timeout=0.05):
    events = []
    while True:
        event = subscription.next_event(timeout=timeout)
        if event is None:
            return events
        events.append(event)


@pytest.mark.unit
def test_publish_reaches_every_subscriber(broadcaster):
    first = broadcaster.subscribe()
    second = broadcaster.subscribe()

    delivered = broadcaster.publish(_deleted(1))

    assert delivered == 2
    assert first.next_event(timeout=0.1).data == {"id": 1}
    assert second.next_event(timeout=0.1).data == {"id": 1}


@pytest.mark.unit
def test_publish_with_no_subscribers(broadcaster):
    assert broadcaster.publish(_deleted(1)) == 0


@pytest.mark.unit
def test_no_replay_for_late_subscribers(broadcaster):
    broadcaster.publish(_deleted(1))

    late = broadcaster.subscribe()

    assert late.next_event(timeout=0.05) is None


@pytest.mark.unit
def test_events_arrive_in_publish_order(broadcaster, subscription):
    for todo_id in range(1, 6):
        broadcaster.publish(_deleted(todo_id))

    assert [event.data["id"] for event in _drain(subscription)] == [1, 2, 3, 4, 5]


@pytest.mark.unit
def test_unsubscribe_is_idempotent(broadcaster):
    sub = broadcaster.subscribe()

    broadcaster.unsubscribe(sub)
    broadcaster.unsubscribe(sub)

    assert sub.closed
    assert broadcaster.subscriber_count == 0
    assert broadcaster.publish(_deleted(1)) == 0


@pytest.mark.unit
def test_full_subscriber_is_dropped_without_affecting_others(broadcaster):
    """A subscriber that never reads is dropped once its buffer fills."""
    slow = broadcaster.subscribe()
    fast = broadcaster.subscribe()

    received = []
    for todo_id in range(1, broadcaster.buffer_size + 3):
        assert broadcaster.publish(_deleted(todo_id)) >= 1
        received.append(fast.next_event(timeout=0.1).data["id"])

    assert slow.closed
    assert not fast.closed
    assert broadcaster.subscriber_count == 1
    assert received == list(range(1, broadcaster.buffer_size + 3))
    assert slow.next_event(timeout=0.01) is None


@pytest.mark.unit
def test_closed_subscription_dropped_on_next_publish(broadcaster):
    sub = broadcaster.subscribe()
    sub.close()

    assert broadcaster.publish(_deleted(1)) == 0
    assert broadcaster.subscriber_count == 0


@pytest.mark.unit
def test_close_ends_all_subscriptions():
    b = Broadcaster(buffer_size=4)
    subs = [b.subscribe() for _ in range(3)]

    b.close()

    assert all(sub.closed for sub in subs)
    assert b.subscriber_count == 0
    assert b.subscribe().closed


@pytest.mark.unit
def test_iterating_subscription_stops_when_closed(broadcaster):
    sub = broadcaster.subscribe()
    broadcaster.publish(_deleted(1))
    broadcaster.publish(_deleted(2))

    seen = []
    for event in sub:
        seen.append(event.data["id"])
        if len(seen) == 2:
            broadcaster.unsubscribe(sub)

    assert seen == [1, 2]


@pytest.mark.unit
def test_invalid_buffer_size():
    with pytest.raises(ValueError):
        Broadcaster(buffer_size=0)


@pytest.mark.unit
def test_concurrent_publishers_keep_a_single_order():
    """All subscribers observe the same interleaving of concurrent publishes."""
    b = Broadcaster(buffer_size=1000)
    subs = [b.subscribe() for _ in range(3)]

    def publisher(offset):
        for i in range(100):
            b.publish(_deleted(offset + i))

    threads = [threading.Thread(target=publisher, args=(offset,)) for offset in (1000, 2000, 3000)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    orders = [[event.data["id"] for event in _drain(sub, timeout=0.01)] for sub in subs]
    assert len(orders[0]) == 300
    assert orders[0] == orders[1] == orders[2]
    for offset in (1000, 2000, 3000):
        own = [i for i in orders[0] if offset <= i < offset + 100]
        assert own == list(range(offset, offset + 100))
    b.close()


@pytest.mark.unit
def test_close_wakes_blocked_reader(broadcaster):
    sub = broadcaster.subscribe()
    results = []
    reader = threading.Thread(target=lambda: results.append(sub.next_event(timeout=10)), daemon=True)
    reader.start()
    time.sleep(0.05)

    started = time.monotonic()
    broadcaster.close()
    reader.join(timeout=2)

    assert not reader.is_alive()
    assert results == [None]
    assert time.monotonic() - started < 2
