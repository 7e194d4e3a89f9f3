#tests/test_monitoring_event_bus.py
"""
Tests for monitoring.bus.EventBus

Covers:
- Publish/subscribe behavior
- Unsubscribe behavior
- Ordering guarantees
- A failing subscriber does not starve the others
- Basic thread-safety smoke check
"""

from __future__ import annotations

import threading
from typing import List

from monitoring.bus import EventBus
from monitoring.events import EventType, MonitoringEvent, updated_payload


def make_event(ts: float, module: str = "test", msg: str = "msg") -> MonitoringEvent:
    return MonitoringEvent(
        ts=ts,
        module=module,
        event_type=EventType.LOG,
        message=msg,
        payload={},
        correlation_id=None,
    )


def test_event_bus_publish_subscribe_basic() -> None:
    bus = EventBus()
    received: List[MonitoringEvent] = []

    def subscriber(evt: MonitoringEvent) -> None:
        received.append(evt)

    bus.subscribe(subscriber)

    bus.publish(make_event(1.0, msg="first"))
    bus.publish(make_event(2.0, msg="second"))

    assert [e.message for e in received] == ["first", "second"]


def test_event_bus_unsubscribe() -> None:
    bus = EventBus()
    received: List[MonitoringEvent] = []

    def subscriber(evt: MonitoringEvent) -> None:
        received.append(evt)

    bus.subscribe(subscriber)
    assert bus.subscriber_count == 1
    bus.unsubscribe(subscriber)
    # unknown subscriber is a no-op
    bus.unsubscribe(subscriber)

    bus.publish(make_event(1.0))

    assert received == []
    assert bus.subscriber_count == 0


def test_event_bus_ordering_guarantee() -> None:
    bus = EventBus()
    seen: List[int] = []

    def subscriber(evt: MonitoringEvent) -> None:
        seen.append(int(evt.ts))

    bus.subscribe(subscriber)

    for ts in [1, 2, 3, 4, 5]:
        bus.publish(make_event(float(ts)))

    assert seen == [1, 2, 3, 4, 5]


def test_failing_subscriber_does_not_block_others() -> None:
    bus = EventBus()
    received: List[MonitoringEvent] = []

    def broken(evt: MonitoringEvent) -> None:
        raise RuntimeError("boom")

    def healthy(evt: MonitoringEvent) -> None:
        received.append(evt)

    bus.subscribe(broken)
    bus.subscribe(healthy)

    bus.publish(make_event(1.0))

    assert len(received) == 1


def test_subscriber_may_unsubscribe_during_delivery() -> None:
    bus = EventBus()
    calls: List[str] = []

    def once(evt: MonitoringEvent) -> None:
        calls.append("once")
        bus.unsubscribe(once)

    bus.subscribe(once)
    bus.publish(make_event(1.0))
    bus.publish(make_event(2.0))

    assert calls == ["once"]


def test_updated_payload_round_trips_through_event_accessors() -> None:
    event = MonitoringEvent(
        ts=0.0,
        module="gameboard",
        event_type=EventType.GAMEBOARD_UPDATED,
        message="Scan applied",
        payload=updated_payload({(3, 1), (-2, 4)}, is_full_reset=False),
    )

    assert event.payload["removed_tiles"] == [[-2, 4], [3, 1]]
    assert event.removed_tiles == frozenset({(3, 1), (-2, 4)})
    assert event.is_full_reset is False
    assert event.to_dict()["event_type"] == "GAMEBOARD_UPDATED"


def test_event_bus_thread_safety_smoke() -> None:
    """
    Smoke test: multiple threads publishing simultaneously should not crash
    and subscribers should receive the correct number of events.
    """
    bus = EventBus()
    count = 100

    received: List[MonitoringEvent] = []
    lock = threading.Lock()

    def subscriber(evt: MonitoringEvent) -> None:
        with lock:
            received.append(evt)

    bus.subscribe(subscriber)

    def publisher_thread(start: int) -> None:
        for i in range(start, start + count):
            bus.publish(make_event(float(i)))

    threads = [
        threading.Thread(target=publisher_thread, args=(0,)),
        threading.Thread(target=publisher_thread, args=(1000,)),
    ]

    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(received) == 2 * count
