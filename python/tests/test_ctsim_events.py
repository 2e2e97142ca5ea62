"""Tests for the event bus."""

from __future__ import annotations

from ctsim.events import (
    INSN_DONE,
    MODEL_DATA,
    SUSPEND,
    EventBus,
    EventSubscription,
    ModelDataEvent,
    SuspendEvent,
)


def test_subscriber_counts_drive_activation():
    bus = EventBus()
    assert not bus.active(MODEL_DATA)
    token = bus.on(MODEL_DATA, lambda event: None)
    assert bus.active(MODEL_DATA)
    assert bus.subscriber_count(MODEL_DATA) == 1
    everything = bus.subscribe(EventSubscription(handler=lambda event: None))
    assert bus.subscriber_count(MODEL_DATA) == 2
    assert bus.subscriber_count(SUSPEND) == 1
    bus.unsubscribe(token)
    bus.unsubscribe(everything)
    bus.unsubscribe(everything)
    assert not bus.active(MODEL_DATA)
    assert bus.subscriber_count(SUSPEND) == 0


def test_publish_without_subscribers_builds_nothing():
    bus = EventBus()
    assert bus.publish(MODEL_DATA, payload=1) is None


def test_publish_delivers_typed_events_in_order():
    bus = EventBus()
    seen = []
    bus.subscribe(EventSubscription(categories=[MODEL_DATA, SUSPEND], handler=seen.append))
    bus.publish(MODEL_DATA, payload={"x": 1})
    bus.publish(INSN_DONE, ictx=None)
    bus.publish(SUSPEND, reason="ctl", addr=4)
    assert [type(event) for event in seen] == [ModelDataEvent, SuspendEvent]
    assert seen[0].payload == {"x": 1}
    assert seen[1].reason == "ctl" and seen[1].addr == 4
    assert seen[0].seq < seen[1].seq


def test_failing_handler_does_not_block_others():
    bus = EventBus()
    seen = []

    def broken(event):
        raise RuntimeError("observer bug")

    bus.on(SUSPEND, broken)
    bus.on(SUSPEND, seen.append)
    bus.publish(SUSPEND, reason="terminate")
    assert len(seen) == 1


def test_handler_may_unsubscribe_itself():
    bus = EventBus()
    seen = []
    tokens = {}

    def once(event):
        seen.append(event)
        bus.unsubscribe(tokens["once"])

    tokens["once"] = bus.on(SUSPEND, once)
    bus.publish(SUSPEND, reason="ctl")
    bus.publish(SUSPEND, reason="ctl")
    assert len(seen) == 1
