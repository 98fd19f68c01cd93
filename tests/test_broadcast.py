"""Pruebas del registro de suscriptores.

Tests for subscriber fan-out.
"""

import asyncio
import json
from datetime import datetime, timezone

from nirvachan.broadcast import QueueSubscriber, SubscriberDeliveryError, SubscriberRegistry, encode_event
from nirvachan.core.models import Snapshot
from nirvachan.state import SnapshotStore

MOMENT = datetime(2026, 3, 5, 12, 0, tzinfo=timezone.utc)


class RecordingSubscriber:
    def __init__(self):
        self.payloads = []

    async def send(self, payload):
        self.payloads.append(payload)


class FailingSubscriber:
    def __init__(self, fail_after=0):
        self.fail_after = fail_after
        self.sent = 0

    async def send(self, payload):
        if self.sent >= self.fail_after:
            raise ConnectionResetError("client went away")
        self.sent += 1


class UnsubscribingSubscriber(RecordingSubscriber):
    """Removes another subscriber while a publish is running."""

    def __init__(self, registry):
        super().__init__()
        self.registry = registry
        self.victim = None

    async def send(self, payload):
        await super().send(payload)
        if self.victim is not None:
            self.registry.unsubscribe(self.victim)


def _registry(votes=None):
    store = SnapshotStore(Snapshot.build(votes or {}, MOMENT))
    return SubscriberRegistry(store), store


def test_encode_event_is_sse_data_block():
    payload = encode_event(Snapshot.build({"झापा-1|UML": 3}, MOMENT))
    assert payload.startswith("data: ")
    assert payload.endswith("\n\n")
    assert json.loads(payload[len("data: ") :]) == {
        "fetchedAt": "2026-03-05T12:00:00.000Z",
        "votes": {"झापा-1|UML": 3},
    }


def test_subscribe_sends_current_snapshot_first():
    registry, _ = _registry({"Jhapa-1|UML": 10})
    subscriber = RecordingSubscriber()

    assert asyncio.run(registry.subscribe(subscriber)) is True
    assert subscriber in registry
    assert json.loads(subscriber.payloads[0][6:])["votes"] == {"Jhapa-1|UML": 10}


def test_failed_initial_delivery_does_not_register():
    registry, _ = _registry()
    assert asyncio.run(registry.subscribe(FailingSubscriber())) is False
    assert len(registry) == 0


def test_publish_reaches_every_subscriber():
    registry, _ = _registry()
    subscribers = [RecordingSubscriber() for _ in range(3)]

    async def run():
        for subscriber in subscribers:
            await registry.subscribe(subscriber)
        return await registry.publish(Snapshot.build({"Ilam-1|RSP": 7}, MOMENT))

    assert asyncio.run(run()) == 3
    assert all(len(subscriber.payloads) == 2 for subscriber in subscribers)
    assert len({subscriber.payloads[1] for subscriber in subscribers}) == 1


def test_failing_subscriber_is_dropped_without_affecting_others():
    registry, _ = _registry()
    healthy = RecordingSubscriber()
    broken = FailingSubscriber(fail_after=1)

    async def run():
        await registry.subscribe(healthy)
        await registry.subscribe(broken)
        return await registry.publish(Snapshot.build({"Ilam-1|RSP": 7}, MOMENT))

    assert asyncio.run(run()) == 1
    assert broken not in registry
    assert healthy in registry
    assert len(healthy.payloads) == 2


def test_subscriber_removed_mid_publish_is_skipped():
    registry, _ = _registry()
    remover = UnsubscribingSubscriber(registry)
    others = [RecordingSubscriber() for _ in range(2)]

    async def run():
        await registry.subscribe(remover)
        for subscriber in others:
            await registry.subscribe(subscriber)
        remover.victim = others[0]
        return await registry.publish(Snapshot.build({"Ilam-1|RSP": 7}, MOMENT))

    delivered = asyncio.run(run())
    assert others[0] not in registry
    assert len(registry) == 2
    # Set iteration order is arbitrary: the victim got the event only if it came first.
    assert delivered in (2, 3)
    assert len(others[1].payloads) == 2


def test_unsubscribe_is_idempotent():
    registry, _ = _registry()
    subscriber = RecordingSubscriber()
    asyncio.run(registry.subscribe(subscriber))

    registry.unsubscribe(subscriber)
    registry.unsubscribe(subscriber)
    assert len(registry) == 0


def test_snapshot_read_has_no_side_effects():
    registry, store = _registry({"Jhapa-1|UML": 10})
    assert registry.snapshot() is store.current
    assert registry.snapshot() is store.current


def test_queue_subscriber_is_bounded():
    async def run():
        subscriber = QueueSubscriber(maxsize=1)
        await subscriber.send("first")
        try:
            await subscriber.send("second")
        except SubscriberDeliveryError:
            overflowed = True
        else:
            overflowed = False
        return overflowed, subscriber.pending(), await subscriber.receive()

    assert asyncio.run(run()) == (True, 1, "first")
