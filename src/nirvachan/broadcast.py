"""Registro de suscriptores y difusión de snapshots.

Subscriber registry and snapshot fan-out. The subscriber set can change
while a publish is in progress (new connection, disconnect), so publish
iterates a copy and skips anyone removed since it started.
"""

from __future__ import annotations

import asyncio
import json
from typing import Protocol, Set

import structlog

from nirvachan.core.models import Snapshot
from nirvachan.state import SnapshotStore

logger = structlog.get_logger(__name__)

DEFAULT_QUEUE_SIZE = 16


class SubscriberDeliveryError(Exception):
    """Fallo al entregar a un suscriptor puntual.

    English: Delivery to one subscriber failed; other subscribers are unaffected.
    """


class Subscriber(Protocol):
    async def send(self, payload: str) -> None: ...


def encode_event(snapshot: Snapshot) -> str:
    """Bloque ``text/event-stream``: ``data: <json>\\n\\n``."""
    return f"data: {json.dumps(snapshot.to_dict(), ensure_ascii=False)}\n\n"


class QueueSubscriber:
    """Suscriptor con cola acotada para transportes de streaming.

    Un cliente lento que llena su cola falla la entrega y es retirado, en
    lugar de acumular mensajes sin límite.

    English:
        Bounded-queue subscriber for streaming transports. A slow client that
        fills its queue fails delivery and is dropped instead of buffering
        without limit.
    """

    def __init__(self, maxsize: int = DEFAULT_QUEUE_SIZE) -> None:
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=maxsize)

    async def send(self, payload: str) -> None:
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull as exc:
            raise SubscriberDeliveryError("subscriber_queue_full") from exc

    async def receive(self) -> str:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()


class SubscriberRegistry:
    """Conjunto de suscriptores activos. / Set of active subscribers."""

    def __init__(self, store: SnapshotStore) -> None:
        self._store = store
        self._subscribers: Set[Subscriber] = set()

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, subscriber: object) -> bool:
        return subscriber in self._subscribers

    def snapshot(self) -> Snapshot:
        """Snapshot vigente sin efectos secundarios. / Current snapshot, no side effects."""
        return self._store.current

    async def subscribe(self, subscriber: Subscriber) -> bool:
        """Envía el snapshot vigente y luego registra al suscriptor.

        English:
            Send the current snapshot first, then register the subscriber.
            Returns ``False`` when the initial delivery fails.
        """
        try:
            await subscriber.send(encode_event(self._store.current))
        except Exception as exc:  # noqa: BLE001
            logger.warning("subscriber_initial_delivery_failed", error=str(exc))
            return False
        self._subscribers.add(subscriber)
        logger.debug("subscriber_added", subscribers=len(self._subscribers))
        return True

    def unsubscribe(self, subscriber: Subscriber) -> None:
        """Idempotent removal, safe to call twice or during a publish."""
        if subscriber in self._subscribers:
            self._subscribers.discard(subscriber)
            logger.debug("subscriber_removed", subscribers=len(self._subscribers))

    async def publish(self, snapshot: Snapshot) -> int:
        """Difunde un snapshot; aísla fallos por suscriptor.

        English:
            Fan a snapshot out to every active subscriber. A failing
            subscriber is logged and dropped without affecting the others.
            Returns the number of successful deliveries.
        """
        payload = encode_event(snapshot)
        delivered = 0
        for subscriber in list(self._subscribers):
            if subscriber not in self._subscribers:
                continue
            try:
                await subscriber.send(payload)
            except Exception as exc:  # noqa: BLE001
                logger.warning("subscriber_delivery_failed", error=str(exc))
                self.unsubscribe(subscriber)
                continue
            delivered += 1
        return delivered
