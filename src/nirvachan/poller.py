"""Poller del feed en vivo y detector de cambios.

Live-feed poller and change detector.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Set

import httpx
import structlog

from nirvachan.broadcast import SubscriberRegistry
from nirvachan.config import NirvachanSettings
from nirvachan.core.keys import vote_key
from nirvachan.core.models import Snapshot, utc_now
from nirvachan.core.normalize import clean_text, normalize_district, normalize_party
from nirvachan.download import FeedError, build_client, build_feed_headers, fetch_feed, headers_from_settings
from nirvachan.hasher import fingerprint_digest, fingerprint_votes
from nirvachan.logging import bind_context
from nirvachan.state import SnapshotStore

logger = structlog.get_logger(__name__)

DISTRICT_FIELD = "DistrictName"
ORDINAL_FIELD = "SCConstID"
PARTY_FIELD = "PoliticalPartyName"
VOTES_FIELD = "TotalVoteReceived"


class PollOutcome(str, Enum):
    """Resultado de un ciclo de polling. / Outcome of one poll cycle."""

    DISABLED = "disabled"
    SKIPPED = "skipped"
    FAILED = "failed"
    UNCHANGED = "unchanged"
    CHANGED = "changed"


def coerce_votes(value: Any) -> int:
    """/** Convierte votos a entero no negativo, 0 si falla. / Coerce votes to a non-negative int, 0 on failure. **/"""
    try:
        if value is None:
            return 0
        number = int(float(str(value).replace(",", "").strip()))
    except (ValueError, TypeError, OverflowError):
        return 0
    return max(number, 0)


def normalize_ordinal(value: Any) -> str:
    """Trim/stringify the ordinal; numeric ordinals lose leading zeros ("01" -> "1")."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = clean_text(value)
    if text.isdigit():
        number = int(text)
        return str(number) if number > 0 else ""
    return text


def normalize_votes(rows: Iterable[Any]) -> Dict[str, int]:
    """Normaliza filas del feed al conteo plano ``"{Distrito}-{N}|{Partido}"``.

    Las filas sin distrito, ordinal o partido se descartan. Cuando varias
    filas caen en la misma clave (partidos colapsados en un solo bucket) gana
    la última fila.

    English:
        Normalize feed rows into the flattened tally. Rows missing district,
        ordinal or party are dropped. When several rows collapse onto one key
        (parties sharing a bucket) the last row wins.
    """
    votes: Dict[str, int] = {}
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        district = normalize_district(row.get(DISTRICT_FIELD))
        ordinal = normalize_ordinal(row.get(ORDINAL_FIELD))
        party = normalize_party(row.get(PARTY_FIELD))
        if not district or not ordinal or not party:
            continue
        key = vote_key(district, ordinal, party)
        votes[key] = coerce_votes(row.get(VOTES_FIELD))
    return votes


class LivePoller:
    """Consulta periódica del feed y publicación solo ante cambios.

    English:
        Periodic feed poll that publishes only on change. The poller is the
        sole writer of the snapshot store.
    """

    def __init__(
        self,
        url: Optional[str],
        store: SnapshotStore,
        registry: SubscriberRegistry,
        *,
        headers: Optional[Dict[str, str]] = None,
        interval_seconds: float = 10.0,
        timeout_seconds: float = 15.0,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.url = url
        self.headers = headers or build_feed_headers()
        self.interval_seconds = interval_seconds
        self._store = store
        self._registry = registry
        self._client_factory = client_factory or (lambda: build_client(timeout_seconds))
        self._clock = clock
        self._in_progress = False
        self._last_fingerprint = fingerprint_votes(store.current.votes)
        self.last_outcome: Optional[PollOutcome] = None

    @classmethod
    def from_settings(
        cls,
        settings: NirvachanSettings,
        store: SnapshotStore,
        registry: SubscriberRegistry,
        **kwargs: Any,
    ) -> "LivePoller":
        return cls(
            settings.ECN_API_URL if settings.live_enabled else None,
            store,
            registry,
            headers=headers_from_settings(settings),
            interval_seconds=settings.POLL_INTERVAL_SECONDS,
            timeout_seconds=settings.FEED_TIMEOUT_SECONDS,
            **kwargs,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    async def poll_once(self) -> PollOutcome:
        """Ejecuta un ciclo; nunca lanza por fallas del feed.

        English:
            Run one cycle. Without an endpoint it is a no-op; while another
            cycle is still in flight it is skipped; feed failures end the
            cycle leaving the previous snapshot untouched.
        """
        if not self.enabled:
            outcome = PollOutcome.DISABLED
        elif self._in_progress:
            logger.warning("poll_skipped_in_progress", url=self.url)
            outcome = PollOutcome.SKIPPED
        else:
            self._in_progress = True
            try:
                outcome = await self._poll()
            finally:
                self._in_progress = False
        self.last_outcome = outcome
        return outcome

    async def _poll(self) -> PollOutcome:
        log = bind_context(logger, source_url=self.url)
        try:
            async with self._client_factory() as client:
                rows = await fetch_feed(client, self.url, self.headers)
        except FeedError as exc:
            bind_context(log, outcome=PollOutcome.FAILED.value).warning("feed_fetch_failed", error=str(exc))
            return PollOutcome.FAILED

        votes = normalize_votes(rows)
        fingerprint = fingerprint_votes(votes)
        now = self._clock()

        if fingerprint == self._last_fingerprint:
            self._store.touch(now)
            bind_context(log, outcome=PollOutcome.UNCHANGED.value).debug("votes_unchanged", keys=len(votes))
            return PollOutcome.UNCHANGED

        self._last_fingerprint = fingerprint
        snapshot = Snapshot.build(votes, now)
        self._store.replace(snapshot)
        delivered = await self._registry.publish(snapshot)
        bind_context(
            log,
            fingerprint=fingerprint_digest(fingerprint)[:16],
            outcome=PollOutcome.CHANGED.value,
        ).info(
            "votes_changed",
            rows=len(rows),
            keys=len(votes),
            delivered=delivered,
            sample_keys=sorted(votes)[:5],
        )
        return PollOutcome.CHANGED

    async def _guarded_poll(self) -> None:
        try:
            await self.poll_once()
        except Exception:  # noqa: BLE001
            logger.exception("poll_cycle_crashed", url=self.url)

    async def run(self, stop_event: asyncio.Event) -> None:
        """Temporizador de intervalo fijo hasta ``stop_event``.

        Cada tick lanza su propio ciclo, así un fetch lento no atrasa el
        temporizador; la guarda de ciclo en curso evita solapamientos.

        English:
            Fixed-interval timer until ``stop_event`` is set. Each tick
            launches its own cycle so a slow fetch never delays the timer;
            the in-progress guard prevents overlapping cycles.
        """
        if not self.enabled:
            logger.warning("live_polling_disabled", reason="ECN_API_URL not set")
            return

        logger.info("live_polling_started", url=self.url, interval_seconds=self.interval_seconds)
        pending: Set[asyncio.Task[None]] = set()
        while not stop_event.is_set():
            task = asyncio.create_task(self._guarded_poll())
            pending.add(task)
            task.add_done_callback(pending.discard)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                continue
        if pending:
            await asyncio.gather(*pending)
        logger.info("live_polling_stopped", url=self.url)
