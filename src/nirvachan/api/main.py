"""API pública de votos en vivo: snapshot, stream y diagnóstico.

English:
    Public live-votes API: snapshot, event stream and diagnostics.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from nirvachan import __version__
from nirvachan.broadcast import QueueSubscriber, SubscriberRegistry
from nirvachan.config import NirvachanSettings, load_config
from nirvachan.core.joiner import CandidateIndex, build_candidate_index
from nirvachan.core.models import format_timestamp
from nirvachan.core.normalize import normalize_district
from nirvachan.poller import LivePoller
from nirvachan.reference import (
    PartySymbols,
    ReferenceDataError,
    load_party_symbols,
    load_reference,
    symbol_for_party,
)
from nirvachan.state import SnapshotStore

logger = structlog.get_logger(__name__)

HEARTBEAT_SECONDS = 15.0
STREAM_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"}


class _DisconnectAware(Protocol):
    async def is_disconnected(self) -> bool: ...


async def event_stream(
    registry: SubscriberRegistry,
    request: _DisconnectAware,
    *,
    heartbeat_seconds: float = HEARTBEAT_SECONDS,
) -> AsyncIterator[str]:
    """Genera bloques ``data:`` para un cliente conectado.

    Emite el snapshot vigente de inmediato, luego uno por cada publicación.
    La desconexión del transporte retira al suscriptor.

    English:
        Yield ``data:`` blocks for one connected client: the current snapshot
        immediately, then one block per publish. Transport disconnect removes
        the subscriber.
    """
    subscriber = QueueSubscriber()
    if not await registry.subscribe(subscriber):
        return
    try:
        while not await request.is_disconnected():
            try:
                payload = await asyncio.wait_for(subscriber.receive(), timeout=heartbeat_seconds)
            except asyncio.TimeoutError:
                # Comentario SSE para mantener viva la conexión / SSE comment keep-alive.
                yield ": keep-alive\n\n"
                continue
            yield payload
    finally:
        registry.unsubscribe(subscriber)


def _load_index(settings: NirvachanSettings) -> tuple[CandidateIndex, Optional[str]]:
    try:
        return load_reference(settings.REFERENCE_PATH).build_index(), None
    except ReferenceDataError as exc:
        logger.error("reference_load_failed", path=str(settings.REFERENCE_PATH), error=str(exc))
        return build_candidate_index({}), str(exc)


def _load_symbols(settings: NirvachanSettings) -> PartySymbols:
    try:
        return load_party_symbols(settings.SYMBOLS_PATH)
    except ReferenceDataError as exc:
        logger.error("party_symbols_load_failed", path=str(settings.SYMBOLS_PATH), error=str(exc))
        return PartySymbols()


def district_payload(
    index: CandidateIndex,
    symbols: PartySymbols,
    votes: Dict[str, int],
    district: str,
) -> Dict[str, Any]:
    """Une candidatos de referencia con votos en vivo para un distrito.

    English: Join reference candidates with live votes for one district.
    """
    rows = index.district_rows(district)
    constituencies: List[Dict[str, Any]] = []
    for row in rows:
        parties = [
            {
                "party": record.party,
                "candidates": list(record.candidates),
                "symbol": symbol_for_party(symbols, record.party),
                "votes": index.votes_for(record, votes),
            }
            for record in row.records
        ]
        constituencies.append(
            {
                "label": row.label,
                "constituency": row.constituency.label,
                "province": row.province,
                "parties": parties,
            }
        )
    payload: Dict[str, Any] = {
        "query": district,
        "district": normalize_district(district),
        "province": rows[0].province if rows else None,
        "constituencies": constituencies,
    }
    if not rows:
        payload["similar"] = index.similar_districts(district)
    return payload


def create_app(
    settings: Optional[NirvachanSettings] = None,
    *,
    store: Optional[SnapshotStore] = None,
    registry: Optional[SubscriberRegistry] = None,
    poller: Optional[LivePoller] = None,
    index: Optional[CandidateIndex] = None,
    symbols: Optional[PartySymbols] = None,
) -> FastAPI:
    """Construye la aplicación con sus colaboradores en memoria.

    English: Build the application with its in-memory collaborators.
    """
    settings = settings or load_config()
    store = store or SnapshotStore()
    registry = registry or SubscriberRegistry(store)
    poller = poller or LivePoller.from_settings(settings, store, registry)
    reference_error: Optional[str] = None
    if index is None:
        index, reference_error = _load_index(settings)
    if symbols is None:
        symbols = _load_symbols(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        stop_event = asyncio.Event()
        task = asyncio.create_task(poller.run(stop_event)) if poller.enabled else None
        if task is None:
            logger.warning("live_votes_unavailable", reason="ECN_API_URL not set")
        try:
            yield
        finally:
            stop_event.set()
            if task is not None:
                await task

    app = FastAPI(title="Nirvachan Live Votes API", version=__version__, lifespan=lifespan)
    app.state.store = store
    app.state.registry = registry
    app.state.poller = poller
    app.state.index = index

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    rate_limit = f"{settings.API_RATE_LIMIT}/minute"
    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.get("/api/votes/snapshot")
    @limiter.limit(rate_limit)
    def get_snapshot(request: Request) -> Dict[str, Any]:
        """Snapshot vigente. / Current snapshot."""
        return registry.snapshot().to_dict()

    @app.get("/api/votes/stream")
    async def stream_votes(request: Request) -> StreamingResponse:
        return StreamingResponse(
            event_stream(registry, request),
            media_type="text/event-stream",
            headers=STREAM_HEADERS,
        )

    @app.get("/api/districts/{district}")
    @limiter.limit(rate_limit)
    def get_district(request: Request, district: str) -> Dict[str, Any]:
        return district_payload(index, symbols, dict(registry.snapshot().votes), district)

    @app.get("/api/health")
    @limiter.limit(rate_limit)
    def api_health(request: Request) -> Dict[str, Any]:
        """/** Estado y conteos de diagnóstico. / Status plus diagnostic counts. **/"""
        snapshot = registry.snapshot()
        return {
            "status": "ok",
            "live_enabled": poller.enabled,
            "last_poll": poller.last_outcome.value if poller.last_outcome else None,
            "fetchedAt": format_timestamp(snapshot.fetched_at),
            "vote_keys": len(snapshot.votes),
            "subscribers": len(registry),
            "reference": index.stats(),
            "reference_error": reference_error,
        }

    return app
