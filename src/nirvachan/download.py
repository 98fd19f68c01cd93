"""Descarga del feed oficial de resultados en vivo.

Fetch of the official live-results feed. One request per poll cycle, no
retry inside a cycle: the next scheduled cycle is the retry.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import httpx
import structlog

from nirvachan import __version__
from nirvachan.config import DEFAULT_REFERER, NirvachanSettings

logger = structlog.get_logger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class FeedError(Exception):
    """Feed no disponible: estado no exitoso, error de red o cuerpo mal formado.

    English: Upstream unavailable: non-success status, network error or
    malformed body.
    """


def build_feed_headers(
    referer: Optional[str] = None,
    cookie: Optional[str] = None,
) -> Dict[str, str]:
    """Cabeceras tipo XHR de navegador; el feed responde 406 sin ellas.

    English: Browser XHR-like headers; the feed answers 406 without them.
    """
    headers = {
        "Accept": "application/json, text/javascript, */*; q=0.01",
        "Accept-Language": "en-US,en;q=0.9,ne;q=0.8",
        "X-Requested-With": "XMLHttpRequest",
        "Referer": referer or DEFAULT_REFERER,
        "User-Agent": f"{BROWSER_USER_AGENT} Nirvachan/{__version__}",
    }
    if cookie:
        headers["Cookie"] = cookie
    return headers


def headers_from_settings(settings: NirvachanSettings) -> Dict[str, str]:
    return build_feed_headers(settings.ECN_REFERER, settings.ECN_COOKIE)


def build_client(timeout_seconds: float = 15.0) -> httpx.AsyncClient:
    """Construye un cliente HTTP con timeout global.

    English: Build an HTTP client with a global timeout.
    """
    return httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds), follow_redirects=True)


async def fetch_feed(
    client: httpx.AsyncClient,
    url: str,
    headers: Optional[Dict[str, str]] = None,
) -> List[Dict[str, Any]]:
    """Descarga y valida el cuerpo del feed (lista de filas).

    English:
        Download the feed and validate its body is a JSON list of row
        objects. Every failure is raised as :class:`FeedError`.
    """
    start = time.monotonic()
    try:
        response = await client.get(url, headers=headers or build_feed_headers())
    except httpx.HTTPError as exc:
        raise FeedError(f"Request failed for {url}: {exc}") from exc

    elapsed = round(time.monotonic() - start, 3)
    if not response.is_success:
        raise FeedError(f"Unexpected status {response.status_code} for {url}")

    try:
        payload = response.json()
    except ValueError as exc:
        raise FeedError(f"Malformed JSON body from {url}: {exc}") from exc

    if not isinstance(payload, list):
        raise FeedError(f"Expected a JSON list from {url}, got {type(payload).__name__}")

    rows = [row for row in payload if isinstance(row, dict)]
    logger.debug(
        "feed_fetched",
        url=url,
        status_code=response.status_code,
        elapsed_seconds=elapsed,
        rows=len(rows),
        dropped=len(payload) - len(rows),
    )
    return rows
