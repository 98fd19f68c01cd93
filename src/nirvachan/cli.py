# Cli Module
# AUTO-DOC-INDEX
#
# ES: Índice rápido
#   1) serve / poll-once
#   2) reference-stats / normalize
#
# EN: Quick index
#   1) serve / poll-once
#   2) reference-stats / normalize

from __future__ import annotations

import asyncio
import json
from collections import Counter
from pathlib import Path
from typing import Optional

import typer

from nirvachan.broadcast import SubscriberRegistry
from nirvachan.config import load_config
from nirvachan.core.normalize import extract_district, normalize_district, normalize_party, split_constituency
from nirvachan.logging import setup_logging
from nirvachan.poller import LivePoller
from nirvachan.reference import load_reference
from nirvachan.state import SnapshotStore

app = typer.Typer(help="Nirvachan live election results CLI")


@app.callback()
def main() -> None:
    """Interfaz de línea de comandos de Nirvachan.

    English: Nirvachan command line interface.
    """


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind host (default API_HOST)."),
    port: Optional[int] = typer.Option(None, help="Bind port (default API_PORT)."),
) -> None:
    """Levanta la API con uvicorn. / Run the API with uvicorn."""
    import uvicorn

    from nirvachan.api.main import create_app

    settings = load_config()
    setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
    uvicorn.run(
        create_app(settings),
        host=host or settings.API_HOST,
        port=port or settings.API_PORT,
        log_config=None,
    )


@app.command("poll-once")
def poll_once() -> None:
    """Ejecuta un ciclo de polling e imprime el resultado. / Run one poll cycle."""
    settings = load_config()
    setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
    store = SnapshotStore()
    poller = LivePoller.from_settings(settings, store, SubscriberRegistry(store))
    outcome = asyncio.run(poller.poll_once())
    typer.echo(json.dumps({"outcome": outcome.value, "vote_keys": len(store.current.votes)}))


@app.command("reference-stats")
def reference_stats(
    path: Optional[Path] = typer.Argument(None, help="Candidates JSON (default REFERENCE_PATH)."),
) -> None:
    """Conteos por provincia y distrito. / Per-province and per-district counts."""
    settings = load_config()
    setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
    index = load_reference(path or settings.REFERENCE_PATH).build_index()
    per_province: Counter[str] = Counter()
    per_district = {}
    for district in index.districts():
        rows = index.district_rows(district)
        per_district[district] = len(rows)
        for row in rows:
            per_province[row.province] += 1
    typer.echo(
        json.dumps(
            {"stats": index.stats(), "provinces": dict(per_province), "districts": per_district},
            ensure_ascii=False,
            indent=2,
        )
    )


@app.command()
def normalize(text: str = typer.Argument(..., help="District, constituency or party text.")) -> None:
    """Muestra las formas canónicas de un texto. / Show canonical forms for a text."""
    constituency = split_constituency(text)
    typer.echo(
        json.dumps(
            {
                "district": normalize_district(text),
                "constituency_district": normalize_district(extract_district(text)),
                "constituency": constituency.label if constituency else None,
                "party": normalize_party(text),
            },
            ensure_ascii=False,
            indent=2,
        )
    )


if __name__ == "__main__":
    app()
