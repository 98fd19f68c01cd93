"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `conftest.py`.
Fixtures compartidos de Nirvachan: bloqueo de red, entorno limpio y tabla
de referencia de ejemplo.

Componentes detectados:
  - block_network
  - clean_env
  - reference_payload

Notas:
- Mantener esta cabecera sincronizada con cambios estructurales del archivo.

======================== ENGLISH ========================
File: `conftest.py`.
Shared Nirvachan fixtures: network blocking, a clean environment and a
sample reference table.

Detected components:
  - block_network
  - clean_env
  - reference_payload

Notes:
- Keep this header in sync with structural changes in the file.
"""

from __future__ import annotations

import socket
from typing import Any, Dict

import pytest

SETTINGS_ENV_VARS = (
    "ECN_API_URL",
    "ECN_REFERER",
    "ECN_COOKIE",
    "POLL_INTERVAL_SECONDS",
    "FEED_TIMEOUT_SECONDS",
    "LOG_LEVEL",
    "LOG_DIR",
    "REFERENCE_PATH",
    "SYMBOLS_PATH",
    "API_HOST",
    "API_PORT",
    "CORS_ORIGINS",
    "API_RATE_LIMIT",
)


@pytest.fixture(autouse=True)
def block_network(monkeypatch: pytest.MonkeyPatch) -> None:
    """Impide conexiones de red reales en tests.

    English:
        Prevents real network connections in tests.
    """

    def guarded_connect(*args: Any, **kwargs: Any) -> None:
        raise RuntimeError("Network access is disabled during tests.")

    def guarded_create_connection(*args: Any, **kwargs: Any) -> None:
        raise RuntimeError("Network access is disabled during tests.")

    monkeypatch.setattr(socket.socket, "connect", guarded_connect, raising=True)
    monkeypatch.setattr(socket, "create_connection", guarded_create_connection, raising=True)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Aísla la configuración del entorno del desarrollador.

    English: Isolate settings from the developer's environment and .env file.
    """
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def reference_payload() -> Dict[str, Any]:
    return {
        "source": "https://en.wikipedia.org/wiki/2026_Nepalese_general_election",
        "fetchedAt": "2026-02-20T08:00:00.000Z",
        "provinces": {
            "Koshi Province": [
                {"Constituency": "Constituency", "Congress": "Congress", "UML": "UML"},
                {"Constituency": "Jhapa 1", "Congress": "A. Sharma", "UML": "B. Thapa"},
                {"Constituency": "Jhapa 2", "Congress": "C. Karki", "RSP": "D. Rai"},
            ],
            "Lumbini": [
                {"Constituency": "Eastern Rukum 1", "NCP": "E. Pun", "UML": "-"},
            ],
        },
    }
