"""Huella determinista del conteo de votos. (Deterministic vote tally fingerprint.)"""

from __future__ import annotations

import hashlib
from typing import Mapping


def fingerprint_votes(votes: Mapping[str, int]) -> str:
    """Concatena ``clave:valor;`` sobre claves ordenadas.

    La igualdad de huellas es la única señal de cambio: no depende del orden
    de inserción, cualquier valor distinto la cambia.

    English:
        Concatenate ``key:value;`` over lexicographically sorted keys.
        Fingerprint equality is the sole change signal: insertion order does
        not matter, any differing value changes it.
    """
    return "".join(f"{key}:{votes[key]};" for key in sorted(votes))


def fingerprint_digest(fingerprint: str) -> str:
    """SHA-256 hex digest for compact log context. (Resumen SHA-256 para logs.)"""
    return hashlib.sha256(fingerprint.encode("utf-8")).hexdigest()
