"""Esquemas y carga de los archivos de referencia generados fuera de proceso.

Schemas and loaders for the reference files produced out of process
(candidate table and party-symbol mapping).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from nirvachan.core.joiner import CandidateIndex, build_candidate_index
from nirvachan.core.keys import PARTY_FULL_NAMES

logger = structlog.get_logger(__name__)


class ReferenceDataError(Exception):
    """Archivo de referencia ilegible o con esquema inválido.

    English: Reference file is unreadable or fails schema validation.
    """


class ReferenceData(BaseModel):
    """``{source, fetchedAt, provinces: {label: [row, ...]}}``.

    Province groups are left untyped: a malformed group is skipped by the
    index builder instead of rejecting the whole file.
    """

    model_config = ConfigDict(populate_by_name=True)

    source: str = ""
    fetched_at: Optional[Any] = Field(default=None, alias="fetchedAt")
    provinces: Dict[str, Any] = Field(default_factory=dict)

    def build_index(self) -> CandidateIndex:
        return build_candidate_index(self.provinces, source=self.source)


class PartySymbols(BaseModel):
    """``{source, fetchedAt, symbols: {full party name: image path}}``."""

    model_config = ConfigDict(populate_by_name=True)

    source: str = ""
    fetched_at: Optional[str] = Field(default=None, alias="fetchedAt")
    symbols: Dict[str, str] = Field(default_factory=dict)


def _read_json(path: Path) -> Optional[Any]:
    if not path.exists():
        logger.info("reference_file_missing", path=str(path))
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ReferenceDataError(f"Cannot read reference file {path}: {exc}") from exc


def load_reference(path: Path) -> ReferenceData:
    """Carga la tabla de candidatos; archivo ausente => documento vacío.

    English:
        Load the candidate table. A missing file yields an empty document
        (zero candidates is a valid state); malformed content raises
        :class:`ReferenceDataError`.
    """
    payload = _read_json(Path(path))
    if payload is None:
        return ReferenceData()
    try:
        return ReferenceData.model_validate(payload)
    except ValidationError as exc:
        raise ReferenceDataError(f"Invalid reference file {path}: {exc}") from exc


def load_party_symbols(path: Path) -> PartySymbols:
    payload = _read_json(Path(path))
    if payload is None:
        return PartySymbols()
    try:
        return PartySymbols.model_validate(payload)
    except ValidationError as exc:
        raise ReferenceDataError(f"Invalid party symbols file {path}: {exc}") from exc


def symbol_for_party(symbols: Mapping[str, str] | PartySymbols, party_key: str) -> Optional[str]:
    """/** Ruta del símbolo de un partido vía su nombre completo. / Symbol path via the full party name. **/"""
    mapping = symbols.symbols if isinstance(symbols, PartySymbols) else symbols
    full_name = PARTY_FULL_NAMES.get(party_key, party_key)
    if not full_name:
        return None
    return mapping.get(full_name)
