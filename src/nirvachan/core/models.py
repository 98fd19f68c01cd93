# Models Module
# AUTO-DOC-INDEX
#
# ES: Índice rápido
#   1) Registros de candidatos
#   2) Snapshot de votos en vivo
#
# EN: Quick index
#   1) Candidate records
#   2) Live vote snapshot

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from nirvachan.core.keys import ConstituencyKey


@dataclass(frozen=True)
class CandidateRecord:
    """Candidatos de un partido en una circunscripción.

    Attributes:
        constituency (ConstituencyKey): Distrito canónico y ordinal.
        party (str): Clave de partido.
        candidates (Tuple[str, ...]): Uno o más nombres (alianzas).
        province (str): Provincia propietaria.
        label (str): Etiqueta original de la fila ("Jhapa 1").

    English:
        Candidates fielded by one party in one constituency. Alliance seats
        can list more than one name.
    """

    constituency: ConstituencyKey
    party: str
    candidates: Tuple[str, ...]
    province: str
    label: str


@dataclass(frozen=True)
class ConstituencyRow:
    """Fila de despliegue por circunscripción. / Display row for one constituency."""

    constituency: ConstituencyKey
    province: str
    label: str
    records: Tuple[CandidateRecord, ...]

    def record_for(self, party: str) -> Optional[CandidateRecord]:
        for record in self.records:
            if record.party == party:
                return record
        return None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC con milisegundos y sufijo ``Z``. / ISO-8601 UTC, milliseconds, ``Z`` suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Snapshot:
    """Vista inmutable del conteo en vivo.

    Nunca se edita en sitio: el poller construye uno nuevo y reemplaza la
    referencia. ``touched`` solo mueve el timestamp y comparte ``votes``.

    English:
        Immutable view of the live tally. Never edited in place: the poller
        builds a new one and swaps the reference. ``touched`` only moves the
        timestamp and shares the same ``votes`` mapping.
    """

    fetched_at: datetime
    votes: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(cls, votes: Mapping[str, int], fetched_at: Optional[datetime] = None) -> "Snapshot":
        return cls(
            fetched_at=fetched_at or utc_now(),
            votes=MappingProxyType(dict(votes)),
        )

    @classmethod
    def empty(cls, fetched_at: Optional[datetime] = None) -> "Snapshot":
        return cls.build({}, fetched_at)

    def touched(self, fetched_at: Optional[datetime] = None) -> "Snapshot":
        return replace(self, fetched_at=fetched_at or utc_now())

    def to_dict(self) -> Dict[str, Any]:
        return {"fetchedAt": format_timestamp(self.fetched_at), "votes": dict(self.votes)}
