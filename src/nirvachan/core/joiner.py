"""Índice de candidatos por distrito y circunscripción.

Candidate index keyed by district and constituency, built from the loosely
typed reference table (grouped by province).
"""

from __future__ import annotations

import re
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

import structlog

from nirvachan.core.keys import PARTY_KEYS, PARTY_ORDER, ConstituencyKey, vote_key
from nirvachan.core.models import CandidateRecord, ConstituencyRow
from nirvachan.core.normalize import (
    constituency_number,
    normalize_district,
    normalize_party,
    normalize_province,
    split_constituency,
)

logger = structlog.get_logger(__name__)

CONSTITUENCY_COLUMN = "Constituency"
PROVINCE_COLUMN = "Province"
RESERVED_COLUMNS = frozenset({CONSTITUENCY_COLUMN, PROVINCE_COLUMN})

# Fragmento CSS que Wikipedia filtra en algunas celdas / CSS that leaks into some cells.
STYLESHEET_MARKER = ".mw-parser-output"
EMPTY_MARKERS = frozenset({"-", "—", "–"})
TEXT_DELIMITERS = (" • ", " ; ", " | ")

_ENDS_IN_NUMBER_RE = re.compile(r"\d+\s*$")
_MARKUP_PUNCTUATION_RE = re.compile(r"[{};]")
_BREAK_TAG_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_PAREN_SEGMENT_RE = re.compile(r"[^()]+?\([^)]*\)")
_COMMA_CAPITAL_RE = re.compile(r",\s*[A-Z]")
_SEGMENT_STRIP = " ,;•|"


def _collapse_whitespace(text: str) -> str:
    """Colapsa espacios; una corrida con salto de línea queda como ``\\n``."""
    return re.sub(r"\s+", lambda match: "\n" if "\n" in match.group(0) else " ", text).strip()


def _constituency_field(row: Mapping[str, Any]) -> str:
    value = row.get(CONSTITUENCY_COLUMN)
    if value is None:
        for column, candidate in row.items():
            if "constituen" in str(column).lower():
                value = candidate
                break
    return str(value if value is not None else "").strip()


def is_candidate_row(row: Mapping[str, Any]) -> bool:
    """Filtra filas de metadatos o notas incrustadas en la tabla.

    English:
        A candidate row has a non-empty constituency label that is not the
        header text and ends in a numeral (drops "Outgoing MP" style rows).
    """
    label = _constituency_field(row)
    if not label or label.lower() == "constituency":
        return False
    return bool(_ENDS_IN_NUMBER_RE.search(label))


def detect_party_columns(row: Mapping[str, Any]) -> List[str]:
    """Party columns in display order; every non-reserved column on schema drift."""
    columns = [str(column) for column in row.keys()]
    present = [party for party in PARTY_ORDER if party in columns]
    if present:
        return present
    return [
        column
        for column in columns
        if column not in RESERVED_COLUMNS and "constituen" not in column.lower()
    ]


def sanitize_value(raw: Any) -> str:
    """/** Limpia una celda: CSS filtrado, puntuación de markup, espacios. / Clean one cell. **/"""
    text = str(raw if raw is not None else "").strip()
    if not text:
        return ""
    if STYLESHEET_MARKER in text:
        last_brace = text.rfind("}")
        if last_brace != -1:
            text = text[last_brace + 1 :]
    text = _collapse_whitespace(_MARKUP_PUNCTUATION_RE.sub(" ", text))
    if text in EMPTY_MARKERS:
        return ""
    return text


def clean_row_values(row: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        str(column): sanitize_value(value) if isinstance(value, str) else value
        for column, value in row.items()
    }


def _split_on(pattern: str) -> Callable[[str], List[str]]:
    return lambda text: text.split(pattern)


class SplitStrategy(NamedTuple):
    """Estrategia de separación de nombres. / Candidate-name splitting strategy."""

    name: str
    applies: Callable[[str], bool]
    split: Callable[[str], List[str]]


SPLIT_STRATEGIES: Tuple[SplitStrategy, ...] = (
    SplitStrategy("line_break", lambda text: "\n" in text, lambda text: text.split("\n")),
    SplitStrategy(
        "break_tag",
        lambda text: bool(_BREAK_TAG_RE.search(text)),
        lambda text: _BREAK_TAG_RE.sub("\n", text).split("\n"),
    ),
    SplitStrategy(
        "parenthetical",
        lambda text: len(_PAREN_SEGMENT_RE.findall(text)) >= 2,
        lambda text: [segment.strip(_SEGMENT_STRIP) for segment in _PAREN_SEGMENT_RE.findall(text)],
    ),
    *(
        SplitStrategy(f"delimiter{delimiter.strip()}", lambda text, d=delimiter: d in text, _split_on(delimiter))
        for delimiter in TEXT_DELIMITERS
    ),
    SplitStrategy(
        "comma_capital",
        lambda text: "," in text and bool(_COMMA_CAPITAL_RE.search(text)),
        _split_on(","),
    ),
)


def split_candidate_names(value: Any) -> List[str]:
    """Separa una celda con varios candidatos (escaños de alianza).

    Las estrategias se prueban en orden y gana la primera aplicable; si
    ninguna aplica la celda completa es un solo candidato.

    English:
        Split a cell listing several alliance candidates. Strategies are
        tried in order (line breaks, ``<br>`` tags, two or more
        ``"name (affil)"`` groups, fixed delimiters, comma followed by a
        capital) and the first applicable one wins; otherwise the whole cell
        is one candidate.
    """
    text = _collapse_whitespace(str(value if value is not None else ""))
    if not text:
        return []
    for strategy in SPLIT_STRATEGIES:
        if strategy.applies(text):
            names = [name.strip() for name in strategy.split(text)]
            return [name for name in names if name]
    return [text]


class CandidateIndex:
    """Índice inmutable de candidatos. / Read-only candidate index."""

    def __init__(
        self,
        rows: Iterable[ConstituencyRow],
        *,
        skipped_rows: int = 0,
        source: str = "",
    ) -> None:
        by_district: Dict[str, List[ConstituencyRow]] = defaultdict(list)
        records: Dict[Tuple[ConstituencyKey, str], CandidateRecord] = {}
        for row in rows:
            by_district[row.constituency.district.casefold()].append(row)
            for record in row.records:
                records[(record.constituency, record.party)] = record
        for district_rows in by_district.values():
            district_rows.sort(key=lambda item: constituency_number(item.label))
        self._by_district = {key: tuple(value) for key, value in by_district.items()}
        self._records = records
        self.skipped_rows = skipped_rows
        self.source = source

    def __len__(self) -> int:
        return len(self._records)

    def get(self, constituency: ConstituencyKey, party: str) -> Optional[CandidateRecord]:
        return self._records.get((constituency, party))

    def district_rows(self, district: Any) -> Tuple[ConstituencyRow, ...]:
        """Rows for a district given in any source's spelling; empty when unknown."""
        return self._by_district.get(normalize_district(district).casefold(), ())

    def districts(self) -> List[str]:
        return sorted(rows[0].constituency.district for rows in self._by_district.values() if rows)

    def similar_districts(self, district: Any, limit: int = 10) -> List[str]:
        """Diagnóstico para búsquedas vacías. / Diagnostics for an empty lookup."""
        needle = normalize_district(district).casefold()
        if not needle:
            return []
        matches = [
            rows[0].constituency.district
            for key, rows in self._by_district.items()
            if rows and (needle in key or key in needle)
        ]
        return sorted(matches)[:limit]

    @staticmethod
    def votes_for(record: CandidateRecord, votes: Mapping[str, int]) -> Optional[int]:
        """Live votes for a record, ``None`` when the feed has no such key."""
        key = vote_key(record.constituency.district, record.constituency.ordinal, record.party)
        return votes.get(key)

    def stats(self) -> Dict[str, int]:
        constituencies = sum(len(rows) for rows in self._by_district.values())
        provinces = {row.province for rows in self._by_district.values() for row in rows}
        return {
            "provinces": len(provinces),
            "districts": len(self._by_district),
            "constituencies": constituencies,
            "records": len(self._records),
            "skipped_rows": self.skipped_rows,
        }


def _build_records(
    key: ConstituencyKey,
    row: Mapping[str, Any],
    province: str,
    label: str,
) -> Tuple[CandidateRecord, ...]:
    names_by_party: Dict[str, List[str]] = {}
    for column in detect_party_columns(row):
        names = split_candidate_names(row.get(column))
        if not names:
            continue
        party = column if column in PARTY_KEYS else normalize_party(column)
        names_by_party.setdefault(party, []).extend(names)
    return tuple(
        CandidateRecord(
            constituency=key,
            party=party,
            candidates=tuple(names),
            province=province,
            label=label,
        )
        for party, names in names_by_party.items()
    )


def build_candidate_index(
    provinces: Mapping[str, Sequence[Any]],
    *,
    source: str = "",
) -> CandidateIndex:
    """Construye el índice de candidatos desde la tabla de referencia.

    Las filas mal formadas se omiten y se registran; la ausencia de datos
    produce un índice vacío, que es un estado válido.

    English:
        Build the candidate index from the reference table. Malformed rows
        are skipped and logged; missing data yields an empty index, which is
        a valid, displayable state.
    """
    rows: List[ConstituencyRow] = []
    seen: set[ConstituencyKey] = set()
    skipped = 0

    for province_label, province_rows in (provinces or {}).items():
        province = normalize_province(province_label)
        if not isinstance(province_rows, (list, tuple)):
            logger.warning("reference_province_malformed", province=province)
            continue
        for position, raw_row in enumerate(province_rows):
            if not isinstance(raw_row, Mapping) or not is_candidate_row(raw_row):
                skipped += 1
                continue
            label = _constituency_field(raw_row)
            key = split_constituency(label)
            if key is None:
                skipped += 1
                logger.debug("reference_row_unparseable", province=province, position=position, label=label)
                continue
            if key in seen:
                skipped += 1
                logger.warning("reference_row_duplicate", province=province, constituency=key.label)
                continue
            seen.add(key)
            cleaned = clean_row_values(raw_row)
            rows.append(
                ConstituencyRow(
                    constituency=key,
                    province=province,
                    label=label,
                    records=_build_records(key, cleaned, province, label),
                )
            )

    index = CandidateIndex(rows, skipped_rows=skipped, source=source)
    logger.info("candidate_index_built", **index.stats())
    return index
