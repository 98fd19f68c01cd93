"""Pruebas del índice de candidatos.

Tests for the candidate joiner: row filter, column detection, sanitization,
name splitting and index construction.
"""

import pytest

from nirvachan.core.joiner import (
    SPLIT_STRATEGIES,
    build_candidate_index,
    detect_party_columns,
    is_candidate_row,
    sanitize_value,
    split_candidate_names,
)
from nirvachan.core.keys import ConstituencyKey


@pytest.mark.parametrize(
    ("row", "expected"),
    [
        ({"Constituency": "Jhapa 1"}, True),
        ({"Constituency": "Jhapa-2 "}, True),
        ({"Constituency": ""}, False),
        ({"Constituency": "Constituency"}, False),
        ({"Constituency": "Outgoing MP"}, False),
        ({"Congress": "A"}, False),
        ({"Constituency No.": "Ilam 2"}, True),
    ],
)
def test_is_candidate_row(row, expected):
    assert is_candidate_row(row) is expected


def test_detect_party_columns_uses_enumeration_order():
    row = {"Constituency": "Jhapa 1", "UML": "B", "Congress": "A", "Notes": "x"}
    assert detect_party_columns(row) == ["Congress", "UML"]


def test_detect_party_columns_falls_back_on_schema_drift():
    row = {"Constituency": "Jhapa 1", "Province": "Koshi", "Nepali Congress": "A", "CPN (UML)": "B"}
    assert detect_party_columns(row) == ["Nepali Congress", "CPN (UML)"]


def test_sanitize_value_strips_leaked_stylesheet():
    raw = ".mw-parser-output .plainlist ol{margin:0;padding:0}.mw-parser-output .x{color:red} Ram Bahadur"
    assert sanitize_value(raw) == "Ram Bahadur"


def test_sanitize_value_handles_dashes_and_punctuation():
    assert sanitize_value("-") == ""
    assert sanitize_value(" — ") == ""
    assert sanitize_value("Ram {x}  Thapa") == "Ram x Thapa"
    assert sanitize_value(None) == ""


def test_sanitize_value_keeps_line_breaks_for_splitting():
    assert sanitize_value("Ram Thapa \n  Sita Rai") == "Ram Thapa\nSita Rai"


def test_split_strategy_order():
    assert [strategy.name for strategy in SPLIT_STRATEGIES] == [
        "line_break",
        "break_tag",
        "parenthetical",
        "delimiter•",
        "delimiter;",
        "delimiter|",
        "comma_capital",
    ]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Ram Thapa\nSita Rai", ["Ram Thapa", "Sita Rai"]),
        ("Ram Thapa<br/>Sita Rai<BR>Hari KC", ["Ram Thapa", "Sita Rai", "Hari KC"]),
        ("Ram Thapa (NC) Sita Rai (UML)", ["Ram Thapa (NC)", "Sita Rai (UML)"]),
        ("Ram Thapa (NC), Sita Rai (UML)", ["Ram Thapa (NC)", "Sita Rai (UML)"]),
        ("Ram Thapa • Sita Rai", ["Ram Thapa", "Sita Rai"]),
        ("Ram Thapa ; Sita Rai", ["Ram Thapa", "Sita Rai"]),
        ("Ram Thapa | Sita Rai", ["Ram Thapa", "Sita Rai"]),
        ("Ram Thapa, Sita Rai", ["Ram Thapa", "Sita Rai"]),
        ("Ram Thapa, jr.", ["Ram Thapa, jr."]),
        ("Ram Thapa (NC)", ["Ram Thapa (NC)"]),
        ("A. Sharma", ["A. Sharma"]),
        ("", []),
    ],
)
def test_split_candidate_names_branches(value, expected):
    assert split_candidate_names(value) == expected


def test_line_break_wins_over_later_strategies():
    assert split_candidate_names("Ram, Thapa\nSita | Rai") == ["Ram, Thapa", "Sita | Rai"]


def _reference():
    return {
        "Koshi Province": [
            {"Constituency": "Constituency", "Congress": "Congress", "UML": "UML"},
            {"Constituency": "Jhapa 2", "Congress": "C. Karki", "UML": "-"},
            {"Constituency": "Jhapa 1", "Congress": "A. Sharma", "UML": "B. Thapa"},
            {"Constituency": "Outgoing MP", "Congress": "Someone"},
            "not a row",
        ],
        "Lumbini": [
            {"Constituency": "Eastern Rukum 1", "NCP": "D. Oli\nE. Pun", "Others": "F. Gurung"},
        ],
    }


def test_build_candidate_index_keys_records_by_constituency_and_party():
    index = build_candidate_index(_reference())

    record = index.get(ConstituencyKey("Jhapa", 1), "Congress")
    assert record is not None
    assert record.candidates == ("A. Sharma",)
    assert record.province == "Koshi Province"
    assert index.get(ConstituencyKey("Jhapa", 2), "UML") is None

    alliance = index.get(ConstituencyKey("Eastern Rukum", 1), "NCP")
    assert alliance.candidates == ("D. Oli", "E. Pun")
    assert alliance.province == "Lumbini Province"


def test_district_rows_are_sorted_and_lookup_accepts_any_spelling():
    index = build_candidate_index(_reference())

    rows = index.district_rows("झापा")
    assert [row.constituency.ordinal for row in rows] == [1, 2]
    assert [record.party for record in rows[0].records] == ["Congress", "UML"]
    assert index.district_rows("Rukum East")[0].label == "Eastern Rukum 1"
    assert index.district_rows("jhapa") == rows


def test_index_stats_and_diagnostics():
    index = build_candidate_index(_reference())
    stats = index.stats()

    assert stats["constituencies"] == 3
    assert stats["districts"] == 2
    assert stats["provinces"] == 2
    assert stats["skipped_rows"] == 3
    assert len(index) == 5
    assert index.districts() == ["Eastern Rukum", "Jhapa"]
    assert index.district_rows("Nowhere") == ()
    assert index.similar_districts("Rukum") == ["Eastern Rukum"]


def test_duplicate_constituency_rows_keep_first():
    index = build_candidate_index(
        {"Koshi": [{"Constituency": "Ilam 1", "RSP": "X"}, {"Constituency": "Ilam 1", "RSP": "Y"}]}
    )
    assert index.get(ConstituencyKey("Ilam", 1), "RSP").candidates == ("X",)
    assert index.stats()["skipped_rows"] == 1


def test_fallback_columns_resolve_through_party_rules():
    index = build_candidate_index(
        {"Koshi": [{"Constituency": "Ilam 1", "Nepali Congress": "A", "Loktantrik": "B", "Independent": "C"}]}
    )
    assert index.get(ConstituencyKey("Ilam", 1), "Congress").candidates == ("A",)
    assert index.get(ConstituencyKey("Ilam", 1), "Others").candidates == ("B", "C")


def test_empty_reference_yields_empty_index():
    index = build_candidate_index({})
    assert len(index) == 0
    assert index.districts() == []
    assert index.stats()["constituencies"] == 0


def test_votes_for_uses_flattened_key():
    index = build_candidate_index(_reference())
    record = index.get(ConstituencyKey("Jhapa", 1), "UML")
    assert index.votes_for(record, {"Jhapa-1|UML": 4821}) == 4821
    assert index.votes_for(record, {}) is None
