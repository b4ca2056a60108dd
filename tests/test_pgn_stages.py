import sys
from pathlib import Path

import pytest

# Ensure project root (parent of tests/) is importable
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pgn_stages as st  # noqa: E402
from pgn_records import Record  # noqa: E402


def rec(**tags) -> Record:
    return Record(tags=dict(tags), movetext="1. e4 e5 * ")


@pytest.mark.parametrize("value", ["", "?", "??", "  ", " ? ? ", "\t?"])
def test_is_blank_value_true(value):
    assert st.is_blank_value(value)


@pytest.mark.parametrize("value", ["Carlsen", "1-0", "?x", "2024.??.??", "????.??.??"])
def test_is_blank_value_false(value):
    assert not st.is_blank_value(value)


def test_clean_empty_headers_removes_blank_tags_and_is_idempotent():
    r = rec(Event="?", Site="", Date="????.??.??", White="Tal", Round=" ", Annotator="??")
    st.clean_empty_headers(r)
    once = dict(r.tags)
    st.clean_empty_headers(r)
    # Dots are not blank characters, so an unknown date stays.
    assert once == {"White": "Tal", "Date": "????.??.??"}
    assert r.tags == once


def test_removal_fields_merges_with_defaults():
    assert st.removal_fields() == {"ECO", "PlyCount", "Variation"}
    assert st.removal_fields(["Annotator", "ECO"]) == {"ECO", "PlyCount", "Variation", "Annotator"}


def test_remove_fields_drops_named_tags_only():
    r = rec(ECO="C33", PlyCount="6", White="A", Annotator="X")
    names = st.removal_fields(["Annotator", "Missing"])
    st.remove_fields(r, names)
    assert r.tags == {"White": "A"}
    assert not names & set(r.tags)


def test_filter_playerless():
    games = [
        rec(Event="no players"),
        rec(White="?", Black=""),
        rec(White="Fischer", Black="?"),
        rec(White="Fischer"),
        rec(Black="Spassky"),
        rec(White="??"),
    ]
    kept = st.filter_playerless(games)
    assert [g.tags.get("White", g.tags.get("Black")) for g in kept] == ["Fischer", "Fischer", "Spassky"]
    assert len(games) == 6


@pytest.mark.parametrize(
    "date,year",
    [("1999.01.01", 1999), ("2010", 2010), ("????.??.??", None), ("", None), (None, None), ("19x9.01.01", None)],
)
def test_extract_year(date, year):
    assert st.extract_year(date) == year


def test_filter_by_year_examples():
    games = [rec(Date="1999.01.01"), rec(Date="2010.05.01"), rec(Date="????.??.??"), rec(Date="2021.01.01")]
    kept = st.filter_by_year(games, before=2000, after=2020, drop_yearless=False)
    assert [g.tags["Date"] for g in kept] == ["2010.05.01", "????.??.??"]


def test_filter_by_year_drop_yearless():
    games = [rec(Date="????.??.??"), rec(White="A"), rec(Date="1985.03.02")]
    kept = st.filter_by_year(games, drop_yearless=True)
    assert [g.tags.get("Date") for g in kept] == ["1985.03.02"]


def test_filter_by_year_bounds_are_inclusive():
    games = [rec(Date="2000.01.01"), rec(Date="2020.12.31")]
    assert len(st.filter_by_year(games, before=2000, after=2020)) == 2


@pytest.mark.parametrize(
    "value,elo",
    [
        ("1500", 1500),
        ("+2100", 2100),
        ("?", None),
        ("", None),
        (" 1500", None),
        ("1500\n", None),
        ("1_500", None),
        ("9223372036854775807", 2 ** 63 - 1),
        ("9223372036854775808", None),
        ("-9223372036854775809", None),
        (None, None),
    ],
)
def test_parse_elo(value, elo):
    assert st.parse_elo(value) == elo


def test_filter_by_elo_examples():
    low = rec(WhiteElo="1500")
    strong = rec(WhiteElo="2500", BlackElo="2600")
    unknown = rec(WhiteElo="?")
    kept = st.filter_by_elo([low, strong, unknown], below=2000, above=0, drop_eloless=False)
    assert kept == [strong, unknown]


def test_filter_by_elo_checks_each_side():
    games = [
        rec(WhiteElo="2500", BlackElo="1900"),
        rec(WhiteElo="2500", BlackElo="2900"),
        rec(WhiteElo="2500", BlackElo="?"),
    ]
    assert st.filter_by_elo(games, below=2000) == [games[1], games[2]]
    assert st.filter_by_elo(games, above=2800) == [games[0], games[2]]
    assert st.filter_by_elo(games, drop_eloless=True) == [games[0], games[1]]


def test_run_pipeline_default_order_and_counts():
    games = [
        rec(White="A", Black="B", Event="?", ECO="B01"),
        rec(White="?", Black="?"),
        rec(Event="x"),
    ]
    out, results = st.run_pipeline(games, st.PipelineOptions())
    assert [r.name for r in results] == ["clean_empty_headers", "playerless"]
    assert results[1].removed == 2
    assert len(out) == 1
    # Without extra fields the defaults are left alone.
    assert out[0].tags == {"White": "A", "Black": "B", "ECO": "B01"}


def test_run_pipeline_all_stages():
    games = [
        rec(White="A", Black="B", Date="2005.01.01", WhiteElo="2400", BlackElo="2450", ECO="B01", Annotator="Z"),
        rec(White="C", Black="D", Date="1990.01.01", WhiteElo="2400", BlackElo="2450"),
        rec(White="E", Black="F", Date="2006.01.01", WhiteElo="1800", BlackElo="2450"),
        rec(White="G", Black="H", Date="????.??.??"),
    ]
    opts = st.PipelineOptions(
        extra_fields=("Annotator",),
        year_before=2000,
        drop_yearless=True,
        elo_below=2000,
    )
    out, results = st.run_pipeline(games, opts)
    assert [r.name for r in results] == [
        "remove_fields",
        "clean_empty_headers",
        "playerless",
        "year_range",
        "elo_range",
    ]
    assert [r.removed for r in results] == [0, 0, 0, 2, 1]
    assert len(out) == 1
    assert "ECO" not in out[0].tags and "Annotator" not in out[0].tags


def test_run_pipeline_opt_outs():
    games = [rec(White="?", Black="?", Event="")]
    opts = st.PipelineOptions(keep_empty=True, keep_playerless=True)
    out, results = st.run_pipeline(games, opts)
    assert results == []
    assert out[0].tags == {"White": "?", "Black": "?", "Event": ""}


def test_header_cleanup_runs_before_player_check():
    # Blank names are deleted first, so the game has no players left.
    games = [rec(White=" ", Black="?")]
    out, _ = st.run_pipeline(games, st.PipelineOptions())
    assert out == []


def test_out_of_range_numbers_count_as_missing():
    huge = "99999999999999999999"
    games = [rec(Date=huge + ".01.01"), rec(WhiteElo=huge, BlackElo="2500")]
    assert st.filter_by_year(games[:1], after=2020) == games[:1]
    assert st.filter_by_year(games[:1], drop_yearless=True) == []
    assert st.filter_by_elo(games[1:], above=3000) == games[1:]
    assert st.filter_by_elo(games[1:], drop_eloless=True) == []
