#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Cleanup and filter stages applied to parsed PGN records.
#
# Key conventions (explicit):
# - header cleanup and field removal mutate record.tags in place.
# - the other stages return a new list and never touch the input list.
# - "before"/"after" year bounds keep the historical naming: before=N keeps years >= N,
#   after=N keeps years <= N.
# - a year or Elo that does not parse is "missing", never an error.

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from pgn_records import Record


# ----------------------------
# Constants
# ----------------------------

DEFAULT_REMOVED_FIELDS: Tuple[str, ...] = ("ECO", "PlyCount", "Variation")

BLANK_VALUE_RE = re.compile(r"^[\s?]*$")
INT_RE = re.compile(r"[+-]?[0-9]+")

# Values outside the signed 64-bit range count as missing.
INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1


def is_blank_value(value: str) -> bool:
    return BLANK_VALUE_RE.match(value.strip()) is not None


def _int_or_none(value: Optional[str]) -> Optional[int]:
    if not value or not INT_RE.fullmatch(value):
        return None
    n = int(value)
    if not INT_MIN <= n <= INT_MAX:
        return None
    return n


# ----------------------------
# In-place tag stages
# ----------------------------

def clean_empty_headers(record: Record) -> Record:
    for name in [k for k, v in record.tags.items() if is_blank_value(v)]:
        del record.tags[name]
    return record


def removal_fields(extra: Iterable[str] = ()) -> Set[str]:
    """Default annotation tags plus any caller-supplied names."""
    return set(DEFAULT_REMOVED_FIELDS) | {name for name in extra if name}


def remove_fields(record: Record, field_names: Iterable[str]) -> Record:
    for name in field_names:
        record.tags.pop(name, None)
    return record


# ----------------------------
# Filters
# ----------------------------

def has_players(record: Record) -> bool:
    # A missing side counts as blank.
    white = record.tags.get("White", "")
    black = record.tags.get("Black", "")
    return not (is_blank_value(white) and is_blank_value(black))


def filter_playerless(records: Iterable[Record]) -> List[Record]:
    return [rec for rec in records if has_players(rec)]


def extract_year(date: Optional[str]) -> Optional[int]:
    if date is None:
        return None
    return _int_or_none(date.split(".", 1)[0])


def year_in_range(record: Record, before: int, after: int, drop_yearless: bool) -> bool:
    year = extract_year(record.tags.get("Date"))
    if year is None:
        return not drop_yearless
    if before and year < before:
        return False
    if after and year > after:
        return False
    return True


def filter_by_year(
    records: Iterable[Record], before: int = 0, after: int = 0, drop_yearless: bool = False
) -> List[Record]:
    return [rec for rec in records if year_in_range(rec, before, after, drop_yearless)]


def parse_elo(value: Optional[str]) -> Optional[int]:
    return _int_or_none(value)


def elo_in_range(record: Record, below: int, above: int, drop_eloless: bool) -> bool:
    elos = [parse_elo(record.tags.get("WhiteElo")), parse_elo(record.tags.get("BlackElo"))]
    if drop_eloless and None in elos:
        return False
    known = [e for e in elos if e is not None]
    if below and any(e < below for e in known):
        return False
    if above and any(e > above for e in known):
        return False
    return True


def filter_by_elo(
    records: Iterable[Record], below: int = 0, above: int = 0, drop_eloless: bool = False
) -> List[Record]:
    return [rec for rec in records if elo_in_range(rec, below, above, drop_eloless)]


# ----------------------------
# Pipeline
# ----------------------------

@dataclass
class PipelineOptions:
    keep_empty: bool = False
    extra_fields: Sequence[str] = field(default_factory=tuple)
    keep_playerless: bool = False

    year_before: int = 0
    year_after: int = 0
    drop_yearless: bool = False

    elo_below: int = 0
    elo_above: int = 0
    drop_eloless: bool = False

    @property
    def year_filter_active(self) -> bool:
        return bool(self.year_before or self.year_after or self.drop_yearless)

    @property
    def elo_filter_active(self) -> bool:
        return bool(self.elo_below or self.elo_above or self.drop_eloless)


@dataclass
class StageResult:
    name: str
    before: int
    after: int

    @property
    def removed(self) -> int:
        return self.before - self.after


def run_pipeline(
    records: List[Record], options: PipelineOptions
) -> Tuple[List[Record], List[StageResult]]:
    """Run the stages in their fixed order and report the ones that ran.

    Order: field removal, header cleanup, player presence, year, Elo.
    Field removal only runs when extra field names were given; the default
    annotation tags are then removed along with them.
    """
    results: List[StageResult] = []

    if options.extra_fields:
        names = removal_fields(options.extra_fields)
        for rec in records:
            remove_fields(rec, names)
        results.append(StageResult("remove_fields", len(records), len(records)))

    if not options.keep_empty:
        for rec in records:
            clean_empty_headers(rec)
        results.append(StageResult("clean_empty_headers", len(records), len(records)))

    if not options.keep_playerless:
        n = len(records)
        records = filter_playerless(records)
        results.append(StageResult("playerless", n, len(records)))

    if options.year_filter_active:
        n = len(records)
        records = filter_by_year(records, options.year_before, options.year_after, options.drop_yearless)
        results.append(StageResult("year_range", n, len(records)))

    if options.elo_filter_active:
        n = len(records)
        records = filter_by_elo(records, options.elo_below, options.elo_above, options.drop_eloless)
        results.append(StageResult("elo_range", n, len(records)))

    return records, results
