#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# PGN records: a forgiving tag/movetext reader and the matching writer.
#
# Key conventions (explicit):
# - a record is (tags, movetext); movetext is every non-tag line joined with a trailing space each.
# - a new record starts only when a tag line arrives after some movetext was collected.
# - malformed tag lines are dropped silently; nothing here raises on bad input.
# - no move parsing, no legality checks, no variations.

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union


# ----------------------------
# Constants
# ----------------------------

# First "{" up to the first following "}"; nesting is not tracked.
COMMENT_RE = re.compile(r"\{[^}]*\}")


@dataclass
class Record:
    tags: Dict[str, str] = field(default_factory=dict)
    movetext: str = ""


# ----------------------------
# Reader
# ----------------------------

def remove_comments(movetext: str) -> str:
    return COMMENT_RE.sub("", movetext)


def _parse_tag_line(line: str) -> Optional[Tuple[str, str]]:
    inner = line.strip("[]")
    parts = inner.split(" ", 1)
    if len(parts) != 2:
        return None
    name, value = parts
    return name, value.strip('"')


def parse_pgn(text: str, strip_comments: bool = False) -> List[Record]:
    """Parse PGN text into records.

    Lines are split on "\\n" and stripped before inspection. A line starting
    with "[" is a tag; it closes the current record first if that record has
    movetext. Any other non-empty line is movetext. Blank lines are ignored.
    """
    records: List[Record] = []
    current = Record()

    def finalize() -> None:
        if strip_comments:
            current.movetext = remove_comments(current.movetext)
        records.append(current)

    for line in text.split("\n"):
        line = line.strip()

        if line.startswith("["):
            if current.movetext:
                finalize()
                current = Record()
            parsed = _parse_tag_line(line)
            if parsed is not None:
                name, value = parsed
                current.tags[name] = value
            continue

        if line:
            current.movetext += line + " "

    if current.movetext or current.tags:
        finalize()

    return records


# ----------------------------
# Writer
# ----------------------------

def format_pgn(records: Iterable[Record]) -> str:
    blocks: List[str] = []
    for rec in records:
        lines = [f'[{name} "{value}"]' for name, value in rec.tags.items()]
        lines.append(rec.movetext.strip())
        blocks.append("\n".join(lines) + "\n")
    return "\n".join(blocks)


def save_pgn(path: Union[str, Path], records: Iterable[Record]) -> None:
    """Write records to path ("-" for stdout), replacing any existing file.

    The text goes to a sibling .tmp file first; on failure the temporary file
    is removed and the error propagates.
    """
    text = format_pgn(records)

    if str(path) == "-":
        sys.stdout.write(text)
        sys.stdout.flush()
        return

    out_path = Path(path)
    tmp = out_path.with_name(out_path.name + ".tmp")
    try:
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(out_path)
    except OSError:
        if tmp.exists():
            os.remove(tmp)
        raise
