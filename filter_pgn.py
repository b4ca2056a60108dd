#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# filter_pgn.py
# -----------------------------------------------------------------------------
# Clean up a PGN database: drop incomplete games, strip empty or unwanted
# headers, filter by year and Elo range, optionally remove {comments}.
#
# Usage:
#   python filter_pgn.py games.pgn -o clean.pgn --filter-elo-below 2000
#   python filter_pgn.py --concat archive/ -o all.pgn --remove-comments
#
# Notes:
# - Everything is done in memory, in one pass.
# - .zst inputs (Lichess dumps) are decompressed transparently.
# - Progress goes to stderr; the PGN goes to --output ("-" for stdout).
# -----------------------------------------------------------------------------

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

import zstandard as zstd

from pgn_records import parse_pgn, save_pgn
from pgn_stages import PipelineOptions, removal_fields, run_pipeline


# ----------------------------
# Configuration & Constants
# ----------------------------

DEFAULT_OUTPUT = "output.pgn"
PGN_EXTENSIONS = (".pgn", ".pgn.zst")
FILE_SEPARATOR = b"\n\n"

STAGE_MESSAGES = {
    "remove_fields": "removed fields {fields} from {after} games",
    "clean_empty_headers": "cleaned empty headers in {after} games",
    "playerless": "removed {removed} game(s) without player names",
    "year_range": "filtered out {removed} game(s) by year range",
    "elo_range": "filtered out {removed} game(s) by Elo range",
}


def log(msg: str, quiet: bool = False) -> None:
    if not quiet:
        print(msg, file=sys.stderr, flush=True)


# ----------------------------
# Input
# ----------------------------

def is_pgn_file(path: Path) -> bool:
    return path.name.endswith(PGN_EXTENSIONS)


def find_pgn_files(root: Union[str, Path]) -> Iterator[Path]:
    """Yield every PGN file under root, walking entries in lexical order.

    Symlinked directories are not descended into; symlinked files are kept.
    """
    root = Path(root)
    if not root.exists():
        raise FileNotFoundError(f"No such file or directory: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")
    for entry in sorted(root.iterdir()):
        if entry.is_symlink() and entry.is_dir():
            continue
        if entry.is_dir():
            yield from find_pgn_files(entry)
        elif entry.is_file() and is_pgn_file(entry):
            yield entry


def read_pgn_bytes(path: Union[str, Path]) -> bytes:
    if str(path) == "-":
        return sys.stdin.buffer.read()
    path = Path(path)
    with open(path, "rb") as fh:
        if path.suffix != ".zst":
            return fh.read()
        dctx = zstd.ZstdDecompressor()
        with dctx.stream_reader(fh) as reader:
            return reader.read()


def concatenate_pgn_files(paths: Sequence[Path]) -> bytes:
    chunks: List[bytes] = []
    for p in paths:
        chunks.append(read_pgn_bytes(p))
        chunks.append(FILE_SEPARATOR)
    return b"".join(chunks)


def decode_pgn(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


# ----------------------------
# CLI
# ----------------------------

def _split_fields(values: Optional[List[str]]) -> List[str]:
    out: List[str] = []
    for v in values or []:
        out.extend(name.strip() for name in v.split(",") if name.strip())
    return out


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Filter and clean up a PGN database.")
    ap.add_argument("input", help="Input PGN file ('-' for stdin), or a directory with --concat.")
    ap.add_argument("-o", "--output", default=DEFAULT_OUTPUT, help="Output PGN file ('-' for stdout).")
    ap.add_argument(
        "-e", "--keep-empty", action="store_true",
        help="Keep headers that are empty or contain only question marks or whitespace.",
    )
    ap.add_argument(
        "-r", "--remove-field", dest="remove_fields", action="append", default=[],
        help="Comma-separated fields to remove (repeatable). ECO, PlyCount and Variation are removed too.",
    )
    ap.add_argument("--filter-before", type=int, default=0, help="Filter out games before this year.")
    ap.add_argument("--filter-after", type=int, default=0, help="Filter out games after this year.")
    ap.add_argument("--filter-yearless-games", action="store_true", help="Filter out games without a year.")
    ap.add_argument("--filter-elo-below", type=int, default=0, help="Filter out games with an Elo below this value.")
    ap.add_argument("--filter-elo-above", type=int, default=0, help="Filter out games with an Elo above this value.")
    ap.add_argument("--filter-eloless-games", action="store_true", help="Filter out games missing an Elo.")
    ap.add_argument(
        "-k", "--keep-playerless-games", action="store_true",
        help="Keep games where both players are unknown.",
    )
    ap.add_argument("--remove-comments", action="store_true", help="Remove {comments} from the moves.")
    ap.add_argument(
        "-c", "--concat", action="store_true",
        help="Recursively search the input directory for PGN files and concatenate them.",
    )
    ap.add_argument("-q", "--quiet", action="store_true", help="Only report errors.")
    args = ap.parse_args(argv)
    args.remove_fields = _split_fields(args.remove_fields)
    return args


def options_from_args(args: argparse.Namespace) -> PipelineOptions:
    return PipelineOptions(
        keep_empty=args.keep_empty,
        extra_fields=tuple(args.remove_fields),
        keep_playerless=args.keep_playerless_games,
        year_before=args.filter_before,
        year_after=args.filter_after,
        drop_yearless=args.filter_yearless_games,
        elo_below=args.filter_elo_below,
        elo_above=args.filter_elo_above,
        drop_eloless=args.filter_eloless_games,
    )


def load_input(args: argparse.Namespace) -> str:
    if args.concat:
        files = list(find_pgn_files(args.input))
        data = concatenate_pgn_files(files)
        log(f"concatenated files={len(files)} root={args.input}", args.quiet)
    else:
        data = read_pgn_bytes(args.input)
    return decode_pgn(data)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    options = options_from_args(args)

    try:
        content = load_input(args)
    except (OSError, zstd.ZstdError) as e:
        print(f"error: cannot read input {args.input}: {e}", file=sys.stderr)
        return 1

    games = parse_pgn(content, strip_comments=args.remove_comments)
    log(f"parsed games={len(games)}", args.quiet)

    games, results = run_pipeline(games, options)
    for r in results:
        msg = STAGE_MESSAGES[r.name].format(
            removed=r.removed, after=r.after, fields=",".join(sorted(removal_fields(options.extra_fields)))
        )
        log(msg, args.quiet)

    try:
        save_pgn(args.output, games)
    except OSError as e:
        print(f"error: cannot save {args.output}: {e}", file=sys.stderr)
        return 1

    log(f"done saved={len(games)} out={args.output}", args.quiet)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
