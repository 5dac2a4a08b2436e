#!/usr/bin/env python3
"""
Extract per-game thinking time from a PGN archive into a CSV file.

Usage example:
pgn-time-spent in/lichess_db_standard_rated_2025-09.pgn.zst 90000000 --out out/time-spent.csv
"""

from __future__ import annotations

import argparse
import logging
import signal

from .errors import PipelineError
from .pipeline import DEFAULT_OUTPUT, PipelineOptions, run
from .progress import DEFAULT_PROGRESS_EVERY

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Stream a PGN archive -> per-game time spent CSV")
    p.add_argument("pgn_path", help="path to the .pgn file (zstd/gzip/bzip2/xz detected automatically)")
    p.add_argument("expected_games", type=int,
                   help="total number of games in the archive, for the progress estimate")
    p.add_argument("--out", default=DEFAULT_OUTPUT, help=f"output CSV path (default {DEFAULT_OUTPUT})")
    p.add_argument("--progress-every", type=int, default=DEFAULT_PROGRESS_EVERY,
                   help="log progress every N games (0 disables)")
    p.add_argument("--start-from-first-clock", action="store_true",
                   help="measure from each player's first clock instead of the base time (berserk)")
    p.add_argument("--players-out", default=None,
                   help="also write per-player totals by speed to this path (.parquet or .csv)")
    p.add_argument("--verbose", action="store_true", help="enable verbose logging")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s: %(message)s",
    )

    stop_requested = False

    def request_stop(signum, frame):
        nonlocal stop_requested
        stop_requested = True

    previous_handler = signal.signal(signal.SIGINT, request_stop)
    options = PipelineOptions(
        output_path=args.out,
        expected_games=args.expected_games,
        progress_every=args.progress_every,
        start_from_first_clock=args.start_from_first_clock,
        players_path=args.players_out,
    )
    try:
        run(args.pgn_path, options, should_stop=lambda: stop_requested)
    except PipelineError as exc:
        logger.error("%s", exc)
        return 1
    finally:
        signal.signal(signal.SIGINT, previous_handler)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
