"""
Drive one pass over an archive:

    open_archive -> iter_games -> aggregate_game -> RecordWriter

All run state lives in the PipelineStats returned by `run`, so the pipeline
can be run repeatedly in one process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .aggregate import aggregate_game
from .errors import IoError
from .progress import DEFAULT_PROGRESS_EVERY, ProgressReporter
from .segmenter import PipelineStats, iter_games
from .source import open_archive
from .summary import SpeedTotals
from .writer import RecordWriter

DEFAULT_OUTPUT = "time-spent.csv"

logger = logging.getLogger(__name__)


@dataclass
class PipelineOptions:
    output_path: str | Path = DEFAULT_OUTPUT
    expected_games: int = 0
    progress_every: int = DEFAULT_PROGRESS_EVERY
    start_from_first_clock: bool = False
    players_path: str | Path | None = None  # per-player, per-speed totals


def run(
    archive_path: str | Path,
    options: PipelineOptions | None = None,
    should_stop: Callable[[], bool] | None = None,
) -> PipelineStats:
    """
    Write one CSV row per game of `archive_path` to `options.output_path`.

    `should_stop` is polled between games; returning True ends the run after
    the current row, leaving a well-formed file. IoError and
    DecompressionError propagate to the caller.
    """
    options = options or PipelineOptions()
    stats = PipelineStats()
    reporter = ProgressReporter(options.expected_games, every=options.progress_every)

    logger.info("Starting: %s -> %s", archive_path, options.output_path)
    reporter.start()
    totals = SpeedTotals() if options.players_path is not None else None

    with open_archive(archive_path) as text, RecordWriter(options.output_path) as writer:
        for unit in iter_games(text, stats):
            record = aggregate_game(unit, options.start_from_first_clock)
            writer.write(record)
            stats.rows_written += 1
            stats.statuses[record.status.value] = stats.statuses.get(record.status.value, 0) + 1
            if totals is not None:
                totals.add(record)
            reporter.maybe_log(stats.games_seen)

            if should_stop is not None and should_stop():
                logger.warning("Stop requested after %d games", stats.games_seen)
                break

    if totals is not None:
        try:
            totals.write(options.players_path)
        except OSError as exc:
            raise IoError("output", f"cannot write {options.players_path}: {exc}") from exc

    snap = reporter.snapshot(stats.games_seen)
    logger.info(
        "Done. Games written: %d ; dropped units: %d ; statuses: %s ; elapsed %.1fs",
        stats.rows_written,
        stats.units_dropped,
        stats.statuses,
        snap.elapsed,
    )
    return stats
