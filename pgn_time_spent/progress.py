"""Advisory progress and ETA against an expected number of games."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

DEFAULT_PROGRESS_EVERY = 10_000

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressSnapshot:
    games_seen: int
    expected_total: int
    fraction: float | None
    elapsed: float
    eta: float | None  # seconds


def format_seconds(seconds: float | None) -> str:
    if seconds is None:
        return "?"
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours}:{minutes:02d}:{secs:02d}"


class ProgressReporter:
    """
    Linear extrapolation of the remaining time from the games seen so far.

    Only reads the clock; never touches the data path.
    """

    def __init__(
        self,
        expected_total: int,
        every: int = DEFAULT_PROGRESS_EVERY,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.expected_total = expected_total
        self.every = every
        self._clock = clock
        self._started: float | None = None

    def start(self) -> None:
        self._started = self._clock()

    def snapshot(self, games_seen: int) -> ProgressSnapshot:
        if self._started is None:
            self.start()
        elapsed = self._clock() - self._started

        fraction = None
        eta = None
        if self.expected_total > 0:
            fraction = min(games_seen / self.expected_total, 1.0)
            if games_seen > 0:
                remaining = max(self.expected_total - games_seen, 0)
                eta = elapsed / games_seen * remaining
        return ProgressSnapshot(games_seen, self.expected_total, fraction, elapsed, eta)

    def maybe_log(self, games_seen: int) -> None:
        if self.every <= 0 or games_seen % self.every:
            return
        snap = self.snapshot(games_seen)
        if snap.fraction is None:
            logger.info("Processed %d games (elapsed %s)", games_seen, format_seconds(snap.elapsed))
        else:
            logger.info(
                "Processed %d/%d games (%.1f%%), elapsed %s, eta %s",
                games_seen,
                snap.expected_total,
                snap.fraction * 100,
                format_seconds(snap.elapsed),
                format_seconds(snap.eta),
            )
