"""Stream PlayerTimeRecords to a CSV file, one flushed row per game."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from .aggregate import PlayerTimeRecord
from .errors import IoError

COLUMNS = [
    "player_one",
    "player_two",
    "time_spent_one",
    "time_spent_two",
    "ply_count",
    "result",
    "status",
]

logger = logging.getLogger(__name__)


class RecordWriter:
    """
    Usage:

        with RecordWriter("time-spent.csv") as writer:
            writer.write(record)

    The header is written on open. Nothing is buffered across games, so an
    aborted run leaves the header plus every row written so far.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.rows = 0
        self._fh = None
        self._csv = None

    def __enter__(self) -> "RecordWriter":
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = self.path.open("w", encoding="utf-8", newline="")
            self._csv = csv.writer(self._fh, lineterminator="\n")
            self._csv.writerow(COLUMNS)
            self._fh.flush()
        except OSError as exc:
            self.close()
            raise IoError("output", f"cannot write {self.path}: {exc}") from exc
        logger.info("Writing records to %s", self.path)
        return self

    def write(self, record: PlayerTimeRecord) -> None:
        try:
            self._csv.writerow(record.as_row())
            self._fh.flush()
        except OSError as exc:
            raise IoError("output", f"cannot write {self.path}: {exc}") from exc
        self.rows += 1

    def close(self) -> None:
        if self._fh is not None:
            fh, self._fh = self._fh, None
            try:
                fh.close()
            except OSError as exc:
                raise IoError("output", f"cannot close {self.path}: {exc}") from exc

    def __exit__(self, *exc_info) -> None:
        self.close()
