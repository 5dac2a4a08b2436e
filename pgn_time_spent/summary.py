#!/usr/bin/env python3
"""
Per-player rollups of the time spent.

`summarize` reads the per-game CSV back with DuckDB: player, games,
clocked_games, time_spent_seconds, avg_time_spent_seconds. Only `complete`
and `abandoned` games contribute time.

`SpeedTotals` is filled by the pipeline while it runs (it needs each game's
time control, which the CSV does not carry) and splits every player's games
by lichess speed.

Usage (example):
pgn-time-spent-summary out/time-spent.csv --out out/player-time.parquet
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import duckdb
import pandas as pd

from .aggregate import SPEEDS, PlayerTimeRecord, Status
from .writer import COLUMNS

compression = "snappy"
parquet_engine = "pyarrow"

logger = logging.getLogger(__name__)

CSV_TYPES = {
    "player_one": "VARCHAR",
    "player_two": "VARCHAR",
    "time_spent_one": "BIGINT",
    "time_spent_two": "BIGINT",
    "ply_count": "BIGINT",
    "result": "VARCHAR",
    "status": "VARCHAR",
}


def write_frame(df: pd.DataFrame, out_path: str | Path) -> None:
    """Parquet for a `.parquet` suffix, CSV otherwise."""
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    if out_path.suffix == ".parquet":
        df.to_parquet(out_path, index=False, compression=compression, engine=parquet_engine)
    else:
        df.to_csv(out_path, index=False)
    logger.info("Wrote %d players to %s", len(df), out_path)


def _sql_string(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def summarize(csv_path: str | Path, out_path: str | Path | None = None) -> pd.DataFrame:
    csv_path = Path(csv_path)
    columns = "{" + ", ".join(f"{_sql_string(c)}: {_sql_string(CSV_TYPES[c])}" for c in COLUMNS) + "}"

    con = duckdb.connect()
    try:
        con.execute(f"""
        CREATE OR REPLACE VIEW games AS
        SELECT * FROM read_csv({_sql_string(str(csv_path))}, header = true, columns = {columns})
        """)

        # both seats of every game, then one row per player
        df = con.execute("""
        WITH seats AS (
            SELECT player_one AS player, time_spent_one AS time_spent, status FROM games
            UNION ALL
            SELECT player_two AS player, time_spent_two AS time_spent, status FROM games
        )
        SELECT
          player,
          COUNT(*) AS games,
          COUNT(*) FILTER (WHERE status IN ('complete', 'abandoned')) AS clocked_games,
          CAST(COALESCE(SUM(time_spent) FILTER (WHERE status IN ('complete', 'abandoned')), 0) AS BIGINT)
            AS time_spent_seconds,
          AVG(time_spent) FILTER (WHERE status IN ('complete', 'abandoned')) AS avg_time_spent_seconds
        FROM seats
        GROUP BY player
        ORDER BY time_spent_seconds DESC, player
        """).fetchdf()

        total = con.execute("SELECT COUNT(*) FROM games").fetchone()[0]
    finally:
        con.close()

    logger.info("Games in %s: %d ; players: %d", csv_path, total, len(df))
    logger.info("Top players by time spent:\n%s", df.head(5))

    if out_path is not None:
        write_frame(df, out_path)
    return df


class SpeedTotals:
    """
    Per-player totals by lichess speed, accumulated while the pipeline runs.

    For each counted game both players are credited with the game's real
    duration (time_spent_one + time_spent_two) and its nominal duration
    (base + 40 * increment). Games shorter than MIN_PLIES or without usable
    clocks are left out. Memory grows with the number of distinct players.
    """

    MIN_PLIES = 4

    def __init__(self) -> None:
        self.users: dict[str, dict[str, list[int]]] = {}
        self.games = 0

    def add(self, record: PlayerTimeRecord) -> bool:
        tc = record.time_control
        if tc is None or record.status is Status.NO_CLOCK_DATA or record.ply_count < self.MIN_PLIES:
            return False

        real = record.time_spent_one + record.time_spent_two
        for username in (record.player_one, record.player_two):
            speeds = self.users.setdefault(username, {})
            games, approximate, exact = speeds.get(tc.speed, (0, 0, 0))
            speeds[tc.speed] = [games + 1, approximate + tc.estimated_duration, exact + real]
        self.games += 1
        return True

    def to_frame(self) -> pd.DataFrame:
        columns = ["username"]
        for speed in SPEEDS:
            columns += [f"{speed}_games", f"{speed}_approximate_time", f"{speed}_real_time"]

        rows = []
        for username in sorted(self.users):
            row = [username]
            for speed in SPEEDS:
                row += self.users[username].get(speed, [0, 0, 0])
            rows.append(row)
        return pd.DataFrame(rows, columns=columns)

    def write(self, out_path: str | Path) -> pd.DataFrame:
        df = self.to_frame()
        logger.info("Per-speed totals: %d games, %d players", self.games, len(df))
        write_frame(df, out_path)
        return df


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Per-game time spent CSV -> per-player totals")
    p.add_argument("csv_path", help="CSV written by pgn-time-spent")
    p.add_argument("--out", default="player-time.parquet", help="output path (.parquet or .csv)")
    p.add_argument("--verbose", action="store_true", help="enable verbose logging")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s: %(message)s",
    )

    if not Path(args.csv_path).exists():
        logger.error("CSV file does not exist: %s", args.csv_path)
        return 1
    summarize(args.csv_path, args.out)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
