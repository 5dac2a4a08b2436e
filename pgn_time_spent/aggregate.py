"""
Turn a game's clock readings into per-player thinking time.

For each player, the time spent on a move is the clock before it, plus the
increment earned, minus the clock after it:

    spent = previous_remaining + increment - current_remaining

The declared base time is the "previous remaining" of a player's first move.
Negative values (clock granularity on the server side) count as zero.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

import chess

from .clocks import extract_plies
from .errors import MalformedTimeControl
from .segmenter import GameUnit

TIME_CONTROL_REGEX = re.compile(r"^(\d+)(?:\+(\d+))?$")
TIME_FORFEIT = "Time forfeit"

# lichess speed categories on base + 40 * increment, upper bound inclusive
SPEED_LIMITS = (
    ("ultrabullet", 29),
    ("bullet", 179),
    ("blitz", 479),
    ("rapid", 1499),
)
SPEEDS = tuple(name for name, _ in SPEED_LIMITS) + ("classical",)

logger = logging.getLogger(__name__)


class Status(str, Enum):
    COMPLETE = "complete"
    NO_CLOCK_DATA = "no-clock-data"
    ABANDONED = "abandoned"


@dataclass(frozen=True)
class TimeControl:
    base: int  # seconds
    increment: int = 0  # seconds added after each move

    @property
    def estimated_duration(self) -> int:
        """Nominal seconds per player for a 40-move game."""
        return self.base + 40 * self.increment

    @property
    def speed(self) -> str:
        estimate = self.estimated_duration
        for name, limit in SPEED_LIMITS:
            if estimate <= limit:
                return name
        return "classical"


@dataclass(frozen=True)
class PlayerTimeRecord:
    player_one: str
    player_two: str
    time_spent_one: int
    time_spent_two: int
    ply_count: int
    result: str
    status: Status
    # not part of the CSV row; feeds the per-speed player totals
    time_control: TimeControl | None = field(default=None, compare=False)

    def as_row(self) -> list:
        return [
            self.player_one,
            self.player_two,
            self.time_spent_one,
            self.time_spent_two,
            self.ply_count,
            self.result,
            self.status.value,
        ]


def parse_time_control(value: str | None) -> TimeControl:
    """
    Parse a TimeControl header.

        "300+2" -> TimeControl(300, 2)
        "60"    -> TimeControl(60, 0)
        "-"     -> MalformedTimeControl (correspondence / unlimited)
    """
    match = TIME_CONTROL_REGEX.match((value or "").strip())
    if match is None:
        raise MalformedTimeControl(f"cannot parse time control {value!r}")
    return TimeControl(int(match.group(1)), int(match.group(2) or 0))


def player_time_spent(
    clocks: Sequence[float | None],
    tc: TimeControl,
    start_from_first_clock: bool = False,
) -> float:
    """
    Total seconds spent by one player, given their clock after each of their moves.

    Moves without a clock are skipped; the increments they earned are credited
    to the next move that has one.
    """
    previous: float | None = None if start_from_first_clock else float(tc.base)
    since = 0
    total = 0.0
    for clock in clocks:
        since += 1
        if clock is None:
            continue
        if previous is not None:
            total += max(previous + tc.increment * since - clock, 0.0)
        previous = clock
        since = 0
    return total


def whole_seconds(seconds: float) -> int:
    """Round to the nearest second, halves up (totals are never negative)."""
    return int(seconds + 0.5)


def is_time_forfeit(unit: GameUnit) -> bool:
    return unit.headers.get("Termination") == TIME_FORFEIT


def aggregate_game(unit: GameUnit, start_from_first_clock: bool = False) -> PlayerTimeRecord:
    movetext = extract_plies(unit.movetext)
    plies = movetext.plies
    headers = unit.headers

    def record(
        spent_one: float, spent_two: float, status: Status, tc: TimeControl | None = None
    ) -> PlayerTimeRecord:
        return PlayerTimeRecord(
            player_one=headers.get("White") or "?",
            player_two=headers.get("Black") or "?",
            time_spent_one=whole_seconds(spent_one),
            time_spent_two=whole_seconds(spent_two),
            ply_count=len(plies),
            result=headers.get("Result") or movetext.termination or "*",
            status=status,
            time_control=tc,
        )

    try:
        tc = parse_time_control(headers.get("TimeControl"))
    except MalformedTimeControl as exc:
        logger.debug("No usable clock for %s: %s", unit.site, exc.args[0])
        return record(0, 0, Status.NO_CLOCK_DATA)

    white = [ply.clock for ply in plies if ply.color == chess.WHITE]
    black = [ply.clock for ply in plies if ply.color == chess.BLACK]
    spent_one = player_time_spent(white, tc, start_from_first_clock)
    spent_two = player_time_spent(black, tc, start_from_first_clock)

    if all(clock is None for clock in white) or all(clock is None for clock in black):
        status = Status.NO_CLOCK_DATA
    elif plies[-1].clock is None:
        logger.debug("Game %s ends on a move without a clock", unit.site)
        status = Status.ABANDONED
    else:
        # a final clock of zero is expected when the game was lost on time
        if plies[-1].clock == 0 and not is_time_forfeit(unit):
            logger.debug("Game %s has a zero clock but no time forfeit", unit.site)
        status = Status.COMPLETE

    return record(spent_one, spent_two, status, tc)
