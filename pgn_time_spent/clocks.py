"""Pull per-ply clock readings out of PGN move text.

Moves are not validated: any token that is not a move number, NAG,
comment, variation bracket or result counts as a ply.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import chess
import chess.pgn

TOKEN_REGEX = re.compile(
    r"""
    (?P<comment>\{[^}]*\}?)
    |(?P<line_comment>;[^\n]*)
    |(?P<open>\()
    |(?P<close>\))
    |(?P<nag>\$\d+)
    |(?P<number>\d+\.+)
    |(?P<result>1-0|0-1|1/2-1/2|\*)(?=\s|$)
    |(?P<suffix>[?!]+)
    |(?P<move>[^\s{}();$]+)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Ply:
    color: chess.Color
    move_number: int
    clock: float | None = None  # remaining seconds after the move


@dataclass
class MoveText:
    plies: list[Ply]
    termination: str | None = None


def parse_clock(comment: str) -> float | None:
    """Seconds from the first `[%clk H:MM:SS(.f)]` in `comment`, or None."""
    match = chess.pgn.CLOCK_REGEX.search(comment)
    if match is None:
        return None
    return (
        int(match.group("hours")) * 3600
        + int(match.group("minutes")) * 60
        + float(match.group("seconds"))
    )


def extract_plies(movetext: str) -> MoveText:
    """Tokenise `movetext` into mainline plies with their clock readings."""
    text = "\n".join(line for line in movetext.splitlines() if not line.startswith("%"))

    colors: list[chess.Color] = []
    clocks: list[float | None] = []
    depth = 0
    termination = None

    for token in TOKEN_REGEX.finditer(text):
        kind = token.lastgroup
        if kind == "open":
            depth += 1
        elif kind == "close":
            depth = max(depth - 1, 0)
        elif depth:
            continue
        elif kind == "result":
            termination = token.group()
            break
        elif kind == "move":
            colors.append(chess.WHITE if len(colors) % 2 == 0 else chess.BLACK)
            clocks.append(None)
        elif kind == "comment" and clocks and clocks[-1] is None:
            clocks[-1] = parse_clock(token.group())

    plies = [
        Ply(color, index // 2 + 1, clock)
        for index, (color, clock) in enumerate(zip(colors, clocks))
    ]
    return MoveText(plies, termination)
