"""Split a PGN text stream into game units (header block + move text)."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator

import chess.pgn

from .errors import IoError, TruncatedGameUnit

logger = logging.getLogger(__name__)

TERMINATION_MARKERS = ("1-0", "0-1", "1/2-1/2", "*")
TAG_ESCAPE_REGEX = re.compile(r'\\(["\\])')


@dataclass
class PipelineStats:
    games_seen: int = 0
    units_dropped: int = 0
    rows_written: int = 0
    statuses: dict[str, int] = field(default_factory=dict)


@dataclass
class GameUnit:
    headers: chess.pgn.Headers
    movetext: str

    @property
    def site(self) -> str:
        return self.headers.get("Site", "?")


def _lines(stream: Iterable[str]) -> Iterator[str]:
    try:
        for line in stream:
            yield line
    except OSError as exc:
        raise IoError("source", f"read failed: {exc}") from exc


def _has_termination(movetext_lines: list[str]) -> bool:
    tokens = movetext_lines[-1].split() if movetext_lines else []
    return bool(tokens) and tokens[-1] in TERMINATION_MARKERS


def _comment_open_after(line: str, in_comment: bool) -> bool:
    """Whether a `{...}` comment is still open at the end of `line`."""
    for ch in line:
        if in_comment:
            if ch == "}":
                in_comment = False
        elif ch == "{":
            in_comment = True
        elif ch == ";":
            break
    return in_comment


def unescape_tag_value(value: str) -> str:
    return TAG_ESCAPE_REGEX.sub(r"\1", value)


def _drop(stats: PipelineStats, reason: TruncatedGameUnit, headers: chess.pgn.Headers) -> None:
    stats.units_dropped += 1
    logger.debug("Dropping game unit (site=%s): %s", headers.get("Site", "?"), reason.args[0])


def iter_games(stream: Iterable[str], stats: PipelineStats) -> Iterator[GameUnit]:
    """
    Lazily yield one GameUnit per game in `stream`.

    Header lines are `[Key "Value"]`; blank lines between them are skipped and
    `\\"` / `\\\\` escapes in values are undone. Headers are kept in a
    `chess.pgn.Headers`, which lists the seven roster tags (Event, Site, Date,
    Round, White, Black, Result) first and every other tag in arrival order.

    Move text runs from the first non-header line to the next blank line, the
    next header line, or end of stream; blank lines inside an open `{...}`
    comment belong to the move text.

    Malformed units are dropped and counted in `stats.units_dropped`:
    a header block that never gets move text (detected when one of its tags
    appears again, which starts the next block, or at end of stream), and a
    trailing unit whose move text is cut off without its result marker.
    """
    headers = chess.pgn.Headers({})
    has_headers = False
    movetext: list[str] = []
    in_comment = False

    def emit() -> GameUnit:
        stats.games_seen += 1
        return GameUnit(headers, "\n".join(movetext))

    for raw in _lines(stream):
        line = raw.rstrip()

        if in_comment:
            movetext.append(line)
            in_comment = _comment_open_after(line, in_comment)
            continue

        if not line.strip():
            if movetext:
                yield emit()
                headers, has_headers, movetext = chess.pgn.Headers({}), False, []
            continue

        tag = chess.pgn.TAG_REGEX.match(line.lstrip())
        if tag:
            key = tag.group(1)
            if movetext:
                # next game started without a separating blank line
                yield emit()
                headers, has_headers, movetext = chess.pgn.Headers({}), False, []
            elif key in headers:
                _drop(stats, TruncatedGameUnit("header block without move text"), headers)
                headers = chess.pgn.Headers({})
            headers[key] = unescape_tag_value(tag.group(2))
            has_headers = True
            continue

        movetext.append(line)
        in_comment = _comment_open_after(line, in_comment)

    if movetext:
        if not in_comment and _has_termination(movetext):
            yield emit()
        else:
            _drop(stats, TruncatedGameUnit("move text cut off at end of stream"), headers)
    elif has_headers:
        _drop(stats, TruncatedGameUnit("header block without move text at end of stream"), headers)
