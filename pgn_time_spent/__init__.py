"""Per-game thinking time extracted from PGN archives."""

from .aggregate import PlayerTimeRecord, Status, TimeControl, aggregate_game, parse_time_control
from .errors import DecompressionError, IoError, MalformedTimeControl, PipelineError, TruncatedGameUnit
from .pipeline import PipelineOptions, run

__all__ = [
    "DecompressionError",
    "IoError",
    "MalformedTimeControl",
    "PipelineError",
    "PipelineOptions",
    "PlayerTimeRecord",
    "Status",
    "TimeControl",
    "TruncatedGameUnit",
    "aggregate_game",
    "parse_time_control",
    "run",
]
