"""Exceptions raised by the time-spent pipeline.

Stream-level errors (``IoError``, ``DecompressionError``) abort a run.
Game-level errors (``GameUnitError`` and subclasses) are contained by the
stage that raises them and never reach the caller.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class; ``stage`` names where the failure happened."""

    stage = "pipeline"

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        return f"{self.stage} failed: {self.args[0]}"


class IoError(PipelineError):
    """Opening, reading or writing a file failed."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(message, stage)


class DecompressionError(PipelineError):
    stage = "decompression"


class GameUnitError(PipelineError):
    stage = "game"


class MalformedTimeControl(GameUnitError):
    pass


class TruncatedGameUnit(GameUnitError):
    pass
