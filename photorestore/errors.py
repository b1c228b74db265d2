"""Exception types raised by the restoration engine.

Every failure that leaves the package derives from :class:`RestorationError` so
host applications can catch the whole family with a single ``except`` clause
while still being able to distinguish validation problems from stage
failures and cancellations.
"""

from __future__ import annotations

from typing import List, Optional, Sequence


class RestorationError(Exception):
    """Base class for all engine errors."""


class ConfigError(RestorationError):
    """Raised when a configuration object fails validation."""

    def __init__(self, errors: Sequence[str]):
        self.errors: List[str] = list(errors)
        super().__init__("Invalid configuration: " + "; ".join(self.errors))


class ValidationError(RestorationError):
    """File or dimension checks failed.

    ``errors`` block processing, ``warnings`` are informational only and are
    carried along so callers can surface them next to the failure.
    """

    def __init__(self, errors: Sequence[str], warnings: Optional[Sequence[str]] = None):
        self.errors: List[str] = list(errors)
        self.warnings: List[str] = list(warnings or [])
        super().__init__("Validation failed: " + "; ".join(self.errors))


class DecodeError(RestorationError):
    """The input bytes could not be decoded into a raster."""


class StageExecutionError(RestorationError):
    """Wraps any exception raised while a pipeline stage was running."""

    def __init__(self, stage: int, stage_name: str, cause: BaseException):
        self.stage = stage
        self.stage_name = stage_name
        self.cause = cause
        super().__init__(f"Stage {stage} ({stage_name}) failed: {cause}")


class PipelineCancelled(RestorationError):
    """Terminal status raised when a run was cancelled at a stage boundary."""

    def __init__(self, stage: Optional[int] = None):
        self.stage = stage
        message = "Pipeline cancelled"
        if stage is not None:
            message += f" after stage {stage}"
        super().__init__(message)


class PipelineBusyError(RestorationError, RuntimeError):
    """A second ``process()`` call arrived while a run was in flight."""

    def __init__(self) -> None:
        super().__init__("Pipeline is already processing")


__all__ = [
    "RestorationError",
    "ConfigError",
    "ValidationError",
    "DecodeError",
    "StageExecutionError",
    "PipelineCancelled",
    "PipelineBusyError",
]
