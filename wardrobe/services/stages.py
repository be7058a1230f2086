"""Progress states reported while a clothing upload is in flight."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class UploadStage(str, Enum):
    """Finite states of one upload."""

    IDLE = "idle"
    UPLOADING_ORIGINAL = "uploading_original"
    REMOVING_BACKGROUND = "removing_background"
    ANALYZING_CLOTHING = "analyzing_clothing"
    SAVING_TO_DATABASE = "saving_to_database"
    COMPLETED = "completed"
    FAILED = "failed"


# Share of the overall progress bar owned by each working stage.
STAGE_SPANS: dict[UploadStage, tuple[float, float]] = {
    UploadStage.IDLE: (0.0, 0.0),
    UploadStage.UPLOADING_ORIGINAL: (0.0, 0.25),
    UploadStage.REMOVING_BACKGROUND: (0.25, 0.5),
    UploadStage.ANALYZING_CLOTHING: (0.5, 0.75),
    UploadStage.SAVING_TO_DATABASE: (0.75, 1.0),
    UploadStage.COMPLETED: (1.0, 1.0),
}

TERMINAL_STAGES = frozenset({UploadStage.COMPLETED, UploadStage.FAILED})


@dataclass(frozen=True, slots=True)
class UploadState:
    """A stage plus the fraction of that stage already done.

    ``reason`` is only set for ``failed``; ``reached`` records the overall
    progress at the moment of failure.
    """

    stage: UploadStage
    progress: float = 0.0
    reason: str | None = None
    reached: float = 0.0

    @classmethod
    def idle(cls) -> UploadState:
        return cls(UploadStage.IDLE)

    @classmethod
    def completed(cls) -> UploadState:
        return cls(UploadStage.COMPLETED, 1.0)

    @classmethod
    def failed(cls, reason: str, reached: float = 0.0) -> UploadState:
        return cls(UploadStage.FAILED, 0.0, reason, reached)

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES

    @property
    def is_loading(self) -> bool:
        return self.stage not in TERMINAL_STAGES and self.stage is not UploadStage.IDLE


def overall_progress(state: UploadState) -> float:
    """Blend a stage-local fraction into the 0..1 progress of the whole upload."""

    if state.stage is UploadStage.FAILED:
        return state.reached
    start, end = STAGE_SPANS[state.stage]
    fraction = min(max(state.progress, 0.0), 1.0)
    return start + (end - start) * fraction


class UploadObserver(Protocol):
    """Receives every state change of an upload, in order."""

    def on_state(self, state: UploadState) -> None:
        ...


class LoggingObserver:
    """Observer that writes each state change to the log."""

    def __init__(self, logger: logging.Logger, label: str) -> None:
        self._logger = logger
        self._label = label

    def on_state(self, state: UploadState) -> None:
        if state.stage is UploadStage.FAILED:
            self._logger.warning("Upload %s failed: %s", self._label, state.reason)
            return
        self._logger.info(
            "Upload %s: %s (%.0f%%)",
            self._label,
            state.stage.value,
            overall_progress(state) * 100,
        )
