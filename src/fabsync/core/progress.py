"""Progress reporting and cooperative cancellation hooks.

Long-running loops (export, validate, import, multi-target push) call a
progress callback at each checkpoint and ask ``should_cancel()`` before
starting the next unit of work.  Nothing is pre-empted and nothing already
processed is rolled back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class ProgressEvent:
    current: int
    total: int
    message: str

    @property
    def percent_complete(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.current / self.total * 100


ProgressCallback = Callable[[ProgressEvent], None]
CancelCheck = Callable[[], bool]


class ProgressReporter:
    """Wrap an optional callback so callers can report unconditionally."""

    def __init__(self, callback: ProgressCallback | None = None) -> None:
        self._callback = callback

    def report(self, current: int, total: int, message: str) -> None:
        if self._callback is not None:
            self._callback(ProgressEvent(current, total, message))


def is_cancelled(should_cancel: CancelCheck | None) -> bool:
    return should_cancel is not None and bool(should_cancel())
