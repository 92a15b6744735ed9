"""Progress Reporter: single-slot progress and cancellation flag for one import run.

One writer (the reconciler) and one reader (whoever polls the job). Reports
overwrite the slot and never wait on the reader, so intermediate values may
be missed; only the latest matters.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class ProgressSnapshot:
    fraction: float
    rows_processed: int
    cancelled: bool


class ProgressReporter:
    def __init__(self) -> None:
        self._fraction = 0.0
        self._rows_processed = 0
        self._cancelled = False

    def report(self, fraction: float, rows_processed: int | None = None) -> None:
        self._fraction = max(0.0, min(1.0, float(fraction)))
        if rows_processed is not None:
            self._rows_processed = rows_processed

    def cancel(self) -> None:
        self._cancelled = True

    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def fraction(self) -> float:
        return self._fraction

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(self._fraction, self._rows_processed, self._cancelled)
