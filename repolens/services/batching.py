"""Batch scheduling and per-stage progress arithmetic."""

from dataclasses import dataclass
from typing import Sequence, TypeVar

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 10


def make_batches(items: Sequence[T], batch_size: int = DEFAULT_BATCH_SIZE) -> list[list[T]]:
    """Split items into ordered fixed-size chunks. The last chunk may be smaller."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")
    return [list(items[i : i + batch_size]) for i in range(0, len(items), batch_size)]


@dataclass(frozen=True)
class ProgressWindow:
    """A stage's slice ``[lo, hi]`` of the overall 0-100 progress range."""

    lo: float
    hi: float

    def __post_init__(self) -> None:
        if not 0 <= self.lo <= self.hi <= 100:
            raise ValueError(f"Invalid progress window [{self.lo}, {self.hi}]")

    @property
    def span(self) -> float:
        return self.hi - self.lo

    def batch_progress(self, batch_index: int, total_batches: int) -> float:
        """Progress once batch ``batch_index`` (0-based) has completed."""
        if total_batches <= 0:
            return self.hi
        return self.lo + self.span * (batch_index + 1) / total_batches

    def file_progress(
        self,
        batch_index: int,
        file_index: int,
        batch_len: int,
        total_batches: int,
    ) -> float:
        """Progress when starting file ``file_index`` of batch ``batch_index``.

        Interpolates between the end of the previous batch and the end of
        this one.
        """
        if total_batches <= 0:
            return self.lo
        start = self.lo + self.span * batch_index / total_batches
        end = self.batch_progress(batch_index, total_batches)
        if batch_len <= 0:
            return start
        return start + (end - start) * file_index / batch_len

    def at(self, fraction: float) -> float:
        fraction = min(1.0, max(0.0, fraction))
        return self.lo + self.span * fraction
