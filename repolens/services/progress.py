"""Progress events and the best-effort, monotonic reporter."""

import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    """One progress update. Emitted, never stored."""

    percentage: int
    message: str


class ProgressSink(Protocol):
    """Push channel receiving progress updates for a connection."""

    async def send_progress(
        self, connection_id: str | None, percentage: int, message: str
    ) -> None: ...


class ProgressReporter:
    """Forwards progress to an optional sink.

    Percentages are clamped into [0, 100] and never go backwards: a value
    lower than one already emitted is raised to it. Sink failures are
    logged and dropped.
    """

    def __init__(self, sink: ProgressSink | None = None, connection_id: str | None = None):
        self.sink = sink
        self.connection_id = connection_id
        self._current = 0

    @property
    def current(self) -> int:
        return self._current

    async def report(self, percentage: float, message: str) -> ProgressEvent:
        value = int(min(100.0, max(0.0, percentage)))
        value = max(value, self._current)
        self._current = value
        event = ProgressEvent(percentage=value, message=message)

        if self.sink is None:
            return event
        try:
            await self.sink.send_progress(self.connection_id, value, message)
        except Exception as e:
            logger.warning(f"Progress sink failed at {value}%: {e}")
        return event
