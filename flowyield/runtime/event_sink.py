"""
flowyield.runtime.event_sink — ordered event buffer with rollback marks.

The host takes a mark before every (nested) call and rolls the buffer back to
it when the call reverts, so events from a failed call never reach a result.
"""

from __future__ import annotations

from typing import List, Tuple

from ..types import LogEvent


class EventSink:
    __slots__ = ("_events",)

    def __init__(self) -> None:
        self._events: List[LogEvent] = []

    def emit(self, event: LogEvent) -> None:
        if not isinstance(event, LogEvent):
            raise TypeError(f"expected LogEvent, got {type(event).__name__}")
        self._events.append(event)

    def mark(self) -> int:
        return len(self._events)

    def rollback(self, mark: int) -> None:
        del self._events[mark:]

    def take(self, mark: int) -> Tuple[LogEvent, ...]:
        """Remove and return every event emitted since `mark`."""
        out = tuple(self._events[mark:])
        del self._events[mark:]
        return out

    def __len__(self) -> int:
        return len(self._events)


__all__ = ["EventSink"]
