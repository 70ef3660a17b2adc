"""Event sinks for ``TransferCompleted`` / ``BatchCompleted`` notifications."""
from __future__ import annotations

from typing import Iterable, List, Protocol

from .models import BatchCompleted, SweepEvent, TransferCompleted

__all__ = ["EventSink", "EventLog", "FanOutSink"]


class EventSink(Protocol):
    def emit(self, event: SweepEvent) -> None:
        ...


class EventLog:
    """In-memory sink; keeps events in emission order."""

    def __init__(self) -> None:
        self.events: List[SweepEvent] = []

    def emit(self, event: SweepEvent) -> None:
        self.events.append(event)

    @property
    def transfers(self) -> List[TransferCompleted]:
        return [e for e in self.events if isinstance(e, TransferCompleted)]

    @property
    def batches(self) -> List[BatchCompleted]:
        return [e for e in self.events if isinstance(e, BatchCompleted)]

    def clear(self) -> None:
        self.events.clear()


class FanOutSink:
    """Forward every event to each wrapped sink in order."""

    def __init__(self, sinks: Iterable[EventSink]):
        self.sinks = list(sinks)

    def emit(self, event: SweepEvent) -> None:
        for sink in self.sinks:
            sink.emit(event)
