"""Test helpers shared across modules."""

from __future__ import annotations

from smfrec.core.events import EventKind, SeqEvent

QUEUE = 7


def decode_vlq(data: bytes) -> tuple[int, int]:
    """Standard MIDI VLQ decode; returns (value, bytes consumed)."""
    value = 0
    for i, byte in enumerate(data):
        value = (value << 7) | (byte & 0x7F)
        if not byte & 0x80:
            return value, i + 1
    raise ValueError("unterminated VLQ")


def ev(kind: EventKind, tick: int = 0, **kwargs) -> SeqEvent:
    """Build an event on the test queue."""
    kwargs.setdefault("queue", QUEUE)
    return SeqEvent(kind, tick, **kwargs)


class FakeEventSource:
    """Scripted event source with a fake monotonic clock.

    Each ``read_batch`` pops the next scripted item: a list of events is
    returned, an exception is raised. Once the script is exhausted every
    call returns an empty batch, advances the clock and calls ``on_empty``.
    """

    def __init__(self, batches=(), tick: int = 0) -> None:
        self._batches = list(batches)
        self.tick = tick
        self.now = 0.0
        self.reads = 0
        self.on_empty = None

    def read_batch(self, timeout: float):
        self.reads += 1
        if self._batches:
            item = self._batches.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        self.now += 0.05
        if self.on_empty is not None:
            self.on_empty()
        return []

    def current_tick(self) -> int:
        return self.tick

    def clock(self) -> float:
        return self.now


