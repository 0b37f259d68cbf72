"""In-memory body of the single SMF track being recorded.

Holds the encoded bytes plus the two pieces of state that make the
encoding context-dependent: the tick of the previous event (for delta
times) and the running-status byte.
"""

from __future__ import annotations

import logging

from .constants import (
    META,
    META_END_OF_TRACK,
    SYSTEM_STATUS_MIN,
)
from .vlq import encode_vlq

log = logging.getLogger(__name__)


class TrackBuffer:
    """Growable byte sequence with delta-time and running-status tracking."""

    def __init__(self) -> None:
        self._data = bytearray()
        self.size = 0
        self.last_tick = 0
        self.last_command = 0
        self.t_start: int | None = None
        self._finalized = False

    def __len__(self) -> int:
        return self.size

    @property
    def finalized(self) -> bool:
        return self._finalized

    def getvalue(self) -> bytes:
        return bytes(self._data)

    # ── Raw appends ─────────────────────────────────────

    def append_byte(self, byte: int) -> None:
        self._data.append(byte & 0xFF)
        self.size += 1

    def append_bytes(self, data: bytes) -> None:
        self._data.extend(data)
        self.size += len(data)

    def append_vlq(self, value: int) -> int:
        data = encode_vlq(value)
        self.append_bytes(data)
        return len(data)

    # ── Encoding context ────────────────────────────────

    def append_delta(self, event_tick: int) -> None:
        """Write the delta time from the previous event to *event_tick*.

        The first call fixes the baseline tick; later ticks are measured
        from it. Out-of-order ticks produce a zero delta.
        """
        if self.t_start is None:
            self.t_start = event_tick
        tick = event_tick - self.t_start
        diff = max(0, tick - self.last_tick)
        self.append_vlq(diff)
        self.last_tick = max(tick, self.last_tick)

    def append_status(self, command: int) -> None:
        """Write a status byte unless running status makes it redundant."""
        if command != self.last_command:
            self.append_byte(command)
        self.last_command = command if command < SYSTEM_STATUS_MIN else 0

    def append_meta(self, meta_type: int, data: bytes) -> None:
        """Append a zero-delta meta event."""
        self.append_vlq(0)
        self.append_status(META)
        self.append_byte(meta_type)
        self.append_vlq(len(data))
        self.append_bytes(data)

    # ── Finalization ────────────────────────────────────

    def finalize(self, current_tick: int) -> int:
        """Close the track with the trailing delta and End of Track.

        The trailing delta is *current_tick* minus ``last_tick``; unlike
        event deltas it is not shifted by the baseline.
        Returns the number of bytes appended.
        """
        if self._finalized:
            raise RuntimeError("track already finalized")
        before = self.size
        self.append_vlq(max(0, current_tick - self.last_tick))
        self.append_byte(META)
        self.append_byte(META_END_OF_TRACK)
        self.append_vlq(0)
        self._finalized = True
        extra = self.size - before
        log.debug("Track finalized: %d trailing bytes, %d total", extra, self.size)
        return extra
