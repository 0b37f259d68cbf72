"""Tempo, time signature and the recording tick clock."""

from __future__ import annotations

import time
from dataclasses import dataclass

import mido

from .constants import (
    BPM_MAX,
    BPM_MIN,
    DEFAULT_BPM,
    DEFAULT_METRICAL_TICKS,
    DEFAULT_SMPTE_TICKS,
    SMPTE_FRAME_RATES,
    SMPTE_TICKS_MAX,
    TICKS_MAX,
    TICKS_MIN,
    TIMESIG_MAX,
    TIMESIG_MIN,
)

# SMPTE rates expressed as an equivalent metrical clock:
# fps -> (microseconds per quarter, quarter-note multiplier for ticks/frame)
_SMPTE_EQUIVALENT = {
    24: (500000, 12),
    25: (400000, 10),
    29: (100000000, 2997),
    30: (500000, 15),
}


@dataclass(frozen=True, slots=True)
class TimeSignature:
    """Time signature; ``denominator_exponent`` is log2 of ``denominator``."""

    numerator: int = 4
    denominator: int = 4

    def __post_init__(self) -> None:
        if not TIMESIG_MIN <= self.numerator <= TIMESIG_MAX:
            raise ValueError(f"Invalid time signature numerator: {self.numerator}")
        d = self.denominator
        if not TIMESIG_MIN <= d <= TIMESIG_MAX or d & (d - 1):
            raise ValueError(f"Invalid time signature denominator: {d}")

    @property
    def denominator_exponent(self) -> int:
        return self.denominator.bit_length() - 1

    @classmethod
    def parse(cls, text: str) -> TimeSignature:
        """Parse ``"nn:dd"``."""
        num, sep, den = text.partition(":")
        if not sep:
            raise ValueError(f"Invalid time signature ({text})")
        try:
            return cls(int(num), int(den))
        except ValueError:
            raise ValueError(f"Invalid time signature ({text})") from None

    def __str__(self) -> str:
        return f"{self.numerator}:{self.denominator}"


@dataclass(frozen=True, slots=True)
class Tempo:
    """Recording resolution: metrical (bpm) or SMPTE (fps)."""

    bpm: int = DEFAULT_BPM
    fps: int = 0
    ticks: int = DEFAULT_METRICAL_TICKS

    def __post_init__(self) -> None:
        if self.fps:
            if self.fps not in SMPTE_FRAME_RATES:
                raise ValueError(f"Invalid number of frames/s: {self.fps}")
            if not TICKS_MIN <= self.ticks <= SMPTE_TICKS_MAX:
                raise ValueError(f"Invalid number of ticks per frame: {self.ticks}")
        else:
            if not BPM_MIN <= self.bpm <= BPM_MAX:
                raise ValueError(f"Invalid tempo: {self.bpm}")
            if not TICKS_MIN <= self.ticks <= TICKS_MAX:
                raise ValueError(f"Invalid number of ticks: {self.ticks}")

    @classmethod
    def create(cls, bpm: int = DEFAULT_BPM, fps: int = 0, ticks: int = 0) -> Tempo:
        """Build a tempo, filling in the default resolution for the mode.

        ``ticks`` of 0 selects the default; SMPTE ticks above 255 are clamped.
        """
        if not ticks:
            ticks = DEFAULT_SMPTE_TICKS if fps else DEFAULT_METRICAL_TICKS
        elif fps and ticks > SMPTE_TICKS_MAX:
            ticks = SMPTE_TICKS_MAX
        return cls(bpm=bpm, fps=fps, ticks=ticks)

    @property
    def smpte(self) -> bool:
        return bool(self.fps)

    @property
    def microseconds_per_quarter(self) -> int:
        return 60000000 // self.bpm

    @property
    def clock_rate(self) -> tuple[int, int]:
        """(ticks per quarter note, microseconds per quarter) of the tick clock."""
        if self.fps:
            usecs, multiplier = _SMPTE_EQUIVALENT[self.fps]
            return multiplier * self.ticks, usecs
        return self.ticks, self.microseconds_per_quarter


class TickClock:
    """Monotonic tick counter for the recording queue.

    Uses ``time.perf_counter()`` for high-resolution timestamps.
    """

    def __init__(self, tempo: Tempo) -> None:
        self._ppq, self._tempo_us = tempo.clock_rate
        self._start_time: float | None = None

    @property
    def running(self) -> bool:
        return self._start_time is not None

    def start(self) -> None:
        self._start_time = time.perf_counter()

    def seconds_to_ticks(self, seconds: float) -> int:
        return int(mido.second2tick(seconds, self._ppq, self._tempo_us))

    def tick(self) -> int:
        """Current tick, 0 before :meth:`start`."""
        if self._start_time is None:
            return 0
        return self.seconds_to_ticks(time.perf_counter() - self._start_time)
