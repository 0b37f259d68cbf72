"""Write a format 0 Standard MIDI File around a recorded track.

The header and track chunk header are written before recording starts,
with a placeholder track length. Once the track is finalized its bytes are
streamed out and the length field is patched in place.
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

from .constants import (
    META_SET_TEMPO,
    META_TIME_SIGNATURE,
    MIDI_CLOCKS_PER_CLICK,
    THIRTY_SECONDS_PER_QUARTER,
)
from .timing import Tempo, TimeSignature
from .track_buffer import TrackBuffer

log = logging.getLogger(__name__)

HEADER_MAGIC = b"MThd"
TRACK_MAGIC = b"MTrk"
HEADER_LENGTH = 6
SMF_FORMAT = 0
TRACK_COUNT = 1


def encode_time_division(ticks: int, smpte: bool = False, frame_rate: int = 0) -> int:
    """Pack the 16-bit time-division field of the header chunk."""
    if smpte:
        return ((0x100 - frame_rate) << 8) | (ticks & 0xFF)
    return ticks & 0x7FFF


def decode_time_division(value: int) -> tuple[int, bool, int]:
    """Unpack a time-division field into (ticks, smpte, frame_rate)."""
    if value & 0x8000:
        return value & 0xFF, True, 0x100 - (value >> 8)
    return value, False, 0


def write_timing_meta(track: TrackBuffer, tempo: Tempo, time_signature: TimeSignature) -> None:
    """Append the Set Tempo and Time Signature meta events (metrical only)."""
    if tempo.smpte:
        return
    usecs = tempo.microseconds_per_quarter
    track.append_meta(META_SET_TEMPO, usecs.to_bytes(3, "big"))
    track.append_meta(
        META_TIME_SIGNATURE,
        bytes([
            time_signature.numerator,
            time_signature.denominator_exponent,
            MIDI_CLOCKS_PER_CLICK,
            THIRTY_SECONDS_PER_QUARTER,
        ]),
    )


class SmfWriter:
    """Two-pass writer for a single-track SMF on a seekable binary stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._size_offset: int | None = None
        self._patched = False

    @property
    def stream(self) -> BinaryIO:
        return self._stream

    def write_header(self, ticks: int, smpte: bool = False, frame_rate: int = 0) -> None:
        """Write MThd and the MTrk chunk header with a placeholder length."""
        f = self._stream
        f.write(HEADER_MAGIC)
        f.write(struct.pack(
            ">IHHH",
            HEADER_LENGTH,
            SMF_FORMAT,
            TRACK_COUNT,
            encode_time_division(ticks, smpte, frame_rate),
        ))
        f.write(TRACK_MAGIC)
        self._size_offset = f.tell()
        f.write(struct.pack(">I", 0))

    def flush(self, track: TrackBuffer) -> None:
        """Stream the track body to the output."""
        self._stream.write(track.getvalue())

    def patch_length(self, track: TrackBuffer, extra_bytes: int) -> None:
        """Overwrite the placeholder with the final track length.

        ``track.size`` already includes the ``extra_bytes`` appended by
        :meth:`TrackBuffer.finalize`.
        """
        if self._size_offset is None:
            raise RuntimeError("header not written")
        if self._patched:
            raise RuntimeError("track length already patched")
        f = self._stream
        saved_pos = f.tell()
        f.seek(self._size_offset)
        f.write(struct.pack(">I", track.size))
        f.seek(saved_pos)
        self._patched = True
        log.debug("Track length %d (%d trailing bytes)", track.size, extra_bytes)


@contextmanager
def open_smf(path: str | Path) -> Iterator[SmfWriter]:
    """Open *path* for writing and yield an :class:`SmfWriter`.

    The file is closed on every exit path, including errors.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        log.info("Writing %s", path)
        yield SmfWriter(f)
