"""Recording loop: wait for events, transcode them, finalize the file.

Runs on a single thread. The only cross-thread input is the stop flag,
which a signal handler (or another thread) sets via ``request_stop()``;
it is checked once per iteration, after the current batch is drained.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum, auto
from typing import Protocol

from .constants import POLL_INTERVAL
from .events import SeqEvent
from .smf_writer import SmfWriter
from .track_buffer import TrackBuffer
from .transcoder import EventTranscoder

log = logging.getLogger(__name__)


class CaptureState(IntEnum):
    IDLE = auto()
    RECORDING = auto()
    DRAINING = auto()
    FINALIZED = auto()


class StopReason(IntEnum):
    REQUESTED = auto()
    TIMEOUT = auto()
    SOURCE_ERROR = auto()


class EventSource(Protocol):
    """What the loop needs from the sequencer side."""

    def read_batch(self, timeout: float) -> list[SeqEvent]:
        """Wait up to *timeout* seconds, then return everything available."""
        ...

    def current_tick(self) -> int:
        ...


@dataclass(frozen=True, slots=True)
class CaptureResult:
    """Summary of a finished recording."""

    events: int
    track_bytes: int
    reason: StopReason


class CaptureLoop:
    """Drive one recording from first wait to the patched track length."""

    def __init__(
        self,
        source: EventSource,
        writer: SmfWriter,
        track: TrackBuffer,
        transcoder: EventTranscoder,
        timeout: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._writer = writer
        self._track = track
        self._transcoder = transcoder
        self._timeout = timeout
        self._clock = clock
        self._stop_flag = threading.Event()
        self._state = CaptureState.IDLE

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def stop_requested(self) -> bool:
        return self._stop_flag.is_set()

    def request_stop(self) -> None:
        """Ask the loop to finish after the batch it is processing."""
        self._stop_flag.set()

    def run(self) -> CaptureResult:
        if self._state != CaptureState.IDLE:
            raise RuntimeError(f"capture already run (state {self._state.name})")
        self._state = CaptureState.RECORDING
        log.info("Recording started")

        try:
            reason = self._record()
        finally:
            # Whatever was transcoded is written out, even on error
            self._state = CaptureState.DRAINING
            self._finalize()

        log.info(
            "Recording stopped (%s): %d events, %d track bytes",
            reason.name.lower(), self._transcoder.accepted, self._track.size,
        )
        return CaptureResult(
            events=self._transcoder.accepted,
            track_bytes=self._track.size,
            reason=reason,
        )

    def _record(self) -> StopReason:
        timeout = self._timeout
        deadline = self._clock() + timeout if timeout > 0 else None

        while True:
            wait = POLL_INTERVAL
            if deadline is not None:
                wait = max(0.0, min(wait, deadline - self._clock()))
            try:
                batch = self._source.read_batch(wait)
            except OSError as e:
                log.warning("Event source failed, stopping: %s", e)
                return StopReason.SOURCE_ERROR

            if batch:
                for event in batch:
                    self._transcoder.feed(event)
                if deadline is not None:
                    deadline = self._clock() + timeout
            elif deadline is not None and self._clock() >= deadline:
                if self._transcoder.accepted > 0:
                    return StopReason.TIMEOUT
                # Nothing recorded yet: keep waiting for the first event
                deadline = self._clock() + timeout

            if self._stop_flag.is_set():
                return StopReason.REQUESTED

    def _finalize(self) -> None:
        try:
            tick = self._source.current_tick()
        except OSError as e:
            log.warning("Cannot read the current tick, ending track at last event: %s", e)
            tick = self._track.last_tick
        extra = self._track.finalize(tick)
        self._writer.flush(self._track)
        self._writer.patch_length(self._track, extra)
        self._state = CaptureState.FINALIZED
