"""Encode sequencer events as SMF track messages.

Each accepted event becomes a delta time, a status byte (omitted under
running status) and its data bytes, written into a :class:`TrackBuffer`.
"""

from __future__ import annotations

import logging

from .constants import (
    CHANNEL_PRESSURE,
    CONTROL_CHANGE,
    CTL_DATA_ENTRY_LSB,
    CTL_DATA_ENTRY_MSB,
    CTL_LSB_OFFSET,
    CTL_NRPN_LSB,
    CTL_NRPN_MSB,
    CTL_RPN_LSB,
    CTL_RPN_MSB,
    KEY_PRESSURE,
    NOTE_OFF,
    NOTE_ON,
    PITCH_BEND,
    PITCH_BEND_CENTER,
    PROGRAM_CHANGE,
    RECORDING_PORT,
    SYSEX_ESCAPE,
    SYSEX_START,
)
from .events import EventKind, SeqEvent
from .track_buffer import TrackBuffer

log = logging.getLogger(__name__)

_NOTE_STATUS = {
    EventKind.NOTE_ON: NOTE_ON,
    EventKind.NOTE_OFF: NOTE_OFF,
    EventKind.KEY_PRESSURE: KEY_PRESSURE,
}

# (parameter number LSB controller, parameter number MSB controller)
_PARAM_CONTROLLERS = {
    EventKind.NON_REGISTERED_PARAM: (CTL_NRPN_LSB, CTL_NRPN_MSB),
    EventKind.REGISTERED_PARAM: (CTL_RPN_LSB, CTL_RPN_MSB),
}


class EventTranscoder:
    """Filter incoming events and write them into one track."""

    def __init__(self, track: TrackBuffer, queue: int, port: int = RECORDING_PORT) -> None:
        self._track = track
        self._queue = queue
        self._port = port
        self._accepted = 0

    @property
    def accepted(self) -> int:
        """Number of events written to the track so far."""
        return self._accepted

    def accepts(self, event: SeqEvent) -> bool:
        """True if *event* belongs to this recording (clock and port)."""
        return (
            event.tick_based
            and event.queue == self._queue
            and event.dest == self._port
        )

    def feed(self, event: SeqEvent) -> bool:
        """Transcode one event. Returns True if anything was written."""
        if not self.accepts(event):
            log.debug("Discarding foreign event %s", event)
            return False

        kind = event.kind
        if kind in _NOTE_STATUS:
            self._channel_message(event, _NOTE_STATUS[kind], event.note, event.velocity)
        elif kind == EventKind.CONTROLLER:
            self._channel_message(event, CONTROL_CHANGE, event.param, event.value)
        elif kind == EventKind.PROGRAM_CHANGE:
            self._channel_message(event, PROGRAM_CHANGE, event.value)
        elif kind == EventKind.CHANNEL_PRESSURE:
            self._channel_message(event, CHANNEL_PRESSURE, event.value)
        elif kind == EventKind.PITCH_BEND:
            bend = event.value + PITCH_BEND_CENTER
            self._channel_message(event, PITCH_BEND, bend, bend >> 7)
        elif kind == EventKind.CONTROL14:
            self._control14(event)
        elif kind in _PARAM_CONTROLLERS:
            self._parameter(event, *_PARAM_CONTROLLERS[kind])
        elif kind == EventKind.SYSEX:
            if not event.data:
                return False
            self._sysex(event)
        else:
            return False

        self._accepted += 1
        return True

    def _channel_message(self, event: SeqEvent, status: int, *data: int) -> None:
        track = self._track
        track.append_delta(event.tick)
        track.append_status(status | (event.channel & 0x0F))
        for byte in data:
            track.append_byte(byte & 0x7F)

    def _control14(self, event: SeqEvent) -> None:
        param = event.param & 0x7F
        self._channel_message(event, CONTROL_CHANGE, param, event.value >> 7)
        if param < CTL_LSB_OFFSET:
            # LSB partner controller; status is still current
            self._channel_message(event, CONTROL_CHANGE, param + CTL_LSB_OFFSET, event.value)

    def _parameter(self, event: SeqEvent, number_lsb: int, number_msb: int) -> None:
        self._channel_message(event, CONTROL_CHANGE, number_lsb, event.param)
        self._channel_message(event, CONTROL_CHANGE, number_msb, event.param >> 7)
        self._channel_message(event, CONTROL_CHANGE, CTL_DATA_ENTRY_MSB, event.value >> 7)
        self._channel_message(event, CONTROL_CHANGE, CTL_DATA_ENTRY_LSB, event.value)

    def _sysex(self, event: SeqEvent) -> None:
        track = self._track
        payload = event.data
        track.append_delta(event.tick)
        track.append_status(SYSEX_START if payload[0] == SYSEX_START else SYSEX_ESCAPE)
        track.append_vlq(len(payload))
        track.append_bytes(payload)
