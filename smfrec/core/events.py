"""Timestamped sequencer events delivered to the recorder."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, auto

from .constants import RECORDING_PORT


class EventKind(IntEnum):
    """Kind of an incoming sequencer event."""
    NOTE_ON = auto()
    NOTE_OFF = auto()
    KEY_PRESSURE = auto()
    CONTROLLER = auto()
    PROGRAM_CHANGE = auto()
    CHANNEL_PRESSURE = auto()
    PITCH_BEND = auto()
    CONTROL14 = auto()
    NON_REGISTERED_PARAM = auto()
    REGISTERED_PARAM = auto()
    SYSEX = auto()
    OTHER = auto()


@dataclass(frozen=True, slots=True)
class SeqEvent:
    """A single sequencer event with its tick timestamp and routing.

    Only the payload fields relevant to ``kind`` are meaningful: note events
    use ``note``/``velocity``, controller-like events use ``param``/``value``
    (``value`` is the signed bend offset for PITCH_BEND), SYSEX uses ``data``.
    """

    kind: EventKind
    tick: int
    channel: int = 0
    note: int = 0
    velocity: int = 0
    param: int = 0
    value: int = 0
    data: bytes = b""
    queue: int = 0
    dest: int = RECORDING_PORT
    tick_based: bool = True
