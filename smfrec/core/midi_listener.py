"""MIDI input port enumeration and tick-stamped event capture using mido/rtmidi.

The rtmidi callback thread converts each message to a :class:`SeqEvent`
stamped with the recording clock and hands it to the recording thread
through a queue.
"""

from __future__ import annotations

import itertools
import logging
import queue
import time
from collections.abc import Sequence

import mido
import rtmidi

from .constants import PORT_CHECK_INTERVAL, SYSEX_ESCAPE, SYSEX_START
from .events import EventKind, SeqEvent
from .timing import TickClock

log = logging.getLogger(__name__)

_queue_ids = itertools.count(1)

# Errors the mido/rtmidi backend raises when ports cannot be listed or opened
MIDI_ERRORS = (OSError, RuntimeError, rtmidi.RtMidiError)


def list_ports() -> list[str]:
    """Return available MIDI input port names."""
    return list(dict.fromkeys(mido.get_input_names()))


def resolve_port(spec: str, names: Sequence[str]) -> str:
    """Pick one input port by exact name, substring, or index.

    Raises ValueError if *spec* lists several ports or matches none.
    """
    spec = spec.strip()
    if not spec:
        raise ValueError("Please specify a source port with --port.")
    if "," in spec:
        raise ValueError("Only 1 port allowed")
    for name in names:
        if name == spec:
            return name
    for name in names:
        if spec.lower() in name.lower():
            return name
    if spec.isdigit() and int(spec) < len(names):
        return names[int(spec)]
    raise ValueError(f"Invalid port {spec} - no such MIDI input")


def event_from_message(msg: mido.Message, tick: int, queue_id: int) -> SeqEvent:
    """Convert a mido message into a sequencer event."""
    mtype = msg.type
    channel = getattr(msg, "channel", 0)
    if mtype == "note_on":
        return SeqEvent(EventKind.NOTE_ON, tick, channel, note=msg.note,
                        velocity=msg.velocity, queue=queue_id)
    if mtype == "note_off":
        return SeqEvent(EventKind.NOTE_OFF, tick, channel, note=msg.note,
                        velocity=msg.velocity, queue=queue_id)
    if mtype == "polytouch":
        return SeqEvent(EventKind.KEY_PRESSURE, tick, channel, note=msg.note,
                        velocity=msg.value, queue=queue_id)
    if mtype == "control_change":
        return SeqEvent(EventKind.CONTROLLER, tick, channel, param=msg.control,
                        value=msg.value, queue=queue_id)
    if mtype == "program_change":
        return SeqEvent(EventKind.PROGRAM_CHANGE, tick, channel,
                        value=msg.program, queue=queue_id)
    if mtype == "aftertouch":
        return SeqEvent(EventKind.CHANNEL_PRESSURE, tick, channel,
                        value=msg.value, queue=queue_id)
    if mtype == "pitchwheel":
        return SeqEvent(EventKind.PITCH_BEND, tick, channel,
                        value=msg.pitch, queue=queue_id)
    if mtype == "sysex":
        # mido strips the framing bytes; the sequencer payload carries them
        data = bytes([SYSEX_START, *msg.data, SYSEX_ESCAPE])
        return SeqEvent(EventKind.SYSEX, tick, data=data, queue=queue_id)
    return SeqEvent(EventKind.OTHER, tick, queue=queue_id)


class MidiEventSource:
    """One MIDI input port delivering tick-stamped events.

    The rtmidi callback runs on its own thread; ``read_batch`` is called
    from the recording thread. ``queue.Queue`` is the only shared state.
    """

    def __init__(self, port_name: str, clock: TickClock) -> None:
        self._port_name = port_name
        self._clock = clock
        self._port: mido.ports.BaseInput | None = None
        self._pending: queue.Queue[SeqEvent] = queue.Queue()
        self._last_port_check = 0.0
        self.queue_id = next(_queue_ids)

    @property
    def port_name(self) -> str:
        return self._port_name

    @property
    def connected(self) -> bool:
        return self._port is not None and not getattr(self._port, "closed", True)

    def open(self) -> None:
        """Open the port and start the recording clock."""
        self.close()
        self._clock.start()
        self._port = mido.open_input(self._port_name, callback=self._on_message)
        self._last_port_check = time.monotonic()
        log.info("Opened MIDI port: %s", self._port_name)

    def close(self) -> None:
        """Close the port if open."""
        if self._port is not None:
            port, self._port = self._port, None
            try:
                port.close()
            except MIDI_ERRORS:
                log.warning("Error closing MIDI port %s", self._port_name, exc_info=True)
            log.info("MIDI port closed")

    def __enter__(self) -> MidiEventSource:
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def current_tick(self) -> int:
        return self._clock.tick()

    def read_batch(self, timeout: float) -> list[SeqEvent]:
        """Wait up to *timeout* seconds for an event, then drain the rest.

        Raises OSError if the port was closed or has disappeared from the
        system (checked every ``PORT_CHECK_INTERVAL`` seconds).
        """
        if not self.connected:
            raise OSError(f"MIDI port {self._port_name} is not open")
        self._check_port_present()
        batch: list[SeqEvent] = []
        try:
            batch.append(self._pending.get(timeout=timeout) if timeout > 0
                         else self._pending.get_nowait())
        except queue.Empty:
            return batch
        while True:
            try:
                batch.append(self._pending.get_nowait())
            except queue.Empty:
                return batch

    def _check_port_present(self) -> None:
        """Raise OSError once the port is no longer listed by the backend."""
        now = time.monotonic()
        if now - self._last_port_check < PORT_CHECK_INTERVAL:
            return
        self._last_port_check = now
        try:
            present = self._port_name in mido.get_input_names()
        except MIDI_ERRORS as e:
            raise OSError(f"Cannot list MIDI ports: {e}") from e
        if not present:
            raise OSError(f"MIDI port {self._port_name} has disappeared")

    def _on_message(self, msg: mido.Message) -> None:
        """Internal callback from rtmidi thread."""
        try:
            event = event_from_message(msg, self._clock.tick(), self.queue_id)
        except (AttributeError, TypeError, ValueError):
            log.exception("Error in MIDI callback")
            return
        log.debug("Received %s at tick %d", msg.type, event.tick)
        self._pending.put(event)
