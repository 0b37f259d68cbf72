"""Entry point: record a Standard MIDI File from one MIDI input port."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path

from . import __version__
from .core.capture_loop import CaptureLoop, CaptureResult
from .core.config import ConfigManager, get_config
from .core.constants import (
    BPM_MAX,
    BPM_MIN,
    DEFAULT_BPM,
    DEFAULT_TIME_SIGNATURE,
    SMPTE_FRAME_RATES,
    TICKS_MAX,
    TICKS_MIN,
)
from .core.midi_listener import MIDI_ERRORS, MidiEventSource, list_ports, resolve_port
from .core.smf_writer import open_smf, write_timing_meta
from .core.timing import Tempo, TickClock, TimeSignature
from .core.track_buffer import TrackBuffer
from .core.transcoder import EventTranscoder

log = logging.getLogger(__name__)


class _TimingModeAction(argparse.Action):
    """Store the value and record whether --bpm or --fps came last."""

    def __call__(self, parser, namespace, values, option_string=None):
        setattr(namespace, self.dest, values)
        namespace.smpte = self.dest == "fps"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smfrec",
        description="Record a Standard MIDI File from a MIDI input port.",
    )
    parser.add_argument("outputfile", nargs="?", help="the .mid file to record to")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-l", "--list", action="store_true", help="list input ports")
    parser.add_argument("-p", "--port", help="source port (name, part of a name, or index)")
    parser.add_argument(
        "-b", "--bpm", type=int, action=_TimingModeAction, help="tempo in beats per minute",
    )
    parser.add_argument(
        "-f", "--fps", type=int, action=_TimingModeAction,
        help="resolution in frames per second (SMPTE)",
    )
    parser.set_defaults(smpte=None)
    parser.add_argument("-t", "--ticks", type=int, help="resolution in ticks per beat or frame")
    parser.add_argument("-i", "--timesig", help="time signature nn:dd")
    parser.add_argument(
        "-T", "--timeout", type=int,
        help="stop recording n milliseconds after the last event (0 = disabled)",
    )
    parser.add_argument(
        "-s", "--split-channels", action="store_true",
        help="create a track for each channel (not supported)",
    )
    parser.add_argument("-d", "--dump", action="store_true", help=argparse.SUPPRESS)
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def print_ports(ports: list[str]) -> None:
    print(" Port  Name")
    for i, name in enumerate(ports):
        print(f"{i:5d}  {name}")


def resolve_tempo(args: argparse.Namespace, config: ConfigManager) -> Tempo:
    """Combine command line and configured timing options.

    Out-of-range command line values are rejected before any defaults or
    SMPTE clamping apply. When both --bpm and --fps are given the later
    one selects the timing mode.
    """
    if args.bpm is not None and not BPM_MIN <= args.bpm <= BPM_MAX:
        raise ValueError(f"Invalid tempo: {args.bpm}")
    if args.fps is not None and args.fps not in SMPTE_FRAME_RATES:
        raise ValueError(f"Invalid number of frames/s: {args.fps}")
    if args.ticks is not None and not TICKS_MIN <= args.ticks <= TICKS_MAX:
        raise ValueError(f"Invalid number of ticks: {args.ticks}")

    if args.smpte is None:
        fps = config.get("recording.fps", 0)
    else:
        fps = args.fps if args.smpte else 0
    bpm = args.bpm if args.bpm is not None else config.get("recording.bpm", DEFAULT_BPM)
    ticks = args.ticks if args.ticks is not None else config.get("recording.ticks", 0)
    return Tempo.create(bpm=bpm, fps=fps, ticks=ticks)


def record(
    port_name: str,
    path: str | Path,
    tempo: Tempo,
    time_signature: TimeSignature,
    timeout: float = 0.0,
) -> CaptureResult:
    """Record from *port_name* into *path* until stopped."""
    track = TrackBuffer()
    write_timing_meta(track, tempo, time_signature)

    with MidiEventSource(port_name, TickClock(tempo)) as source, open_smf(path) as writer:
        writer.write_header(tempo.ticks, tempo.smpte, tempo.fps)
        transcoder = EventTranscoder(track, source.queue_id)
        loop = CaptureLoop(source, writer, track, transcoder, timeout=timeout)

        def _on_signal(signum, frame):
            log.info("Received signal %d, stopping", signum)
            loop.request_stop()

        previous = {
            sig: signal.signal(sig, _on_signal) for sig in (signal.SIGINT, signal.SIGTERM)
        }
        try:
            return loop.run()
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    if args.dump:
        log.warning("The --dump option isn't supported anymore, use a MIDI monitor instead.")
    if args.list:
        try:
            print_ports(list_ports())
        except MIDI_ERRORS as e:
            log.error("Cannot list MIDI ports: %s", e)
            return 1
        return 0
    if args.split_channels:
        log.warning("--split-channels is not supported; recording a single track")

    config = get_config()
    try:
        tempo = resolve_tempo(args, config)
        timesig = args.timesig or config.get("recording.timesig", DEFAULT_TIME_SIGNATURE)
        time_signature = TimeSignature.parse(timesig)
        timeout_ms = args.timeout if args.timeout is not None else config.get("recording.timeout_ms", 0)
        if timeout_ms < 0:
            raise ValueError("Timeout must be 0 (disabled) or a positive value in milliseconds.")
        port_name = resolve_port(args.port or config.get("recording.port", ""), list_ports())
        if not args.outputfile:
            raise ValueError("Please specify a file to record to.")
    except ValueError as e:
        log.error("%s", e)
        return 1
    except MIDI_ERRORS as e:
        log.error("Cannot list MIDI ports: %s", e)
        return 1

    try:
        result = record(port_name, args.outputfile, tempo, time_signature, timeout_ms / 1000.0)
    except MIDI_ERRORS as e:
        log.error("Cannot record to %s: %s", args.outputfile, e)
        return 1

    config.set("recording.port", port_name)
    log.info("Saved %d events to %s", result.events, args.outputfile)
    return 0


if __name__ == "__main__":
    sys.exit(main())
