"""Tests for smfrec.core.track_buffer — size, deltas, running status, finalize."""

from __future__ import annotations

import pytest

from smfrec.core.track_buffer import TrackBuffer


class TestAppend:
    def test_initial_state(self, track):
        assert track.size == 0
        assert len(track) == 0
        assert track.last_tick == 0
        assert track.last_command == 0
        assert track.t_start is None
        assert track.getvalue() == b""

    def test_size_tracks_every_append(self, track):
        track.append_byte(0x90)
        track.append_bytes(b"\x3c\x64")
        track.append_vlq(480)
        assert track.size == 5
        assert track.getvalue() == b"\x90\x3c\x64\x83\x60"

    def test_append_byte_masks_to_8_bits(self, track):
        track.append_byte(0x1FF)
        assert track.getvalue() == b"\xff"

    def test_grows_past_any_chunk_size(self, track):
        for i in range(10000):
            track.append_byte(i & 0x7F)
        assert track.size == 10000
        assert len(track.getvalue()) == 10000


class TestDelta:
    def test_first_delta_fixes_baseline(self, track):
        track.append_delta(1000)
        assert track.t_start == 1000
        assert track.last_tick == 0
        assert track.getvalue() == b"\x00"

    def test_baseline_at_tick_zero_is_kept(self, track):
        track.append_delta(0)
        track.append_delta(480)
        assert track.t_start == 0
        assert track.getvalue() == b"\x00\x83\x60"

    def test_baseline_never_changes(self, track):
        track.append_delta(100)
        track.append_delta(150)
        track.append_delta(300)
        assert track.t_start == 100
        assert track.last_tick == 200
        assert track.getvalue() == b"\x00\x32\x81\x16"

    def test_negative_delta_clamped(self, track):
        track.append_delta(500)
        track.append_delta(800)
        track.append_delta(700)
        assert track.getvalue() == b"\x00\x82\x2c\x00"
        assert track.last_tick == 300


class TestRunningStatus:
    def test_repeated_status_written_once(self, track):
        track.append_status(0x90)
        track.append_status(0x90)
        track.append_status(0x90)
        assert track.getvalue() == b"\x90"
        assert track.last_command == 0x90

    def test_different_status_written(self, track):
        track.append_status(0x90)
        track.append_status(0x80)
        assert track.getvalue() == b"\x90\x80"

    def test_system_status_clears_running_status(self, track):
        track.append_status(0x90)
        track.append_status(0xF0)
        assert track.last_command == 0
        track.append_status(0x90)
        assert track.getvalue() == b"\x90\xf0\x90"

    def test_repeated_system_status_is_rewritten(self, track):
        track.append_status(0xF0)
        track.append_status(0xF0)
        assert track.getvalue() == b"\xf0\xf0"

    def test_meta_breaks_running_status(self, track):
        track.append_status(0xB0)
        track.append_meta(0x51, b"\x07\xa1\x20")
        assert track.last_command == 0
        assert track.getvalue() == b"\xb0\x00\xff\x51\x03\x07\xa1\x20"


class TestFinalize:
    def test_appends_delta_and_end_of_track(self, track):
        track.append_delta(0)
        extra = track.finalize(96)
        assert extra == 4
        assert track.getvalue() == b"\x00\x60\xff\x2f\x00"
        assert track.finalized

    def test_end_delta_from_raw_clock_tick(self, track):
        """The trailing delta is not shifted by the first event's tick."""
        track.append_delta(1000)
        extra = track.finalize(1480)
        assert extra == 5
        assert track.getvalue() == b"\x00\x8b\x48\xff\x2f\x00"

    def test_end_delta_after_later_events(self, track):
        track.append_delta(1000)
        track.append_delta(1480)
        extra = track.finalize(1480)
        assert extra == 5
        assert track.getvalue().endswith(b"\x87\x68\xff\x2f\x00")

    def test_empty_track_uses_raw_tick(self, track):
        extra = track.finalize(200)
        assert extra == 5
        assert track.getvalue() == b"\x81\x48\xff\x2f\x00"

    def test_clock_behind_last_event_clamped(self, track):
        track.append_delta(0)
        track.append_delta(500)
        track.finalize(100)
        assert track.getvalue().endswith(b"\x00\xff\x2f\x00")

    def test_size_includes_extra(self):
        track = TrackBuffer()
        track.append_bytes(b"\x00\x90\x3c\x64")
        extra = track.finalize(0)
        assert track.size == 4 + extra == len(track.getvalue())

    def test_finalize_twice_raises(self, track):
        track.finalize(0)
        with pytest.raises(RuntimeError):
            track.finalize(0)
