"""Shared test fixtures."""

from __future__ import annotations

import pytest
from helpers import QUEUE

from smfrec.core.track_buffer import TrackBuffer
from smfrec.core.transcoder import EventTranscoder


@pytest.fixture
def track():
    return TrackBuffer()


@pytest.fixture
def transcoder(track):
    return EventTranscoder(track, QUEUE)
