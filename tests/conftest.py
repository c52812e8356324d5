"""Pytest fixtures for bark_responder tests"""

import pytest
import numpy as np
import tempfile
import shutil
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import Mock

from bark_responder.core.classifier import ThresholdConfig
from bark_responder.core.models import BarkEvent, ListeningSession, Recording, ThresholdLevel
from bark_responder.utils.config import DetectionConfig


T0 = datetime(2025, 9, 27, 21, 0, 0)


class FakeClock:
    """Controllable replacement for datetime.now."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def two_level_thresholds():
    """The built-in -30 / -15 dBFS configuration."""
    return [
        ThresholdLevel(id='1', name='Gentle Woof', value=-30.0),
        ThresholdLevel(id='2', name='Big Bark', value=-15.0),
    ]


@pytest.fixture
def detection_settings():
    return DetectionConfig(thresholds=ThresholdConfig.default(), cooldown_seconds=15.0, sensitivity=1.0)


@pytest.fixture
def sample_recordings():
    """One calming sound per default level."""
    return [
        Recording(id='rec-1', name='Shush', uri='/tmp/shush.wav', duration=3.0, level=1,
                  created_at=T0, updated_at=T0),
        Recording(id='rec-2', name='Good dog', uri='/tmp/good_dog.wav', duration=5.0, level=2,
                  created_at=T0, updated_at=T0),
    ]


@pytest.fixture
def mock_capture():
    """Capture facility that records the sample callback instead of opening a device."""
    capture = Mock()
    capture.handle = Mock()
    capture.start_capture.return_value = capture.handle
    return capture


@pytest.fixture
def mock_player():
    """Player whose handles are just the recording URIs."""
    player = Mock()
    player.load_sound.side_effect = lambda uri: f"handle:{uri}"
    return player


def make_event(offset_seconds: float, raw_level: float, level=1, sound_played=False,
               started_at: datetime = T0, event_id: str = None) -> BarkEvent:
    return BarkEvent(
        id=event_id or f"evt-{offset_seconds}",
        timestamp=started_at + timedelta(seconds=offset_seconds),
        raw_level=raw_level,
        derived_level=level,
        sound_played=sound_played,
        triggered_recording_id='rec-1' if sound_played else None
    )


def make_session(duration_seconds: float, events=(), started_at: datetime = T0) -> ListeningSession:
    session = ListeningSession(id='session-1', started_at=started_at)
    for event in events:
        session.add_event(event)
    session.close(started_at + timedelta(seconds=duration_seconds))
    return session


@pytest.fixture
def sine_wave_int16():
    """One second of a full-scale 440 Hz sine, as PyAudio delivers it."""
    sample_rate = 16000
    t = np.linspace(0, 1.0, sample_rate, False)
    return (np.sin(2 * np.pi * 440.0 * t) * 32767).astype(np.int16)


@pytest.fixture
def event_factory():
    return make_event


@pytest.fixture
def session_factory():
    return make_session
