"""Pytest configuration and shared fixtures."""

import os

# Headless pygame for renderer and app tests
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import numpy as np
import pygame
import pytest

from hearingscope.core.profile import HearingProfileStore
from hearingscope.pipeline import SpectralFrame

# Default sample rate for test audio
TEST_SR = 44100


class FakePlayback:
    """Transport stand-in that never touches the audio device."""

    def __init__(self, position: float = 0.0):
        self.position = position
        self.playing = False
        self.closed = False
        self.finished = False
        self.calls = []

    def play(self):
        self.calls.append("play")
        self.finished = False
        self.playing = True

    def pause(self):
        self.calls.append("pause")
        self.playing = False

    def resume(self):
        self.calls.append("resume")
        self.finished = False
        self.playing = True

    def close(self):
        self.calls.append("close")
        self.closed = True
        self.playing = False


class CountingClock:
    """Clock stand-in: counts ticks and runs a hook on each one."""

    def __init__(self, on_tick=None):
        self.ticks = 0
        self.on_tick = on_tick

    def tick(self, fps=0):
        self.ticks += 1
        if self.on_tick is not None:
            self.on_tick(self.ticks)
        return 16


@pytest.fixture(scope="session", autouse=True)
def pygame_headless():
    """Initialize pygame once with the dummy video driver."""
    pygame.display.init()
    yield
    pygame.quit()


@pytest.fixture
def sample_rate() -> int:
    """Default sample rate for tests."""
    return TEST_SR


@pytest.fixture
def store() -> HearingProfileStore:
    """Store starting at normal hearing."""
    return HearingProfileStore()


@pytest.fixture
def pure_sine(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Generate a pure 1kHz sine wave.

    Returns:
        Tuple of (audio_signal, sample_rate).
    """
    duration = 1.0
    t = np.linspace(0, duration, int(sample_rate * duration), endpoint=False)
    y = 0.5 * np.sin(2 * np.pi * 1000.0 * t)
    return y.astype(np.float32), sample_rate


@pytest.fixture
def white_noise(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Generate white noise.

    Returns:
        Tuple of (audio_signal, sample_rate).
    """
    rng = np.random.default_rng(42)
    samples = int(sample_rate * 1.0)
    y = rng.standard_normal(samples).astype(np.float32) * 0.3
    return y, sample_rate


@pytest.fixture
def ramp_frame(sample_rate: int) -> SpectralFrame:
    """512-bin spectral frame with a rising magnitude ramp."""
    magnitudes = np.linspace(0, 255, 512).astype(np.uint8)
    return SpectralFrame(magnitudes=magnitudes, sample_rate=sample_rate)


@pytest.fixture
def temp_audio_file(tmp_path, pure_sine):
    """Create a temporary audio file for testing file I/O."""
    import soundfile as sf

    y, sr = pure_sine
    audio_path = tmp_path / "test_audio.wav"
    sf.write(audio_path, y, sr)
    return audio_path


@pytest.fixture
def fake_playback() -> FakePlayback:
    """Playback transport that records calls."""
    return FakePlayback()


@pytest.fixture
def clock_factory():
    """Build a CountingClock with an optional per-tick hook."""
    return CountingClock
