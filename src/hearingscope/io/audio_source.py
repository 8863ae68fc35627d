"""
Audio decoding, playback and live spectral tap.

The decoded signal comes from librosa, playback goes through
pygame.mixer, and the tap reads the window of samples under the playback
head the way a browser AnalyserNode does (Blackman window, temporal
smoothing, dB scaled to bytes).
"""

import logging
from pathlib import Path
from typing import Callable, Union

import librosa
import numpy as np
import pygame
from scipy import signal as scipy_signal

from hearingscope.config import VisualizerConfig
from hearingscope.exceptions import ResourceUnavailable
from hearingscope.pipeline import SpectralFrame

logger = logging.getLogger(__name__)


class SpectralTap:
    """
    Frequency-domain view of a decoded signal at a given position.

    Produces fft_size // 2 byte magnitudes per read. Smoothing state
    carries over between reads, as in an AnalyserNode.
    """

    def __init__(
        self,
        signal: np.ndarray,
        sample_rate: int,
        fft_size: int = 512,
        smoothing: float = 0.8,
        min_decibels: float = -100.0,
        max_decibels: float = -30.0,
    ):
        """
        Initialize the tap.

        Args:
            signal: Mono time-domain samples.
            sample_rate: Sample rate of ``signal``.
            fft_size: Analysis window length (power of two).
            smoothing: Averaging constant between frames, 0 disables it.
            min_decibels: Level mapped to byte 0.
            max_decibels: Level mapped to byte 255.
        """
        if fft_size < 2 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two, got {fft_size}")
        if max_decibels <= min_decibels:
            raise ValueError("max_decibels must be greater than min_decibels")

        self.signal = np.asarray(signal, dtype=np.float32)
        self.sample_rate = sample_rate
        self.fft_size = fft_size
        self.smoothing = float(np.clip(smoothing, 0.0, 1.0))
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels

        self.window = scipy_signal.windows.blackman(fft_size, sym=False)
        self._smoothed = np.zeros(self.bin_count, dtype=np.float64)

    @property
    def bin_count(self) -> int:
        return self.fft_size // 2

    def _window_at(self, position: float) -> np.ndarray:
        """fft_size samples ending at ``position`` seconds, zero padded."""
        end = int(round(position * self.sample_rate))
        end = min(max(end, 0), len(self.signal))
        start = end - self.fft_size

        block = np.zeros(self.fft_size, dtype=np.float64)
        if end > 0:
            chunk = self.signal[max(start, 0):end]
            block[self.fft_size - len(chunk):] = chunk
        return block

    def float_frequency_data(self, position: float) -> np.ndarray:
        """Smoothed magnitudes in dB for the window ending at ``position``."""
        spectrum = np.fft.rfft(self._window_at(position) * self.window)
        magnitude = np.abs(spectrum[:self.bin_count]) / self.fft_size

        self._smoothed = self.smoothing * self._smoothed + (1.0 - self.smoothing) * magnitude

        with np.errstate(divide="ignore"):
            return 20.0 * np.log10(self._smoothed)

    def byte_frequency_data(self, position: float) -> np.ndarray:
        """Magnitudes scaled from [min_decibels, max_decibels] to 0-255."""
        db = self.float_frequency_data(position)
        scaled = (db - self.min_decibels) * (255.0 / (self.max_decibels - self.min_decibels))
        return np.clip(np.floor(scaled), 0, 255).astype(np.uint8)

    def read(self, position: float) -> SpectralFrame:
        return SpectralFrame(
            magnitudes=self.byte_frequency_data(position),
            sample_rate=self.sample_rate,
        )

    def reset(self):
        """Clear smoothing history when playback restarts from the top."""
        self._smoothed = np.zeros(self.bin_count, dtype=np.float64)


class MixerPlayback:
    """Playback transport backed by pygame.mixer.music."""

    def __init__(self, audio_path: Union[str, Path]):
        self.audio_path = Path(audio_path)
        self._playing = False
        self._started = False
        self._last_position = 0.0

        try:
            if not pygame.mixer.get_init():
                pygame.mixer.init()
            pygame.mixer.music.load(str(self.audio_path))
        except pygame.error as e:
            raise ResourceUnavailable(f"Cannot open audio output for {self.audio_path}: {e}") from e

    @property
    def playing(self) -> bool:
        return self._playing

    @property
    def position(self) -> float:
        """Seconds played so far."""
        if self._started:
            pos_ms = pygame.mixer.music.get_pos()
            if pos_ms >= 0:
                self._last_position = pos_ms / 1000.0
            else:
                # Track finished
                self._playing = False
        return self._last_position

    def play(self):
        pygame.mixer.music.play()
        self._started = True
        self._playing = True

    def pause(self):
        pygame.mixer.music.pause()
        self._playing = False

    @property
    def finished(self) -> bool:
        """True once a started track has played to the end."""
        return self._started and pygame.mixer.music.get_pos() < 0

    def resume(self):
        if not self._started or self.finished:
            self.play()
            return
        pygame.mixer.music.unpause()
        self._playing = True

    def close(self):
        pygame.mixer.music.stop()
        pygame.mixer.music.unload()
        self._playing = False


class AudioSource:
    """
    A decoded, playable signal and its spectral tap.

    Release the source (or leave its ``with`` block) to stop playback and
    run the release callbacks, which cancel any frame loop bound to it.
    """

    def __init__(
        self,
        signal: np.ndarray,
        sample_rate: int,
        playback,
        fft_size: int = 512,
        config: VisualizerConfig | None = None,
    ):
        """
        Args:
            signal: Decoded mono samples.
            sample_rate: Sample rate of ``signal``.
            playback: Transport with play/pause/resume/close, ``position``
                and ``finished``.
            fft_size: Analysis window length for the tap.
            config: Analyser settings (smoothing, dB range).
        """
        cfg = config or VisualizerConfig()
        self.sample_rate = sample_rate
        self.duration = len(signal) / float(sample_rate)
        self.playback = playback
        self.tap = SpectralTap(
            signal,
            sample_rate,
            fft_size=fft_size,
            smoothing=cfg.smoothing,
            min_decibels=cfg.min_decibels,
            max_decibels=cfg.max_decibels,
        )
        self._release_callbacks: list[Callable[[], None]] = []
        self._released = False

    @classmethod
    def open(
        cls,
        audio_path: Union[str, Path],
        fft_size: int = 512,
        config: VisualizerConfig | None = None,
    ) -> "AudioSource":
        """
        Decode an audio file and prepare it for playback.

        Raises:
            ResourceUnavailable: The file cannot be decoded or the audio
                output cannot be opened.
        """
        audio_path = Path(audio_path)
        try:
            y, sr = librosa.load(audio_path, sr=None, mono=True)
        except Exception as e:
            raise ResourceUnavailable(f"Cannot decode {audio_path}: {e}") from e

        playback = MixerPlayback(audio_path)
        logger.info(
            "Opened %s (%.2fs at %d Hz, %d bins)",
            audio_path.name, len(y) / sr, sr, fft_size // 2,
        )
        return cls(y, sr, playback, fft_size=fft_size, config=config)

    @property
    def released(self) -> bool:
        return self._released

    @property
    def bin_count(self) -> int:
        return self.tap.bin_count

    @property
    def position(self) -> float:
        return self.playback.position

    def play(self):
        """Start playback from the beginning."""
        self.tap.reset()
        self.playback.play()

    def pause(self):
        self.playback.pause()

    def resume(self):
        """Continue playback; a finished track starts over."""
        if self.playback.finished:
            self.tap.reset()
        self.playback.resume()

    def toggle(self):
        if self.playback.playing:
            self.pause()
        else:
            self.resume()

    def set_fft_size(self, fft_size: int):
        """Swap the tap for one with a different analysis window."""
        if fft_size == self.tap.fft_size:
            return
        tap = self.tap
        self.tap = SpectralTap(
            tap.signal,
            tap.sample_rate,
            fft_size=fft_size,
            smoothing=tap.smoothing,
            min_decibels=tap.min_decibels,
            max_decibels=tap.max_decibels,
        )

    def spectral_frame(self) -> SpectralFrame:
        """Current spectrum under the playback head."""
        if self._released:
            raise ResourceUnavailable("Audio source has been released")
        return self.tap.read(self.playback.position)

    def on_release(self, callback: Callable[[], None]):
        """Run ``callback`` when the source is released."""
        if self._released:
            callback()
        else:
            self._release_callbacks.append(callback)

    def release(self):
        """Stop playback, drop the tap and cancel dependents. Idempotent."""
        if self._released:
            return
        self._released = True

        callbacks, self._release_callbacks = self._release_callbacks, []
        try:
            for callback in callbacks:
                callback()
        finally:
            self.playback.close()
            logger.debug("Audio source released")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False
