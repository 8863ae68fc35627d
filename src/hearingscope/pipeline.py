"""
Per-frame perceptual analysis pipeline.

Turns one spectral frame from the audio tap into the frame a renderer
draws: raw plus compressed bars, or an A-weighted, compressed and
min-max normalized line.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Union

import numpy as np

from hearingscope.config import BAR_MODE, LINE_MODE, VisualizerConfig
from hearingscope.core.compression import CompressionEngine
from hearingscope.core.profile import HearingProfile, HearingProfileStore
from hearingscope.core.weighting import weight
from hearingscope.exceptions import DegenerateFrameError, ResourceUnavailable

logger = logging.getLogger(__name__)

# Output range of the normalized line view
NORMALIZED_MAX = 255.0


@dataclass(frozen=True)
class SpectralFrame:
    """Magnitudes (0-255) for one analysis window."""

    magnitudes: np.ndarray
    sample_rate: float

    @property
    def n_bins(self) -> int:
        return len(self.magnitudes)

    @property
    def frequencies(self) -> np.ndarray:
        return bin_frequencies(self.n_bins, self.sample_rate)


@dataclass(frozen=True)
class BarFrame:
    """Raw and hearing-adjusted magnitudes for every bin."""

    frequencies: np.ndarray
    raw: np.ndarray
    compressed: np.ndarray

    @property
    def n_bins(self) -> int:
        return len(self.raw)


@dataclass(frozen=True)
class LineFrame:
    """Normalized values for bins between min_index and max_index (inclusive)."""

    frequencies: np.ndarray
    values: np.ndarray
    min_index: int
    max_index: int

    @property
    def is_empty(self) -> bool:
        return len(self.values) == 0


AdjustedFrame = Union[BarFrame, LineFrame]


def bin_frequencies(n_bins: int, sample_rate: float) -> np.ndarray:
    """
    Center frequency of each analysis bin.

    Bins are spaced linearly from 0 Hz up to Nyquist.
    """
    return np.arange(n_bins, dtype=np.float64) * sample_rate / (2 * n_bins)


def normalize(
    values: np.ndarray,
    out_max: float = NORMALIZED_MAX,
    floor: float = 1e-9,
) -> np.ndarray:
    """
    Min-max normalize values into [0, out_max].

    Raises:
        DegenerateFrameError: The values have no spread (max - min < floor).
    """
    if len(values) == 0:
        return np.zeros(0, dtype=np.float64)

    min_val = np.min(values)
    max_val = np.max(values)
    range_val = max_val - min_val

    if not np.isfinite(range_val) or range_val < floor:
        raise DegenerateFrameError(
            f"Cannot normalize frame with range {range_val!r} (min={min_val!r})"
        )

    normalized = (values - min_val) / range_val * out_max
    return np.clip(normalized, 0.0, out_max)


class FramePipeline:
    """
    Processes spectral frames against the current hearing profile.

    The profile snapshot is read once per frame, so a band change made
    while a frame is being processed shows up in the next one.
    """

    def __init__(
        self,
        store: HearingProfileStore,
        config: VisualizerConfig | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            store: Hearing profile store read every frame.
            config: Visualizer configuration (frequency window for line mode).
        """
        self.store = store
        self.config = config or VisualizerConfig()
        self.engine = CompressionEngine(store)

    def process_bars(
        self,
        frame: SpectralFrame,
        profile: HearingProfile | None = None,
    ) -> BarFrame:
        """
        Bar view: raw magnitudes and their compressed counterparts.

        Both traces are computed from the spectral frame directly.
        """
        profile = profile or self.store.snapshot()
        frequencies = frame.frequencies
        raw = np.asarray(frame.magnitudes, dtype=np.float64)
        compressed = self.engine.compress(frequencies, raw, profile)
        return BarFrame(frequencies=frequencies, raw=raw, compressed=compressed)

    def line_range(self, frame: SpectralFrame) -> tuple[int, int] | None:
        """First and last bin index inside the line view's frequency window."""
        frequencies = frame.frequencies
        in_range = np.flatnonzero(
            (frequencies >= self.config.min_frequency)
            & (frequencies <= self.config.max_frequency)
        )
        if len(in_range) == 0:
            return None
        return int(in_range[0]), int(in_range[-1])

    def process_line(
        self,
        frame: SpectralFrame,
        profile: HearingProfile | None = None,
    ) -> LineFrame:
        """
        Line view: A-weight, compress, then normalize to 0-255.

        Normalization uses only the bins inside the frequency window of this
        frame. A flat frame comes out as all zeros.
        """
        profile = profile or self.store.snapshot()
        bounds = self.line_range(frame)
        if bounds is None:
            empty = np.zeros(0, dtype=np.float64)
            return LineFrame(frequencies=empty, values=empty, min_index=0, max_index=0)

        min_index, max_index = bounds
        frequencies = frame.frequencies[min_index:max_index + 1]
        magnitudes = np.asarray(frame.magnitudes[min_index:max_index + 1], dtype=np.float64)

        adjusted = self.engine.compress(frequencies, magnitudes * weight(frequencies), profile)
        try:
            values = normalize(adjusted)
        except DegenerateFrameError as e:
            logger.debug("Flat line frame, drawing baseline: %s", e)
            values = np.zeros_like(adjusted)

        return LineFrame(
            frequencies=frequencies,
            values=values,
            min_index=min_index,
            max_index=max_index,
        )

    def process(self, frame: SpectralFrame, mode: str) -> AdjustedFrame:
        """Process a frame for the given visualization mode."""
        if mode == LINE_MODE:
            return self.process_line(frame)
        if mode == BAR_MODE:
            return self.process_bars(frame)
        raise ValueError(f"Unknown visualization mode: {mode!r}")


class FrameLoop:
    """
    Cancellable per-frame task.

    Calls ``callback`` once per clock tick until cancelled. Ticks run to
    completion one after another. A failing frame is logged and skipped;
    ResourceUnavailable stops the loop and propagates for the caller to report.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        clock,
        fps: int = 60,
    ):
        """
        Args:
            callback: Work for one frame.
            clock: Object with ``tick(fps)`` that waits for the next frame
                (pygame.time.Clock).
            fps: Target refresh rate.
        """
        self.callback = callback
        self.clock = clock
        self.fps = fps
        self.frames_run = 0
        self.frames_failed = 0
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self):
        """Stop scheduling frames. Safe to call more than once."""
        if not self._cancelled:
            logger.debug("Frame loop cancelled after %d frames", self.frames_run)
        self._cancelled = True

    def step(self) -> bool:
        """
        Run a single frame.

        Returns:
            False once the loop is cancelled, True otherwise.
        """
        if self._cancelled:
            return False

        try:
            self.callback()
        except ResourceUnavailable:
            logger.debug("Audio resource lost; stopping frame loop")
            self.cancel()
            raise
        except Exception:
            self.frames_failed += 1
            logger.exception("Frame %d failed; continuing", self.frames_run)
        finally:
            self.frames_run += 1

        return not self._cancelled

    def run(self):
        """Run frames until cancelled."""
        try:
            while not self._cancelled:
                self.clock.tick(self.fps)
                if self._cancelled:
                    break
                self.step()
        finally:
            self.cancel()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cancel()
        return False
