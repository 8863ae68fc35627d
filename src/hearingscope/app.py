"""
Interactive hearing-loss visualizer.

Opens an audio file, plays it, and redraws the hearing-adjusted spectrum
every display frame. Keyboard controls stand in for the preset buttons
and band sliders:

    1-4         normal / age related / CI user / deaf preset
                (4 is the profound profile in the line view)
    B, L        bar or line view
    Space       play / pause
    Up, Down    select band
    Left, Right lower / raise the selected band by 5 dB
    Esc         quit
"""

import logging
from pathlib import Path
from typing import Union

import numpy as np
import pygame

from hearingscope.config import BAR_MODE, LINE_MODE, MODES, VisualizerConfig
from hearingscope.core.profile import (
    MAX_SLIDER_DB,
    PRESET_LABELS,
    HearingProfile,
    HearingProfileStore,
)
from hearingscope.io.audio_source import AudioSource
from hearingscope.pipeline import FrameLoop, FramePipeline
from hearingscope.visualizers.spectrum import get_renderer

logger = logging.getLogger(__name__)

BAND_STEP_DB = 5


class HearingVisualizer:
    """
    Owns the hearing profile, the active audio source and its frame loop.

    Only one source is active at a time; opening another releases the
    previous one, which cancels its loop.
    """

    PRESET_KEYS = {
        pygame.K_1: "normal",
        pygame.K_2: "age_related",
        pygame.K_3: "cochlear_implant",
        pygame.K_4: "deaf",
    }

    # The line view's deaf button uses the stronger profile
    MODE_PRESETS = {
        LINE_MODE: {"deaf": "profound"},
    }

    MODE_KEYS = {
        pygame.K_b: BAR_MODE,
        pygame.K_l: LINE_MODE,
    }

    def __init__(
        self,
        config: VisualizerConfig | None = None,
        store: HearingProfileStore | None = None,
        surface: pygame.Surface | None = None,
        clock=None,
    ):
        """
        Initialize the visualizer.

        Args:
            config: Visualizer configuration.
            store: Hearing profile store (normal hearing if None).
            surface: Target surface. A window is opened when None.
            clock: Frame clock with ``tick(fps)``; pygame.time.Clock if None.
        """
        self.config = config or VisualizerConfig()
        if self.config.mode not in MODES:
            raise ValueError(f"Unknown visualization mode: {self.config.mode!r}")

        self.store = store or HearingProfileStore()
        self.pipeline = FramePipeline(self.store, self.config)
        self.renderer = get_renderer(self.config.mode, self.config)
        self.surface = surface
        self.clock = clock
        self.selected_band = 0

        self.source: AudioSource | None = None
        self.loop: FrameLoop | None = None

        self._unsubscribe = self.store.subscribe(self._on_profile_change)

    @property
    def mode(self) -> str:
        return self.config.mode

    def _ensure_display(self):
        if self.surface is None:
            pygame.init()
            self.surface = pygame.display.set_mode((self.config.width, self.config.height))
            self._update_caption(self.store.snapshot())
        if self.clock is None:
            self.clock = pygame.time.Clock()

    def _update_caption(self, profile: HearingProfile):
        if pygame.display.get_surface() is None:
            return
        band = self.store.bands[self.selected_band]
        levels = " ".join(f"{int(f)}:{profile[f]:g}" for f in profile)
        pygame.display.set_caption(
            f"hearingscope [{self.mode}] band {band} Hz | {levels}"
        )

    def _on_profile_change(self, profile: HearingProfile):
        logger.debug("Hearing profile changed: %r", profile)
        self._update_caption(profile)

    def attach(self, source: AudioSource) -> FrameLoop:
        """
        Make ``source`` the active source and bind a new frame loop to it.

        The previous source, if any, is released first. If the display
        cannot be set up, ``source`` is released before the error propagates.
        """
        try:
            self._ensure_display()
            self.release()
            source.set_fft_size(self.config.fft_size_for(self.mode))
        except Exception:
            source.release()
            raise

        self.source = source
        self.loop = FrameLoop(self.render_once, self.clock, self.config.fps)
        source.on_release(self.loop.cancel)
        return self.loop

    def open(self, audio_path: Union[str, Path]) -> FrameLoop:
        """Decode and attach an audio file."""
        source = AudioSource.open(
            audio_path,
            fft_size=self.config.fft_size_for(self.mode),
            config=self.config,
        )
        return self.attach(source)

    def release(self):
        """Release the active source, cancelling its frame loop."""
        if self.source is not None:
            self.source.release()
        self.source = None

    def set_mode(self, mode: str):
        """Switch between the bar and line views."""
        if mode not in MODES:
            raise ValueError(f"Unknown visualization mode: {mode!r}")
        if mode == self.mode:
            return
        self.config.mode = mode
        self.renderer = get_renderer(mode, self.config)
        if self.source is not None:
            self.source.set_fft_size(self.config.fft_size_for(mode))
        self._update_caption(self.store.snapshot())

    def apply_preset(self, name: str):
        name = self.MODE_PRESETS.get(self.mode, {}).get(name, name)
        logger.info("Preset: %s", PRESET_LABELS.get(name, name))
        self.store.set_preset(name)

    def adjust_selected_band(self, delta_db: float):
        """Nudge the selected band, clamped to the slider range."""
        band = self.store.bands[self.selected_band]
        current = self.store.snapshot()[band]
        value = float(np.clip(current + delta_db, 0, MAX_SLIDER_DB))
        self.store.set_band(band, value)

    def select_band(self, step: int):
        self.selected_band = (self.selected_band + step) % len(self.store.bands)
        self._update_caption(self.store.snapshot())

    def handle_event(self, event):
        """React to one pygame event."""
        if event.type == pygame.QUIT:
            self.release()
            return
        if event.type != pygame.KEYDOWN:
            return

        key = event.key
        if key == pygame.K_ESCAPE:
            self.release()
        elif key in self.PRESET_KEYS:
            self.apply_preset(self.PRESET_KEYS[key])
        elif key in self.MODE_KEYS:
            self.set_mode(self.MODE_KEYS[key])
        elif key == pygame.K_SPACE and self.source is not None:
            self.source.toggle()
        elif key == pygame.K_UP:
            self.select_band(-1)
        elif key == pygame.K_DOWN:
            self.select_band(1)
        elif key == pygame.K_LEFT:
            self.adjust_selected_band(-BAND_STEP_DB)
        elif key == pygame.K_RIGHT:
            self.adjust_selected_band(BAND_STEP_DB)

    def render_once(self):
        """One frame: events, spectrum, pipeline, draw."""
        for event in pygame.event.get():
            self.handle_event(event)
        if self.source is None:
            return

        frame = self.source.spectral_frame()
        adjusted = self.pipeline.process(frame, self.mode)
        self.renderer.render(self.surface, adjusted)

        if pygame.display.get_surface() is self.surface:
            pygame.display.flip()

    def run(self, audio_path: Union[str, Path] | None = None, autoplay: bool = True):
        """
        Run until the window is closed or the source is released.

        The source is released on every exit path.
        """
        loop = self.open(audio_path) if audio_path is not None else self.loop
        if loop is None:
            raise ValueError("No audio source to visualize")

        try:
            if autoplay:
                self.source.play()
            loop.run()
        finally:
            self.release()

    def close(self):
        self.release()
        self._unsubscribe()
