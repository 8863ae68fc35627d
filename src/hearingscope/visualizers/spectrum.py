"""
Spectrum renderers.

Two interchangeable views of the pipeline output:
- Bars: grayscale raw spectrum with a translucent red overlay showing what
  survives the hearing profile.
- Line: a single normalized polyline over the 20 Hz - 8 kHz window.

Renderers hold only configuration; all per-frame data comes in as
arguments.
"""

import numpy as np
import pygame

from hearingscope.config import BAR_MODE, LINE_MODE, VisualizerConfig
from hearingscope.pipeline import NORMALIZED_MAX, BarFrame, LineFrame


def bar_rects(
    magnitudes: np.ndarray,
    width: int,
    height: int,
    multiplier: float = 2.5,
    spacing: float = 1.0,
) -> list[tuple[float, float, float, float]]:
    """
    Compute (x, y, w, h) for one bar per bin.

    Bars grow up from the bottom edge with height magnitude / 2.
    """
    n_bins = len(magnitudes)
    if n_bins == 0:
        return []

    bar_width = (width / n_bins) * multiplier
    rects = []
    x = 0.0
    for magnitude in magnitudes:
        bar_height = float(magnitude) / 2
        rects.append((x, height - bar_height, bar_width, bar_height))
        x += bar_width + spacing
    return rects


def _to_rect(rect: tuple[float, float, float, float]) -> pygame.Rect:
    x, y, w, h = rect
    return pygame.Rect(round(x), round(y), max(1, round(w)), max(1, round(h)))


def line_points(frame: LineFrame, width: int, height: int) -> list[tuple[float, float]]:
    """
    Polyline vertices for a line frame, starting at the bottom-left corner.

    x spreads [min_index, max_index] across the width; higher values sit
    higher on the surface.
    """
    points = [(0.0, float(height))]
    if frame.is_empty:
        return points

    span = max(frame.max_index - frame.min_index, 1)
    for offset, value in enumerate(frame.values):
        x = offset / span * width
        y = height - (float(value) / NORMALIZED_MAX) * height
        points.append((x, y))
    return points


class BarRenderer:
    """Dual-overlay bar view."""

    mode = BAR_MODE

    def __init__(self, config: VisualizerConfig | None = None):
        self.config = config or VisualizerConfig()

    def render(self, surface: pygame.Surface, frame: BarFrame) -> pygame.Surface:
        """
        Draw one bar frame.

        Args:
            surface: Target surface; cleared first.
            frame: Output of FramePipeline.process_bars.

        Returns:
            The same surface.
        """
        cfg = self.config
        width, height = surface.get_size()
        surface.fill(cfg.background_color)

        raw_rects = bar_rects(frame.raw, width, height, cfg.bar_width_multiplier, cfg.bar_spacing)
        for rect, magnitude in zip(raw_rects, frame.raw):
            if rect[3] <= 0:
                continue
            level = int(np.clip(magnitude, 0, 255))
            pygame.draw.rect(surface, (level, level, level), _to_rect(rect))

        # Alpha needs its own layer; draw.rect ignores alpha on opaque surfaces
        overlay = pygame.Surface((width, height), pygame.SRCALPHA)
        compressed_rects = bar_rects(
            frame.compressed, width, height, cfg.bar_width_multiplier, cfg.bar_spacing
        )
        for rect in compressed_rects:
            if rect[3] > 0:
                pygame.draw.rect(overlay, cfg.overlay_color, _to_rect(rect))
        surface.blit(overlay, (0, 0))

        return surface


class LineRenderer:
    """Normalized polyline view."""

    mode = LINE_MODE

    def __init__(self, config: VisualizerConfig | None = None):
        self.config = config or VisualizerConfig()

    def render(self, surface: pygame.Surface, frame: LineFrame) -> pygame.Surface:
        cfg = self.config
        width, height = surface.get_size()
        surface.fill(cfg.background_color)

        points = line_points(frame, width, height)
        if len(points) >= 2:
            pygame.draw.lines(surface, cfg.line_color, False, points, cfg.line_width)
        return surface


RENDERERS = {
    BAR_MODE: BarRenderer,
    LINE_MODE: LineRenderer,
}


def get_renderer(mode: str, config: VisualizerConfig | None = None):
    """Instantiate the renderer for a visualization mode."""
    try:
        renderer_cls = RENDERERS[mode]
    except KeyError:
        raise ValueError(
            f"Unknown visualization mode {mode!r}. Available: {', '.join(RENDERERS)}"
        ) from None
    return renderer_cls(config)
