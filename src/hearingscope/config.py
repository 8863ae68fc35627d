"""
Visualizer configuration.

Defaults reproduce the reference setup: an 800x300 surface refreshed at
60 fps, a 512-point analysis for the bar view and 1024 for the line view.
"""

from dataclasses import dataclass

BAR_MODE = "bar"
LINE_MODE = "line"
MODES = (BAR_MODE, LINE_MODE)


@dataclass
class VisualizerConfig:
    """Configuration shared by the frame pipeline, renderers and audio tap."""

    width: int = 800
    height: int = 300
    fps: int = 60
    mode: str = BAR_MODE

    # Analysis window per mode (bins = fft_size // 2)
    bar_fft_size: int = 512
    line_fft_size: int = 1024

    # Analyser behaviour (matches a browser AnalyserNode)
    smoothing: float = 0.8
    min_decibels: float = -100.0
    max_decibels: float = -30.0

    # Line view frequency window
    min_frequency: float = 20.0
    max_frequency: float = 8000.0

    # Bar geometry
    bar_width_multiplier: float = 2.5
    bar_spacing: int = 1

    # Colors
    background_color: tuple[int, int, int] = (0, 0, 0)
    overlay_color: tuple[int, int, int, int] = (255, 0, 0, 153)  # red at 0.6 alpha
    line_color: tuple[int, int, int] = (150, 150, 150)
    line_width: int = 2

    def fft_size_for(self, mode: str) -> int:
        """Analysis window size for a visualization mode."""
        if mode == LINE_MODE:
            return self.line_fft_size
        return self.bar_fft_size
