"""Renderers for hearing-adjusted spectra."""

from hearingscope.visualizers.spectrum import BarRenderer, LineRenderer, get_renderer

__all__ = ["BarRenderer", "LineRenderer", "get_renderer"]
