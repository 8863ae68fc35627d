"""Real-time spectrum visualizer simulating hearing loss."""

from hearingscope.core.compression import CompressionEngine
from hearingscope.core.interpolator import AttenuationInterpolator, attenuation_at
from hearingscope.core.profile import PRESETS, HearingProfile, HearingProfileStore
from hearingscope.core.weighting import weight, weighting_db
from hearingscope.exceptions import (
    DegenerateFrameError,
    InvalidBandError,
    ResourceUnavailable,
)
from hearingscope.pipeline import FrameLoop, FramePipeline, SpectralFrame

__version__ = "0.1.0"
__all__ = [
    "AttenuationInterpolator",
    "CompressionEngine",
    "DegenerateFrameError",
    "FrameLoop",
    "FramePipeline",
    "HearingProfile",
    "HearingProfileStore",
    "InvalidBandError",
    "PRESETS",
    "ResourceUnavailable",
    "SpectralFrame",
    "attenuation_at",
    "weight",
    "weighting_db",
]
