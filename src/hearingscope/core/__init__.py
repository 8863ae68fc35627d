"""Core hearing-loss modelling modules."""

from hearingscope.core.compression import CompressionEngine
from hearingscope.core.interpolator import AttenuationInterpolator
from hearingscope.core.profile import HearingProfileStore

__all__ = ["AttenuationInterpolator", "CompressionEngine", "HearingProfileStore"]
