"""
Hearing-loss amplitude compression.

Maps decibels of loss at a frequency onto a linear amplitude factor:
no loss keeps the amplitude, 100 dB or more silences it, and anything in
between fades linearly.
"""

from typing import Union

import numpy as np

from hearingscope.core.interpolator import AttenuationInterpolator
from hearingscope.core.profile import HearingProfile, HearingProfileStore


class CompressionEngine:
    """
    Suppresses spectral amplitudes according to a hearing profile.

    Works on scalars or whole frames of bins at once.
    """

    NORMAL_THRESHOLD = 0.0
    PROFOUND_THRESHOLD = 100.0

    def __init__(
        self,
        source: Union[HearingProfile, HearingProfileStore, AttenuationInterpolator],
    ):
        if isinstance(source, AttenuationInterpolator):
            self.interpolator = source
        else:
            self.interpolator = AttenuationInterpolator(source)

    @classmethod
    def reduction_factor(cls, db: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        """
        Amplitude factor in [0, 1] for a given loss in dB.

        Args:
            db: Hearing loss, scalar or array.

        Returns:
            1 at or below the normal threshold, 0 at or above the profound
            threshold, linear in between.
        """
        span = cls.PROFOUND_THRESHOLD - cls.NORMAL_THRESHOLD
        factor = 1.0 - (np.asarray(db, dtype=np.float64) - cls.NORMAL_THRESHOLD) / span
        factor = np.clip(factor, 0.0, 1.0)
        if np.ndim(db) == 0:
            return float(factor)
        return factor

    def compress(
        self,
        frequency: Union[float, np.ndarray],
        amplitude: Union[float, np.ndarray],
        profile: HearingProfile | None = None,
    ) -> Union[float, np.ndarray]:
        """
        Apply the hearing profile to amplitude(s) at frequency(ies).

        Pass ``profile`` to compress a whole frame against one snapshot.
        """
        db = self.interpolator.attenuation_at(frequency, profile)
        factor = self.reduction_factor(db)
        result = np.asarray(amplitude, dtype=np.float64) * factor
        if np.ndim(result) == 0:
            return float(result)
        return result
