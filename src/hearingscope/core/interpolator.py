"""
Piecewise-linear attenuation lookup over a hearing profile.

Between two adjacent bands the loss is interpolated linearly; outside the
band range the nearest band's value is held (flat extrapolation).
"""

from typing import Union

import numpy as np

from hearingscope.core.profile import HearingProfile, HearingProfileStore


def attenuation_at(
    profile: HearingProfile,
    frequency: Union[float, np.ndarray],
) -> Union[float, np.ndarray]:
    """
    Hearing loss in dB at an arbitrary frequency.

    Args:
        profile: Hearing profile to read.
        frequency: Frequency in Hz, scalar or array.

    Returns:
        Loss in dB with the same shape as ``frequency``.
    """
    # np.interp clamps to the end values outside [xp[0], xp[-1]]
    result = np.interp(frequency, profile.frequencies, profile.levels)
    if np.ndim(result) == 0:
        return float(result)
    return result


class AttenuationInterpolator:
    """
    Binds attenuation lookup to a profile source.

    The source is either a fixed HearingProfile or a HearingProfileStore,
    in which case the latest snapshot is read on each call unless a
    profile is passed explicitly.
    """

    def __init__(self, source: Union[HearingProfile, HearingProfileStore]):
        self.source = source

    def current_profile(self) -> HearingProfile:
        if isinstance(self.source, HearingProfileStore):
            return self.source.snapshot()
        return self.source

    def attenuation_at(
        self,
        frequency: Union[float, np.ndarray],
        profile: HearingProfile | None = None,
    ) -> Union[float, np.ndarray]:
        return attenuation_at(profile or self.current_profile(), frequency)
