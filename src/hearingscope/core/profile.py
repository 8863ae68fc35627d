"""
Hearing profile (audiogram) storage.

A profile maps the standard audiometric octave bands to decibels of
hearing loss. Profiles are immutable; the store swaps whole snapshots so
the frame loop never observes a half-applied preset.
"""

from collections.abc import Mapping
from typing import Callable, Union

import numpy as np

from hearingscope.exceptions import InvalidBandError

# Standard audiometric test frequencies (Hz)
STANDARD_BANDS = (125, 250, 500, 1000, 2000, 4000, 8000)

# Slider range used by the controls; values above it denote profound loss
MAX_SLIDER_DB = 100


class HearingProfile(Mapping):
    """
    Immutable mapping of band frequency (Hz) to hearing loss (dB).

    Frequencies are kept sorted ascending and mirrored into read-only
    numpy arrays so interpolation never re-sorts per frame.
    """

    __slots__ = ("_levels", "frequencies", "levels")

    def __init__(self, levels: Mapping[float, float]):
        if not levels:
            raise InvalidBandError(None)

        items = sorted(levels.items(), key=lambda item: float(item[0]))
        self._levels = {freq: max(0.0, float(db)) for freq, db in items}

        self.frequencies = np.array([float(f) for f in self._levels], dtype=np.float64)
        self.levels = np.array(list(self._levels.values()), dtype=np.float64)
        self.frequencies.setflags(write=False)
        self.levels.setflags(write=False)

    def __getitem__(self, frequency) -> float:
        return self._levels[frequency]

    def __iter__(self):
        return iter(self._levels)

    def __len__(self) -> int:
        return len(self._levels)

    def __repr__(self) -> str:
        body = ", ".join(f"{f}: {db:g}" for f, db in self._levels.items())
        return f"HearingProfile({{{body}}})"

    def __eq__(self, other) -> bool:
        if isinstance(other, Mapping):
            return dict(self.items()) == dict(other.items())
        return NotImplemented

    def __hash__(self):
        return hash(tuple(self._levels.items()))

    @property
    def bands(self) -> tuple:
        """Band frequencies in ascending order."""
        return tuple(self._levels)

    def with_band(self, frequency, db: float) -> "HearingProfile":
        """Return a copy with one band replaced."""
        if frequency not in self._levels:
            raise InvalidBandError(frequency, self._levels)
        levels = dict(self._levels)
        levels[frequency] = db
        return HearingProfile(levels)

    @classmethod
    def flat(cls, db: float = 0.0, bands=STANDARD_BANDS) -> "HearingProfile":
        """Profile with the same loss at every band."""
        return cls({freq: db for freq in bands})


def _preset(*values) -> HearingProfile:
    return HearingProfile(dict(zip(STANDARD_BANDS, values)))


PRESETS: dict[str, HearingProfile] = {
    "normal": _preset(0, 0, 0, 0, 0, 0, 0),
    "age_related": _preset(10, 15, 20, 25, 35, 55, 70),
    "cochlear_implant": _preset(90, 75, 60, 35, 30, 35, 70),
    "deaf": _preset(70, 80, 90, 90, 95, 100, 100),
    "profound": _preset(90, 80, 95, 100, 105, 110, 110),
}

PRESET_LABELS = {
    "normal": "Normal Hearing",
    "age_related": "Age-Related Hearing Loss",
    "cochlear_implant": "CI User",
    "deaf": "Deaf",
    "profound": "Profound Loss",
}


def get_preset(name: str) -> HearingProfile:
    """Look up a named preset."""
    try:
        return PRESETS[name]
    except KeyError:
        raise ValueError(
            f"Unknown preset {name!r}. Available: {', '.join(PRESETS)}"
        ) from None


ProfileListener = Callable[[HearingProfile], None]


class HearingProfileStore:
    """
    Single source of truth for the active hearing profile.

    Writers (preset buttons, band sliders) replace the snapshot; the frame
    loop calls snapshot() once per frame. Listeners are notified with the
    new snapshot after every write.
    """

    def __init__(
        self,
        profile: Union[HearingProfile, Mapping, str, None] = None,
        bands: tuple = STANDARD_BANDS,
    ):
        self.bands = tuple(bands)
        self._listeners: list[ProfileListener] = []
        self._profile = self._coerce(profile if profile is not None else "normal")

    def _coerce(self, profile: Union[HearingProfile, Mapping, str]) -> HearingProfile:
        if isinstance(profile, str):
            profile = get_preset(profile)
        if not isinstance(profile, HearingProfile):
            profile = HearingProfile(profile)

        unknown = [f for f in profile if f not in self.bands]
        if unknown:
            raise InvalidBandError(unknown[0], self.bands)
        missing = [f for f in self.bands if f not in profile]
        if missing:
            raise InvalidBandError(missing[0], self.bands)
        return profile

    def snapshot(self) -> HearingProfile:
        """Current profile. Cheap; safe to call every frame."""
        return self._profile

    @property
    def profile(self) -> HearingProfile:
        return self._profile

    def set_preset(self, profile: Union[HearingProfile, Mapping, str]):
        """Replace the whole profile in one swap."""
        self._swap(self._coerce(profile))

    def set_band(self, frequency, db: float):
        """
        Update a single band.

        Args:
            frequency: One of the store's band frequencies.
            db: Hearing loss in dB. Negative values clamp to 0; values above
                100 are kept and mean profound loss.

        Raises:
            InvalidBandError: frequency is not one of the bands.
        """
        if isinstance(frequency, bool) or frequency not in self.bands:
            raise InvalidBandError(frequency, self.bands)
        self._swap(self._profile.with_band(frequency, db))

    def subscribe(self, listener: ProfileListener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _swap(self, profile: HearingProfile):
        self._profile = profile
        for listener in list(self._listeners):
            listener(profile)
