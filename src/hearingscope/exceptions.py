"""Error types raised by the hearing simulation engine."""


class HearingscopeError(Exception):
    """Base class for all hearingscope errors."""


class InvalidBandError(HearingscopeError, ValueError):
    """A band mutation referenced a frequency outside the audiogram band set."""

    def __init__(self, frequency, bands=None):
        self.frequency = frequency
        self.bands = tuple(bands) if bands is not None else ()
        message = f"Invalid audiogram band: {frequency!r}"
        if self.bands:
            message += f" (expected one of {', '.join(str(b) for b in self.bands)})"
        super().__init__(message)


class DegenerateFrameError(HearingscopeError):
    """A frame has no amplitude variation and cannot be min-max normalized."""


class ResourceUnavailable(HearingscopeError, RuntimeError):
    """The audio decode/playback subsystem could not be initialized."""
