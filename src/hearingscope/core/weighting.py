"""
A-weighting loudness curve (IEC 61672).

Approximates the ear's reduced sensitivity at low and very high
frequencies. Used by the line view before hearing-loss compression.
"""

from typing import Union

import numpy as np

# Pole frequencies of the analog A-weighting filter (Hz)
_F1 = 20.6
_F2 = 107.7
_F3 = 737.9
_F4 = 12194.0

# Normalizes the curve to 0 dB at 1 kHz
_OFFSET_DB = 2.0


def _ra(frequency: np.ndarray) -> np.ndarray:
    f2 = frequency ** 2
    return (_F4 ** 2 * f2 ** 2) / (
        (f2 + _F1 ** 2)
        * np.sqrt((f2 + _F2 ** 2) * (f2 + _F3 ** 2))
        * (f2 + _F4 ** 2)
    )


def _as_output(result: np.ndarray, frequency) -> Union[float, np.ndarray]:
    if np.ndim(frequency) == 0:
        return float(result)
    return result


def weighting_db(frequency: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    A-weighting gain in dB.

    Returns -inf at 0 Hz.
    """
    f = np.asarray(frequency, dtype=np.float64)
    with np.errstate(divide="ignore"):
        result = 20.0 * np.log10(_ra(f)) + _OFFSET_DB
    return _as_output(result, frequency)


def weight(frequency: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    A-weighting as a linear amplitude multiplier.

    Equal to 10 ** (weighting_db(f) / 20), computed without the log so that
    0 Hz maps cleanly to 0 instead of going through -inf.
    """
    f = np.asarray(frequency, dtype=np.float64)
    result = _ra(f) * 10.0 ** (_OFFSET_DB / 20.0)
    return _as_output(result, frequency)
