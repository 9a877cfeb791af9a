"""
Observation night identifiers.

A night groups the observations recorded between two consecutive noons (UT):
its id is the integer part of ``MJD + 0.5``.
"""

from __future__ import annotations

from typing import Iterable, Optional

import numpy as np


def night_ids(mjd) -> np.ndarray:
    """Night id of every MJD value."""
    return np.floor(np.asarray(mjd, dtype=np.float64) + 0.5).astype(np.int32)


def night_id(mjd: float) -> int:
    return int(np.floor(float(mjd) + 0.5))


class NightIdMatcher:
    """Match night ids against the nights kept by a selection.

    An empty or missing set of nights matches every night.
    """

    def __init__(self, nights: Optional[Iterable[int]] = None):
        self.nights = frozenset(int(n) for n in (nights or ()))

    @property
    def matches_everything(self) -> bool:
        return not self.nights

    def match(self, night: int) -> bool:
        return self.matches_everything or int(night) in self.nights

    def match_all(self, nights: Iterable[int]) -> bool:
        return all(self.match(n) for n in nights)

    def mask(self, nights) -> np.ndarray:
        """Boolean array telling which of the given nights are selected."""
        nights = np.asarray(nights)
        if self.matches_everything:
            return np.ones(nights.shape, dtype=bool)
        return np.isin(nights, list(self.nights))

    def __repr__(self) -> str:
        return f"NightIdMatcher({sorted(self.nights)})"
