"""
Astronomical target records and cross-file target identity resolution.

The same source is usually described by one OI_TARGET row per file, and a
single file may even list it twice under different ids. ``TargetManager``
groups such rows into global targets, either by normalized name or by
angular separation (cone match), and hands out the global representative.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields
from typing import Dict, List, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

ARCSEC_PER_DEG = 3600.0


def norm_name(name: str) -> str:
    """
    Normalize a target name by stripping whitespace and converting to lowercase.
    """
    return " ".join(str(name).split()).lower()


def _clean(value):
    """Convert numpy scalars to python values and NaN to None."""
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="replace")
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


@dataclass(frozen=True)
class Target:
    """Catalog description of one astronomical source (one OI_TARGET row)."""

    name: str
    raep0: Optional[float] = None
    decep0: Optional[float] = None
    equinox: float = 2000.0
    ra_err: Optional[float] = None
    dec_err: Optional[float] = None
    sysvel: Optional[float] = None
    veltyp: str = "UNKNOWN"
    veldef: str = "OPTICAL"
    pmra: Optional[float] = None
    pmdec: Optional[float] = None
    pmra_err: Optional[float] = None
    pmdec_err: Optional[float] = None
    parallax: Optional[float] = None
    para_err: Optional[float] = None
    spectyp: str = "UNKNOWN"
    category: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, object]) -> "Target":
        """Build a target from OI_TARGET column values keyed by column name."""
        kwargs = {}
        for f in fields(cls):
            column = "TARGET" if f.name == "name" else f.name.upper()
            if column in row:
                value = _clean(row[column])
                if value is not None:
                    kwargs[f.name] = value
        return cls(**kwargs)

    @property
    def has_position(self) -> bool:
        return all(
            value is not None and not math.isnan(value)
            for value in (self.raep0, self.decep0)
        )

    @property
    def key(self) -> Tuple[str, Optional[float], Optional[float]]:
        if not self.has_position:
            return (norm_name(self.name), None, None)
        return (norm_name(self.name), round(self.raep0, 7), round(self.decep0, 7))

    def separation_deg(self, other: "Target") -> float:
        """Angular separation in degrees (haversine formula)."""
        ra1, dec1 = np.radians(self.raep0), np.radians(self.decep0)
        ra2, dec2 = np.radians(other.raep0), np.radians(other.decep0)
        a = (
            np.sin((dec2 - dec1) / 2) ** 2
            + np.cos(dec1) * np.cos(dec2) * np.sin((ra2 - ra1) / 2) ** 2
        )
        return float(np.degrees(2 * np.arcsin(np.sqrt(min(a, 1.0)))))

    def __str__(self) -> str:
        return self.name


class TargetManager:
    """
    Resolve local targets to global targets shared across files.

    Two targets denote the same source when their normalized names are equal
    or when they lie within ``tolerance_arcsec`` of each other.
    """

    def __init__(self, tolerance_arcsec: Optional[float] = None):
        if tolerance_arcsec is None:
            from ..settings import settings

            tolerance_arcsec = settings.target_match_tolerance_arcsec
        self.tolerance_arcsec = tolerance_arcsec
        self._globals: List[Target] = []
        self._by_key: Dict[Tuple[str, Optional[float], Optional[float]], int] = {}
        self._by_name: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._globals)

    @property
    def targets(self) -> List[Target]:
        """Global targets in registration order."""
        return list(self._globals)

    def _match(self, target: Target) -> Optional[int]:
        uid = self._by_key.get(target.key)
        if uid is not None:
            return uid
        uid = self._by_name.get(norm_name(target.name))
        if uid is not None:
            return uid
        if not target.has_position:
            return None
        tolerance_deg = self.tolerance_arcsec / ARCSEC_PER_DEG
        for uid, candidate in enumerate(self._globals):
            if not candidate.has_position:
                continue
            if target.separation_deg(candidate) <= tolerance_deg:
                return uid
        return None

    def register(self, target: Target) -> Target:
        """Register a local target and return its global representative."""
        uid = self._match(target)
        if uid is None:
            uid = len(self._globals)
            self._globals.append(target)
            self._by_name.setdefault(norm_name(target.name), uid)
            logger.debug("New global target %d: %s", uid, target)
        elif self._globals[uid] is not target:
            logger.debug("Target %s matches global target %s", target, self._globals[uid])
        self._by_key.setdefault(target.key, uid)
        return self._globals[uid]

    def uid_of(self, target: Target) -> Optional[int]:
        """Global uid of an already registered (local or global) target."""
        return self._match(target)

    def get_global_target(self, target: Target) -> Optional[Target]:
        uid = self.uid_of(target)
        return None if uid is None else self._globals[uid]
