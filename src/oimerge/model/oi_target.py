"""
OI_TARGET: the per-file directory of targets referenced by TARGET_ID.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Set

import numpy as np

from .tables import OITable
from .target import Target, TargetManager

# column name -> numpy dtype used when building a directory from Target records
_TARGET_COLUMNS = {
    "TARGET_ID": np.int16,
    "TARGET": str,
    "RAEP0": np.float64,
    "DECEP0": np.float64,
    "EQUINOX": np.float32,
    "RA_ERR": np.float64,
    "DEC_ERR": np.float64,
    "SYSVEL": np.float64,
    "VELTYP": str,
    "VELDEF": str,
    "PMRA": np.float64,
    "PMDEC": np.float64,
    "PMRA_ERR": np.float64,
    "PMDEC_ERR": np.float64,
    "PARALLAX": np.float32,
    "PARA_ERR": np.float32,
    "SPECTYP": str,
}

_UNITS = {
    "RAEP0": "deg",
    "DECEP0": "deg",
    "EQUINOX": "yr",
    "RA_ERR": "deg",
    "DEC_ERR": "deg",
    "SYSVEL": "m/s",
    "PMRA": "deg/yr",
    "PMDEC": "deg/yr",
    "PMRA_ERR": "deg/yr",
    "PMDEC_ERR": "deg/yr",
    "PARALLAX": "deg",
    "PARA_ERR": "deg",
}


def _value(target: Target, column: str):
    attr = "name" if column == "TARGET" else column.lower()
    value = getattr(target, attr)
    if value is None:
        return "" if _TARGET_COLUMNS.get(column) is str else np.nan
    return value


class OITarget(OITable):
    """Directory mapping small integer target ids to target records."""

    EXTNAME = "OI_TARGET"
    REQUIRED_COLUMNS = ("TARGET_ID", "TARGET", "RAEP0", "DECEP0")

    @classmethod
    def from_targets(
        cls,
        targets: Sequence[Target],
        target_ids: Optional[Sequence[int]] = None,
        oi_revn: int = 1,
    ) -> "OITarget":
        """Build a directory; ids default to 1..N in the given order."""
        if target_ids is None:
            target_ids = range(1, len(targets) + 1)
        target_ids = list(target_ids)
        if len(target_ids) != len(targets):
            raise ValueError("One target id is required per target")

        columns = {
            column: np.array(
                [_value(t, column) for t in targets] if column != "TARGET_ID" else target_ids,
                dtype=dtype,
            )
            for column, dtype in _TARGET_COLUMNS.items()
        }
        if oi_revn >= 2 and any(t.category is not None for t in targets):
            columns["CATEGORY"] = np.array(
                [t.category or "" for t in targets], dtype=str
            )
        table = cls(
            keywords={"OI_REVN": oi_revn},
            columns=columns,
            units={k: v for k, v in _UNITS.items() if k in columns},
        )
        return table

    @property
    def target_ids(self) -> np.ndarray:
        return self.get_column("TARGET_ID")

    def get_target(self, row: int) -> Target:
        values = {name: col[row] for name, col in self.columns.items() if col.ndim == 1}
        return Target.from_row(values)

    @property
    def targets(self) -> List[Target]:
        return [self.get_target(i) for i in range(self.nb_rows)]

    def get_target_by_id(self, target_id: int) -> Optional[Target]:
        rows = np.flatnonzero(self.target_ids == target_id)
        return self.get_target(int(rows[0])) if len(rows) else None

    def register_targets(self, manager: TargetManager) -> None:
        for target in self.targets:
            manager.register(target)

    def get_target_ids(self, manager: TargetManager, target: Target) -> Set[int]:
        """All local ids whose row resolves to the same global target."""
        uid = manager.uid_of(target)
        if uid is None:
            return set()
        return {
            int(target_id)
            for target_id, local in zip(self.target_ids, self.targets)
            if manager.uid_of(local) == uid
        }
