"""
Binary table model shared by every OIFITS extension.

Each table keeps its header keywords in insertion order and its columns as
numpy arrays whose first axis is the row axis. Tables receive a stable integer
handle when they are built; merge bookkeeping is keyed on these handles rather
than on object identity.
"""

from __future__ import annotations

import copy
import itertools
import logging
from typing import Any, ClassVar, Dict, Iterable, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

_handles = itertools.count(1)


class OITable:
    """
    Base class of all OIFITS binary tables.

    Subclasses declare their ``EXTNAME``, the keyword carrying their name
    (if they are referenced by name from data tables) and the columns they
    require.
    """

    EXTNAME: ClassVar[str] = ""
    NAME_KEYWORD: ClassVar[Optional[str]] = None
    REQUIRED_COLUMNS: ClassVar[Tuple[str, ...]] = ()

    def __init__(
        self,
        keywords: Optional[Mapping[str, Any]] = None,
        columns: Optional[Mapping[str, Any]] = None,
        units: Optional[Mapping[str, str]] = None,
    ):
        self.handle: int = next(_handles)
        self.keywords: Dict[str, Any] = dict(keywords or {})
        self.columns: Dict[str, np.ndarray] = {
            name: np.asarray(values) for name, values in (columns or {}).items()
        }
        self.units: Dict[str, str] = dict(units or {})
        self._check_row_count()

    def _check_row_count(self) -> None:
        counts = {name: len(values) for name, values in self.columns.items()}
        if len(set(counts.values())) > 1:
            raise ValueError(f"{self.EXTNAME}: inconsistent column lengths {counts}")

    @property
    def extname(self) -> str:
        return self.EXTNAME

    @property
    def name(self) -> Optional[str]:
        """Value of the naming keyword (INSNAME, ARRNAME, CORRNAME), if any."""
        if self.NAME_KEYWORD is None:
            return None
        return self.keywords.get(self.NAME_KEYWORD)

    @name.setter
    def name(self, value: str) -> None:
        if self.NAME_KEYWORD is None:
            raise AttributeError(f"{self.EXTNAME} tables are not named")
        self.keywords[self.NAME_KEYWORD] = value

    @property
    def nb_rows(self) -> int:
        for values in self.columns.values():
            return len(values)
        return 0

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(self.columns)

    def get_keyword(self, name: str, default: Any = None) -> Any:
        return self.keywords.get(name, default)

    def set_keyword(self, name: str, value: Any) -> None:
        if value is None:
            self.keywords.pop(name, None)
        else:
            self.keywords[name] = value

    def get_column(self, name: str) -> np.ndarray:
        try:
            return self.columns[name]
        except KeyError:
            raise KeyError(f"{self.EXTNAME} has no column {name!r}") from None

    def missing_columns(self) -> Tuple[str, ...]:
        return tuple(c for c in self.REQUIRED_COLUMNS if c not in self.columns)

    def _rebuild(
        self, keywords: Dict[str, Any], columns: Dict[str, np.ndarray]
    ) -> "OITable":
        clone = self.__class__.__new__(self.__class__)
        OITable.__init__(clone, keywords, columns, self.units)
        return clone

    def copy(self) -> "OITable":
        """Deep copy with a fresh handle and no shared column buffers."""
        return self._rebuild(
            copy.deepcopy(self.keywords),
            {name: values.copy() for name, values in self.columns.items()},
        )

    def take(self, rows: Iterable) -> "OITable":
        """
        Return a copy restricted to the given rows.

        ``rows`` is either a boolean keep-mask with one entry per row or a
        sequence of row indices; rows keep their relative order.
        """
        rows = np.asarray(rows)
        if rows.dtype == bool:
            if len(rows) != self.nb_rows:
                raise ValueError(
                    f"{self.EXTNAME}: mask has {len(rows)} entries for {self.nb_rows} rows"
                )
            rows = np.flatnonzero(rows)
        rows = np.sort(rows.astype(np.intp))
        return self._rebuild(
            copy.deepcopy(self.keywords),
            {name: values[rows].copy() for name, values in self.columns.items()},
        )

    def to_dataframe(self) -> pd.DataFrame:
        """Tabular view of the scalar (one value per row) columns."""
        scalars = {
            name: values
            for name, values in self.columns.items()
            if values.ndim == 1
        }
        return pd.DataFrame(scalars)

    def __repr__(self) -> str:
        label = f"{self.EXTNAME}#{self.handle}"
        if self.name is not None:
            label += f"[{self.name}]"
        return f"{label}({self.nb_rows} rows)"


class OIWavelength(OITable):
    """OI_WAVELENGTH: one effective wavelength per spectral channel."""

    EXTNAME = "OI_WAVELENGTH"
    NAME_KEYWORD = "INSNAME"
    REQUIRED_COLUMNS = ("EFF_WAVE", "EFF_BAND")

    @classmethod
    def create(cls, insname: str, eff_wave, eff_band=None, oi_revn: int = 1):
        eff_wave = np.asarray(eff_wave, dtype=np.float32)
        if eff_band is None:
            eff_band = np.zeros_like(eff_wave)
        return cls(
            keywords={"OI_REVN": oi_revn, "INSNAME": insname},
            columns={
                "EFF_WAVE": eff_wave,
                "EFF_BAND": np.asarray(eff_band, dtype=np.float32),
            },
            units={"EFF_WAVE": "m", "EFF_BAND": "m"},
        )

    @property
    def insname(self) -> Optional[str]:
        return self.name

    @property
    def nwave(self) -> int:
        return self.nb_rows


class OIArray(OITable):
    """OI_ARRAY: station geometry of an interferometric array."""

    EXTNAME = "OI_ARRAY"
    NAME_KEYWORD = "ARRNAME"
    REQUIRED_COLUMNS = ("TEL_NAME", "STA_NAME", "STA_INDEX", "DIAMETER", "STAXYZ")

    @classmethod
    def create(
        cls,
        arrname: str,
        sta_names,
        sta_indexes=None,
        staxyz=None,
        diameter=None,
        tel_names=None,
        frame: str = "GEOCENTRIC",
        position=(0.0, 0.0, 0.0),
        oi_revn: int = 1,
    ):
        sta_names = np.asarray(sta_names, dtype=str)
        n = len(sta_names)
        if sta_indexes is None:
            sta_indexes = np.arange(1, n + 1)
        if staxyz is None:
            staxyz = np.zeros((n, 3))
        if diameter is None:
            diameter = np.zeros(n)
        if tel_names is None:
            tel_names = sta_names
        return cls(
            keywords={
                "OI_REVN": oi_revn,
                "ARRNAME": arrname,
                "FRAME": frame,
                "ARRAYX": float(position[0]),
                "ARRAYY": float(position[1]),
                "ARRAYZ": float(position[2]),
            },
            columns={
                "TEL_NAME": np.asarray(tel_names, dtype=str),
                "STA_NAME": sta_names,
                "STA_INDEX": np.asarray(sta_indexes, dtype=np.int16),
                "DIAMETER": np.asarray(diameter, dtype=np.float32),
                "STAXYZ": np.asarray(staxyz, dtype=np.float64).reshape(n, 3),
            },
            units={"DIAMETER": "m", "STAXYZ": "m"},
        )

    @property
    def arrname(self) -> Optional[str]:
        return self.name


class OICorr(OITable):
    """OI_CORR: sparse correlation matrix between data values (OIFITS 2)."""

    EXTNAME = "OI_CORR"
    NAME_KEYWORD = "CORRNAME"
    REQUIRED_COLUMNS = ("IINDX", "JINDX", "CORR")

    @classmethod
    def create(cls, corrname: str, ndata: int, iindx, jindx, corr, oi_revn: int = 1):
        return cls(
            keywords={"OI_REVN": oi_revn, "CORRNAME": corrname, "NDATA": int(ndata)},
            columns={
                "IINDX": np.asarray(iindx, dtype=np.int32),
                "JINDX": np.asarray(jindx, dtype=np.int32),
                "CORR": np.asarray(corr, dtype=np.float64),
            },
        )

    @property
    def corrname(self) -> Optional[str]:
        return self.name
