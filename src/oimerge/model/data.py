"""
Data tables (OI_VIS, OI_VIS2, OI_T3, OI_FLUX) holding measurement rows.

A data table references its lookup tables by name (INSNAME, ARRNAME and the
optional CORRNAME); every row carries a TARGET_ID pointing into the OI_TARGET
directory of the same file.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import numpy as np

from .night import night_ids
from .tables import OITable

_COMMON = ("TARGET_ID", "TIME", "MJD", "INT_TIME", "STA_INDEX", "FLAG")


class OIData(OITable):
    """Base class of measurement tables."""

    REQUIRED_COLUMNS = _COMMON
    # number of stations per row (baseline, triangle, single telescope)
    NB_STATIONS = 2
    COORD_COLUMNS: tuple = ()
    DATA_COLUMNS: tuple = ()

    @classmethod
    def create(
        cls,
        insname: str,
        arrname: Optional[str],
        target_id,
        mjd,
        data: Optional[Dict[str, Any]] = None,
        nwave: int = 1,
        corrname: Optional[str] = None,
        sta_index=None,
        flag=None,
        int_time=None,
        date_obs: Optional[str] = None,
        oi_revn: int = 1,
    ):
        """
        Build a data table; missing measurement columns are zero filled with
        shape ``(rows, nwave)``.
        """
        target_id = np.asarray(target_id, dtype=np.int16)
        n = len(target_id)
        mjd = np.asarray(mjd, dtype=np.float64)
        if mjd.ndim == 0:
            mjd = np.full(n, float(mjd))
        if sta_index is None:
            sta_index = np.tile(np.arange(1, cls.NB_STATIONS + 1), (n, 1))
        if flag is None:
            flag = np.zeros((n, nwave), dtype=bool)
        if int_time is None:
            int_time = np.ones(n)

        columns = {
            "TARGET_ID": target_id,
            "TIME": ((mjd - np.floor(mjd)) * 86400.0),
            "MJD": mjd,
            "INT_TIME": np.asarray(int_time, dtype=np.float64),
            "STA_INDEX": np.asarray(sta_index, dtype=np.int16).reshape(
                n, cls.NB_STATIONS
            ),
        }
        data = dict(data or {})
        for name in cls.COORD_COLUMNS:
            columns[name] = np.asarray(data.pop(name, np.zeros(n)), dtype=np.float64)
        for name in cls.DATA_COLUMNS:
            values = data.pop(name, None)
            if values is None:
                values = np.zeros((n, nwave))
            columns[name] = np.asarray(values, dtype=np.float64).reshape(n, nwave)
        for name, values in data.items():
            columns[name] = np.asarray(values)
        columns["FLAG"] = np.asarray(flag, dtype=bool).reshape(n, nwave)

        keywords = {"OI_REVN": oi_revn}
        if date_obs is not None:
            keywords["DATE-OBS"] = date_obs
        if arrname is not None:
            keywords["ARRNAME"] = arrname
        keywords["INSNAME"] = insname
        if corrname is not None:
            keywords["CORRNAME"] = corrname
        return cls(keywords=keywords, columns=columns)

    # --- lookup references ---------------------------------------------

    @property
    def insname(self) -> Optional[str]:
        return self.keywords.get("INSNAME")

    @insname.setter
    def insname(self, value: str) -> None:
        self.set_keyword("INSNAME", value)

    @property
    def arrname(self) -> Optional[str]:
        return self.keywords.get("ARRNAME")

    @arrname.setter
    def arrname(self, value: Optional[str]) -> None:
        self.set_keyword("ARRNAME", value)

    @property
    def corrname(self) -> Optional[str]:
        return self.keywords.get("CORRNAME")

    @corrname.setter
    def corrname(self, value: Optional[str]) -> None:
        self.set_keyword("CORRNAME", value)

    # --- row level identifiers -----------------------------------------

    @property
    def target_id(self) -> np.ndarray:
        return self.get_column("TARGET_ID")

    @property
    def mjd(self) -> np.ndarray:
        return self.get_column("MJD")

    @property
    def night_id(self) -> np.ndarray:
        return night_ids(self.mjd)

    @property
    def distinct_target_ids(self) -> List[int]:
        """Target ids in order of first appearance."""
        return list(dict.fromkeys(int(i) for i in self.target_id))

    @property
    def distinct_night_ids(self) -> List[int]:
        return list(dict.fromkeys(int(n) for n in self.night_id))

    @property
    def has_single_night(self) -> bool:
        return len(self.distinct_night_ids) == 1

    @property
    def nwave(self) -> int:
        flag = self.columns.get("FLAG")
        if flag is None or flag.ndim < 2:
            return 1
        return flag.shape[1]


class OIVis(OIData):
    """OI_VIS: complex visibilities per baseline."""

    EXTNAME = "OI_VIS"
    COORD_COLUMNS = ("UCOORD", "VCOORD")
    DATA_COLUMNS = ("VISAMP", "VISAMPERR", "VISPHI", "VISPHIERR")
    REQUIRED_COLUMNS = _COMMON + COORD_COLUMNS + DATA_COLUMNS


class OIVis2(OIData):
    """OI_VIS2: squared visibilities per baseline."""

    EXTNAME = "OI_VIS2"
    COORD_COLUMNS = ("UCOORD", "VCOORD")
    DATA_COLUMNS = ("VIS2DATA", "VIS2ERR")
    REQUIRED_COLUMNS = _COMMON + COORD_COLUMNS + DATA_COLUMNS


class OIT3(OIData):
    """OI_T3: triple products per telescope triangle."""

    EXTNAME = "OI_T3"
    NB_STATIONS = 3
    COORD_COLUMNS = ("U1COORD", "V1COORD", "U2COORD", "V2COORD")
    DATA_COLUMNS = ("T3AMP", "T3AMPERR", "T3PHI", "T3PHIERR")
    REQUIRED_COLUMNS = _COMMON + COORD_COLUMNS + DATA_COLUMNS


class OIFlux(OIData):
    """OI_FLUX: spectra per telescope (OIFITS 2)."""

    EXTNAME = "OI_FLUX"
    NB_STATIONS = 1
    DATA_COLUMNS = ("FLUXDATA", "FLUXERR")
    REQUIRED_COLUMNS = _COMMON + DATA_COLUMNS
