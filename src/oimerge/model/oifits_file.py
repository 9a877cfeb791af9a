"""
OIFITS container: an ordered collection of tables sharing one target directory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Type, TypeVar, Union

import pandas as pd

from .data import OIData
from .oi_target import OITarget
from .standard import CONTENT_OIFITS2, OIFitsStandard
from .tables import OIArray, OICorr, OITable, OIWavelength

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=OITable)


class OIPrimaryHDU:
    """Primary header keywords (the primary array itself is always empty)."""

    def __init__(self, keywords: Optional[Dict[str, Any]] = None):
        self.keywords: Dict[str, Any] = dict(keywords or {})

    @property
    def content(self) -> Optional[str]:
        return self.keywords.get("CONTENT")

    @content.setter
    def content(self, value: str) -> None:
        self.keywords["CONTENT"] = value

    @classmethod
    def for_version(cls, version: OIFitsStandard) -> Optional["OIPrimaryHDU"]:
        if version is OIFitsStandard.VERSION_2:
            return cls({"CONTENT": CONTENT_OIFITS2})
        return None

    def __repr__(self) -> str:
        return f"OIPrimaryHDU({self.keywords})"


class OIFitsFile:
    """In-memory OIFITS file."""

    def __init__(
        self,
        version: Union[OIFitsStandard, int] = OIFitsStandard.VERSION_1,
        source: Optional[Union[str, Path]] = None,
    ):
        self.version = OIFitsStandard.from_value(version)
        self.source = str(source) if source is not None else None
        self.primary_hdu: Optional[OIPrimaryHDU] = None
        self._tables: List[OITable] = []

    # --- content -------------------------------------------------------

    @property
    def tables(self) -> List[OITable]:
        return list(self._tables)

    def __iter__(self) -> Iterator[OITable]:
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)

    def __contains__(self, table: OITable) -> bool:
        return any(t.handle == table.handle for t in self._tables)

    def is_oifits2(self) -> bool:
        return self.version is OIFitsStandard.VERSION_2

    def add_table(self, table: OITable) -> OITable:
        """Append a table, checking its kind and name against this file."""
        if not self.version.supports(table.extname):
            raise ValueError(
                f"{table.extname} tables are not allowed in OIFITS {self.version.ordinal}"
            )
        if isinstance(table, OITarget) and self.oi_target is not None:
            raise ValueError("An OIFITS file holds a single OI_TARGET table")
        if table.NAME_KEYWORD is not None:
            if self.get_table(type(table), table.name) is not None:
                raise ValueError(
                    f"Duplicate {table.NAME_KEYWORD}={table.name!r} in {table.extname}"
                )
        self._tables.append(table)
        logger.debug("Added %r to %s", table, self)
        return table

    def copy_table(self, table: T) -> T:
        """Deep copy of a table from another file, not yet added."""
        return table.copy()

    # --- lookups -------------------------------------------------------

    def get_tables(self, kind: Type[T]) -> List[T]:
        return [t for t in self._tables if isinstance(t, kind)]

    def get_table(self, kind: Type[T], name: Optional[str]) -> Optional[T]:
        if name is None:
            return None
        for table in self._tables:
            if isinstance(table, kind) and table.name == name:
                return table
        return None

    @property
    def oi_target(self) -> Optional[OITarget]:
        targets = self.get_tables(OITarget)
        return targets[0] if targets else None

    @property
    def oi_wavelengths(self) -> List[OIWavelength]:
        return self.get_tables(OIWavelength)

    @property
    def oi_arrays(self) -> List[OIArray]:
        return self.get_tables(OIArray)

    @property
    def oi_corrs(self) -> List[OICorr]:
        return self.get_tables(OICorr)

    @property
    def oi_datas(self) -> List[OIData]:
        return self.get_tables(OIData)

    def get_oi_wavelength(self, insname: Optional[str]) -> Optional[OIWavelength]:
        return self.get_table(OIWavelength, insname)

    def get_oi_array(self, arrname: Optional[str]) -> Optional[OIArray]:
        return self.get_table(OIArray, arrname)

    def get_oi_corr(self, corrname: Optional[str]) -> Optional[OICorr]:
        return self.get_table(OICorr, corrname)

    @property
    def accepted_insnames(self) -> List[str]:
        return [t.name for t in self.oi_wavelengths]

    @property
    def accepted_arrnames(self) -> List[str]:
        return [t.name for t in self.oi_arrays]

    @property
    def accepted_corrnames(self) -> List[str]:
        return [t.name for t in self.oi_corrs]

    # --- reporting -----------------------------------------------------

    def summary(self) -> pd.DataFrame:
        """One line per table: kind, name, row count and referenced names."""
        records = []
        for table in self._tables:
            record = {
                "extname": table.extname,
                "name": table.name or "",
                "rows": table.nb_rows,
                "insname": "",
                "arrname": "",
                "corrname": "",
            }
            if isinstance(table, OIData):
                record["insname"] = table.insname or ""
                record["arrname"] = table.arrname or ""
                record["corrname"] = table.corrname or ""
            records.append(record)
        return pd.DataFrame(
            records,
            columns=["extname", "name", "rows", "insname", "arrname", "corrname"],
        )

    def __repr__(self) -> str:
        label = self.source or "<memory>"
        return f"OIFitsFile({label}, v{self.version.ordinal}, {len(self._tables)} tables)"
