"""
Deduplication of lookup tables (OI_WAVELENGTH, OI_ARRAY, OI_CORR) while merging.

Lookup table names act as foreign keys: identical tables coming from several
inputs collapse into one output table, while different tables sharing a name
are renamed with a numeric suffix (``NAME_1``, ``NAME_2``...).
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Type

from ..model import OIArray, OICorr, OIFitsFile, OITable, OIWavelength
from .comparator import STRICT_COMPARATOR, TableComparator

logger = logging.getLogger(__name__)


class LookupTableDeduplicator:
    """Place the lookup tables of one kind into the output file."""

    def __init__(
        self,
        kind: Type[OITable],
        reuse_identical: bool = True,
        comparator: Optional[TableComparator] = None,
    ):
        if kind.NAME_KEYWORD is None:
            raise ValueError(f"{kind.EXTNAME} tables are not referenced by name")
        self.kind = kind
        self.reuse_identical = reuse_identical
        self.comparator = comparator or STRICT_COMPARATOR
        self.logger = logging.getLogger(
            f"{self.__class__.__module__}.{self.__class__.__name__}"
        )

    def place(self, table: OITable, result_file: OIFitsFile) -> OITable:
        """Return the output table representing ``table``, adding a copy if needed."""
        name = table.name
        new_name = name
        idx = 0

        while True:
            previous = result_file.get_table(self.kind, new_name)
            if previous is None:
                break
            if self.reuse_identical and self.comparator.compare_table(table, previous):
                self.logger.info("Same tables: %r vs %r", table, previous)
                return previous
            # use another suffix (_nn)
            idx += 1
            new_name = f"{name}_{idx}"

        new_table = result_file.copy_table(table)
        new_table.name = new_name
        result_file.add_table(new_table)
        if new_name != name:
            self.logger.info("Renamed %s %s to %s", self.kind.EXTNAME, name, new_name)
        return new_table

    def run(
        self, tables: Iterable[OITable], result_file: OIFitsFile
    ) -> Dict[int, OITable]:
        """
        Process tables in first-seen order.

        Returns the mapping from source table handle to output table.
        """
        mapping: Dict[int, OITable] = {}
        for table in tables:
            if table.handle in mapping:
                continue
            mapping[table.handle] = self.place(table, result_file)
        return mapping


def wavelength_deduplicator() -> LookupTableDeduplicator:
    return LookupTableDeduplicator(OIWavelength)


def array_deduplicator() -> LookupTableDeduplicator:
    return LookupTableDeduplicator(OIArray)


def corr_deduplicator(reuse_identical: bool = False) -> LookupTableDeduplicator:
    # OI_CORR tables are always copied under a free name unless asked otherwise
    return LookupTableDeduplicator(OICorr, reuse_identical=reuse_identical)
