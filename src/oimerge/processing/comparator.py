"""
Strict structural comparison of OIFITS tables.
"""

from __future__ import annotations

import logging
from typing import Iterable

import numpy as np

from ..model import OITable

logger = logging.getLogger(__name__)

# keywords describing where a table sits or how its HDU was written
IGNORED_KEYWORDS = frozenset({"EXTVER", "CHECKSUM", "DATASUM"})


def _same_values(left: np.ndarray, right: np.ndarray) -> bool:
    if left.shape != right.shape or left.dtype.kind != right.dtype.kind:
        return False
    if left.dtype.kind in "fc":
        return bool(np.array_equal(left, right, equal_nan=True))
    return bool(np.array_equal(left, right))


def _same_keyword(left, right) -> bool:
    if isinstance(left, float) and isinstance(right, float):
        return left == right or (np.isnan(left) and np.isnan(right))
    return left == right


class TableComparator:
    """
    Compare two tables keyword by keyword and column by column.

    The naming keyword (INSNAME, ARRNAME, CORRNAME) is ignored so that a table
    copied under a suffixed name still compares equal to its source.
    """

    def __init__(self, ignored_keywords: Iterable[str] = IGNORED_KEYWORDS):
        self.ignored_keywords = frozenset(ignored_keywords)

    def _keywords(self, table: OITable) -> dict:
        ignored = set(self.ignored_keywords)
        if table.NAME_KEYWORD is not None:
            ignored.add(table.NAME_KEYWORD)
        return {k: v for k, v in table.keywords.items() if k not in ignored}

    def compare_table(self, left: OITable, right: OITable) -> bool:
        if type(left) is not type(right):
            return False

        left_kw, right_kw = self._keywords(left), self._keywords(right)
        if left_kw.keys() != right_kw.keys():
            logger.debug("Different keywords: %s vs %s", left, right)
            return False
        for key, value in left_kw.items():
            if not _same_keyword(value, right_kw[key]):
                logger.debug("Different %s: %r vs %r", key, value, right_kw[key])
                return False

        if left.column_names != right.column_names or left.nb_rows != right.nb_rows:
            logger.debug("Different columns or rows: %s vs %s", left, right)
            return False
        for name in left.column_names:
            if left.units.get(name) != right.units.get(name):
                return False
            if not _same_values(left.columns[name], right.columns[name]):
                logger.debug("Different column %s: %s vs %s", name, left, right)
                return False
        return True


STRICT_COMPARATOR = TableComparator()
