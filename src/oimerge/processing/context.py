"""
Mutable state owned by one merge call.
"""

from __future__ import annotations

import logging
from typing import Dict, List

from ..model import (
    NightIdMatcher,
    OIArray,
    OICorr,
    OIFitsFile,
    OITable,
    OITarget,
    OIWavelength,
)
from .base import Diagnostic, DiagnosticKind, MergeConfig
from .remap import IdRemapper
from .selector import SelectorResult

logger = logging.getLogger(__name__)


class MergeContext:
    """
    Hold temporary data of a merge operation: the tables referenced by the
    selected data, the old -> new mappings and the diagnostics emitted so far.

    Every mapping is keyed on source table handles.
    """

    def __init__(
        self,
        selector_result: SelectorResult,
        result_file: OIFitsFile,
        config: MergeConfig,
    ):
        self.selector_result = selector_result
        self.result_file = result_file
        self.config = config

        # referenced lookup tables in first-seen order
        self.used_oi_targets: Dict[int, OITarget] = {}
        self.used_oi_wavelengths: Dict[int, OIWavelength] = {}
        self.used_oi_arrays: Dict[int, OIArray] = {}
        self.used_oi_corrs: Dict[int, OICorr] = {}

        # per source OI_TARGET: local target id -> merged target id
        self.target_ids = IdRemapper()
        # source table handle -> output table
        self.wavelength_map: Dict[int, OIWavelength] = {}
        self.array_map: Dict[int, OIArray] = {}
        self.corr_map: Dict[int, OICorr] = {}

        self.night_matcher = NightIdMatcher(selector_result.distinct_night_ids)

        self.diagnostics: List[Diagnostic] = []
        self.dropped_tables: List[str] = []
        self.filtered_tables: List[str] = []

    def warn(self, kind: DiagnosticKind, table: OITable, message: str) -> None:
        logger.warning("%s: %s", table, message)
        self.diagnostics.append(
            Diagnostic(kind=kind, table=repr(table), message=message)
        )
