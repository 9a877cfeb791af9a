"""
Row filtering and compaction of data tables after identifier remapping.

Every selected data table goes through two phases: :meth:`RowFilter.plan`
decides the new lookup names, the new TARGET_ID column and the rows to keep
without touching any table, then :meth:`DataTablePlan.build` materializes the
output table once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..model import UNDEFINED_SHORT, OIData, OIFitsFile
from .base import DiagnosticKind
from .context import MergeContext
from .remap import TargetIdMap

logger = logging.getLogger(__name__)


@dataclass
class DataTablePlan:
    """Decisions taken for one source data table."""

    source: OIData
    insname: str
    arrname: str
    corrname: Optional[str]
    target_ids: Optional[np.ndarray] = None
    keep: Optional[np.ndarray] = None

    @property
    def filters_rows(self) -> bool:
        return self.keep is not None and not self.keep.all()

    @property
    def nb_kept_rows(self) -> int:
        if self.keep is None:
            return self.source.nb_rows
        return int(np.count_nonzero(self.keep))

    def build(self) -> OIData:
        if self.filters_rows:
            table = self.source.take(self.keep)
            target_ids = self.target_ids[self.keep]
        else:
            table = self.source.copy()
            target_ids = self.target_ids
        if target_ids is not None:
            table.columns["TARGET_ID"] = np.asarray(target_ids, dtype=np.int16)
        table.insname = self.insname
        table.arrname = self.arrname
        table.corrname = self.corrname
        return table


class RowFilter:
    """Remap, filter and compact the selected data tables of a merge."""

    def __init__(self, ctx: MergeContext):
        self.ctx = ctx

    def _target_map(self, oifits: OIFitsFile) -> TargetIdMap:
        oi_target = oifits.oi_target
        if oi_target is None:
            # no directory: every id is an extra
            return self.ctx.target_ids.scope(-id(oifits), f"{oifits} (no OI_TARGET)")
        return self.ctx.target_ids.scope(oi_target.handle)

    def _resolve_names(self, oidata: OIData, oifits: OIFitsFile):
        ctx = self.ctx

        # INSNAME
        oi_wavelength = oifits.get_oi_wavelength(oidata.insname)
        new_oi_wavelength = (
            ctx.wavelength_map.get(oi_wavelength.handle) if oi_wavelength else None
        )
        if new_oi_wavelength is None:
            ctx.warn(
                DiagnosticKind.REFERENCE_UNRESOLVABLE,
                oidata,
                f"Invalid INSNAME[{oidata.insname}] found ! Table skipped",
            )
            return None

        # ARRNAME
        oi_array = oifits.get_oi_array(oidata.arrname)
        new_oi_array = ctx.array_map.get(oi_array.handle) if oi_array else None
        if new_oi_array is None:
            arrname = ctx.config.undefined_arrname
            ctx.warn(
                DiagnosticKind.REFERENCE_DEGRADED,
                oidata,
                f"Invalid ARRNAME[{oidata.arrname}] found ! Using [{arrname}] instead",
            )
        else:
            arrname = new_oi_array.name

        # optional CORRNAME
        corrname = None
        if oidata.corrname is not None:
            oi_corr = oifits.get_oi_corr(oidata.corrname)
            new_oi_corr = ctx.corr_map.get(oi_corr.handle) if oi_corr else None
            if new_oi_corr is None:
                ctx.warn(
                    DiagnosticKind.REFERENCE_DEGRADED,
                    oidata,
                    f"Invalid CORRNAME[{oidata.corrname}] found ! Reference removed",
                )
            else:
                corrname = new_oi_corr.name

        return new_oi_wavelength.name, arrname, corrname

    def _check_target_ids(self, oidata: OIData, mapping: TargetIdMap) -> bool:
        """Should target ids be rewritten (or rows removed) in this table ?"""

        def on_extra(old_id: int) -> None:
            self.ctx.warn(
                DiagnosticKind.ROW_INCONSISTENCY,
                oidata,
                f"Extra TargetId = {old_id} found ! Using [{UNDEFINED_SHORT}] "
                "instead (rows removed)",
            )

        check = mapping.check(oidata.distinct_target_ids, on_extra)
        logger.debug("checkTargetId: %s, mapIds: %s", check, mapping)
        return check

    def _check_night_ids(self, oidata: OIData) -> bool:
        """Should rows be filtered on their night ?"""
        matcher = self.ctx.night_matcher
        nights = oidata.distinct_night_ids
        logger.debug("oidata nightIds: %s", nights)
        if oidata.has_single_night and matcher.match(nights[0]):
            return False
        if matcher.match_all(nights):
            return False
        skipped = [n for n in nights if not matcher.match(n)]
        self.ctx.warn(
            DiagnosticKind.ROW_INCONSISTENCY,
            oidata,
            f"Rows of unselected nights {skipped} removed",
        )
        return True

    def plan(self, oidata: OIData, oifits: OIFitsFile) -> Optional[DataTablePlan]:
        """Decide how ``oidata`` appears in the output; ``None`` drops it."""
        ctx = self.ctx

        if not ctx.result_file.version.supports(oidata.extname):
            ctx.warn(
                DiagnosticKind.UNSUPPORTED_TABLE,
                oidata,
                f"{oidata.extname} not supported by OIFITS "
                f"{ctx.result_file.version.ordinal} ! Table skipped",
            )
            return None

        names = self._resolve_names(oidata, oifits)
        if names is None:
            return None
        insname, arrname, corrname = names

        mapping = self._target_map(oifits)
        check_target_id = self._check_target_ids(oidata, mapping)
        check_night_id = self._check_night_ids(oidata)

        plan = DataTablePlan(oidata, insname, arrname, corrname)
        if not (check_target_id or check_night_id):
            return plan

        if check_target_id:
            new_ids = mapping.apply(oidata.target_id)
        else:
            new_ids = np.array(oidata.target_id, dtype=np.int16)
        if check_night_id:
            # rows of other nights get an undefined target id
            new_ids[~ctx.night_matcher.mask(oidata.night_id)] = UNDEFINED_SHORT

        plan.target_ids = new_ids
        plan.keep = new_ids != UNDEFINED_SHORT
        return plan

    def process(self, oidata: OIData, oifits: OIFitsFile) -> Optional[OIData]:
        """Plan, build and append the output table for one source data table."""
        ctx = self.ctx
        plan = self.plan(oidata, oifits)
        if plan is None:
            ctx.dropped_tables.append(repr(oidata))
            return None
        if plan.nb_kept_rows == 0:
            # skip table as no remaining row
            logger.info("Table[%r] skipped: no remaining row", oidata)
            ctx.dropped_tables.append(repr(oidata))
            return None

        new_oidata = plan.build()
        ctx.result_file.add_table(new_oidata)

        if plan.filters_rows:
            ctx.filtered_tables.append(repr(oidata))
            logger.warning("Table[%r] filtered from Table[%r]", new_oidata, oidata)
        return new_oidata
