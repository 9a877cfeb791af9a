"""
Merge several OIFITS files (or a selection of their data) into one OIFITS file.

The merge runs in four steps sharing one :class:`MergeContext`:

1. collect the OI_TARGET, OI_WAVELENGTH, OI_ARRAY and OI_CORR tables
   referenced by the selected data tables;
2. build the output OI_TARGET and the per-file target id mappings;
3. place the lookup tables, collapsing identical ones and renaming clashes;
4. remap, filter and compact every selected data table.

Input files are never modified: every output table is a copy.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from ..model import (
    OIFitsCollection,
    OIFitsFile,
    OIFitsStandard,
    OIPrimaryHDU,
)
from .base import InvalidInputError, MergeConfig, MergeResult
from .context import MergeContext
from .dedup import array_deduplicator, corr_deduplicator, wavelength_deduplicator
from .rows import RowFilter
from .selector import Selector, SelectorResult, find_oidata
from .targets import TargetUnifier

StdLike = Union[OIFitsStandard, int, str, None]


def resolve_version(
    result: Optional[SelectorResult], std: StdLike = None
) -> OIFitsStandard:
    """Requested version, else the highest version among the selected files."""
    if std is not None:
        return OIFitsStandard.from_value(std)
    if result is None:
        return OIFitsStandard.lowest()
    version = None
    for oifits in result.sorted_oifits_files:
        if version is None or oifits.version.ordinal > version.ordinal:
            version = oifits.version
    return version or OIFitsStandard.lowest()


def create_oifits(version: OIFitsStandard) -> OIFitsFile:
    result_file = OIFitsFile(version)
    if version.supports_correlation:
        result_file.primary_hdu = OIPrimaryHDU.for_version(version)
    return result_file


class OIFitsMerger:
    """
    Merge engine.

    One instance may run any number of merges; the state of a merge lives in
    the :class:`MergeContext` created by each call.
    """

    def __init__(self, config: Optional[MergeConfig] = None):
        self.config = config or MergeConfig.from_settings()
        self.logger = logging.getLogger(
            f"{self.__class__.__module__}.{self.__class__.__name__}"
        )

    def run(
        self, selector_result: Optional[SelectorResult], std: StdLike = None
    ) -> MergeResult:
        """Execute the complete merge and return the output with its statistics."""
        if selector_result is None or selector_result.is_empty():
            raise InvalidInputError("Merge: Missing OIFits inputs")

        version = resolve_version(
            selector_result, std if std is not None else self.config.std
        )
        result_file = create_oifits(version)
        ctx = MergeContext(selector_result, result_file, self.config)

        self.logger.info(
            "Merging %d tables from %d files into OIFITS %d",
            len(selector_result),
            len(selector_result.sorted_oifits_files),
            version.ordinal,
        )

        self.collect_tables(ctx)
        self.process_oi_target(ctx)
        self.process_oi_wavelengths(ctx)
        self.process_oi_arrays(ctx)
        if result_file.version.supports_correlation:
            self.process_oi_corrs(ctx)
        self.process_oi_data(ctx)

        oidatas = selector_result.sorted_oidatas
        output_datas = result_file.oi_datas
        result = MergeResult(
            oifits=result_file,
            version=version,
            tables_in=len(oidatas),
            tables_out=len(output_datas),
            rows_in=sum(t.nb_rows for t in oidatas),
            rows_out=sum(t.nb_rows for t in output_datas),
            dropped_tables=ctx.dropped_tables,
            filtered_tables=ctx.filtered_tables,
            diagnostics=ctx.diagnostics,
        )
        self.logger.info("Merge completed: %s", result.statistics())
        return result

    def process(
        self, selector_result: Optional[SelectorResult], std: StdLike = None
    ) -> OIFitsFile:
        return self.run(selector_result, std).oifits

    # --- steps ---------------------------------------------------------

    def collect_tables(self, ctx: MergeContext) -> None:
        """Collect the lookup tables referenced by the selected data tables."""
        for oidata in ctx.selector_result.sorted_oidatas:
            oifits = ctx.selector_result.get_oifits(oidata)
            oi_target = oifits.oi_target
            if oi_target is not None:
                ctx.used_oi_targets.setdefault(oi_target.handle, oi_target)
            oi_wavelength = oifits.get_oi_wavelength(oidata.insname)
            if oi_wavelength is not None:
                ctx.used_oi_wavelengths.setdefault(oi_wavelength.handle, oi_wavelength)
            oi_array = oifits.get_oi_array(oidata.arrname)
            if oi_array is not None:
                ctx.used_oi_arrays.setdefault(oi_array.handle, oi_array)
            oi_corr = oifits.get_oi_corr(oidata.corrname)
            if oi_corr is not None:
                ctx.used_oi_corrs.setdefault(oi_corr.handle, oi_corr)

    def process_oi_target(self, ctx: MergeContext) -> None:
        # keep targets associated to selected data ONLY
        unifier = TargetUnifier(ctx.selector_result.target_manager)
        oi_revn = 2 if ctx.result_file.is_oifits2() else 1
        new_oi_target = unifier.run(
            ctx.selector_result.distinct_targets,
            ctx.used_oi_targets.values(),
            ctx.target_ids,
            oi_revn=oi_revn,
        )
        ctx.result_file.add_table(new_oi_target)
        self.logger.debug("mapOITargetIDs: %s", ctx.target_ids)

    def process_oi_wavelengths(self, ctx: MergeContext) -> None:
        ctx.wavelength_map = wavelength_deduplicator().run(
            ctx.used_oi_wavelengths.values(), ctx.result_file
        )
        self.logger.info("insNames: %s", ctx.result_file.accepted_insnames)

    def process_oi_arrays(self, ctx: MergeContext) -> None:
        ctx.array_map = array_deduplicator().run(
            ctx.used_oi_arrays.values(), ctx.result_file
        )
        self.logger.info("arrNames: %s", ctx.result_file.accepted_arrnames)

    def process_oi_corrs(self, ctx: MergeContext) -> None:
        ctx.corr_map = corr_deduplicator(ctx.config.dedup_correlation).run(
            ctx.used_oi_corrs.values(), ctx.result_file
        )
        self.logger.info("corrNames: %s", ctx.result_file.accepted_corrnames)

    def process_oi_data(self, ctx: MergeContext) -> None:
        row_filter = RowFilter(ctx)
        for oidata in ctx.selector_result.sorted_oidatas:
            row_filter.process(oidata, ctx.selector_result.get_oifits(oidata))


def merge(
    selector_result: Optional[SelectorResult],
    std: StdLike = None,
    config: Optional[MergeConfig] = None,
) -> OIFitsFile:
    """Merge the data tables of a selection into a new OIFITS file."""
    return OIFitsMerger(config).process(selector_result, std)


def merge_collection(
    collection: Optional[OIFitsCollection],
    selector: Optional[Selector] = None,
    std: StdLike = None,
    config: Optional[MergeConfig] = None,
) -> OIFitsFile:
    """Select data in a collection, then merge it."""
    if collection is None or collection.is_empty():
        raise InvalidInputError("Merge: Missing OIFits inputs")
    return merge(find_oidata(collection, selector), std, config)


def merge_files(
    *oifits_files: OIFitsFile,
    selector: Optional[Selector] = None,
    std: StdLike = None,
    config: Optional[MergeConfig] = None,
) -> OIFitsFile:
    """Merge whole OIFITS files (optionally filtered by a selector)."""
    if not oifits_files:
        raise InvalidInputError("Merge: Missing OIFits inputs")
    return merge_collection(OIFitsCollection.create(*oifits_files), selector, std, config)
