"""
Tests for data table remapping, filtering and compaction.
"""

import logging

import numpy as np

from oimerge.model import (
    UNDEFINED_SHORT,
    OIFitsCollection,
    OIFitsFile,
    OIVis2,
    OIWavelength,
)
from oimerge.processing import (
    DataTablePlan,
    DiagnosticKind,
    MergeConfig,
    OIFitsMerger,
    SelectorResult,
    find_oidata,
)

from conftest import NIGHT_1


def run_merge(*oifits_files, config=None):
    selection = find_oidata(OIFitsCollection(oifits_files))
    return OIFitsMerger(config or MergeConfig()).run(selection)


def kinds(result):
    return [d.kind for d in result.diagnostics]


class TestDataTablePlan:
    """Test cases for the per-table build step."""

    def test_build_without_filter(self):
        """Test that an unfiltered plan copies the table and renames references."""
        source = OIVis2.create("LOW", "VLTI", [1, 2], NIGHT_1, nwave=2, corrname="C")
        plan = DataTablePlan(source, "LOW_1", "VLTI_2", None)

        table = plan.build()

        assert not plan.filters_rows
        assert plan.nb_kept_rows == 2
        assert table is not source
        assert (table.insname, table.arrname, table.corrname) == ("LOW_1", "VLTI_2", None)
        assert source.insname == "LOW"
        assert source.corrname == "C"

    def test_build_with_filter(self):
        """Test that kept rows carry their new target ids."""
        source = OIVis2.create("LOW", "VLTI", [1, 2, 3], NIGHT_1, nwave=2)
        new_ids = np.array([4, UNDEFINED_SHORT, 5], dtype=np.int16)
        plan = DataTablePlan(
            source, "LOW", "VLTI", None, target_ids=new_ids, keep=new_ids != UNDEFINED_SHORT
        )

        table = plan.build()

        assert plan.filters_rows
        assert plan.nb_kept_rows == 2
        assert list(table.target_id) == [4, 5]
        assert table.get_column("VIS2DATA").shape == (2, 2)
        assert list(source.target_id) == [1, 2, 3]


class TestRowFilter:
    """Test cases for reference resolution and row filtering during a merge."""

    def test_extra_target_id_warns_once(self, oifits_factory, targets):
        """Test that rows with ids missing from OI_TARGET are removed and reported once."""
        source = oifits_factory(
            [targets["A"]], rows=[(1, NIGHT_1), (7, NIGHT_1), (7, NIGHT_1)]
        )
        source.add_table(OIVis2.create("LOW", "VLTI", [7, 1], NIGHT_1, nwave=3))

        result = run_merge(source)

        assert [t.nb_rows for t in result.oifits.oi_datas] == [1, 1]
        assert kinds(result).count(DiagnosticKind.ROW_INCONSISTENCY) == 1
        assert len(result.filtered_tables) == 2

    def test_extra_target_id_logged_by_merge_context(self, oifits_factory, targets, caplog):
        """Test that an extra id is logged once, by the merge context logger."""
        source = oifits_factory([targets["A"]], rows=[(1, NIGHT_1), (7, NIGHT_1)])

        with caplog.at_level(logging.WARNING, logger="oimerge"):
            run_merge(source)

        records = [r for r in caplog.records if "Extra TargetId" in r.getMessage()]
        assert [r.name for r in records] == ["oimerge.processing.context"]

    def test_table_without_rows_is_dropped(self, oifits_factory, targets, target_manager):
        """Test that a table losing every row is not written."""
        source = oifits_factory(
            [targets["A"], targets["B"]], rows=[(1, NIGHT_1), (2, NIGHT_1)]
        )
        only_b = source.add_table(OIVis2.create("LOW", "VLTI", [2, 2], NIGHT_1, nwave=3))
        OIFitsCollection([source], target_manager)

        selection = SelectorResult(target_manager)
        for oidata in source.oi_datas:
            selection.add(source, oidata, targets=[targets["A"]], night_ids=[58000])
        result = OIFitsMerger(MergeConfig()).run(selection)

        assert len(result.oifits.oi_datas) == 1
        assert result.dropped_tables == [repr(only_b)]
        assert list(result.oifits.oi_datas[0].target_id) == [1]

    def test_unresolvable_insname(self, oifits_factory, targets):
        """Test that a table without its OI_WAVELENGTH is skipped."""
        source = oifits_factory([targets["A"]], rows=[(1, NIGHT_1)])
        source.add_table(OIVis2.create("NOPE", "VLTI", [1], NIGHT_1, nwave=3))

        result = run_merge(source)

        assert len(result.oifits.oi_datas) == 1
        assert kinds(result) == [DiagnosticKind.REFERENCE_UNRESOLVABLE]
        assert len(result.dropped_tables) == 1

    def test_missing_array_uses_undefined(self, oifits_factory, targets):
        """Test that a table without OI_ARRAY keeps its rows under UNDEFINED."""
        source = oifits_factory([targets["A"]], rows=[(1, NIGHT_1)], arrname=None)

        result = run_merge(source)
        (oidata,) = result.oifits.oi_datas

        assert oidata.arrname == "UNDEFINED"
        assert result.oifits.oi_arrays == []
        assert kinds(result) == [DiagnosticKind.REFERENCE_DEGRADED]

    def test_undefined_arrname_is_configurable(self, oifits_factory, targets):
        """Test the configured replacement ARRNAME."""
        source = oifits_factory([targets["A"]], rows=[(1, NIGHT_1)], arrname=None)

        result = run_merge(source, config=MergeConfig(undefined_arrname="NONE"))

        assert result.oifits.oi_datas[0].arrname == "NONE"

    def test_file_without_directory(self, targets, target_manager):
        """Test that every row of a file without OI_TARGET is removed."""
        oifits = OIFitsFile()
        oifits.add_table(OIWavelength.create("LOW", [1e-6, 2e-6]))
        oidata = oifits.add_table(OIVis2.create("LOW", None, [1, 2], NIGHT_1, nwave=2))
        target_manager.register(targets["A"])

        selection = SelectorResult(target_manager)
        selection.add(oifits, oidata, targets=[targets["A"]])
        result = OIFitsMerger(MergeConfig()).run(selection)

        assert result.oifits.oi_datas == []
        assert result.rows_out == 0
        assert DiagnosticKind.ROW_INCONSISTENCY in kinds(result)

    def test_only_referenced_lookup_tables_are_copied(self, oifits_factory, targets):
        """Test that unreferenced lookup tables stay out of the output."""
        source = oifits_factory([targets["A"]], rows=[(1, NIGHT_1)])
        source.add_table(OIWavelength.create("UNUSED", [1e-6]))

        result = run_merge(source)

        assert result.oifits.accepted_insnames == ["LOW"]
