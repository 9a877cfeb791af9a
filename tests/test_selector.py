"""
Tests for the default data selection.
"""

import pytest
import yaml

from oimerge.model import OIFitsCollection, OIT3, night_id
from oimerge.processing import Selector, SelectorResult, find_oidata

from conftest import NIGHT_1, NIGHT_2


class TestSelector:
    """Test cases for selection criteria."""

    def test_empty_selector(self):
        """Test that a default selector has no criterion."""
        assert Selector().is_empty()
        assert not Selector(target="ALPHA").is_empty()

    def test_unknown_field_rejected(self):
        """Test that misspelled criteria are refused."""
        with pytest.raises(ValueError):
            Selector(tagret="ALPHA")

    def test_from_yaml(self, temp_dir):
        """Test loading a selector from a YAML file."""
        path = temp_dir / "selector.yml"
        path.write_text(
            yaml.safe_dump({"selector": {"target": "BETA", "night_ids": [58000]}})
        )

        selector = Selector.from_yaml(path)

        assert selector.target == "BETA"
        assert selector.night_ids == [58000]

    def test_from_flat_yaml(self, temp_dir):
        """Test loading a selector written without the top-level key."""
        path = temp_dir / "selector.yml"
        path.write_text("insname: LOW\n")

        assert Selector.from_yaml(path).insname == "LOW"


class TestFindOIData:
    """Test cases for data table selection in a collection."""

    def test_select_everything(self, scenario_collection):
        """Test that no criterion selects every data table."""
        result = find_oidata(scenario_collection)

        assert len(result) == 2
        assert [t.name for t in result.distinct_targets] == ["ALPHA", "BETA", "GAMMA"]
        assert result.distinct_night_ids == [night_id(NIGHT_1), night_id(NIGHT_2)]
        assert result.distinct_insnames == ["LOW"]
        assert len(result.sorted_oifits_files) == 2

    def test_owner_file_is_kept(self, scenario_collection, scenario_files):
        """Test that each selected table knows the file it comes from."""
        result = find_oidata(scenario_collection)

        for oidata, oifits in zip(result.sorted_oidatas, scenario_files):
            assert result.get_oifits(oidata) is oifits

    def test_select_target(self, scenario_collection):
        """Test selection by target name."""
        result = scenario_collection.find_oidata(Selector(target="GAMMA"))

        assert len(result) == 1
        assert [t.name for t in result.distinct_targets] == ["GAMMA"]
        assert result.distinct_night_ids == [night_id(NIGHT_2)]

    def test_select_night(self, scenario_collection):
        """Test selection by night."""
        result = find_oidata(scenario_collection, Selector(night_ids=[night_id(NIGHT_1)]))

        assert len(result) == 1
        assert [t.name for t in result.distinct_targets] == ["ALPHA", "BETA"]

    def test_select_extname(self, scenario_collection, scenario_files):
        """Test selection by data table kind."""
        scenario_files[0].add_table(OIT3.create("LOW", "VLTI", [1], NIGHT_1, nwave=3))

        result = find_oidata(scenario_collection, Selector(extnames=["oi_t3"]))

        assert [t.extname for t in result.sorted_oidatas] == ["OI_T3"]
        assert [t.name for t in result.distinct_targets] == ["ALPHA"]

    def test_no_match(self, scenario_collection):
        """Test that an unmatched selector gives no result."""
        assert find_oidata(scenario_collection, Selector(insname="HIGH")) is None
        assert find_oidata(scenario_collection, Selector(night_ids=[1])) is None

    def test_unknown_target_warns(self, scenario_collection, caplog):
        """Test that an unknown target name is reported."""
        assert find_oidata(scenario_collection, Selector(target="nobody")) is None
        assert "Unknown target" in caplog.text


class TestSelectorResult:
    """Test cases for the selection container."""

    def test_add_defaults(self, scenario_files, target_manager):
        """Test that targets and nights default to those of the table."""
        f1, _ = scenario_files
        collection = OIFitsCollection([f1], target_manager)
        result = SelectorResult.from_collection(collection)

        result.add(f1, f1.oi_datas[0])
        result.add(f1, f1.oi_datas[0])

        assert len(result) == 1
        assert [t.name for t in result.distinct_targets] == ["ALPHA", "BETA"]
        assert result.distinct_night_ids == [night_id(NIGHT_1)]

    def test_targets_resolve_to_global(self, scenario_collection, targets):
        """Test that a shared target is listed once."""
        result = find_oidata(scenario_collection)

        assert result.distinct_targets.count(targets["B"]) == 1
        assert result.target_manager is scenario_collection.target_manager

    def test_is_empty(self, target_manager):
        """Test an empty result."""
        assert SelectorResult(target_manager).is_empty()
