"""
Tests for the oimerge CLI module.
"""

from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from oimerge.cli import load_commands, main
from oimerge.io import read_oifits, write_oifits

from conftest import NIGHT_2


@pytest.fixture
def input_paths(scenario_files, temp_dir):
    return [
        str(write_oifits(oifits, temp_dir / f"in{i}.fits"))
        for i, oifits in enumerate(scenario_files)
    ]


class TestCLICore:
    """Test cases for core CLI functionality."""

    def test_main_cli_group_creation(self):
        """Test that main CLI group is created properly."""
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "oimerge CLI" in result.output

    def test_cli_with_log_level_option(self):
        """Test CLI with log level option."""
        runner = CliRunner()
        result = runner.invoke(main, ["--log-level", "DEBUG", "--help"])

        assert result.exit_code == 0

    def test_commands_are_registered(self):
        """Test that plugin commands are discovered."""
        assert {"merge", "info"} <= set(main.commands)

    @patch("oimerge.cli.logger")
    def test_load_commands_with_plugin_error(self, mock_logger):
        """Test load_commands handles plugin loading errors gracefully."""
        with patch("oimerge.cli.importlib.import_module") as mock_import:
            mock_import.side_effect = ImportError("Test import error")

            load_commands()

            mock_logger.error.assert_called()


class TestMergeCommand:
    """Test cases for the merge command."""

    def test_merge_help(self):
        """Test merge command help."""
        runner = CliRunner()
        result = runner.invoke(main, ["merge", "--help"])

        assert result.exit_code == 0
        assert "--dedup-corr" in result.output
        assert "--night" in result.output

    def test_merge_files(self, input_paths, temp_dir):
        """Test merging two files into one."""
        out = temp_dir / "merged.fits"
        runner = CliRunner()
        result = runner.invoke(main, ["merge", *input_paths, "-o", str(out)])

        assert result.exit_code == 0, result.output
        assert "✓ Merged 2 data tables (6/6 rows)" in result.output
        merged = read_oifits(out)
        assert merged.accepted_insnames == ["LOW", "LOW_1"]

    def test_merge_with_filters(self, input_paths, temp_dir):
        """Test target filtering and forced version."""
        out = temp_dir / "gamma.fits"
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["merge", *input_paths, "-o", str(out), "--target", "GAMMA", "--version", "2"],
        )

        assert result.exit_code == 0, result.output
        merged = read_oifits(out)
        assert merged.is_oifits2()
        assert [t.name for t in merged.oi_target.targets] == ["GAMMA"]
        assert "! [row_inconsistency]" in result.output

    def test_merge_with_selector_file(self, input_paths, temp_dir):
        """Test a selector loaded from YAML."""
        selector = temp_dir / "selector.yml"
        selector.write_text(yaml.safe_dump({"selector": {"night_ids": [int(NIGHT_2 + 0.5)]}}))
        out = temp_dir / "night.fits"
        runner = CliRunner()
        result = runner.invoke(
            main, ["merge", *input_paths, "-o", str(out), "--selector", str(selector)]
        )

        assert result.exit_code == 0, result.output
        assert len(read_oifits(out).oi_datas) == 1

    def test_merge_nothing_selected(self, input_paths, temp_dir):
        """Test that an empty selection aborts."""
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["merge", *input_paths, "-o", str(temp_dir / "x.fits"), "--insname", "NOPE"],
        )

        assert result.exit_code != 0
        assert "✗ Merge failed" in result.output

    def test_merge_refuses_overwrite(self, input_paths, temp_dir):
        """Test that an existing output is kept unless --overwrite is given."""
        out = temp_dir / "merged.fits"
        out.write_text("keep me")
        runner = CliRunner()

        result = runner.invoke(main, ["merge", *input_paths, "-o", str(out)])
        assert result.exit_code != 0
        assert out.read_text() == "keep me"

        result = runner.invoke(main, ["merge", *input_paths, "-o", str(out), "--overwrite"])
        assert result.exit_code == 0, result.output

    def test_merge_without_inputs(self, temp_dir):
        """Test that at least one input is required."""
        runner = CliRunner()
        result = runner.invoke(main, ["merge", "-o", str(temp_dir / "x.fits")])

        assert result.exit_code != 0


class TestInfoCommand:
    """Test cases for the info command."""

    def test_info(self, input_paths):
        """Test the table summary of a file."""
        runner = CliRunner()
        result = runner.invoke(main, ["info", input_paths[0]])

        assert result.exit_code == 0, result.output
        assert "oimerge version:" in result.output
        assert "OI_WAVELENGTH" in result.output
        assert "ALPHA" in result.output

    def test_info_unreadable(self, temp_dir):
        """Test that unreadable files are reported without failing."""
        path = temp_dir / "bad.fits"
        path.write_text("garbage")
        runner = CliRunner()
        result = runner.invoke(main, ["info", str(path)])

        assert result.exit_code == 0
        assert "Cannot read OIFITS file" in result.output
