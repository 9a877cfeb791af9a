"""
Tests for the oimerge settings module.
"""

import pytest

from oimerge.settings import Settings


class TestSettings:
    """Test cases for the Settings class."""

    def test_default_settings(self, monkeypatch):
        """Test that default settings are correctly initialized."""
        for name in (
            "OIMERGE_LOG_LEVEL",
            "OIMERGE_TARGET_MATCH_TOLERANCE_ARCSEC",
            "OIMERGE_DEFAULT_VERSION",
            "OIMERGE_DEDUP_CORRELATION",
        ):
            monkeypatch.delenv(name, raising=False)
        settings = Settings()

        assert settings.log_level == "INFO"
        assert settings.target_match_tolerance_arcsec == 1.0
        assert settings.default_version is None
        assert settings.undefined_arrname == "UNDEFINED"
        assert settings.dedup_correlation is False

    def test_custom_settings(self):
        """Test settings with custom values."""
        settings = Settings(
            log_level="DEBUG",
            target_match_tolerance_arcsec=2.5,
            default_version=2,
            dedup_correlation=True,
        )

        assert settings.log_level == "DEBUG"
        assert settings.target_match_tolerance_arcsec == 2.5
        assert settings.default_version == 2
        assert settings.dedup_correlation is True

    def test_environment_variables(self, monkeypatch):
        """Test that settings can be loaded from environment variables."""
        monkeypatch.setenv("OIMERGE_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("OIMERGE_DEFAULT_VERSION", "2")
        monkeypatch.setenv("OIMERGE_DEDUP_CORRELATION", "true")

        settings = Settings()

        assert settings.log_level == "WARNING"
        assert settings.default_version == 2
        assert settings.dedup_correlation is True

    def test_invalid_version(self):
        """Test that unsupported versions are rejected."""
        with pytest.raises(ValueError):
            Settings(default_version=3)

    def test_negative_tolerance(self):
        """Test that a negative match tolerance is rejected."""
        with pytest.raises(ValueError):
            Settings(target_match_tolerance_arcsec=-1.0)

    def test_tolerance_used_by_target_manager(self, test_settings, monkeypatch):
        """Test that the default target manager reads its tolerance from settings."""
        from oimerge.model import TargetManager

        monkeypatch.setattr("oimerge.settings.settings", test_settings)
        test_settings.target_match_tolerance_arcsec = 30.0

        assert TargetManager().tolerance_arcsec == 30.0
