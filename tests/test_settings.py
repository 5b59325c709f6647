"""Tests for application settings."""

import sys
import os

import pytest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))


class TestSettings:

    def test_defaults(self):
        from config.settings import Settings
        settings = Settings(_env_file=None)
        assert settings.pricing_table_version == "v1"
        assert settings.approval_code_ttl_minutes == 60
        assert settings.approval_code_length == 4

    def test_environment_prefix(self, monkeypatch):
        from config.settings import Settings
        monkeypatch.setenv("QUOTE_APPROVAL_CODE_TTL_MINUTES", "15")
        monkeypatch.setenv("QUOTE_LOG_LEVEL", "debug")
        settings = Settings(_env_file=None)
        assert settings.approval_code_ttl_minutes == 15
        assert settings.log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        from pydantic import ValidationError
        from config.settings import Settings
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="chatty")

    def test_code_length_bounds(self):
        from pydantic import ValidationError
        from config.settings import Settings
        with pytest.raises(ValidationError):
            Settings(_env_file=None, approval_code_length=3)

    @pytest.mark.parametrize("environment,expected", [
        ("production", True),
        ("staging", True),
        ("test", False),
        ("development", False),
    ])
    def test_is_production(self, environment, expected):
        from config.settings import Settings
        assert Settings(_env_file=None, environment=environment).is_production is expected

    def test_store_uses_settings(self, monkeypatch):
        from approval.codes import ApprovalCodeStore
        from config.settings import get_settings
        monkeypatch.setenv("QUOTE_APPROVAL_CODE_LENGTH", "6")
        get_settings.cache_clear()
        store = ApprovalCodeStore()
        assert len(store.issue("owner@acme.example").code) == 6
