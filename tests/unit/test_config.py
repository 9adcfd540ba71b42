"""Test Settings loading and paging validation."""

import pytest

from taskify.core.config import PagingConfig, Settings, load_settings
from taskify.core.errors import ConfigError


class TestSettingsDefaults:
    def test_default_settings(self):
        settings = Settings()
        assert settings.projects.color == "#6366F1"
        assert settings.paging.default_page_size == 10
        assert settings.paging.max_page_size == 100
        assert settings.events.enforce_ownership is True
        assert settings.events.activity_log_capacity == 1000
        assert settings.events.history_capacity == 1000
        assert settings.events.dead_letter_capacity == 100

    def test_observability_defaults(self):
        settings = Settings()
        assert settings.observability.log_level == "INFO"
        assert settings.observability.log_format == "json"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("TASKIFY_PAGING__MAX_PAGE_SIZE", "25")
        assert Settings().paging.max_page_size == 25


class TestValidatePaging:
    def test_defaults_pass(self):
        Settings().validate_paging()  # Should not raise

    def test_zero_default_page_size_raises(self):
        settings = Settings(paging=PagingConfig(default_page_size=0))
        with pytest.raises(ConfigError, match="default_page_size"):
            settings.validate_paging()

    def test_max_below_default_raises(self):
        settings = Settings(paging=PagingConfig(default_page_size=20, max_page_size=5))
        with pytest.raises(ConfigError, match="max_page_size"):
            settings.validate_paging()

    def test_zero_activity_capacity_raises(self):
        settings = Settings(events={"activity_log_capacity": 0})
        with pytest.raises(ConfigError, match="activity_log_capacity"):
            settings.validate_paging()

    @pytest.mark.parametrize("field", ["history_capacity", "dead_letter_capacity"])
    def test_zero_bus_capacity_raises(self, field):
        settings = Settings(events={field: 0})
        with pytest.raises(ConfigError, match=field):
            settings.validate_paging()


class TestLoadSettings:
    def test_load_from_toml(self, tmp_path):
        path = tmp_path / "taskify.toml"
        path.write_text(
            '[projects]\ncolor = "#FF0000"\n\n'
            "[paging]\ndefault_page_size = 5\nmax_page_size = 50\n"
        )
        settings = load_settings(path)
        assert settings.projects.color == "#FF0000"
        assert settings.paging.default_page_size == 5

    def test_missing_file_uses_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "absent.toml")
        assert settings.paging.default_page_size == 10

    def test_overrides_replace_sections(self, tmp_path):
        path = tmp_path / "taskify.toml"
        path.write_text('[observability]\nlog_level = "DEBUG"\n')
        settings = load_settings(
            path, overrides={"observability": {"log_format": "console"}}
        )
        assert settings.observability.log_format == "console"
        assert settings.observability.log_level == "INFO"

    def test_file_values_beat_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TASKIFY_PAGING__MAX_PAGE_SIZE", "25")
        monkeypatch.setenv("TASKIFY_PROJECTS__COLOR", "#00FF00")
        path = tmp_path / "taskify.toml"
        path.write_text("[paging]\ndefault_page_size = 5\nmax_page_size = 50\n")
        settings = load_settings(path)
        assert settings.paging.max_page_size == 50
        assert settings.projects.color == "#00FF00"

    def test_invalid_paging_in_file_raises(self, tmp_path):
        path = tmp_path / "taskify.toml"
        path.write_text("[paging]\ndefault_page_size = 50\nmax_page_size = 10\n")
        with pytest.raises(ConfigError):
            load_settings(path)
