"""Tests for configuration loading."""

from datetime import timedelta

import pytest

from did.config import (
    DidConfig,
    generate_sample_config,
    load_config,
    write_sample_config,
)
from did.exceptions import ConfigError
from did.paths import get_config_path


def write_config(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestDidConfig:
    """Tests for DidConfig validation."""

    def test_defaults(self):
        config = DidConfig()
        config.validate()
        assert config.week_start_day == "monday"
        assert config.timezone == "Local"
        assert config.retention_days == 7
        assert config.retention == timedelta(days=7)
        assert config.tzinfo is None

    def test_week_start_normalized(self):
        config = DidConfig(week_start_day=" Sunday ")
        config.validate()
        assert config.week_start_day == "sunday"

    def test_invalid_week_start(self):
        with pytest.raises(ConfigError, match="week_start_day"):
            DidConfig(week_start_day="friday").validate()

    def test_output_format_normalized(self):
        config = DidConfig(default_output_format=" CSV ")
        config.validate()
        assert config.default_output_format == "csv"

    def test_invalid_output_format(self):
        with pytest.raises(ConfigError, match="default_output_format"):
            DidConfig(default_output_format="xml").validate()

    def test_named_timezone(self):
        config = DidConfig(timezone="UTC")
        config.validate()
        assert config.tzinfo is not None

    def test_invalid_timezone(self):
        with pytest.raises(ConfigError, match="not a valid IANA timezone"):
            DidConfig(timezone="Mars/Olympus_Mons").validate()

    @pytest.mark.parametrize("value", [0, -3, "7", True, 1.5])
    def test_invalid_retention(self, value):
        with pytest.raises(ConfigError, match="retention_days"):
            DidConfig(retention_days=value).validate()

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ConfigError, match="Unknown configuration key"):
            DidConfig.from_dict({"week_start": "monday"})

    def test_to_dict(self):
        assert DidConfig().to_dict() == {
            "week_start_day": "monday",
            "timezone": "Local",
            "default_output_format": "",
            "retention_days": 7,
        }


class TestLoadConfig:
    """Tests for load_config."""

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "none.toml") == DidConfig()

    def test_default_path_from_provider(self, isolated_app_dir):
        write_config(isolated_app_dir / "config.toml", 'week_start_day = "sunday"\n')
        assert load_config().week_start_day == "sunday"

    def test_partial_file(self, tmp_path):
        path = write_config(tmp_path / "config.toml", "retention_days = 14\n")
        config = load_config(path)
        assert config.retention_days == 14
        assert config.week_start_day == "monday"

    def test_invalid_toml(self, tmp_path):
        path = write_config(tmp_path / "config.toml", "week_start_day = \n")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(path)

    def test_non_utf8_file(self, tmp_path):
        """A config file that is not UTF-8 text is a ConfigError, not a crash."""
        path = tmp_path / "config.toml"
        path.write_bytes(b"\xff\xfe week_start_day")
        with pytest.raises(ConfigError, match="not valid UTF-8"):
            load_config(path)

    def test_unreadable_path(self, tmp_path):
        """A directory where the config file should be is reported as unreadable."""
        path = tmp_path / "config.toml"
        path.mkdir()
        with pytest.raises(ConfigError, match="Cannot read config file"):
            load_config(path)

    def test_invalid_value(self, tmp_path):
        path = write_config(tmp_path / "config.toml", 'timezone = "Nowhere/Land"\n')
        with pytest.raises(ConfigError):
            load_config(path)


class TestSampleConfig:
    """Tests for the sample config file."""

    def test_sample_loads_as_defaults(self, tmp_path):
        """Every option in the sample is commented out."""
        path = write_config(tmp_path / "config.toml", generate_sample_config())
        assert load_config(path) == DidConfig()

    def test_write_sample(self):
        path = write_sample_config()
        assert path == get_config_path()
        assert "retention_days" in path.read_text()

    def test_write_sample_refuses_overwrite(self, tmp_path):
        path = write_config(tmp_path / "config.toml", "retention_days = 3\n")
        with pytest.raises(ConfigError, match="already exists"):
            write_sample_config(path)
        assert path.read_text() == "retention_days = 3\n"
