"""Tests for application path resolution."""

from pathlib import Path

from did import paths


class TestDefaultPathProvider:
    """Tests for environment-based resolution."""

    def test_did_home_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DID_HOME", str(tmp_path / "home"))
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        assert paths.DefaultPathProvider().user_config_dir() == tmp_path / "home"

    def test_xdg_config_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        assert paths.DefaultPathProvider().user_config_dir() == tmp_path / "xdg" / "did"

    def test_home_fallback(self, monkeypatch):
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        expected = Path.home() / ".config" / "did"
        assert paths.DefaultPathProvider().user_config_dir() == expected


class TestProviderSwap:
    """Tests for the process-wide provider."""

    def test_fixed_provider_in_use(self, isolated_app_dir):
        assert paths.get_storage_path() == isolated_app_dir / "entries.jsonl"
        assert paths.get_config_path() == isolated_app_dir / "config.toml"
        assert paths.get_timer_path() == isolated_app_dir / "timer.json"

    def test_get_app_dir_creates_directory(self, isolated_app_dir):
        assert not isolated_app_dir.exists()
        assert paths.get_app_dir() == isolated_app_dir
        assert isolated_app_dir.is_dir()

    def test_reset_provider(self, tmp_path):
        paths.set_provider(paths.FixedPathProvider(tmp_path / "other"))
        assert paths.get_provider().user_config_dir() == tmp_path / "other"
        paths.reset_provider()
        assert isinstance(paths.get_provider(), paths.DefaultPathProvider)
