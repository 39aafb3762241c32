"""Tests for application configuration."""

from pathlib import Path

from barpack.utils.config import Config, get_config, reset_config, set_config
from barpack.utils.constants import APP_VERSION


class TestConfig:
    def test_explicit_base_dir(self, tmp_path):
        config = Config(base_dir=tmp_path)

        assert config.database_path == tmp_path / "bar_pack.db"
        assert config.exports_dir == tmp_path / "exports"
        assert config.uploads_dir == tmp_path / "uploads"
        assert config.database_url.startswith("sqlite:///")

    def test_home_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BARPACK_HOME", str(tmp_path / "home"))
        assert Config().base_dir == tmp_path / "home"

    def test_production_defaults_to_user_dir(self):
        assert Config("production").base_dir == Path.home() / ".barpack"

    def test_version_defaults_to_package_version(self, tmp_path):
        assert Config(base_dir=tmp_path).app_version == APP_VERSION

    def test_version_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BARPACK_VERSION", "2.0.0")
        assert Config(base_dir=tmp_path).app_version == "2.0.0"

    def test_ensure_directories(self, tmp_path):
        config = Config(base_dir=tmp_path / "data")
        config.ensure_directories()

        assert config.exports_dir.is_dir()
        assert config.uploads_dir.is_dir()

    def test_development_flag(self, tmp_path):
        assert Config("development", base_dir=tmp_path).is_development
        assert not Config("production", base_dir=tmp_path).is_development


class TestGlobalConfig:
    def test_set_config(self, tmp_path):
        config = Config(base_dir=tmp_path)
        set_config(config)
        assert get_config() is config

    def test_reset_config_creates_new_instance(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BARPACK_HOME", str(tmp_path))
        reset_config()

        config = get_config()
        assert config.base_dir == tmp_path
        assert get_config("development") is config
