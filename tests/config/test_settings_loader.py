"""Tests for settings loading from TOML files and the environment."""

from __future__ import annotations

from pathlib import Path

import pytest

from mediavault.config import Settings, load_settings
from mediavault.config.loader import SettingsLoader
from mediavault.shared.constants import ScanDefaults
from mediavault.shared.errors import ApplicationError, ErrorCode

CONFIG_TOML = """
[database]
path = "{db_path}"

[logging]
level = "DEBUG"

[scan]
batch_size = 50
soft_delete = true

[scan.filter]
extra_ignored_directories = ["Backups"]
honor_dot_ignore = false

[jobs]
max_concurrent_scans = 3
"""


@pytest.fixture
def isolated_env(monkeypatch, temp_dir: Path) -> Path:
    """Run with no ambient config file, .env file or MEDIAVAULT_* variables."""
    monkeypatch.chdir(temp_dir)
    monkeypatch.setenv("HOME", str(temp_dir))
    monkeypatch.delenv("MEDIAVAULT_CONFIG", raising=False)
    monkeypatch.delenv("MEDIAVAULT_SCAN__BATCH_SIZE", raising=False)
    return temp_dir


class TestLoadSettings:
    """Configuration sources."""

    def test_toml_file_populates_every_section(self, isolated_env: Path) -> None:
        # Given
        config_file = isolated_env / "mediavault.toml"
        db_path = (isolated_env / "catalog.db").as_posix()
        config_file.write_text(CONFIG_TOML.format(db_path=db_path), encoding="utf-8")

        # When
        settings = load_settings(config_file)

        # Then
        assert settings.database.path == db_path
        assert settings.logging.level == "DEBUG"
        assert settings.scan.batch_size == 50
        assert settings.scan.soft_delete is True
        assert settings.scan.delete_chunk_size == ScanDefaults.DELETE_CHUNK_SIZE
        assert settings.scan.filter_config.extra_ignored_directories == ["backups"]
        assert settings.scan.filter_config.honor_dot_ignore is False
        assert settings.jobs.max_concurrent_scans == 3

    def test_defaults_without_any_file(self, isolated_env: Path) -> None:
        # When
        settings = load_settings()

        # Then
        assert settings.scan.batch_size == ScanDefaults.BATCH_SIZE
        assert settings.database.path.endswith("catalog.db")

    def test_environment_overrides_nested_fields(self, isolated_env: Path, monkeypatch) -> None:
        # Given
        monkeypatch.setenv("MEDIAVAULT_SCAN__BATCH_SIZE", "25")

        # When
        settings = Settings()

        # Then
        assert settings.scan.batch_size == 25

    def test_config_path_from_environment(self, isolated_env: Path, monkeypatch) -> None:
        # Given
        config_file = isolated_env / "env.toml"
        config_file.write_text("[scan]\nbatch_size = 7\n", encoding="utf-8")
        monkeypatch.setenv("MEDIAVAULT_CONFIG", str(config_file))

        # When
        settings = load_settings()

        # Then
        assert settings.scan.batch_size == 7

    def test_missing_file_is_config_missing(self, isolated_env: Path) -> None:
        with pytest.raises(ApplicationError) as exc_info:
            load_settings(isolated_env / "absent.toml")
        assert exc_info.value.code == ErrorCode.CONFIG_MISSING

    def test_invalid_value_is_configuration_error(self, isolated_env: Path) -> None:
        # Given
        config_file = isolated_env / "bad.toml"
        config_file.write_text("[scan]\nbatch_size = 0\n", encoding="utf-8")

        # When / Then
        with pytest.raises(ApplicationError) as exc_info:
            load_settings(config_file)
        assert exc_info.value.code == ErrorCode.CONFIGURATION_ERROR


class TestSettingsLoader:
    def test_instance_is_cached_until_reload(self, isolated_env: Path) -> None:
        # Given
        loader = SettingsLoader()
        config_file = isolated_env / "reload.toml"
        config_file.write_text("[scan]\nbatch_size = 9\n", encoding="utf-8")

        # When
        first = loader.get_config()
        again = loader.get_config()
        reloaded = loader.reload_config(config_file)

        # Then
        assert first is again
        assert reloaded.scan.batch_size == 9
        assert loader.get_config() is reloaded


def test_settings_round_trip_through_toml(temp_dir: Path) -> None:
    # Given
    settings = Settings(scan={"batch_size": 11, "filter": {"extra_ignored_files": ["desktop.ini"]}})
    target = temp_dir / "out" / "config.toml"

    # When
    settings.to_toml_file(target)
    loaded = Settings.from_toml_file(target)

    # Then
    assert loaded.scan.batch_size == 11
    assert loaded.scan.filter_config.extra_ignored_files == ["desktop.ini"]
