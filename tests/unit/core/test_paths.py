"""Unit tests for path management.

Tests for the paths module that provides config and log locations.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from reclaim.core.paths import (
    APP_NAME,
    ARCHIVE_DIR_NAME,
    MAIN_LOG_NAME,
    TEMP_LOG_NAME,
    ensure_dir,
    get_archive_dir,
    get_config_dir,
    get_config_path,
    get_log_dir,
    get_main_log_path,
    get_state_dir,
    get_temp_log_path,
)


class TestGetConfigDir:
    """Tests for get_config_dir function."""

    def test_default_config_dir(self) -> None:
        """get_config_dir returns default path when XDG_CONFIG_HOME not set."""
        with patch.dict(os.environ, {}, clear=True):
            result = get_config_dir()
            expected = Path.home() / ".config" / APP_NAME

        assert result == expected

    def test_respects_xdg_config_home(self, tmp_path: Path) -> None:
        """get_config_dir respects XDG_CONFIG_HOME environment variable."""
        with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path)}):
            result = get_config_dir()

        assert result == tmp_path / APP_NAME

    def test_config_path(self, tmp_path: Path) -> None:
        """The config file is config.toml inside the config directory."""
        with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path)}):
            assert get_config_path() == tmp_path / APP_NAME / "config.toml"


class TestGetStateDir:
    """Tests for get_state_dir function."""

    def test_default_state_dir(self) -> None:
        """get_state_dir returns default path when XDG_STATE_HOME not set."""
        with patch.dict(os.environ, {}, clear=True):
            result = get_state_dir()
            expected = Path.home() / ".local" / "state" / APP_NAME

        assert result == expected

    def test_respects_xdg_state_home(self, tmp_path: Path) -> None:
        """get_state_dir respects XDG_STATE_HOME environment variable."""
        with patch.dict(os.environ, {"XDG_STATE_HOME": str(tmp_path)}):
            assert get_state_dir() == tmp_path / APP_NAME


class TestLogPaths:
    """Tests for run log locations."""

    @pytest.mark.skipif(os.name == "nt", reason="POSIX log location")
    def test_log_dir_under_state_dir(self, tmp_path: Path) -> None:
        """On POSIX hosts logs live under the state directory."""
        with patch.dict(os.environ, {"XDG_STATE_HOME": str(tmp_path)}):
            assert get_log_dir() == tmp_path / APP_NAME / "logs"

    def test_log_files_inside_log_dir(self) -> None:
        """Temp log, main log, and archive share the log directory."""
        log_dir = get_log_dir()

        assert get_temp_log_path() == log_dir / TEMP_LOG_NAME
        assert get_main_log_path() == log_dir / MAIN_LOG_NAME
        assert get_archive_dir() == log_dir / ARCHIVE_DIR_NAME

    def test_temp_and_main_log_differ(self) -> None:
        """The temp log never aliases the main log."""
        assert TEMP_LOG_NAME != MAIN_LOG_NAME


class TestEnsureDir:
    """Tests for directory creation helpers."""

    def test_creates_nested_directory(self, tmp_path: Path) -> None:
        """ensure_dir creates missing parents."""
        target = tmp_path / "a" / "b"

        assert ensure_dir(target, "test") == target
        assert target.is_dir()

    def test_existing_directory_ok(self, tmp_path: Path) -> None:
        """ensure_dir accepts an existing directory."""
        assert ensure_dir(tmp_path, "test") == tmp_path

    def test_failure_raises_runtime_error(self, tmp_path: Path) -> None:
        """A path blocked by a file raises RuntimeError with the name."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")

        with pytest.raises(RuntimeError, match="Cannot create test directory"):
            ensure_dir(blocker / "sub", "test")

    def test_permission_error_message(self, tmp_path: Path) -> None:
        """Permission failures are reported as such."""
        with (
            patch.object(Path, "mkdir", side_effect=PermissionError("denied")),
            pytest.raises(RuntimeError, match="Permission denied"),
        ):
            ensure_dir(tmp_path / "x", "test")
