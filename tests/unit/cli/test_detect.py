"""Unit tests for the detect CLI command."""

from pathlib import Path
from unittest.mock import MagicMock, patch

from reclaim.cli.commands.detect import get_system_drive
from reclaim.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()

GB = 1024**3


def _usage(free_gb: float) -> MagicMock:
    return MagicMock(total=500 * GB, used=0, free=int(free_gb * GB))


class TestDetectCommand:
    """Tests for reclaim detect command."""

    @patch("reclaim.cli.commands.detect.shutil.disk_usage")
    def test_compliant(self, mock_usage: MagicMock) -> None:
        """Enough free space exits 0."""
        mock_usage.return_value = _usage(50)

        result = runner.invoke(app, ["detect", "--min-free-gb", "20"])

        assert result.exit_code == 0
        assert "Compliant" in result.stdout

    @patch("reclaim.cli.commands.detect.shutil.disk_usage")
    def test_low_space(self, mock_usage: MagicMock) -> None:
        """Free space below the threshold exits 1."""
        mock_usage.return_value = _usage(5)

        result = runner.invoke(app, ["detect", "--min-free-gb", "20"])

        assert result.exit_code == 1

    @patch("reclaim.cli.commands.detect.shutil.disk_usage")
    def test_threshold_from_config(self, mock_usage: MagicMock, tmp_path: Path) -> None:
        """Without --min-free-gb the configured threshold applies."""
        config_file = tmp_path / "config.toml"
        config_file.write_text("min_free_gb = 100\n")
        mock_usage.return_value = _usage(50)

        result = runner.invoke(app, ["detect", "--config", str(config_file)])

        assert result.exit_code == 1

    @patch("reclaim.cli.commands.detect.shutil.disk_usage")
    def test_explicit_path(self, mock_usage: MagicMock, tmp_path: Path) -> None:
        """--path selects the drive to check."""
        mock_usage.return_value = _usage(50)

        runner.invoke(app, ["detect", "--path", str(tmp_path), "--min-free-gb", "1"])

        mock_usage.assert_called_once_with(tmp_path)

    @patch("reclaim.cli.commands.detect.shutil.disk_usage", side_effect=OSError("no drive"))
    def test_unreadable_drive(self, mock_usage: MagicMock) -> None:
        """An unreadable drive is treated as non-compliant."""
        result = runner.invoke(app, ["detect"])

        assert result.exit_code == 1


class TestGetSystemDrive:
    """Tests for get_system_drive function."""

    def test_posix_root(self) -> None:
        """Non-Windows hosts check the filesystem root."""
        with patch("reclaim.cli.commands.detect.os.name", "posix"):
            assert get_system_drive() == Path("/")
