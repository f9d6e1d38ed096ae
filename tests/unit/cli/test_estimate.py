"""Unit tests for the estimate CLI command."""

from unittest.mock import MagicMock, patch

from reclaim.cli.main import app
from reclaim.filesystem.models import ProbeSize
from typer.testing import CliRunner

runner = CliRunner()


class TestEstimateCommand:
    """Tests for reclaim estimate command."""

    @patch("reclaim.cli.commands.estimate.CleanupRunner")
    def test_table_output(self, mock_runner_cls: MagicMock) -> None:
        """Non-empty roots are listed with a total and the estimate caveat."""
        mock_runner_cls.return_value.estimate.return_value = {
            "user_temp": {"/tmp/a": ProbeSize(3 * 1024 * 1024), "/tmp/empty": ProbeSize(0)},
        }

        result = runner.invoke(app, ["estimate"])

        assert result.exit_code == 0
        assert "user_temp" in result.stdout
        assert "/tmp/a" in result.stdout
        assert "/tmp/empty" not in result.stdout
        assert "Estimated total: 3.0 MB" in result.stdout

    @patch("reclaim.cli.commands.estimate.CleanupRunner")
    def test_nothing_to_reclaim(self, mock_runner_cls: MagicMock) -> None:
        """All-empty estimates print a short message."""
        mock_runner_cls.return_value.estimate.return_value = {"user_temp": {"/tmp/a": ProbeSize(0)}}

        result = runner.invoke(app, ["estimate"])

        assert result.exit_code == 0
        assert "Nothing to reclaim" in result.stdout

    @patch("reclaim.cli.commands.estimate.CleanupRunner")
    def test_json_output(self, mock_runner_cls: MagicMock) -> None:
        """JSON output carries byte counts per root."""
        mock_runner_cls.return_value.estimate.return_value = {"junk": {"/t": ProbeSize(150)}}

        result = runner.invoke(app, ["estimate", "--format", "json"])

        assert result.exit_code == 0
        assert '"bytes": 150' in result.stdout
        assert '"junk"' in result.stdout

    @patch("reclaim.cli.commands.estimate.CleanupRunner")
    def test_category_forwarded(self, mock_runner_cls: MagicMock) -> None:
        """--category restricts the estimate."""
        mock_runner_cls.return_value.estimate.return_value = {}

        runner.invoke(app, ["estimate", "--category", "browser_cache"])

        mock_runner_cls.return_value.estimate.assert_called_once_with(only=["browser_cache"])
