"""Unit tests for cleanup category resolution."""

import os
from pathlib import Path

import pytest
from reclaim.core.categories import TOOL_STEPS, CleanupCategory, default_categories


def _by_name(categories: list[CleanupCategory]) -> dict[str, CleanupCategory]:
    return {c.name: c for c in categories}


class TestDefaultCategories:
    """Tests for default_categories function."""

    def test_user_temp_from_env(self, tmp_path: Path) -> None:
        """user_temp sweeps the TEMP directory with a one-day minimum age."""
        categories = _by_name(default_categories(env={"TEMP": str(tmp_path)}, home=tmp_path))

        assert categories["user_temp"].roots == (tmp_path,)
        assert categories["user_temp"].min_age_days == 1.0

    def test_user_temp_fallback(self, tmp_path: Path) -> None:
        """Without TEMP, the platform temp directory is used."""
        categories = _by_name(default_categories(env={}, home=tmp_path))

        assert len(categories["user_temp"].roots) == 1

    @pytest.mark.skipif(os.name == "nt", reason="Windows always has Windows categories")
    def test_windows_categories_absent_elsewhere(self, tmp_path: Path) -> None:
        """Windows-only categories are not resolved on other hosts."""
        names = {c.name for c in default_categories(env={}, home=tmp_path)}

        assert "windows_temp" not in names
        assert "windows_update" not in names
        assert "delivery_optimization" not in names
        assert "onedrive_cache" not in names

    def test_windows_categories_with_system_root(self, tmp_path: Path) -> None:
        """SystemRoot enables the Windows temp, update, and DO caches."""
        system_root = tmp_path / "Windows"
        categories = _by_name(
            default_categories(env={"SystemRoot": str(system_root)}, home=tmp_path)
        )

        assert categories["windows_temp"].roots == (system_root / "Temp",)
        assert categories["windows_update"].roots == (
            system_root / "SoftwareDistribution" / "Download",
        )
        assert categories["windows_update"].trusted is True
        assert categories["delivery_optimization"].trusted is True

    def test_onedrive_cache_exempt_from_sync_pattern(self, tmp_path: Path) -> None:
        """The OneDrive client cache category lifts the OneDrive skip pattern."""
        local = tmp_path / "Local"
        categories = _by_name(default_categories(env={"LOCALAPPDATA": str(local)}, home=tmp_path))

        cache = categories["onedrive_cache"]
        assert cache.skip_exempt == ("OneDrive",)
        assert cache.roots[0] == local / "Microsoft" / "OneDrive" / "logs"
        assert cache.min_age_days == 7.0

    def test_browser_roots(self, tmp_path: Path) -> None:
        """Chromium and Firefox cache roots are resolved."""
        local = tmp_path / "Local"
        profile = local / "Mozilla" / "Firefox" / "Profiles" / "abc.default"
        (profile / "cache2").mkdir(parents=True)

        categories = _by_name(default_categories(env={"LOCALAPPDATA": str(local)}, home=tmp_path))
        roots = categories["browser_cache"].roots

        assert local / "Google" / "Chrome" / "User Data" / "Default" / "Cache" in roots
        assert profile / "cache2" in roots
        assert tmp_path / ".cache" / "google-chrome" / "Default" / "Cache" in roots

    def test_steps_are_not_categories(self, tmp_path: Path) -> None:
        """Tool step names never collide with sweep category names."""
        categories = default_categories(env={"SystemRoot": "C:/Windows"}, home=tmp_path)
        names = {c.name for c in categories}

        assert names.isdisjoint(TOOL_STEPS)
