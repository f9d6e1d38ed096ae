"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from reclaim.core.config import CleanupConfig
from reclaim.filesystem.protected import PathClassifier, ProtectedPathSet


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep tests away from real config, state, and the fast-I/O flag."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "xdg-state"))
    monkeypatch.delenv("RECLAIM_FAST_IO", raising=False)


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    """Remove handlers a failed test may have left on the package logger."""
    yield
    package_logger = logging.getLogger("reclaim")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    """Log directory outside any swept root."""
    return tmp_path / "logs"


@pytest.fixture
def config(log_dir: Path) -> CleanupConfig:
    """Configuration with logs under tmp_path and no backoff delays."""
    return CleanupConfig(
        log_dir=log_dir,
        skip_patterns=["OneDrive", r"\.db-wal$"],
        retry_delay=0.0,
        merge_backoff=[0.0, 0.0],
        event_logs=[],
        run_dism=False,
        cleanmgr_categories=[],
    )


@pytest.fixture
def classifier(config: CleanupConfig) -> PathClassifier:
    """Classifier protecting the config's log paths."""
    return PathClassifier.from_config(config)


@pytest.fixture
def bare_classifier() -> PathClassifier:
    """Classifier with no protected paths and no skip patterns."""
    return PathClassifier(ProtectedPathSet(paths=()), [])


@pytest.fixture
def sweep_root(tmp_path: Path) -> Path:
    """Empty directory to populate and sweep."""
    root = tmp_path / "root"
    root.mkdir()
    return root
