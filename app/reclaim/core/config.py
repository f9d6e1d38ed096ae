"""Cleanup configuration and settings.

This module provides the configuration model and I/O functions for a
reclamation run. A single CleanupConfig is loaded once at startup and
handed to every component that needs it; nothing reads configuration
from module globals.

Configuration is stored in ~/.config/reclaim/config.toml
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from reclaim.core.errors import ConfigError, ConfigParseError
from reclaim.core.paths import (
    ARCHIVE_DIR_NAME,
    MAIN_LOG_NAME,
    TEMP_LOG_NAME,
    get_config_path,
    get_log_dir,
)
from reclaim.filesystem.patterns import DEFAULT_SKIP_PATTERNS

logger = logging.getLogger(__name__)

# Environment flag requesting fast I/O (tests, CI)
FAST_IO_ENV_VAR = "RECLAIM_FAST_IO"

_TRUTHY = frozenset({"1", "true", "yes", "on"})

DEFAULT_CLEANMGR_CATEGORIES: list[str] = [
    "Active Setup Temp Folders",
    "Downloaded Program Files",
    "Internet Cache Files",
    "Old ChkDsk Files",
    "Recycle Bin",
    "Setup Log Files",
    "Temporary Files",
    "Thumbnail Cache",
    "Update Cleanup",
    "Windows Error Reporting Files",
]


class CategoryOverride(BaseModel):
    """Per-category overrides of the global sweep settings.

    Attributes:
        enabled: Whether the category runs at all.
        budget_seconds: Wall-clock budget for each root (None = global budget).
        min_age_days: Minimum file age before deletion (None = category default).
    """

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    budget_seconds: Annotated[float | None, Field(gt=0)] = None
    min_age_days: Annotated[float | None, Field(ge=0)] = None


class CleanupConfig(BaseModel):
    """Configuration for a reclamation run.

    Attributes:
        log_dir: Directory holding the temp and main logs.
        temp_log: Per-run temporary log (None = <log_dir>/reclaim-run.tmp.log).
        main_log: Durable main log (None = <log_dir>/reclaim.log).
        archive_dir: Archive directory (None = <log_dir>/archive).
        skip_patterns: Regex (or glob-like token) patterns for fragile areas.
        max_retries: Total deletion attempts per entry.
        retry_delay: Seconds to wait between deletion attempts.
        fast_io: Shrink retries and backoff for automated testing.
        sweep_budget_seconds: Default wall-clock budget per swept root.
        merge_backoff: Wait times (seconds) between log merge attempts.
        stale_temp_log_max_mb: Leftover temp logs larger than this are archived, not merged.
        stale_temp_log_max_age_hours: Leftover temp logs older than this are archived, not merged.
        archive_retention_days: Archived logs older than this are pruned.
        run_dism: Whether to invoke the DISM component store cleanup.
        cleanmgr_categories: VolumeCaches categories enabled for CleanMgr.
        cleanmgr_sageset: StateFlags slot used for CleanMgr /sagerun.
        event_logs: Event logs exported to the archive and cleared.
        min_free_gb: Free space on the system drive required to be compliant.
        categories: Per-category overrides keyed by category name.
    """

    model_config = ConfigDict(extra="forbid")

    log_dir: Annotated[
        Path,
        Field(default_factory=get_log_dir, description="Run log directory"),
    ]
    temp_log: Path | None = None
    main_log: Path | None = None
    archive_dir: Path | None = None
    skip_patterns: Annotated[
        list[str],
        Field(default_factory=lambda: list(DEFAULT_SKIP_PATTERNS)),
    ]
    max_retries: Annotated[
        int,
        Field(ge=1, le=20, description="Deletion attempts per entry (1-20)"),
    ] = 3
    retry_delay: Annotated[
        float,
        Field(ge=0, le=60, description="Seconds between deletion attempts"),
    ] = 2.0
    fast_io: bool = False
    sweep_budget_seconds: Annotated[
        float,
        Field(gt=0, le=86400, description="Default per-root budget in seconds"),
    ] = 300.0
    merge_backoff: Annotated[
        list[float],
        Field(min_length=1, max_length=10),
    ] = [0.5, 1.0, 2.0]
    stale_temp_log_max_mb: Annotated[float, Field(gt=0)] = 20.0
    stale_temp_log_max_age_hours: Annotated[float, Field(gt=0)] = 72.0
    archive_retention_days: Annotated[int, Field(ge=1)] = 30
    run_dism: bool = True
    cleanmgr_categories: Annotated[
        list[str],
        Field(default_factory=lambda: list(DEFAULT_CLEANMGR_CATEGORIES)),
    ]
    cleanmgr_sageset: Annotated[int, Field(ge=0, le=9999)] = 64
    event_logs: Annotated[
        list[str],
        Field(default_factory=lambda: ["Application"]),
    ]
    min_free_gb: Annotated[float, Field(ge=0)] = 10.0
    categories: dict[str, CategoryOverride] = {}

    @property
    def effective_temp_log(self) -> Path:
        return self.temp_log or self.log_dir / TEMP_LOG_NAME

    @property
    def effective_main_log(self) -> Path:
        return self.main_log or self.log_dir / MAIN_LOG_NAME

    @property
    def effective_archive_dir(self) -> Path:
        return self.archive_dir or self.log_dir / ARCHIVE_DIR_NAME

    @property
    def effective_max_retries(self) -> int:
        """Deletion attempts, reduced to one in fast I/O mode."""
        return 1 if self.fast_io else self.max_retries

    @property
    def effective_retry_delay(self) -> float:
        """Deletion backoff, reduced to zero in fast I/O mode."""
        return 0.0 if self.fast_io else self.retry_delay

    @property
    def effective_merge_backoff(self) -> list[float]:
        """Merge backoff sequence, collapsed to zero waits in fast I/O mode."""
        if self.fast_io:
            return [0.0]
        return list(self.merge_backoff)

    def category(self, name: str) -> CategoryOverride:
        """Get overrides for a category, falling back to defaults."""
        return self.categories.get(name, CategoryOverride())


def _fast_io_from_env() -> bool:
    return os.environ.get(FAST_IO_ENV_VAR, "").strip().lower() in _TRUTHY


def load_config(path: Path | None = None) -> CleanupConfig:
    """Load cleanup configuration from a TOML file.

    A missing file is not an error: the defaults are returned. The
    RECLAIM_FAST_IO environment variable, when truthy, forces fast_io on.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated CleanupConfig object.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file cannot be read or doesn't match the schema.
    """
    config_path = path or get_config_path()

    data: dict[str, object] = {}
    if config_path.exists():
        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read config: {e}") from e
    else:
        logger.debug("No config file at %s, using defaults", config_path)

    try:
        config = CleanupConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content: {e}") from e

    if _fast_io_from_env() and not config.fast_io:
        logger.debug("%s is set, enabling fast I/O", FAST_IO_ENV_VAR)
        config = config.model_copy(update={"fast_io": True})

    return config


def save_config(config: CleanupConfig, path: Path | None = None) -> Path:
    """Save cleanup configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The CleanupConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    from tempfile import NamedTemporaryFile

    config_path = path or get_config_path()
    data = config_to_dict(config)

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def config_to_dict(config: CleanupConfig) -> dict[str, object]:
    """Convert CleanupConfig to a dictionary for TOML serialization.

    TOML has no null, so unset optional values are omitted.
    """
    return config.model_dump(mode="json", exclude_none=True)
