"""Platform-aware path management for reclaim.

This module provides the default locations for configuration and run logs.

Defaults:
- Config: ~/.config/reclaim/ (or XDG_CONFIG_HOME/reclaim/)
- Logs (Windows): %ProgramData%/reclaim/logs/
- Logs (elsewhere): ~/.local/state/reclaim/logs/ (or XDG_STATE_HOME/reclaim/logs/)
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "reclaim"

TEMP_LOG_NAME = "reclaim-run.tmp.log"
MAIN_LOG_NAME = "reclaim.log"
ARCHIVE_DIR_NAME = "archive"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/reclaim/ (or XDG_CONFIG_HOME/reclaim/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to ~/.config/reclaim/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_state_dir() -> Path:
    """Get the state directory path.

    Returns:
        Path to ~/.local/state/reclaim/ (or XDG_STATE_HOME/reclaim/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_log_dir() -> Path:
    """Get the default run log directory.

    Remediation runs on Windows execute as SYSTEM, so logs live under
    ProgramData rather than a user profile.

    Returns:
        Path to the log directory for the current platform.
    """
    if os.name == "nt":
        program_data = os.environ.get("ProgramData", r"C:\ProgramData")
        return Path(program_data) / APP_NAME / "logs"
    return get_state_dir() / "logs"


def get_temp_log_path() -> Path:
    """Get the default per-run temporary log path."""
    return get_log_dir() / TEMP_LOG_NAME


def get_main_log_path() -> Path:
    """Get the default durable main log path."""
    return get_log_dir() / MAIN_LOG_NAME


def get_archive_dir() -> Path:
    """Get the default log archive directory."""
    return get_log_dir() / ARCHIVE_DIR_NAME


def ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path
