"""Theme management for reclaim CLI output.

Provides color theming with optional user overrides from
~/.config/reclaim/theme.toml ([colors] table).
"""

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from rich.theme import Theme

from reclaim.core.paths import get_config_dir

logger = logging.getLogger(__name__)


class ThemeColors(BaseModel):
    """Color configuration for reclaim CLI.

    All colors must be valid hex codes (#RRGGBB or #RGB).
    """

    model_config = ConfigDict(extra="forbid")

    text: str = "#ffffff"
    muted: str = "#b2bec3"
    header: str = "#69B9A1"
    border: str = "#29526d"

    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"

    # Sweep outcome colors
    deleted: str = "#c1ff62"
    skipped: str = "#faf870"
    failed: str = "#f53263"

    @field_validator("*", mode="before")
    @classmethod
    def validate_hex_color(cls, v: object, info: Any) -> str:
        """Validate that all color values are valid hex codes."""
        if not isinstance(v, str):
            msg = f"{info.field_name}: color must be a string"
            raise ValueError(msg)
        color = v.strip()
        if not color.startswith("#"):
            msg = f"{info.field_name}: color must start with '#'"
            raise ValueError(msg)
        color_part = color[1:]
        if len(color_part) not in (3, 6):
            msg = f"{info.field_name}: color must be #RGB or #RRGGBB format"
            raise ValueError(msg)
        try:
            int(color_part, 16)
        except ValueError:
            msg = f"{info.field_name}: invalid hex color '{color}'"
            raise ValueError(msg) from None
        return color


def get_user_theme_path() -> Path:
    """Get the user theme configuration path."""
    return get_config_dir() / "theme.toml"


def load_theme(path: Path | None = None) -> ThemeColors:
    """Load theme colors, applying user overrides when present.

    Invalid or unreadable theme files are logged and ignored.
    """
    theme_path = path or get_user_theme_path()
    try:
        with open(theme_path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return ThemeColors()
    except (tomllib.TOMLDecodeError, OSError) as e:
        logger.warning("Failed to read theme file %s: %s", theme_path, e)
        return ThemeColors()

    colors = data.get("colors", {})
    if not isinstance(colors, dict):
        logger.warning("Invalid 'colors' section in %s", theme_path)
        return ThemeColors()

    try:
        return ThemeColors(**colors)
    except (ValueError, ValidationError) as e:
        logger.warning("Invalid theme colors in %s: %s", theme_path, e)
        return ThemeColors()


def get_theme() -> Theme:
    """Build a Rich Theme from the loaded colors."""
    colors = load_theme()
    styles = colors.model_dump()
    styles["bold_header"] = f"bold {colors.header}"
    return Theme(styles)
