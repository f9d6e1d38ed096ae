"""Cleanup categories swept by a remediation run.

A category is a named set of roots plus the settings that apply when
sweeping them. Roots are resolved from the environment at startup;
roots that do not exist on the current host are simply empty sweeps.
"""

import os
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

# Non-sweep steps that can be selected like categories
EVENT_LOGS_STEP = "event_logs"
DISM_STEP = "dism"
CLEANMGR_STEP = "cleanmgr"
TOOL_STEPS: tuple[str, ...] = (EVENT_LOGS_STEP, DISM_STEP, CLEANMGR_STEP)


@dataclass(frozen=True, slots=True)
class CleanupCategory:
    """A named group of roots swept with the same settings.

    Attributes:
        name: Category identifier used in config and on the command line.
        description: Human-readable description.
        roots: Directories to sweep.
        min_age_days: Default minimum file age before deletion.
        skip_exempt: Skip patterns that do not apply under these roots.
        trusted: Probe without pruning (accurate totals for reporting).
    """

    name: str
    description: str
    roots: tuple[Path, ...] = field(default_factory=tuple)
    min_age_days: float = 0.0
    skip_exempt: tuple[str, ...] = field(default_factory=tuple)
    trusted: bool = False


_CHROMIUM_BROWSERS: tuple[tuple[str, ...], ...] = (
    ("Google", "Chrome"),
    ("Microsoft", "Edge"),
    ("BraveSoftware", "Brave-Browser"),
)

_CHROMIUM_CACHE_DIRS: tuple[str, ...] = ("Cache", "Code Cache", "GPUCache")

_LINUX_CHROMIUM_DIRS: tuple[str, ...] = (
    "google-chrome",
    "microsoft-edge",
    "BraveSoftware/Brave-Browser",
)


def _browser_roots(env: Mapping[str, str], home: Path) -> tuple[Path, ...]:
    roots: list[Path] = []

    local_app_data = env.get("LOCALAPPDATA")
    if local_app_data:
        base = Path(local_app_data)
        for parts in _CHROMIUM_BROWSERS:
            profile = base.joinpath(*parts, "User Data", "Default")
            roots.extend(profile / d for d in _CHROMIUM_CACHE_DIRS)
        roots.extend(sorted((base / "Mozilla" / "Firefox" / "Profiles").glob("*/cache2")))

    cache_home = Path(env.get("XDG_CACHE_HOME") or home / ".cache")
    for name in _LINUX_CHROMIUM_DIRS:
        roots.append(cache_home / name / "Default" / "Cache")
    roots.extend(sorted((cache_home / "mozilla" / "firefox").glob("*/cache2")))

    return tuple(roots)


def default_categories(
    env: Mapping[str, str] | None = None,
    home: Path | None = None,
) -> list[CleanupCategory]:
    """Resolve the standard cleanup categories for this host.

    Args:
        env: Environment mapping (defaults to os.environ).
        home: Home directory (defaults to Path.home()).

    Returns:
        Categories in the order they are swept.
    """
    env = os.environ if env is None else env
    home = home or Path.home()
    system_root = Path(env.get("SystemRoot") or env.get("SYSTEMROOT") or r"C:\Windows")
    local_app_data = env.get("LOCALAPPDATA")

    categories = [
        CleanupCategory(
            name="user_temp",
            description="User temporary files",
            roots=(Path(env.get("TEMP") or tempfile.gettempdir()),),
            min_age_days=1.0,
        ),
    ]

    if os.name == "nt" or "SystemRoot" in env or "SYSTEMROOT" in env:
        categories.append(
            CleanupCategory(
                name="windows_temp",
                description="Windows temporary files",
                roots=(system_root / "Temp",),
                min_age_days=1.0,
            )
        )

    categories.append(
        CleanupCategory(
            name="browser_cache",
            description="Browser caches (Chrome, Edge, Brave, Firefox)",
            roots=_browser_roots(env, home),
        )
    )

    if local_app_data:
        onedrive = Path(local_app_data) / "Microsoft" / "OneDrive"
        categories.append(
            CleanupCategory(
                name="onedrive_cache",
                description="OneDrive client logs and setup caches",
                roots=(onedrive / "logs", onedrive / "setup" / "logs"),
                min_age_days=7.0,
                skip_exempt=("OneDrive",),
            )
        )

    if os.name == "nt" or "SystemRoot" in env or "SYSTEMROOT" in env:
        categories.extend(
            [
                CleanupCategory(
                    name="delivery_optimization",
                    description="Delivery Optimization cache",
                    roots=(
                        system_root / "SoftwareDistribution" / "DeliveryOptimization",
                        system_root.joinpath(
                            "ServiceProfiles",
                            "NetworkService",
                            "AppData",
                            "Local",
                            "Microsoft",
                            "Windows",
                            "DeliveryOptimization",
                            "Cache",
                        ),
                    ),
                    trusted=True,
                ),
                CleanupCategory(
                    name="windows_update",
                    description="Windows Update download cache",
                    roots=(system_root / "SoftwareDistribution" / "Download",),
                    min_age_days=1.0,
                    trusted=True,
                ),
            ]
        )

    return categories
