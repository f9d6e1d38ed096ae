"""Out-of-process cleanup tools.

Wraps DISM, CleanMgr, and wevtutil. The contract with every tool is the
same: invoke, wait, capture exit code and output, log the outcome. A
missing executable, a timeout, or a non-zero exit becomes a failed
ToolResult; nothing here raises into the orchestration layer.
"""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from reclaim.core.errors import ErrorKind
from reclaim.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

_CURRENT_VERSION = r"HKLM\SOFTWARE\Microsoft\Windows\CurrentVersion"

# Registry keys whose presence signals a pending reboot
_REBOOT_PENDING_KEYS: tuple[tuple[str, str | None], ...] = (
    (_CURRENT_VERSION + r"\Component Based Servicing\RebootPending", None),
    (_CURRENT_VERSION + r"\WindowsUpdate\Auto Update\RebootRequired", None),
    (r"HKLM\SYSTEM\CurrentControlSet\Control\Session Manager", "PendingFileRenameOperations"),
)

_VOLUME_CACHES_KEY = _CURRENT_VERSION + r"\Explorer\VolumeCaches"

_DISM_TIMEOUT = 3600.0
_CLEANMGR_TIMEOUT = 3600.0
_SHORT_TIMEOUT = 120.0


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Outcome of an external tool invocation.

    Attributes:
        tool: Short tool name (e.g., "dism").
        success: Whether the tool ran and exited with code 0.
        returncode: Exit code (None if the tool never ran).
        output: Combined, trimmed stdout/stderr.
        skipped: True if the invocation was intentionally not made.
        error_kind: EXTERNAL_TOOL for failures, None otherwise.
    """

    tool: str
    success: bool
    returncode: int | None = None
    output: str = ""
    skipped: bool = False
    error_kind: ErrorKind | None = None


def _invoke(tool: str, args: list[str], timeout: float) -> ToolResult:
    """Run a tool and convert every failure mode into a ToolResult."""
    logger.info("Running %s: %s", tool, " ".join(args))
    try:
        result = run_command(args, timeout=timeout)
    except FileNotFoundError:
        logger.warning("%s is not available on this system", tool)
        return ToolResult(
            tool=tool,
            success=False,
            output=f"{args[0]} not found",
            error_kind=ErrorKind.EXTERNAL_TOOL,
        )
    except subprocess.TimeoutExpired:
        logger.warning("%s timed out after %.0fs", tool, timeout)
        return ToolResult(
            tool=tool,
            success=False,
            output=f"timed out after {timeout:.0f}s",
            error_kind=ErrorKind.EXTERNAL_TOOL,
        )
    except OSError as e:
        logger.warning("%s could not be started: %s", tool, e)
        return ToolResult(
            tool=tool, success=False, output=str(e), error_kind=ErrorKind.EXTERNAL_TOOL
        )

    output = result.output
    if result.success:
        logger.info("%s completed (exit code 0) in %.1fs", tool, result.elapsed)
        return ToolResult(tool=tool, success=True, returncode=0, output=output)

    logger.warning("%s failed with exit code %d", tool, result.returncode)
    if output:
        logger.debug("%s output: %s", tool, output)
    return ToolResult(
        tool=tool,
        success=False,
        returncode=result.returncode,
        output=output,
        error_kind=ErrorKind.EXTERNAL_TOOL,
    )


def _skipped(tool: str, reason: str) -> ToolResult:
    logger.info("Skipping %s: %s", tool, reason)
    return ToolResult(tool=tool, success=True, skipped=True, output=reason)


def is_reboot_pending() -> bool:
    """Check the registry for a pending reboot.

    Returns:
        True if any reboot-pending indicator is present. Hosts without
        ``reg`` (non-Windows) never report a pending reboot.
    """
    if not command_exists("reg"):
        return False
    for key, value in _REBOOT_PENDING_KEYS:
        args = ["reg", "query", key]
        if value is not None:
            args += ["/v", value]
        try:
            result = run_command(args, timeout=_SHORT_TIMEOUT)
        except (OSError, subprocess.TimeoutExpired):
            return False
        if result.success:
            logger.info("Pending reboot detected (%s)", key)
            return True
    return False


def run_dism_cleanup(*, force: bool = False, dry_run: bool = False) -> ToolResult:
    """Run DISM component store cleanup, gated on a pending reboot.

    Args:
        force: Run even when a reboot is pending.
        dry_run: Log the intent without running DISM.

    Returns:
        ToolResult for the DISM invocation.
    """
    if dry_run:
        return _skipped("dism", "dry-run")
    if is_reboot_pending() and not force:
        return _skipped("dism", "reboot pending (use --force to override)")
    return _invoke(
        "dism",
        ["dism.exe", "/Online", "/Cleanup-Image", "/StartComponentCleanup"],
        _DISM_TIMEOUT,
    )


def run_cleanmgr(categories: list[str], sageset: int, *, dry_run: bool = False) -> ToolResult:
    """Pre-configure CleanMgr categories and run /sagerun.

    Args:
        categories: VolumeCaches category names to enable.
        sageset: StateFlags slot (0-9999).
        dry_run: Log the intent without running CleanMgr.

    Returns:
        ToolResult for the CleanMgr invocation.
    """
    if not categories:
        return _skipped("cleanmgr", "no categories configured")
    if dry_run:
        return _skipped("cleanmgr", "dry-run")

    flag = f"StateFlags{sageset:04d}"
    for category in categories:
        key = f"{_VOLUME_CACHES_KEY}\\{category}"
        result = _invoke(
            "reg",
            ["reg", "add", key, "/v", flag, "/t", "REG_DWORD", "/d", "2", "/f"],
            _SHORT_TIMEOUT,
        )
        if not result.success:
            # reg is missing or the write was rejected
            logger.warning("Could not enable CleanMgr category %r; not running CleanMgr", category)
            return ToolResult(
                tool="cleanmgr",
                success=False,
                returncode=result.returncode,
                output=result.output,
                error_kind=ErrorKind.EXTERNAL_TOOL,
            )

    return _invoke("cleanmgr", ["cleanmgr.exe", f"/sagerun:{sageset}"], _CLEANMGR_TIMEOUT)


def export_and_clear_event_logs(
    names: list[str],
    archive_dir: Path,
    stamp: str,
    *,
    dry_run: bool = False,
) -> list[ToolResult]:
    """Export each event log to the archive directory, then clear it.

    A log is only cleared after its export succeeded.

    Args:
        names: Event log names (e.g., "Application").
        archive_dir: Directory receiving the .evtx exports.
        stamp: Run timestamp used in export file names.
        dry_run: Log the intent without exporting or clearing.

    Returns:
        One ToolResult per log.
    """
    results: list[ToolResult] = []
    for name in names:
        tool = f"wevtutil:{name}"
        if dry_run:
            results.append(_skipped(tool, "dry-run"))
            continue

        export_path = archive_dir / f"{name.replace('/', '_')}-{stamp}.evtx"
        try:
            archive_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Cannot create export directory %s: %s", archive_dir, e)
            results.append(
                ToolResult(
                    tool=tool, success=False, output=str(e), error_kind=ErrorKind.EXTERNAL_TOOL
                )
            )
            continue

        exported = _invoke(tool, ["wevtutil", "epl", name, str(export_path)], _SHORT_TIMEOUT)
        if not exported.success:
            results.append(exported)
            continue
        results.append(_invoke(tool, ["wevtutil", "cl", name], _SHORT_TIMEOUT))
    return results
