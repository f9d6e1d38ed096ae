"""Run log consolidation and archival.

Each run writes to a temporary log. At the end of the run the temporary
log is appended to the durable main log, and the main log is rotated into
the archive directory under a per-run name, leaving a fresh empty main
log at the canonical path.

No failure in this module is allowed to abort the host run: every path
ends in a logged warning, and if even the fallback fails a diagnostic
text file is written.
"""

import logging
import os
import shutil
import tempfile
import time
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from pathlib import Path

from reclaim.core.config import CleanupConfig

logger = logging.getLogger(__name__)

# Copy chunk size for the merge
_CHUNK_SIZE = 64 * 1024

_STAMP_FORMAT = "%Y%m%d-%H%M%S"


class ConsolidationState(str, Enum):
    """Lifecycle of the run log.

    Attributes:
        ACTIVE: The temp log is being written.
        MERGING: The temp log is being appended to the main log.
        MERGED: The temp log was appended and removed.
        MERGE_FAILED: The temp log was preserved and copied to the archive.
        ARCHIVED: The main log was rotated into the archive.
    """

    ACTIVE = "active"
    MERGING = "merging"
    MERGED = "merged"
    MERGE_FAILED = "merge_failed"
    ARCHIVED = "archived"


def make_run_stamp(now: datetime | None = None) -> str:
    """Create a filesystem-safe timestamp identifying one run."""
    return (now or datetime.now()).strftime(_STAMP_FORMAT)


class LogConsolidator:
    """Merges the temp log into the main log and archives the main log.

    Args:
        config: Loaded cleanup configuration.
        run_stamp: Timestamp identifying this run (used in archive names).
        sleep: Sleep function for merge backoff (injectable for tests).
    """

    def __init__(
        self,
        config: CleanupConfig,
        run_stamp: str | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._temp_log = config.effective_temp_log
        self._main_log = config.effective_main_log
        self._archive_dir = config.effective_archive_dir
        self._log_dir = config.log_dir
        self._backoff = config.effective_merge_backoff
        self._stale_max_bytes = int(config.stale_temp_log_max_mb * 1024 * 1024)
        self._stale_max_age = config.stale_temp_log_max_age_hours * 3600
        self._retention_seconds = config.archive_retention_days * 86400
        self._stamp = run_stamp or make_run_stamp()
        self._sleep = sleep
        self.state = ConsolidationState.ACTIVE

    @property
    def run_archive_file(self) -> Path:
        """This run's archive file for the rotated main log."""
        return self._archive_dir / f"main-{self._stamp}.log"

    @property
    def merge_fallback_file(self) -> Path:
        """Where the temp log is copied when the merge fails."""
        return self._archive_dir / f"merge-failed-{self._stamp}.log"

    # =========================================================================
    # Merge
    # =========================================================================

    def merge(self) -> ConsolidationState:
        """Append the temp log to the main log, with retry and fallback.

        The temp log is deleted only after a successful merge. When every
        attempt fails it is left in place and copied into the archive.

        Returns:
            MERGED or MERGE_FAILED.
        """
        self.state = ConsolidationState.MERGING

        if not self._temp_log.exists():
            logger.debug("No temp log to merge at %s", self._temp_log)
            self.state = ConsolidationState.MERGED
            return self.state

        last_error: OSError | None = None
        attempts = len(self._backoff) + 1
        for attempt in range(1, attempts + 1):
            try:
                self._append(self._temp_log, self._main_log)
            except OSError as e:
                last_error = e
                if attempt < attempts:
                    wait = self._backoff[attempt - 1]
                    logger.debug(
                        "Merge attempt %d failed (%s), retrying in %.1fs", attempt, e, wait
                    )
                    if wait > 0:
                        self._sleep(wait)
                continue

            self._delete_temp_log()
            self.state = ConsolidationState.MERGED
            return self.state

        logger.warning("Could not merge %s into %s: %s", self._temp_log, self._main_log, last_error)
        self.state = ConsolidationState.MERGE_FAILED

        try:
            self._archive_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(self._temp_log, self.merge_fallback_file)
        except OSError as e:
            logger.warning("Fallback archive of temp log failed: %s", e)
            self._write_diagnostic("merge", f"merge error: {last_error}\nfallback error: {e}")
            return self.state

        logger.warning(
            "Temp log kept at %s and copied to %s", self._temp_log, self.merge_fallback_file
        )
        return self.state

    @staticmethod
    def _append(source: Path, target: Path) -> None:
        """Append source to target in chunks.

        A failed append is rolled back to the target's original size, so a
        retry never duplicates records.

        Raises:
            OSError: If either file cannot be opened or written.
        """
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(source, "rb") as src, open(target, "ab") as dst:
            offset = dst.tell()
            try:
                shutil.copyfileobj(src, dst, _CHUNK_SIZE)
                dst.flush()
                os.fsync(dst.fileno())
            except OSError:
                try:
                    dst.truncate(offset)
                except OSError as e:
                    logger.warning("Could not roll back partial append to %s: %s", target, e)
                raise

    def _delete_temp_log(self) -> None:
        try:
            self._temp_log.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove temp log %s: %s", self._temp_log, e)

    # =========================================================================
    # Archive
    # =========================================================================

    def archive(self) -> ConsolidationState:
        """Rotate the main log into the archive and recreate it empty.

        Prefers an atomic rename. If that fails (file in use), falls back
        to append-then-truncate so the canonical path stays valid.

        Returns:
            ARCHIVED, or the previous state if nothing could be archived.
        """
        if not self._main_log.exists():
            logger.debug("No main log to archive at %s", self._main_log)
            return self.state

        target = self.run_archive_file
        try:
            self._archive_dir.mkdir(parents=True, exist_ok=True)
            os.replace(self._main_log, target)
            self._main_log.touch()
            self.state = ConsolidationState.ARCHIVED
            logger.debug("Archived main log to %s", target)
            return self.state
        except OSError as e:
            logger.warning(
                "Atomic archive of %s failed (%s), falling back to copy", self._main_log, e
            )
            move_error = e

        try:
            self._append(self._main_log, target)
            with open(self._main_log, "r+b") as f:
                f.truncate(0)
        except OSError as e:
            logger.warning("Fallback archive of %s failed: %s", self._main_log, e)
            self._write_diagnostic("archive", f"move error: {move_error}\nfallback error: {e}")
            return self.state

        self.state = ConsolidationState.ARCHIVED
        return self.state

    # =========================================================================
    # Startup housekeeping
    # =========================================================================

    def recover_stale_temp_log(self, now: float | None = None) -> Path | None:
        """Deal with a temp log left behind by a run that never finished.

        A leftover within the size and age thresholds is merged into the
        main log; one beyond them is moved straight into the archive.

        Returns:
            Where the leftover ended up, or None if there was none.
        """
        if not self._temp_log.exists():
            return None

        try:
            st = self._temp_log.stat()
        except OSError as e:
            logger.warning("Cannot inspect leftover temp log %s: %s", self._temp_log, e)
            return None

        age = (now if now is not None else time.time()) - st.st_mtime
        if st.st_size <= self._stale_max_bytes and age <= self._stale_max_age:
            logger.info("Merging leftover temp log from an unfinished run")
            merged = self.merge()
            self.state = ConsolidationState.ACTIVE
            if merged == ConsolidationState.MERGE_FAILED:
                # Stays in the temp log and is merged with this run's records
                return None
            return self._main_log

        target = self._archive_dir / f"stale-{self._stamp}.log"
        try:
            self._archive_dir.mkdir(parents=True, exist_ok=True)
            os.replace(self._temp_log, target)
        except OSError as e:
            logger.warning("Cannot archive leftover temp log %s: %s", self._temp_log, e)
            return None
        logger.info("Archived oversized or stale temp log as %s", target)
        return target

    def prune_archives(self, now: float | None = None) -> int:
        """Delete archived logs older than the retention period.

        This run's archive file is never removed.

        Returns:
            Number of archived files deleted.
        """
        if not self._archive_dir.is_dir():
            return 0

        cutoff = (now if now is not None else time.time()) - self._retention_seconds
        removed = 0
        keep = {self.run_archive_file.name, self.merge_fallback_file.name}
        try:
            candidates = list(self._archive_dir.iterdir())
        except OSError as e:
            logger.warning("Cannot list archive directory %s: %s", self._archive_dir, e)
            return 0

        for path in candidates:
            if path.name in keep or not path.is_file() or path.is_symlink():
                continue
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except OSError as e:
                logger.warning("Cannot prune archived log %s: %s", path, e)
        if removed:
            logger.info("Pruned %d archived log(s)", removed)
        return removed

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def _write_diagnostic(self, operation: str, detail: str) -> Path | None:
        """Write a last-resort diagnostic file; never raises."""
        name = f"{operation}-failure-{self._stamp}.txt"
        body = (
            f"time: {datetime.now().isoformat()}\n"
            f"operation: {operation}\n"
            f"temp_log: {self._temp_log}\n"
            f"main_log: {self._main_log}\n"
            f"{detail}\n"
        )
        for directory in (self._log_dir, Path(tempfile.gettempdir())):
            path = directory / name
            try:
                directory.mkdir(parents=True, exist_ok=True)
                path.write_text(body, encoding="utf-8")
            except OSError:
                continue
            logger.warning("Wrote diagnostic file %s", path)
            return path
        logger.warning("Could not write any diagnostic file for %s failure", operation)
        return None
