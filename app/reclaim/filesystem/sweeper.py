"""Time-boxed sweep of a single root.

A sweep walks one root, re-checks every candidate against the classifier,
and removes it through the retrying remover until either every candidate
has been processed or the wall-clock budget runs out. The budget is soft:
an in-flight removal is allowed to finish, but no new one starts once the
budget is exceeded.
"""

import logging
import os
import time
from collections.abc import Callable

from reclaim.core.errors import EnumerationError
from reclaim.filesystem.models import PathEntry, RemovalStatus, StopReason, SweepResult
from reclaim.filesystem.operator import RetryingRemover
from reclaim.filesystem.protected import PathClassifier, normalize_path
from reclaim.filesystem.walker import SafeTreeWalker

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 86400.0


def _is_young(entry: PathEntry, now_wall: float, min_age_seconds: float) -> bool:
    """Whether the entry was modified more recently than the minimum age."""
    if not min_age_seconds or entry.mtime is None:
        return False
    return now_wall - entry.mtime < min_age_seconds


class SweepController:
    """Drives one bounded cleanup pass over a root.

    Args:
        walker: Walker producing candidate entries.
        remover: Remover used for real (non-dry-run) deletions.
        classifier: Classifier for the per-candidate safety gate
            (defaults to the walker's classifier).
        clock: Monotonic clock for the budget (injectable for tests).
        wall_clock: Wall-clock time source for ages and start time.
    """

    def __init__(
        self,
        walker: SafeTreeWalker,
        remover: RetryingRemover,
        classifier: PathClassifier | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self._walker = walker
        self._remover = remover
        self._classifier = classifier or walker.classifier
        self._clock = clock
        self._wall_clock = wall_clock

    def sweep(
        self,
        root: str | os.PathLike[str],
        budget: float,
        dry_run: bool = False,
        min_age_days: float = 0.0,
    ) -> SweepResult:
        """Sweep a root within a wall-clock budget.

        Args:
            root: Directory to sweep.
            budget: Budget in seconds, checked before each candidate.
            dry_run: If True, count and log intents without deleting.
            min_age_days: Candidates modified more recently are skipped.

        Returns:
            SweepResult with counters and the stop reason.
        """
        root_path = normalize_path(root)
        result = SweepResult(root=root_path, started_at=self._wall_clock(), dry_run=dry_run)

        if not os.path.isdir(root_path):
            logger.info("Root not present, nothing to sweep: %s", root_path)
            return result

        start = self._clock()
        deadline = start + budget
        now_wall = result.started_at
        min_age_seconds = max(0.0, min_age_days) * _SECONDS_PER_DAY
        seen_dirs: list[PathEntry] = []

        logger.info(
            "Sweeping %s (budget %.0fs%s)",
            root_path,
            budget,
            ", dry-run" if dry_run else "",
        )

        try:
            for entry in self._walker.walk(root_path, files_only=False):
                if self._clock() > deadline:
                    result.stop_reason = StopReason.TIME_BUDGET_EXCEEDED
                    logger.warning("Time budget of %.0fs exceeded for %s", budget, root_path)
                    break

                if entry.is_dir:
                    seen_dirs.append(entry)
                    continue

                self._process(entry, result, dry_run, now_wall, min_age_seconds)
        except EnumerationError as e:
            logger.error("Stopping sweep of %s: %s", root_path, e)
            result.stop_reason = StopReason.ROOT_UNAVAILABLE
        finally:
            # Each pruned branch or reparse point counts as one skip
            result.pruned = set(self._walker.pruned)
            result.skipped += len(result.pruned)

        if result.stop_reason == StopReason.COMPLETED and not dry_run:
            result.dirs_removed = self._remove_empty_dirs(
                seen_dirs, deadline, now_wall, min_age_seconds
            )

        logger.info(
            "Sweep of %s finished (%s): processed=%d deleted=%d skipped=%d failed=%d pruned=%d",
            root_path,
            result.stop_reason.value,
            result.processed,
            result.deleted,
            result.skipped,
            result.failed,
            len(result.pruned),
        )
        return result

    def _process(
        self,
        entry: PathEntry,
        result: SweepResult,
        dry_run: bool,
        now_wall: float,
        min_age_seconds: float,
    ) -> None:
        """Apply the safety gate, age filter, and removal to one candidate."""
        if self._classifier.is_protected(entry.path) or self._classifier.is_skip(entry.path):
            logger.debug("Safety gate skipped %s", entry.path)
            result.skipped += 1
            return

        if _is_young(entry, now_wall, min_age_seconds):
            result.skipped += 1
            return

        size = entry.size_bytes or 0

        if dry_run:
            logger.info("Dry-run: would remove %s", entry.path)
            result.deleted += 1
            result.bytes_freed += size
            return

        outcome = self._remover.remove(entry.path)
        if outcome.status == RemovalStatus.REMOVED:
            result.deleted += 1
            result.bytes_freed += size
        elif outcome.status == RemovalStatus.FAILED:
            result.failed += 1
        else:
            result.skipped += 1

    def _remove_empty_dirs(
        self,
        dirs: list[PathEntry],
        deadline: float,
        now_wall: float,
        min_age_seconds: float,
    ) -> int:
        """Remove now-empty directories, deepest first; never the root.

        Directories younger than the minimum age (as seen by the walk) are kept.
        """
        removed = 0
        for entry in sorted(dirs, key=lambda e: e.path.count(os.sep), reverse=True):
            if self._clock() > deadline:
                break
            if self._classifier.is_protected(entry.path) or self._classifier.is_skip(entry.path):
                continue
            if _is_young(entry, now_wall, min_age_seconds):
                continue
            try:
                os.rmdir(entry.path)
            except OSError:
                # Not empty, or in use
                continue
            removed += 1
        return removed
