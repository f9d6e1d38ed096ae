"""Filesystem deletion operator.

Handles safe deletion of a single filesystem entry with pre-flight safety
checks and bounded retries, so that transient locks held by other
processes (antivirus, indexers) do not fail a removal outright.
"""

import logging
import os
import shutil
import stat
import time
from collections.abc import Callable

from reclaim.core.errors import ErrorKind
from reclaim.filesystem.models import RemovalOutcome, RemovalStatus
from reclaim.filesystem.protected import PathClassifier, is_filesystem_root, normalize_path

logger = logging.getLogger(__name__)


def _clear_readonly(func: Callable[..., object], path: str, exc: BaseException) -> None:
    """rmtree error hook: clear the read-only bit and retry once."""
    try:
        os.chmod(path, stat.S_IWRITE | stat.S_IREAD)
    except OSError:
        raise exc from None
    func(path)


class RetryingRemover:
    """Deletes single filesystem entries with retries and safety checks.

    Every removal first normalizes the path and refuses drive roots,
    skip-pattern matches, and protected paths. Only then is the entry
    deleted, retrying up to ``max_retries`` attempts in total.

    Args:
        classifier: Path classifier used for the pre-flight checks.
        max_retries: Total deletion attempts per entry.
        retry_delay: Seconds to wait between attempts.
        sleep: Sleep function (injectable for tests).
        clock: Monotonic clock used to measure elapsed time.
    """

    def __init__(
        self,
        classifier: PathClassifier,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._classifier = classifier
        self._max_retries = max(1, max_retries)
        self._retry_delay = max(0.0, retry_delay)
        self._sleep = sleep
        self._clock = clock

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def retry_delay(self) -> float:
        return self._retry_delay

    def remove(
        self,
        path: str | os.PathLike[str],
        max_retries: int | None = None,
        retry_delay: float | None = None,
    ) -> RemovalOutcome:
        """Remove a single file or directory tree.

        Args:
            path: Entry to remove.
            max_retries: Override for total attempts.
            retry_delay: Override for the wait between attempts.

        Returns:
            RemovalOutcome; ``outcome.ok`` is True when the entry was
            removed or safely skipped, False when every attempt failed.
        """
        try:
            target = normalize_path(path)
        except (ValueError, OSError) as e:
            logger.warning("Skipping path that cannot be normalized: %r (%s)", path, e)
            return RemovalOutcome(
                path=os.fspath(path),
                status=RemovalStatus.SKIPPED,
                error=str(e),
                error_kind=ErrorKind.CLASSIFICATION,
            )

        refusal = self._preflight(target)
        if refusal is not None:
            logger.info("Skipping %s: %s", target, refusal)
            return RemovalOutcome(path=target, status=RemovalStatus.SKIPPED, error=refusal)

        attempts_allowed = max(1, max_retries if max_retries is not None else self._max_retries)
        delay = max(0.0, retry_delay if retry_delay is not None else self._retry_delay)

        start = self._clock()
        last_error: str | None = None

        for attempt in range(1, attempts_allowed + 1):
            try:
                self._delete_path(target)
            except FileNotFoundError:
                # Vanished between enumeration and deletion
                logger.debug("Already gone: %s", target)
                return RemovalOutcome(
                    path=target,
                    status=RemovalStatus.REMOVED,
                    attempts=attempt,
                    elapsed=self._clock() - start,
                )
            except OSError as e:
                last_error = str(e)
                if attempt < attempts_allowed:
                    logger.debug(
                        "Attempt %d/%d failed for %s: %s; retrying in %.1fs",
                        attempt,
                        attempts_allowed,
                        target,
                        e,
                        delay,
                    )
                    if delay > 0:
                        self._sleep(delay)
                continue

            elapsed = self._clock() - start
            logger.debug("Removed %s (attempt %d, %.2fs)", target, attempt, elapsed)
            return RemovalOutcome(
                path=target,
                status=RemovalStatus.REMOVED,
                attempts=attempt,
                elapsed=elapsed,
            )

        logger.warning(
            "Failed to remove %s after %d attempt(s): %s",
            target,
            attempts_allowed,
            last_error,
        )
        return RemovalOutcome(
            path=target,
            status=RemovalStatus.FAILED,
            attempts=attempts_allowed,
            elapsed=self._clock() - start,
            error=last_error,
            error_kind=ErrorKind.DELETION,
        )

    def _preflight(self, target: str) -> str | None:
        """Return a refusal reason, or None if the target may be deleted."""
        if is_filesystem_root(target):
            return "refusing to delete a filesystem root"
        if self._classifier.is_skip(target):
            return f"matches skip pattern {self._classifier.skip_reason(target)!r}"
        if self._classifier.is_protected(target):
            return "protected path"
        if self._classifier.protected.encloses_member(target):
            return "contains protected paths"
        return None

    @staticmethod
    def _delete_path(target: str) -> None:
        """Delete a file, link, or directory tree without following links.

        Raises:
            OSError: If the entry cannot be removed.
        """
        st = os.lstat(target)
        if stat.S_ISDIR(st.st_mode):
            shutil.rmtree(target, onexc=_clear_readonly)
            return
        if not os.access(target, os.W_OK) and os.name == "nt":
            os.chmod(target, stat.S_IWRITE | stat.S_IREAD)
        os.unlink(target)
