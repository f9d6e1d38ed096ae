"""Safe, non-recursive directory traversal.

The walker uses an explicit worklist instead of os.walk() or rglob() so
that every directory is classified before it is descended into, and so
that symlinked cycles can never be followed.
"""

import logging
import os
from collections.abc import Iterator

from reclaim.core.errors import EnumerationError
from reclaim.filesystem.models import PathEntry
from reclaim.filesystem.protected import PathClassifier, is_reparse_stat, normalize_path

logger = logging.getLogger(__name__)


class SafeTreeWalker:
    """Walks a root and yields candidate entries, pruning excluded branches.

    Directories matching a skip pattern or classified as protected are
    not descended into; their paths are recorded in ``pruned``. Reparse
    points are never yielded and never descended, whether they are found
    by the prune check or during enumeration.

    Args:
        classifier: Path classifier consulted at every directory node.
    """

    def __init__(self, classifier: PathClassifier) -> None:
        self._classifier = classifier
        self._pruned: set[str] = set()

    @property
    def classifier(self) -> PathClassifier:
        return self._classifier

    @property
    def pruned(self) -> set[str]:
        """Branches pruned during the most recent walk."""
        return self._pruned

    def walk(self, root: str | os.PathLike[str], files_only: bool = True) -> Iterator[PathEntry]:
        """Lazily walk a root directory.

        Order is roughly depth-first and must not be relied on.

        Args:
            root: Directory to walk.
            files_only: If False, directories are yielded as well (before
                their children).

        Yields:
            PathEntry for every candidate file (and directory if requested).

        Raises:
            EnumerationError: If the root itself cannot be enumerated.
        """
        self._pruned = set()
        pruned = self._pruned
        root_path = normalize_path(root)

        # Worklist items are (path, depth); depth 0 is the root
        stack: list[tuple[str, int]] = [(root_path, 0)]

        while stack:
            current, depth = stack.pop()

            if self._should_prune(current):
                pruned.add(current)
                continue

            try:
                with os.scandir(current) as it:
                    children = list(it)
            except OSError as e:
                if depth == 0:
                    raise EnumerationError(f"Cannot enumerate root {current}", e) from e
                logger.warning("Cannot enumerate %s: %s", current, e)
                continue

            for child in children:
                entry = self._to_entry(child)
                if entry is None:
                    continue
                if entry.is_reparse:
                    pruned.add(entry.path)
                    continue
                if entry.is_dir:
                    if not files_only:
                        yield entry
                    stack.append((entry.path, depth + 1))
                else:
                    yield entry

    def _should_prune(self, path: str) -> bool:
        """Skip first, then protected."""
        if self._classifier.is_skip(path):
            logger.debug("Pruning skip-pattern branch: %s", path)
            return True
        if self._classifier.is_protected(path):
            logger.debug("Pruning protected branch: %s", path)
            return True
        return False

    @staticmethod
    def _to_entry(child: os.DirEntry[str]) -> PathEntry | None:
        """Build a PathEntry from a directory entry without following links.

        Mount points below the root are reported as reparse points.
        Returns None when the entry cannot be stat'ed.
        """
        try:
            st = child.stat(follow_symlinks=False)
        except OSError as e:
            logger.warning("Cannot stat %s: %s", child.path, e)
            return None

        is_reparse = is_reparse_stat(st)
        is_dir = child.is_dir(follow_symlinks=False)
        if is_dir and not is_reparse:
            try:
                is_reparse = os.path.ismount(child.path)
            except OSError:
                is_reparse = True

        return PathEntry(
            path=os.path.abspath(child.path),
            is_dir=is_dir,
            is_reparse=is_reparse,
            mtime=st.st_mtime,
            size_bytes=None if is_dir else st.st_size,
        )
