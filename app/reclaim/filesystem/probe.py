"""Read-only size estimation over candidate roots.

The probe engine never deletes anything. With ``ignore_prune`` it sums
every file under a root (trusted roots where an accurate total matters);
without it, it reuses the walker's pruning so the estimate reflects what
a real sweep would actually touch.

Estimates taken with pruning and the bytes a sweep actually frees can
legitimately differ: the sweep also skips recent, locked, and protected
files, and a before/after delta includes changes made by other processes.
"""

import logging
import os
from collections.abc import Iterable

from reclaim.core.errors import EnumerationError
from reclaim.filesystem.models import ProbeSize, ProbeSnapshot
from reclaim.filesystem.protected import is_reparse_stat, normalize_path
from reclaim.filesystem.walker import SafeTreeWalker

logger = logging.getLogger(__name__)


class ProbeEngine:
    """Aggregates file sizes under a set of roots.

    Args:
        walker: Walker used when pruning is honored.
    """

    def __init__(self, walker: SafeTreeWalker) -> None:
        self._walker = walker

    def probe(
        self,
        paths: Iterable[str | os.PathLike[str]],
        ignore_prune: bool = False,
    ) -> ProbeSnapshot:
        """Measure the total size of each root.

        Missing roots report zero. Before/after snapshots must use the
        same ``ignore_prune`` mode for their delta to be meaningful.

        Args:
            paths: Roots to measure.
            ignore_prune: If True, sum every file regardless of skip and
                protected rules.

        Returns:
            Mapping of normalized root path to its ProbeSize.
        """
        snapshot: ProbeSnapshot = {}
        for path in paths:
            try:
                root = normalize_path(path)
            except (ValueError, OSError):
                logger.warning("Cannot probe unresolvable path: %r", path)
                continue

            if not os.path.isdir(root):
                snapshot[root] = ProbeSize(0)
                continue

            total = self._sum_all(root) if ignore_prune else self._sum_pruned(root)
            snapshot[root] = ProbeSize(total)
            logger.debug("Probed %s: %d bytes", root, total)
        return snapshot

    def _sum_pruned(self, root: str) -> int:
        total = 0
        try:
            for entry in self._walker.walk(root):
                total += entry.size_bytes or 0
        except EnumerationError as e:
            logger.warning("Cannot probe %s: %s", root, e)
        return total

    @staticmethod
    def _sum_all(root: str) -> int:
        """Sum every file under root; never follows links."""
        total = 0
        stack = [root]
        while stack:
            current = stack.pop()
            try:
                with os.scandir(current) as it:
                    children = list(it)
            except OSError as e:
                logger.debug("Cannot enumerate %s during probe: %s", current, e)
                continue
            for child in children:
                try:
                    st = child.stat(follow_symlinks=False)
                except OSError:
                    continue
                if is_reparse_stat(st):
                    continue
                if child.is_dir(follow_symlinks=False):
                    stack.append(child.path)
                else:
                    total += st.st_size
        return total


def delta(before: ProbeSnapshot, after: ProbeSnapshot) -> dict[str, int]:
    """Compute freed bytes per root between two snapshots.

    Negative values mean the root grew between the snapshots.
    """
    return {root: size.bytes - after.get(root, ProbeSize(0)).bytes for root, size in before.items()}
