"""Skip patterns and their compilation.

Skip patterns mark areas that are unsafe to delete piecemeal even when they
sit under a root that is otherwise safe to sweep. The pattern set mixes
strict regular expressions with human-authored, glob-like tokens, so each
pattern is compiled as a regex first and falls back to a plain substring
token when compilation fails.
"""

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Default skip patterns (case-insensitive regular expressions).
DEFAULT_SKIP_PATTERNS: list[str] = [
    # Bidirectional sync engines
    r"OneDrive",
    r"Dropbox",
    r"Google[ _]?Drive",
    r"iCloud ?Drive",
    r"SharePoint",
    # Installed application binaries
    r"[\\/]AppData[\\/]Local[\\/]Programs([\\/]|$)",
    r"[\\/]Program Files( \(x86\))?([\\/]|$)",
    r"\.(exe|dll|sys|msi)$",
    # Registry hives and their transaction logs
    r"NTUSER\.DAT",
    r"UsrClass\.dat",
    r"\.regtrans-ms$",
    r"\.blf$",
    # Event log binaries
    r"\.evtx$",
    r"[\\/]winevt([\\/]|$)",
    # OS-critical folders
    r"[\\/]System32([\\/]|$)",
    r"[\\/]SysWOW64([\\/]|$)",
    r"[\\/]WinSxS([\\/]|$)",
    r"[\\/]Boot([\\/]|$)",
    # Single-file databases with sidecar lock/journal files
    r"\.(db|sqlite3?)-(wal|shm|journal)$",
    r"\.(sqlite3?|ldb|edb|jfm)$",
    r"[\\/]IndexedDB([\\/]|$)",
]

# Characters with special meaning in regular expressions
_REGEX_METACHARACTERS = re.compile(r"[\\^$.|?*+()\[\]{}]")


@dataclass(frozen=True, slots=True)
class PatternMatcher:
    """A compiled skip pattern.

    Exactly one of ``regex`` or ``token`` is set for a usable matcher; a
    pattern that sanitizes to nothing yields a matcher that never matches.

    Attributes:
        pattern: The pattern as authored.
        regex: Compiled case-insensitive regex, if compilation succeeded.
        token: Lowercased containment token, if compilation failed.
    """

    pattern: str
    regex: re.Pattern[str] | None = None
    token: str | None = None

    @property
    def is_regex(self) -> bool:
        return self.regex is not None

    def matches(self, path: str) -> bool:
        """Check whether a path matches this pattern (case-insensitive)."""
        if self.regex is not None:
            return self.regex.search(path) is not None
        if self.token:
            return self.token in path.lower()
        return False


def sanitize_token(pattern: str) -> str:
    """Strip regex metacharacters from a pattern, leaving a plain token.

    Args:
        pattern: Pattern text that failed to compile.

    Returns:
        Lowercased, whitespace-trimmed token (possibly empty).
    """
    return _REGEX_METACHARACTERS.sub("", pattern).strip().lower()


def compile_pattern(pattern: str) -> PatternMatcher:
    """Compile a skip pattern, falling back to a containment token.

    Args:
        pattern: Regular expression or glob-like token.

    Returns:
        PatternMatcher using the regex when it compiles, otherwise the
        sanitized token.
    """
    try:
        return PatternMatcher(pattern=pattern, regex=re.compile(pattern, re.IGNORECASE))
    except re.error as e:
        token = sanitize_token(pattern)
        logger.debug("Pattern %r is not a valid regex (%s), using token %r", pattern, e, token)
        return PatternMatcher(pattern=pattern, token=token)


def compile_patterns(patterns: list[str] | tuple[str, ...]) -> tuple[PatternMatcher, ...]:
    """Compile a pattern set, dropping blank entries."""
    return tuple(compile_pattern(p) for p in patterns if p.strip())
