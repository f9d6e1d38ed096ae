"""Error taxonomy for cleanup operations.

Every failure the engine can observe falls into one of a small, closed set
of kinds. Most of them never leave the component that observed them: they
are logged and folded into a result object. Only the exceptions defined
here are ever raised, and only at well-known seams.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure kinds.

    Attributes:
        CLASSIFICATION: A path could not be normalized or stat'ed.
        ENUMERATION: A directory's children could not be listed.
        DELETION: A filesystem entry could not be removed.
        LOG_IO: A run log could not be written, merged, or archived.
        EXTERNAL_TOOL: An out-of-process tool failed or could not start.
    """

    CLASSIFICATION = "classification"
    ENUMERATION = "enumeration"
    DELETION = "deletion"
    LOG_IO = "log_io"
    EXTERNAL_TOOL = "external_tool"


class CleanupError(Exception):
    """Base exception carrying an error kind and its original cause.

    Attributes:
        kind: The failure kind.
        message: Human-readable description.
        cause: Underlying exception, if any.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class EnumerationError(CleanupError):
    """Raised when the root of a walk cannot be enumerated."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(ErrorKind.ENUMERATION, message, cause)


class LogIOError(CleanupError):
    """Raised when the run log cannot be established."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(ErrorKind.LOG_IO, message, cause)


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""
