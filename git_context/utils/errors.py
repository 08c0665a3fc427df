"""
Defines custom exception classes for the git context boundary.

Every error that leaves the package carries a machine-readable ``kind`` and a
message that has already been passed through error sanitization.
"""
from typing import Any, Dict, Optional


class GitContextError(Exception):
    """Base exception class for the git context boundary."""

    kind = "error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> Dict[str, Any]:
        """Returns a JSON-serializable description of the error."""
        return {"kind": self.kind, "message": self.message, **self.details}


class ValidationError(GitContextError):
    """Raised when caller input fails validation, before any subprocess runs."""

    kind = "validation"

    def __init__(self, rule: str, offending_value: Any, message: Optional[str] = None):
        self.rule = rule
        self.offending_value = offending_value
        super().__init__(
            message or f"Validation failed ({rule}): {offending_value!r}",
            rule=rule,
            offending_value=repr(offending_value),
        )


class ExecutionError(GitContextError):
    """Raised when git exits with a non-zero status."""

    kind = "execution"

    def __init__(self, message: str, returncode: Optional[int] = None):
        self.returncode = returncode
        super().__init__(message, returncode=returncode)


class ToolNotFoundError(ExecutionError):
    """Raised when the git binary cannot be found."""

    kind = "tool_not_found"


class GitTimeoutError(GitContextError, TimeoutError):
    """
    Raised when a git invocation exceeds its wall-clock budget.

    Also a builtin :class:`TimeoutError`, so generic timeout handlers catch it.
    """

    kind = "timeout"

    def __init__(self, message: str, timeout_sec: float):
        self.timeout_sec = timeout_sec
        super().__init__(message, timeout_sec=timeout_sec)


class BufferExceededError(GitContextError):
    """Raised when git produces more output than the configured ceiling."""

    kind = "buffer_exceeded"

    def __init__(self, message: str, limit_bytes: int):
        self.limit_bytes = limit_bytes
        super().__init__(message, limit_bytes=limit_bytes)


class ConfigError(GitContextError):
    """Raised when there is a configuration error."""

    kind = "config"
