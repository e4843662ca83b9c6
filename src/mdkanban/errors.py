"""Error types raised by the board engine."""


class KanbanError(Exception):
    """Base class for board engine errors."""


class NotFound(KanbanError, KeyError):
    """A task or column named by a mutation does not exist."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "not found"


class MalformedSentinel(KanbanError, ValueError):
    """The task counter comment is missing or unreadable.

    Never escapes the allocator, which falls back to 0.
    """


class LockTimeout(KanbanError, TimeoutError):
    """The document lock could not be acquired in time. Safe to retry."""

    def __init__(self, key: str, timeout: float):
        super().__init__(f"Timed out after {timeout:g}s waiting for lock on {key}")
        self.key = key
        self.timeout = timeout


# Storage errors are plain OSErrors and propagate unchanged.
IOFailure = OSError
