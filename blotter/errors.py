"""Exception taxonomy shared by the stores, services and the HTTP layer.

"Not found" is deliberately absent: lookups return ``None`` (or ``False`` for
deletes) and callers decide what that means.
"""

from __future__ import annotations


class BlotterError(Exception):
    """Base class for all Blotter errors."""


class StorageError(BlotterError):
    """A collection file could not be written (or read back) from disk.

    Raised after the in-memory mutation has been rolled back.
    """


class RecordValidationError(BlotterError):
    """A citation or arrest violates a structural invariant."""

    def __init__(self, message: str, field: str = "") -> None:
        super().__init__(message)
        self.field = field


class SinkError(BlotterError):
    """The notification sink (Discord) failed to post or retract a message."""

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProtectedUserError(BlotterError):
    """An admin action targeted a protected account or the acting admin."""


class AdmissionError(BlotterError):
    """Signup or login was refused (blocked, terminated, taken, bad credentials)."""

    def __init__(self, message: str, reason: str = "") -> None:
        super().__init__(message)
        self.reason = reason
