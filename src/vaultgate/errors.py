"""Failure taxonomy for the vault trust boundary.

Each error carries an internal message (for logs) and a ``public_message``
that is safe to show an untrusted client.
"""

from __future__ import annotations


class VaultGateError(Exception):
    """Base class for typed failures raised by vaultgate."""

    public_message = "Request failed"


class PathEscapeError(VaultGateError, ValueError):
    """Raised when a requested path does not stay within the vault root."""

    public_message = "Path not allowed"

    def __init__(self, user_path: str, reason: str = "resolves outside the vault") -> None:
        self.user_path = user_path
        self.reason = reason
        super().__init__(f"Path rejected: '{user_path}' {reason}")


class FileReadError(VaultGateError, OSError):
    """A genuine I/O failure while reading a file (never 'not found')."""

    public_message = "File could not be read"


class CapacityExceededError(VaultGateError):
    """The session store is full; new authorization attempts are refused."""

    public_message = "Too many pending authorization sessions"

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        super().__init__(f"Session store at capacity ({capacity})")


class SessionNotFoundError(VaultGateError, LookupError):
    """Session key is absent, already consumed, or expired."""

    public_message = "Invalid or expired session"

    def __init__(self) -> None:
        super().__init__("Session not found")
