"""Path confinement for vault operations.

Every path-based file access goes through :class:`PathGuard`. A requested
path is normalized, checked syntactically, then canonicalized with all
symbolic links resolved (intermediate directories included) and compared
segment-wise against the canonical vault root.
"""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import TYPE_CHECKING

from vaultgate.errors import PathEscapeError

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

DEFAULT_BLOCKED_NAMES: tuple[str, ...] = (".git",)


def normalize_requested(user_path: str) -> str:
    """Collapse ``.``/``..`` segments and reject syntactic escapes.

    Returns the normalized vault-relative path (``"."`` for the root).
    """
    if not user_path or not user_path.strip():
        raise PathEscapeError(user_path, "is empty")
    if "\x00" in user_path:
        raise PathEscapeError(user_path, "contains a NUL byte")

    candidate = user_path.replace("\\", "/")
    if candidate.startswith("/"):
        raise PathEscapeError(user_path, "is absolute")

    normalized = posixpath.normpath(candidate)
    if normalized == ".." or normalized.startswith("../"):
        raise PathEscapeError(user_path, "traverses above the vault root")
    return normalized


class PathGuard:
    """Resolves untrusted relative paths against a fixed vault root.

    The root is canonicalized once at construction and must exist.
    """

    def __init__(
        self,
        vault_root: Path,
        blocked_names: tuple[str, ...] | list[str] = DEFAULT_BLOCKED_NAMES,
    ) -> None:
        self.root = vault_root.expanduser().resolve(strict=True)
        self.blocked_names = frozenset(blocked_names)

    def resolve(self, user_path: str) -> Path:
        """Return the canonical absolute path for *user_path*.

        Raises PathEscapeError when the canonical location is not contained
        in the root, when a blocked component is named, or when resolution
        fails for any reason other than a missing leaf.
        """
        normalized = normalize_requested(user_path)
        parts = [] if normalized == "." else normalized.split("/")

        if self._is_blocked(parts):
            logger.warning("Blocked component in requested path %r", user_path)
            raise PathEscapeError(user_path, "names a protected directory")

        resolved = self._canonicalize(self.root.joinpath(*parts), user_path)
        if not resolved.is_relative_to(self.root):
            logger.warning("Path escape blocked for requested path %r", user_path)
            raise PathEscapeError(user_path)

        if self._is_blocked(resolved.relative_to(self.root).parts):
            logger.warning("Requested path %r resolves into a protected directory", user_path)
            raise PathEscapeError(user_path, "names a protected directory")
        return resolved

    def _is_blocked(self, parts: Sequence[str]) -> bool:
        # Top-level entries sharing a blocked prefix (.gitmodules, .git-credentials)
        # are protected too.
        if self.blocked_names.intersection(parts):
            return True
        return bool(parts) and any(parts[0].startswith(name) for name in self.blocked_names)

    def relative(self, resolved: Path) -> str:
        """Vault-relative POSIX form of a path produced by :meth:`resolve`."""
        return resolved.relative_to(self.root).as_posix()

    def _canonicalize(self, candidate: Path, user_path: str) -> Path:
        # Resolve the deepest existing ancestor, then re-append the missing tail.
        existing = candidate
        missing: list[str] = []
        while True:
            try:
                real = existing.resolve(strict=True)
                break
            except FileNotFoundError:
                if existing.is_symlink():
                    raise PathEscapeError(user_path, "passes through a dangling link") from None
                if existing == self.root or existing.parent == existing:
                    raise PathEscapeError(user_path, "has no existing ancestor") from None
                missing.insert(0, existing.name)
                existing = existing.parent
            except (OSError, RuntimeError) as exc:
                # Permission errors, link loops, a file used as a directory.
                raise PathEscapeError(user_path, "could not be resolved") from exc
        return real.joinpath(*missing)


def resolve_safe(
    user_path: str,
    vault_root: Path,
    blocked_names: tuple[str, ...] | list[str] = DEFAULT_BLOCKED_NAMES,
) -> Path:
    """Resolve a user-supplied path and verify it stays within the vault root.

    Returns the resolved absolute path if valid.
    Raises PathEscapeError if the resolved path escapes vault_root.
    """
    try:
        guard = PathGuard(vault_root, blocked_names)
    except OSError as exc:
        raise PathEscapeError(user_path, "has no usable vault root") from exc
    return guard.resolve(user_path)
