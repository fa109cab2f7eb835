"""Directory-scoped guide files (``CLAUDE.md``) collected along a vault path."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from vaultgate.errors import PathEscapeError
from vaultgate.vault.security import normalize_requested

if TYPE_CHECKING:
    from collections.abc import Sequence

    from vaultgate.vault.file_cache import FileCache
    from vaultgate.vault.security import PathGuard

logger = logging.getLogger(__name__)

DEFAULT_GUIDE_FILENAME = "CLAUDE.md"


@dataclass(frozen=True, slots=True)
class GuideEntry:
    """A guide file found in one ancestor directory of the target."""

    path: str
    content: str


class GuideCollector:
    """Assembles guide files from the vault root down to a target directory."""

    def __init__(
        self,
        guard: PathGuard,
        cache: FileCache,
        guide_filename: str = DEFAULT_GUIDE_FILENAME,
    ) -> None:
        self.guard = guard
        self.cache = cache
        self.guide_filename = guide_filename

    def load_root_guide(self) -> str | None:
        """Root guide content, or None when the vault has none."""
        return self._read_guide(".")

    def collect(self, target_path: str) -> list[GuideEntry]:
        """Return guides for every ancestor of *target_path*, root excluded.

        Entries are ordered root-to-leaf so later entries refine earlier
        ones. Raises PathEscapeError when the target leaves the vault.
        """
        target = self.guard.resolve(target_path)

        normalized = normalize_requested(target_path)
        if normalized == ".":
            return []

        segments = normalized.split("/")
        if target.exists() and not target.is_dir():
            # A file target: its guides are those of the enclosing directories.
            segments.pop()
        entries: list[GuideEntry] = []
        for depth in range(1, len(segments) + 1):
            rel_dir = "/".join(segments[:depth])
            content = self._read_guide(rel_dir)
            if content is not None:
                entries.append(GuideEntry(path=rel_dir, content=content))
        return entries

    def _read_guide(self, rel_dir: str) -> str | None:
        try:
            guide_path = self.guard.resolve(f"{rel_dir}/{self.guide_filename}")
        except PathEscapeError as exc:
            logger.warning("Skipping guide in %s: path %s", rel_dir, exc.reason)
            return None
        return self.cache.read_optional(guide_path)


def collect_guides(
    guard: PathGuard,
    cache: FileCache,
    target_path: str,
    guide_filename: str = DEFAULT_GUIDE_FILENAME,
) -> list[GuideEntry]:
    """One-shot helper around :meth:`GuideCollector.collect`."""
    return GuideCollector(guard, cache, guide_filename).collect(target_path)


def render_guides(
    entries: Sequence[GuideEntry],
    guide_filename: str = DEFAULT_GUIDE_FILENAME,
) -> str:
    """Render collected guides parent-first as plain text."""
    if not entries:
        return f"No {guide_filename} files found along this path."
    return "\n\n".join(
        f"--- {guide_filename} in {entry.path}/ ---\n{entry.content}" for entry in entries
    )
