"""Vault access: path confinement, cached reads, and guide collection."""

from vaultgate.vault.file_cache import CacheEntry, FileCache
from vaultgate.vault.guides import GuideCollector, GuideEntry, collect_guides, render_guides
from vaultgate.vault.security import PathGuard, normalize_requested, resolve_safe

__all__ = [
    "CacheEntry",
    "FileCache",
    "GuideCollector",
    "GuideEntry",
    "PathGuard",
    "collect_guides",
    "normalize_requested",
    "render_guides",
    "resolve_safe",
]
