"""Modification-time validated cache for vault file reads."""

from __future__ import annotations

import logging
import stat
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING

from vaultgate.errors import FileReadError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 200
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MiB


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Content of one file as of a given modification time."""

    path: str
    content: str
    mtime_ns: int


class FileCache:
    """Caches file contents keyed by absolute (already resolved) path.

    Every read stats the file; an unchanged mtime serves the cached content
    without reading the file again. Missing files read as ``None``. Entries
    beyond ``max_entries`` are evicted least-recently-used first.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    ) -> None:
        self.max_entries = max_entries
        self.max_file_size = max_file_size
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def read_optional(self, path: Path) -> str | None:
        """Return the file's text, or None if it does not exist.

        Raises FileReadError on genuine I/O failures (permission, device,
        oversized or undecodable files).
        """
        key = str(path)
        try:
            st = path.stat()
        except (FileNotFoundError, NotADirectoryError):
            self._drop(key)
            return None
        except OSError as exc:
            raise FileReadError(f"Cannot stat {path}: {exc.strerror or exc}") from exc

        if not stat.S_ISREG(st.st_mode):
            self._drop(key)
            return None

        with self._lock:
            cached = self._entries.get(key)
            if cached is not None and cached.mtime_ns == st.st_mtime_ns:
                self._entries.move_to_end(key)
                self._hits += 1
                return cached.content

        if st.st_size > self.max_file_size:
            raise FileReadError(f"{path} exceeds maximum size of {self.max_file_size} bytes")

        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            # Deleted between stat and read
            self._drop(key)
            return None
        except UnicodeDecodeError as exc:
            raise FileReadError(f"{path} is not valid UTF-8") from exc
        except OSError as exc:
            raise FileReadError(f"Cannot read {path}: {exc.strerror or exc}") from exc

        with self._lock:
            self._misses += 1
            self._entries[key] = CacheEntry(path=key, content=content, mtime_ns=st.st_mtime_ns)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted %s from file cache", evicted)
        return content

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict[str, int]:
        """Return cache statistics: entries, hits, misses."""
        with self._lock:
            return {"entries": len(self._entries), "hits": self._hits, "misses": self._misses}

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return str(path) in self._entries

    def _drop(self, key: str) -> None:
        with self._lock:
            if self._entries.pop(key, None) is not None:
                logger.debug("Dropped stale cache entry for %s", key)
