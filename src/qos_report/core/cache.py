"""
Signature-keyed cache for reference data loaded from files.

Plants, PPAP and deviation lists are read from workbooks that change
rarely. ReferenceDataCache keeps the last loaded value per key together
with a signature of the source files (name, size, mtime) and reloads
when the signature changes.

The cache is an explicit object handed to the loader, not a module
global. Each refresh stores a complete new entry in one assignment, so
concurrent refreshes can only duplicate work.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    signature: str
    value: Any


class ReferenceDataCache:
    """
    Usage:
        cache = ReferenceDataCache()
        plants = cache.get_or_load("plants", [plants_path], lambda: load(plants_path))
    """

    def __init__(self, stat: Callable[[str], os.stat_result] = os.stat):
        """
        Args:
            stat: File stat provider; swap in a fake for tests
        """
        self._stat = stat
        self._entries: dict[str, CacheEntry] = {}

    def signature(self, paths: Iterable[Path | str]) -> str:
        """Stable signature of a set of files; missing files are marked."""
        parts = []
        for path in paths:
            name = Path(path).name
            try:
                info = self._stat(str(path))
            except FileNotFoundError:
                parts.append(f"{name}:missing")
                continue
            parts.append(f"{name}:{info.st_size}:{int(info.st_mtime * 1000)}")
        return "|".join(sorted(parts))

    def get_or_load(self, key: str, paths: Iterable[Path | str], loader: Callable[[], Any]) -> Any:
        """Return the cached value for key, reloading when the files changed."""
        signature = self.signature(list(paths))
        entry = self._entries.get(key)
        if entry is not None and entry.signature == signature:
            logger.debug("Cache hit for %s", key)
            return entry.value

        logger.debug("Cache miss for %s (signature %s)", key, signature)
        value = loader()
        self._entries[key] = CacheEntry(signature=signature, value=value)
        return value

    def invalidate(self, key: str | None = None) -> None:
        """Drop one entry, or all entries when key is None."""
        if key is None:
            self._entries = {}
        else:
            self._entries.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
