"""Single-slot cache for parsed SyncTeX data."""

import logging
import threading
from dataclasses import dataclass

from texfeedback.core.synctex.parser import SyncObject

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    source_path: str
    sync_object: SyncObject


class SyncCache:
    """Holds the parsed sync data of at most one source file.

    Storing an entry for a new file evicts the previous one, even if that
    file is still open in the editor. Lookups compare the source path by
    exact string equality.

    The slot is guarded by a lock, but loading happens outside it: when two
    loads for different files race, the later ``store`` wins the slot while
    each caller keeps the object it parsed itself.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entry: CacheEntry | None = None

    def get(self, source_path: str) -> SyncObject | None:
        with self._lock:
            entry = self._entry
        if entry is not None and entry.source_path == source_path:
            return entry.sync_object
        return None

    def store(self, source_path: str, sync_object: SyncObject) -> None:
        with self._lock:
            if self._entry is not None and self._entry.source_path != source_path:
                logger.debug("synctex cache: evicting %s", self._entry.source_path)
            self._entry = CacheEntry(source_path, sync_object)

    def clear(self) -> None:
        """Drop the cached entry. Call whenever a new compilation starts."""
        with self._lock:
            self._entry = None

    @property
    def cached_path(self) -> str | None:
        with self._lock:
            return self._entry.source_path if self._entry else None
