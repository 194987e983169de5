"""
Result cache for clustering runs, keyed by k.

An entry is created on the first successful run for a given k and is only
replaced when a caller asks for a forced refresh. Concurrent callers for
the same uncached k are serialized by a per-key lock so the run is
computed once.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from covidmath.cache.store import KeyValueStore, MemoryStore
from covidmath.errors import CacheWriteError

logger = logging.getLogger(__name__)


@dataclass
class CacheOutcome:
    """A result plus how it was obtained."""
    value: Any
    from_cache: bool
    write_error: Optional[CacheWriteError] = None


def cache_key(k: int) -> str:
    """Storage key for a clustering run with k clusters."""
    return f"cluster_k{k}"


class ResultCache:
    """
    Parameter-keyed cache of completed runs on top of a KeyValueStore.
    """

    def __init__(self, store: Optional[KeyValueStore] = None):
        """
        Initialize a result cache.

        Args:
            store: Backing store (in-memory if None)
        """
        self.store = store if store is not None else MemoryStore()
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _key_lock(self, key: str) -> threading.Lock:
        with self._locks_guard:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    def get(self, k: int, force_refresh: bool = False) -> Optional[Any]:
        """
        Look up a stored result.

        Args:
            k: Clustering parameter
            force_refresh: Ignore any stored result

        Returns:
            The stored result, or None on a miss or forced refresh
        """
        if force_refresh:
            logger.info(f"Force refresh requested for k={k}")
            return None

        key = cache_key(k)
        if not self.store.exists(key):
            logger.debug(f"Cache miss for k={k}")
            return None

        logger.info(f"Returning cached clustering data for k={k}")
        return self.store.get(key)

    def put(self, k: int, result: Any) -> None:
        """
        Store a completed result.

        Args:
            k: Clustering parameter
            result: JSON-serializable result

        Raises:
            CacheWriteError: If the store cannot persist the result
        """
        self.store.put(cache_key(k), result)

    def get_or_compute(self,
                       k: int,
                       compute: Callable[[], Any],
                       force_refresh: bool = False) -> CacheOutcome:
        """
        Return the cached result for k, computing and storing it on a miss.

        Only one caller computes a given k at a time; a caller that waited
        on the lock re-checks the store before computing. A failed write is
        reported on the outcome and the computed value is still returned.

        Args:
            k: Clustering parameter
            compute: Zero-argument function producing the result
            force_refresh: Recompute even if a result is stored

        Returns:
            CacheOutcome with the result
        """
        cached = self.get(k, force_refresh)
        if cached is not None:
            return CacheOutcome(cached, from_cache=True)

        with self._key_lock(cache_key(k)):
            if not force_refresh:
                cached = self.get(k)
                if cached is not None:
                    return CacheOutcome(cached, from_cache=True)

            value = compute()

            try:
                self.put(k, value)
            except CacheWriteError as e:
                logger.error(str(e))
                return CacheOutcome(value, from_cache=False, write_error=e)

            return CacheOutcome(value, from_cache=False)
