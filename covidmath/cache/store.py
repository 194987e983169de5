"""
Key-value stores backing the result cache.

The cache only needs get / put / exists, so the storage medium is hidden
behind KeyValueStore. FileStore persists one JSON document per key and
replaces files atomically.
"""

import json
import logging
import os
import re
import tempfile
import threading
from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Any, Dict, Optional

from covidmath.errors import CacheWriteError

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r'^[A-Za-z0-9_.-]+$')


class KeyValueStore(ABC):
    """
    Minimal storage interface used by ResultCache.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the value stored under key, or None."""

    @abstractmethod
    def put(self, key: str, value: Any) -> None:
        """Store a value under key, replacing any previous value."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check whether a value is stored under key."""


class MemoryStore(KeyValueStore):
    """
    In-process store. Values are copied on the way in and out so callers
    cannot mutate the stored artifact.
    """

    def __init__(self):
        self._data: Dict[str, Any] = {}
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            if key not in self._data:
                return None
            return deepcopy(self._data[key])

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = deepcopy(value)

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._data


class FileStore(KeyValueStore):
    """
    Directory of JSON files, one per key.
    """

    def __init__(self, directory: str):
        """
        Initialize a file store.

        Args:
            directory: Directory holding the JSON documents (created on first write)
        """
        self.directory = directory

    def _path(self, key: str) -> str:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid cache key: {key!r}")
        return os.path.join(self.directory, f"{key}.json")

    def exists(self, key: str) -> bool:
        return os.path.isfile(self._path(key))

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not os.path.isfile(path):
            return None

        with open(path, 'r') as f:
            return json.load(f)

    def put(self, key: str, value: Any) -> None:
        """
        Write a value atomically.

        The document is written to a temporary file in the same directory
        and moved over the target with os.replace, so the previous file
        stays intact if anything fails.

        Raises:
            CacheWriteError: If the value cannot be serialized or written
        """
        path = self._path(key)
        tmp_path = None

        try:
            payload = json.dumps(value, indent=2)
            os.makedirs(self.directory, exist_ok=True)

            with tempfile.NamedTemporaryFile('w', dir=self.directory, prefix=f".{key}.",
                                             suffix='.tmp', delete=False) as f:
                tmp_path = f.name
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())

            os.replace(tmp_path, path)
            tmp_path = None
        except (OSError, TypeError, ValueError) as e:
            raise CacheWriteError(key, str(e)) from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)

        logger.info(f"Saved cache entry {key} to {path}")
