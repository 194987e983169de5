"""
Result caching for clustering runs.
"""

from covidmath.cache.store import KeyValueStore, MemoryStore, FileStore
from covidmath.cache.result_cache import ResultCache, CacheOutcome, cache_key
