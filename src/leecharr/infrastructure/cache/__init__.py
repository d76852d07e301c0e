"""Cache infrastructure - backend implementations."""

from .cache_factory import CacheBackend, create_cache, open_cache
from .diskcache_adapter import DiskcacheAdapter
from .null_adapter import NullCacheAdapter

__all__ = [
    "CacheBackend",
    "DiskcacheAdapter",
    "NullCacheAdapter",
    "create_cache",
    "open_cache",
]
