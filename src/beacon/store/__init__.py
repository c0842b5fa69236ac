"""
Backing stores

This package provides:
1. RedisStore - the production adapter (redis-py asyncio client)
2. InMemoryStore - dict-backed adapter for tests and single-process runs
"""

from .base import BackingStore
from .memory_store import InMemoryStore
from .redis_store import RedisStore

__all__ = [
    'BackingStore',
    'InMemoryStore',
    'RedisStore',
]
