"""Thread-safe, dict-backed store with the same command surface as RedisStore."""

import threading
from typing import Dict, List, Mapping, Optional, Sequence

from ..errors import StoreError


class InMemoryStore:
    """String keys and sorted sets in plain dicts, guarded by one lock.

    Every command runs under the lock, so ``set_indexed``,
    ``delete_indexed`` and ``pop_range_by_score`` are atomic with respect to
    other callers.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._strings: Dict[str, str] = {}
        self._zsets: Dict[str, Dict[str, float]] = {}

    # -- lifecycle ---------------------------------------------------------

    async def close(self) -> None:
        pass

    async def __aenter__(self) -> "InMemoryStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # -- unlocked primitives (caller holds the lock) -------------------------

    def _zset_for_write(self, name: str) -> Dict[str, float]:
        if name in self._strings:
            raise StoreError(f"WRONGTYPE {name} holds a string value")
        return self._zsets.setdefault(name, {})

    def _zset_for_read(self, name: str) -> Dict[str, float]:
        if name in self._strings:
            raise StoreError(f"WRONGTYPE {name} holds a string value")
        return self._zsets.get(name, {})

    def _set(self, name: str, value: str) -> bool:
        self._zsets.pop(name, None)
        self._strings[name] = value
        return True

    def _get(self, name: str) -> Optional[str]:
        if name in self._zsets:
            raise StoreError(f"WRONGTYPE {name} holds a sorted set")
        return self._strings.get(name)

    def _delete(self, *names: str) -> int:
        removed = 0
        for name in names:
            if self._strings.pop(name, None) is not None:
                removed += 1
            elif self._zsets.pop(name, None) is not None:
                removed += 1
        return removed

    def _zadd(self, name: str, mapping: Mapping[str, float]) -> int:
        zset = self._zset_for_write(name)
        added = sum(1 for member in mapping if member not in zset)
        for member, score in mapping.items():
            zset[member] = float(score)
        return added

    def _zrem(self, name: str, *values: str) -> int:
        zset = self._zset_for_read(name)
        removed = 0
        for value in values:
            if zset.pop(value, None) is not None:
                removed += 1
        if name in self._zsets and not zset:
            del self._zsets[name]
        return removed

    def _zrangebyscore(self, name: str, min_score: float, max_score: float,
                       limit: Optional[int] = None) -> List[str]:
        zset = self._zset_for_read(name)
        members = sorted(
            (score, member) for member, score in zset.items()
            if min_score <= score <= max_score
        )
        if limit is not None:
            members = members[:limit]
        return [member for _, member in members]

    # -- commands ----------------------------------------------------------

    async def get(self, name: str) -> Optional[str]:
        with self._lock:
            return self._get(name)

    async def set(self, name: str, value: str) -> bool:
        with self._lock:
            return self._set(name, value)

    async def mget(self, names: Sequence[str]) -> List[Optional[str]]:
        with self._lock:
            # MGET answers nil for keys of the wrong type rather than failing
            return [self._strings.get(name) for name in names]

    async def delete(self, *names: str) -> int:
        with self._lock:
            return self._delete(*names)

    async def zadd(self, name: str, mapping: Mapping[str, float]) -> int:
        with self._lock:
            return self._zadd(name, mapping)

    async def zrem(self, name: str, *values: str) -> int:
        with self._lock:
            return self._zrem(name, *values)

    async def zscore(self, name: str, value: str) -> Optional[float]:
        with self._lock:
            return self._zset_for_read(name).get(value)

    async def zrangebyscore(self, name: str, min_score: float, max_score: float,
                            limit: Optional[int] = None) -> List[str]:
        with self._lock:
            return self._zrangebyscore(name, min_score, max_score, limit)

    async def set_indexed(self, name: str, value: str, index: str, score: float) -> None:
        with self._lock:
            # ZADD raises on a wrong-type index before anything is written
            self._zadd(index, {name: score})
            self._set(name, value)

    async def delete_indexed(self, name: str, index: str) -> int:
        with self._lock:
            self._zrem(index, name)
            return self._delete(name)

    async def pop_range_by_score(self, name: str, max_score: float, limit: int) -> List[str]:
        with self._lock:
            members = self._zrangebyscore(name, float("-inf"), max_score, limit)
            if members:
                self._zrem(name, *members)
            return members

    async def scan_prefix(self, prefix: str) -> List[str]:
        with self._lock:
            keys = list(self._strings) + list(self._zsets)
        return [key for key in keys if key.startswith(prefix)]

    async def flushdb(self) -> None:
        with self._lock:
            self._strings.clear()
            self._zsets.clear()
