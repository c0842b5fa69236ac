"""Backing store interface shared by the Redis and in-memory adapters."""

from typing import List, Mapping, Optional, Protocol, Sequence


class BackingStore(Protocol):

    async def get(self, name: str) -> Optional[str]: ...

    async def set(self, name: str, value: str) -> bool: ...

    async def mget(self, names: Sequence[str]) -> List[Optional[str]]: ...

    async def delete(self, *names: str) -> int: ...

    async def zadd(self, name: str, mapping: Mapping[str, float]) -> int: ...

    async def zrem(self, name: str, *values: str) -> int: ...

    async def zscore(self, name: str, value: str) -> Optional[float]: ...

    async def zrangebyscore(self, name: str, min_score: float, max_score: float,
                            limit: Optional[int] = None) -> List[str]: ...

    async def set_indexed(self, name: str, value: str, index: str, score: float) -> None:
        """Atomically index *name* under *score* in *index* and store *value* at *name*.

        The index write goes first; when it fails nothing is written.
        """
        ...

    async def delete_indexed(self, name: str, index: str) -> int:
        """Atomically drop *name* from *index* and delete the key *name*."""
        ...

    async def pop_range_by_score(self, name: str, max_score: float, limit: int) -> List[str]:
        """Atomically select up to *limit* members scored <= *max_score* and remove them."""
        ...

    async def scan_prefix(self, prefix: str) -> List[str]: ...

    async def flushdb(self) -> None: ...

    async def close(self) -> None: ...
