"""Redis adapter built on the redis-py asyncio client."""

import re
from typing import List, Mapping, Optional, Sequence

import redis.asyncio as aioredis

from ..config import BeaconConfig


# Select the lowest-scored members up to ARGV[1] (at most ARGV[2] of them) and
# remove exactly those members, in one indivisible step.
POP_RANGE_BY_SCORE_SCRIPT = """
local res = redis.call('ZRANGEBYSCORE', KEYS[1], '-inf', ARGV[1], 'LIMIT', 0, ARGV[2])
if #res > 0 then
   redis.call('ZREM', KEYS[1], unpack(res))
end
return res
"""

# Index first: a failing ZADD (wrong-type index) aborts before SET, and SET
# cannot fail on type, so the pair is never half written.
SET_INDEXED_SCRIPT = """
redis.call('ZADD', KEYS[2], ARGV[2], KEYS[1])
redis.call('SET', KEYS[1], ARGV[1])
return 1
"""

DELETE_INDEXED_SCRIPT = """
redis.call('ZREM', KEYS[2], KEYS[1])
return redis.call('DEL', KEYS[1])
"""

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def escape_glob(text: str) -> str:
    """Escape Redis MATCH metacharacters so *text* matches literally."""
    return _GLOB_SPECIAL.sub(r"\\\1", text)


class RedisStore:
    """Backing store over one Redis database."""

    def __init__(self, client: aioredis.Redis, scan_count: int = 1000):
        self._client = client
        self._scan_count = scan_count
        self._pop_script = client.register_script(POP_RANGE_BY_SCORE_SCRIPT)
        self._set_indexed_script = client.register_script(SET_INDEXED_SCRIPT)
        self._delete_indexed_script = client.register_script(DELETE_INDEXED_SCRIPT)

    @classmethod
    def from_config(cls, config: BeaconConfig) -> "RedisStore":
        client = aioredis.Redis(
            host=config.redis_host,
            port=config.redis_port,
            db=config.redis_db,
            decode_responses=True,
        )
        return cls(client)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RedisStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def get(self, name: str) -> Optional[str]:
        return await self._client.get(name)

    async def set(self, name: str, value: str) -> bool:
        return bool(await self._client.set(name, value))

    async def mget(self, names: Sequence[str]) -> List[Optional[str]]:
        return await self._client.mget(list(names))

    async def delete(self, *names: str) -> int:
        return await self._client.delete(*names)

    async def zadd(self, name: str, mapping: Mapping[str, float]) -> int:
        return await self._client.zadd(name, dict(mapping))

    async def zrem(self, name: str, *values: str) -> int:
        return await self._client.zrem(name, *values)

    async def zscore(self, name: str, value: str) -> Optional[float]:
        return await self._client.zscore(name, value)

    async def zrangebyscore(self, name: str, min_score: float, max_score: float,
                            limit: Optional[int] = None) -> List[str]:
        if limit is None:
            return await self._client.zrangebyscore(name, min_score, max_score)
        return await self._client.zrangebyscore(name, min_score, max_score, start=0, num=limit)

    async def set_indexed(self, name: str, value: str, index: str, score: float) -> None:
        await self._set_indexed_script(keys=[name, index], args=[value, score])

    async def delete_indexed(self, name: str, index: str) -> int:
        return await self._delete_indexed_script(keys=[name, index])

    async def pop_range_by_score(self, name: str, max_score: float, limit: int) -> List[str]:
        res = await self._pop_script(keys=[name], args=[max_score, limit])
        return list(res or [])

    async def scan_prefix(self, prefix: str) -> List[str]:
        pattern = escape_glob(prefix) + "*"
        return [key async for key in self._client.scan_iter(match=pattern, count=self._scan_count)]

    async def flushdb(self) -> None:
        await self._client.flushdb()
