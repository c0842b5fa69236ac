"""Expiry reaping: evict overdue index entries, then cascade-delete their data."""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from ..log import LogSink, null_sink
from ..store import BackingStore


@dataclass
class ReapResult:
    """Ids evicted by one reaper run, plus the error it hit, if any."""
    reaped: List[str] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Reaper:
    """One reap cycle over the expiry index.

    The select-and-remove on the index is a single atomic store command
    (``pop_range_by_score``). The per-id ``delete`` that follows is not part
    of it: a crash in between leaves a data key with no index entry.
    """

    def __init__(
        self,
        store: BackingStore,
        index_key: str,
        delete: Callable[[str], Awaitable[None]],
        clock: Callable[[], float],
        batch_size: int = 100,
        log: LogSink = null_sink,
    ):
        if batch_size < 1:
            raise ValueError("reaper batch size must be at least 1")
        self._store = store
        self._index_key = index_key
        self._delete = delete
        self._clock = clock
        self._batch_size = batch_size
        self._log = log

    async def run(self) -> ReapResult:
        now_ms = self._clock() * 1000
        try:
            reaped = await self._store.pop_range_by_score(self._index_key, now_ms, self._batch_size)
        except Exception as exc:
            # Not retried; the next scheduled run picks up where this one failed
            self._log("error", f"reaper: index sweep failed: {exc}")
            return ReapResult(error=exc)

        result = ReapResult(reaped=list(reaped))
        for reg_id in result.reaped:
            try:
                await self._delete(reg_id)
            except Exception as exc:
                self._log("error", f"reaper: failed to delete {reg_id}: {exc}")
                if result.error is None:
                    result.error = exc

        if result.reaped:
            self._log("debug", f"reaper: reaped {len(result.reaped)} registration(s)", result.reaped)
        return result


# ---------------------------------------------------------------------------
# Scheduling helpers (the "external scheduler" that drives run_reaper)
# ---------------------------------------------------------------------------

async def reap_until_empty(registry) -> List[str]:
    """Call ``registry.run_reaper()`` until nothing is left or a run fails."""
    reaped: List[str] = []
    while True:
        result = await registry.run_reaper()
        reaped.extend(result.reaped)
        if not result.ok or not result.reaped:
            return reaped


async def run_reaper_loop(
    registry,
    interval: float,
    stop: Optional[asyncio.Event] = None,
    log: LogSink = null_sink,
) -> None:
    """Drain the expiry index every *interval* seconds until *stop* is set."""
    stop = stop or asyncio.Event()
    while not stop.is_set():
        reaped = await reap_until_empty(registry)
        if reaped:
            log("info", f"reaper: {len(reaped)} registration(s) expired", reaped)
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass
