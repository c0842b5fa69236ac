#!/usr/bin/env python3
"""
Lease-based Service Registry

This module provides LeaseRegistry, which keeps one record per live service
instance in the backing store:
- the serialized Registration under its id (``/name/version/host/port``)
- an entry in the expiry index (a sorted set of id -> expiry epoch ms)

Both are written and removed together by one atomic store script. Expired
entries are evicted by the reaper (see ``reaper.py``).
"""

import time
from typing import Any, Callable, List, Mapping, Optional, Union

from .. import registrations
from ..config import BeaconConfig
from ..errors import RegistrationError
from ..log import LogSink, null_sink
from ..metrics import RegistryMetrics
from ..registrations import Registration
from ..store import BackingStore
from .events import EventPublisher, OFFLINE, ONLINE
from .reaper import Reaper, ReapResult


class LeaseRegistry:
    """Registration store, membership queries and expiry reaping over one store."""

    def __init__(
        self,
        store: BackingStore,
        config: Optional[BeaconConfig] = None,
        events: Optional[EventPublisher] = None,
        log: LogSink = null_sink,
        clock: Callable[[], float] = time.time,
        metrics: Optional[RegistryMetrics] = None,
    ):
        self.store = store
        self.config = config or BeaconConfig()
        self.events = events or EventPublisher(log=log)
        self.log = log
        self.metrics = metrics or RegistryMetrics()
        self._clock = clock
        self._reaper = Reaper(
            store,
            self.index_key,
            delete=self.delete,
            clock=clock,
            batch_size=self.config.reap_batch_size,
            log=log,
        )

    @property
    def index_key(self) -> str:
        return self.config.registrations_key

    async def close(self) -> None:
        await self.store.close()

    async def __aenter__(self) -> "LeaseRegistry":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # -- subscriptions -----------------------------------------------------

    def on(self, event: str, listener: Callable[[Any], None]) -> Callable[[Any], None]:
        return self.events.on(event, listener)

    def off(self, event: str, listener: Callable[[Any], None]) -> bool:
        return self.events.off(event, listener)

    # -- mutations ---------------------------------------------------------

    async def update(
        self,
        registration: Union[Registration, Mapping[str, Any]],
        *,
        ttl: Optional[float] = None,
    ) -> Registration:
        """Create or renew a registration, expiring *ttl* seconds from now.

        ``ttl=None`` uses ``config.seconds_to_expire``; ``ttl=0`` is a lease
        that is already due. The index entry and the data key are written
        atomically, index first, and "online" fires only once the store has
        acknowledged both.
        """
        reg = registrations.create(registration)
        if ttl is None:
            ttl = self.config.seconds_to_expire
        if ttl < 0:
            raise RegistrationError(f"ttl must not be negative, got {ttl}")
        expires_at = self._clock() * 1000 + ttl * 1000

        await self.store.set_indexed(reg.id, reg.stringify(), self.index_key, expires_at)
        self.metrics.registrations_total.inc()

        self.events.emit(ONLINE, reg)
        return reg

    async def delete(self, reg_id: str) -> None:
        """Remove a registration and its index entry.

        Deleting an unknown id is not an error, and "offline" is published
        either way once the store acknowledges the delete.
        """
        await self.store.delete_indexed(reg_id, self.index_key)
        self.metrics.deregistrations_total.inc()

        self.events.emit(OFFLINE, reg_id)

    async def clear_db(self) -> None:
        """Erase the whole backing database, non-registry keys included."""
        self.log("warning", "clearing the entire backing database")
        await self.store.flushdb()

    # -- queries -----------------------------------------------------------

    async def get_registrations(
        self,
        name: Optional[str] = None,
        version: Optional[str] = None,
    ) -> List[Registration]:
        """List live registrations, optionally narrowed to a name or name+version.

        This scans every key under the prefix, so cost grows with the size of
        the registry, not the size of the answer.
        """
        prefix = registrations.prefix_for(name, version)
        keys = await self.store.scan_prefix(prefix)
        reg_ids = sorted(k for k in keys if registrations.is_registration_id(k))
        if not reg_ids:
            return []

        values = await self.store.mget(reg_ids)
        # a key deleted between the scan and the MGET comes back as None
        return [registrations.parse(v) for v in values if v is not None]

    async def get_expiry(self, reg_id: str) -> Optional[float]:
        """Expiry of *reg_id* in epoch ms, or None when it is not indexed."""
        return await self.store.zscore(self.index_key, reg_id)

    # -- reaping -----------------------------------------------------------

    async def run_reaper(self) -> ReapResult:
        """Evict up to ``config.reap_batch_size`` overdue registrations.

        Never raises for store failures: they are logged and returned in
        ``ReapResult.error`` so a periodic schedule keeps running.
        """
        result = await self._reaper.run()
        self.metrics.reaped_total.inc(len(result.reaped))
        if not result.ok:
            self.metrics.reaper_errors_total.inc()
        return result
