"""Lease renewal: keep registrations alive by re-issuing update() on a timer."""

import asyncio
from typing import Optional

from .log import LogSink, null_sink
from .registrations import Registration
from .registry import LeaseRegistry


async def run_heartbeat_all(
    registry: LeaseRegistry,
    registrations: list[Registration],
    ttl: Optional[float] = None,
    interval: float = 5,
    stop: Optional[asyncio.Event] = None,
    log: LogSink = null_sink,
) -> None:
    """Renew several registrations from a single task.

    Each cycle calls ``update`` for every registration with *ttl*, then
    sleeps for *interval* seconds. A failed renewal is logged and retried on
    the next cycle; *interval* should stay well below *ttl* so one missed
    beat does not expire the lease.
    """
    stop = stop or asyncio.Event()
    last_statuses: dict[str, str] = {}

    while not stop.is_set():
        for reg in registrations:
            try:
                await registry.update(reg, ttl=ttl)
                status = "ok"
            except Exception as exc:
                status = "failed"
                log("error", f"heartbeat: renewing {reg.id} failed: {exc}")

            last_status = last_statuses.get(reg.id)
            if status != last_status:
                log("info", f"heartbeat: {reg.id}: {last_status or 'init'} -> {status}")
                last_statuses[reg.id] = status

        try:
            await asyncio.wait_for(stop.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass
