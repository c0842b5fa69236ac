"""
Lease-based Service Registry

This package provides:
1. LeaseRegistry - registration store, prefix queries and reaping over a backing store
2. EventPublisher - synchronous "online"/"offline" notifications
3. Reaper / run_reaper_loop - expiry eviction and its periodic driver
"""

from .events import EventPublisher, OFFLINE, ONLINE
from .reaper import Reaper, ReapResult, reap_until_empty, run_reaper_loop
from .service_registry import LeaseRegistry

__version__ = '0.1.0'
__all__ = [
    'EventPublisher',
    'LeaseRegistry',
    'OFFLINE',
    'ONLINE',
    'ReapResult',
    'Reaper',
    'reap_until_empty',
    'run_reaper_loop',
]
