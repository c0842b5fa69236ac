"""
Prometheus metrics for the registry.

Registrations are counted on every update, renewals included; the rate of
``beacon_registrations_total`` is the registrations-per-second figure.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, start_http_server


class RegistryMetrics:
    """Counters for one LeaseRegistry.

    Each instance gets its own CollectorRegistry unless one is passed in, so
    several registries can live in one process without name clashes.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()

        self.registrations_total = Counter(
            'beacon_registrations_total',
            'Registrations written, renewals included',
            registry=self.registry
        )

        self.deregistrations_total = Counter(
            'beacon_deregistrations_total',
            'Registrations deleted, explicitly or by the reaper',
            registry=self.registry
        )

        self.reaped_total = Counter(
            'beacon_reaped_total',
            'Expired registrations evicted from the expiry index',
            registry=self.registry
        )

        self.reaper_errors_total = Counter(
            'beacon_reaper_errors_total',
            'Reaper runs that reported an error',
            registry=self.registry
        )

    def value(self, name: str) -> float:
        """Current value of a counter by its exported sample name."""
        return self.registry.get_sample_value(name) or 0.0

    def serve(self, port: int, addr: str = "0.0.0.0") -> None:
        """Expose the metrics over HTTP from a daemon thread."""
        start_http_server(port, addr=addr, registry=self.registry)
