"""Configuration loading and merging for Beacon."""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml


DEFAULT_REGISTRATIONS_KEY = "__beacon.registrations"
REAP_BATCH_SIZE = 100


@dataclass
class BeaconConfig:
    # Backing Redis store
    redis_host: str = "127.0.0.1"
    redis_port: int = 6379
    redis_db: int = 0

    # Lease length used when update() is called without an explicit ttl
    seconds_to_expire: float = 10

    # Sorted set holding id -> expiry (epoch ms)
    registrations_key: str = DEFAULT_REGISTRATIONS_KEY

    # Reaper schedule; keep the interval no coarser than the shortest ttl in use
    reaper_interval: float = 1.0
    reap_batch_size: int = REAP_BATCH_SIZE

    # Minimum level written by the stderr log sink
    log_level: str = "info"

    # Prometheus HTTP port for `beacon serve` (disabled when unset)
    metrics_port: Optional[int] = None


def load_config(path: str | Path) -> BeaconConfig:
    """Load a BeaconConfig from a YAML file."""
    path = Path(path)
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    # Unknown keys are ignored so one YAML file can be shared with other tools
    valid_fields = {f.name for f in fields(BeaconConfig)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    return BeaconConfig(**filtered)


def merge_cli_args(config: BeaconConfig, args) -> BeaconConfig:
    """Overlay CLI arguments onto an existing config. CLI values take precedence."""
    for f in fields(BeaconConfig):
        cli_val = getattr(args, f.name, None)
        if cli_val is not None:
            setattr(config, f.name, cli_val)
    return config


def config_to_yaml(config: BeaconConfig) -> str:
    """Serialize a BeaconConfig to YAML."""
    data = {f.name: getattr(config, f.name) for f in fields(BeaconConfig)}
    return yaml.dump(data, default_flow_style=False, sort_keys=False)
