"""CLI entry point for Beacon."""

import argparse
import asyncio
import json
import sys

from .config import BeaconConfig, load_config, merge_cli_args
from .errors import RegistrationError
from .heartbeat import run_heartbeat_all
from .log import make_sink
from .registrations import create
from .registry import LeaseRegistry, reap_until_empty, run_reaper_loop
from .store import RedisStore


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add config flags shared by every subcommand."""
    parser.add_argument("--config", type=str, help="Path to YAML config file")
    parser.add_argument("--redis-host", type=str, dest="redis_host", help="Redis host (default: 127.0.0.1)")
    parser.add_argument("--redis-port", type=int, dest="redis_port", help="Redis port (default: 6379)")
    parser.add_argument("--redis-db", type=int, dest="redis_db", help="Redis database number (default: 0)")
    parser.add_argument(
        "--seconds-to-expire", type=float, dest="seconds_to_expire",
        help="Default lease length in seconds (default: 10)",
    )
    parser.add_argument(
        "--registrations-key", type=str, dest="registrations_key",
        help="Sorted set used as the expiry index",
    )
    parser.add_argument(
        "--log-level", choices=["debug", "info", "warning", "error"], dest="log_level",
        help="Minimum level written to stderr (default: info)",
    )


def _build_config(args) -> BeaconConfig:
    """Build a BeaconConfig from a config file + CLI overrides."""
    if args.config:
        config = load_config(args.config)
    else:
        config = BeaconConfig()
    merge_cli_args(config, args)
    return config


def _open_store(config: BeaconConfig):
    return RedisStore.from_config(config)


def _open_registry(config: BeaconConfig) -> LeaseRegistry:
    log = make_sink(config.log_level)
    return LeaseRegistry(_open_store(config), config=config, log=log)


def _parse_meta(pairs: list[str] | None) -> dict:
    meta = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise RegistrationError(f"--meta expects KEY=VALUE, got {pair!r}")
        meta[key] = value
    return meta


# ---------------------------------------------------------------------------
# subcommands
# ---------------------------------------------------------------------------

async def _register(args, config: BeaconConfig) -> None:
    reg = create({
        "name": args.name,
        "version": args.version,
        "host": args.host,
        "port": args.port,
        "meta": _parse_meta(args.meta),
    })
    async with _open_registry(config) as registry:
        if args.heartbeat:
            print(f"Renewing {reg.id} every {args.heartbeat}s", file=sys.stderr)
            await run_heartbeat_all(
                registry, [reg], ttl=args.ttl, interval=args.heartbeat, log=registry.log,
            )
        else:
            await registry.update(reg, ttl=args.ttl)
            print(reg.id)


def cmd_register(args) -> None:
    config = _build_config(args)
    try:
        asyncio.run(_register(args, config))
    except RegistrationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


async def _deregister(args, config: BeaconConfig) -> None:
    async with _open_registry(config) as registry:
        await registry.delete(args.reg_id)


def cmd_deregister(args) -> None:
    config = _build_config(args)
    asyncio.run(_deregister(args, config))


def _format_registrations(rows: list[tuple], fmt: str) -> str:
    """Format (Registration, expiry_ms) pairs for output."""
    if fmt == "json":
        return json.dumps(
            [dict(reg.to_dict(), expires_at=expiry) for reg, expiry in rows], indent=2,
        )
    lines = []
    for reg, expiry in rows:
        expires = f"{expiry / 1000:.1f}" if expiry is not None else "-"
        lines.append(f"{reg.id}  {reg.host}:{reg.port}  expires_at={expires}")
    return "\n".join(lines) if lines else "(no registrations)"


async def _list(args, config: BeaconConfig) -> list[tuple]:
    async with _open_registry(config) as registry:
        regs = await registry.get_registrations(args.name, args.version)
        return [(reg, await registry.get_expiry(reg.id)) for reg in regs]


def cmd_list(args) -> None:
    config = _build_config(args)
    if args.version and not args.name:
        print("Error: --service-version requires --name.", file=sys.stderr)
        sys.exit(1)
    rows = asyncio.run(_list(args, config))
    print(_format_registrations(rows, args.format))


async def _reap(config: BeaconConfig) -> list[str]:
    async with _open_registry(config) as registry:
        return await reap_until_empty(registry)


def cmd_reap(args) -> None:
    config = _build_config(args)
    for reg_id in asyncio.run(_reap(config)):
        print(reg_id)


async def _serve(config: BeaconConfig) -> None:
    async with _open_registry(config) as registry:
        if config.metrics_port is not None:
            registry.metrics.serve(config.metrics_port)
            print(f"Metrics on :{config.metrics_port}/metrics", file=sys.stderr)
        await run_reaper_loop(registry, config.reaper_interval, log=registry.log)


def cmd_serve(args) -> None:
    config = _build_config(args)
    print(
        f"Reaping {config.registrations_key} on {config.redis_host}:{config.redis_port}"
        f"/{config.redis_db} every {config.reaper_interval}s",
        file=sys.stderr,
    )
    try:
        asyncio.run(_serve(config))
    except KeyboardInterrupt:
        print("Reaper stopped.", file=sys.stderr)


async def _clear(config: BeaconConfig) -> None:
    async with _open_registry(config) as registry:
        await registry.clear_db()


def cmd_clear(args) -> None:
    if not args.yes:
        print("Error: clear erases the whole database; pass --yes to confirm.", file=sys.stderr)
        sys.exit(1)
    config = _build_config(args)
    asyncio.run(_clear(config))


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="beacon",
        description="Beacon: lease-based service registry",
    )
    subparsers = parser.add_subparsers(dest="command")

    # register
    reg_parser = subparsers.add_parser("register", help="Register or renew a service instance")
    _add_common_args(reg_parser)
    reg_parser.add_argument("name", type=str, help="Service name")
    reg_parser.add_argument("version", type=str, help="Service version")
    reg_parser.add_argument("host", type=str, help="Instance host")
    reg_parser.add_argument("port", type=int, help="Instance port")
    reg_parser.add_argument(
        "--ttl", type=float, default=None,
        help="Lease length in seconds (default: seconds_to_expire from config)",
    )
    reg_parser.add_argument("--meta", nargs="*", help="Extra KEY=VALUE metadata")
    reg_parser.add_argument(
        "--heartbeat", type=float, default=None, metavar="SECONDS",
        help="Keep renewing the lease every SECONDS until interrupted",
    )
    reg_parser.set_defaults(func=cmd_register)

    # deregister
    dereg_parser = subparsers.add_parser("deregister", help="Remove a registration by id")
    _add_common_args(dereg_parser)
    dereg_parser.add_argument("reg_id", type=str, help="Registration id (/name/version/host/port)")
    dereg_parser.set_defaults(func=cmd_deregister)

    # list
    list_parser = subparsers.add_parser("list", help="List live registrations")
    _add_common_args(list_parser)
    list_parser.add_argument("--name", type=str, default=None, help="Filter by service name")
    list_parser.add_argument(
        "--service-version", type=str, default=None, dest="version",
        help="Filter by service version (requires --name)",
    )
    list_parser.add_argument(
        "--format", choices=["text", "json"], default="text",
        help="Output format (default: text)",
    )
    list_parser.set_defaults(func=cmd_list)

    # reap
    reap_parser = subparsers.add_parser("reap", help="Evict every expired registration once")
    _add_common_args(reap_parser)
    reap_parser.set_defaults(func=cmd_reap)

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the reaper periodically")
    _add_common_args(serve_parser)
    serve_parser.add_argument(
        "--reaper-interval", type=float, dest="reaper_interval",
        help="Seconds between reaper runs (default: 1.0)",
    )
    serve_parser.add_argument(
        "--metrics-port", type=int, dest="metrics_port",
        help="Expose Prometheus metrics on this port (default: disabled)",
    )
    serve_parser.set_defaults(func=cmd_serve)

    # clear
    clear_parser = subparsers.add_parser("clear", help="Erase the entire backing database")
    _add_common_args(clear_parser)
    clear_parser.add_argument("--yes", action="store_true", help="Confirm the wipe")
    clear_parser.set_defaults(func=cmd_clear)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
