"""CLI interface for host_snapshot."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from . import __version__
from .config import HostSnapshotConfig, load_config
from .errors import UnsupportedPlatform
from .service import SnapshotService

logger = logging.getLogger(__name__)

PARTS = ("cpu", "memory", "system", "processes")


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a whole number, got {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _build_exporters(cfg: HostSnapshotConfig) -> list[Any]:
    exporters: list[Any] = []

    if cfg.local_exporter.enabled:
        from .exporter.local import LocalExporter
        exporters.append(LocalExporter(cfg.local_exporter))

    if cfg.mode == "online":
        from .exporter.otel import OtelExporter
        exporters.append(OtelExporter(cfg.otel))

    return exporters


def _collect_part(service: SnapshotService, part: str, top: int | None) -> Any:
    if part == "cpu":
        return service.get_cpu_metrics().to_dict()
    if part == "memory":
        return service.get_memory_metrics().to_dict()
    if part == "system":
        return service.get_system_info().to_dict()
    processes = service.get_process_metrics()
    if top is not None:
        processes = processes[:top]
    return [p.to_dict() for p in processes]


def _write_output(payload: Any, output: str | None) -> None:
    text = json.dumps(payload, indent=2)
    if output:
        Path(output).parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(text + "\n")
        logger.info("Snapshot written to %s", output)
    else:
        print(text)


def _cmd_snapshot(args: argparse.Namespace) -> int:
    """Take one snapshot and print it as JSON."""
    cfg = load_config(args.config)
    service = SnapshotService(cfg.sampler)

    if args.part:
        try:
            payload = _collect_part(service, args.part, args.top)
        except UnsupportedPlatform as e:
            print(f"error: {e}", file=sys.stderr)
            return 2
        _write_output(payload, args.output)
        return 0

    snapshot = service.collect_all()
    if args.top is not None and snapshot.processes is not None:
        snapshot.processes = snapshot.processes[:args.top]

    exporters = _build_exporters(cfg)
    try:
        for exp in exporters:
            exp.export(snapshot)
    finally:
        for exp in exporters:
            exp.shutdown()

    _write_output(snapshot.to_dict(), args.output)
    return 0


def _cmd_version(_args: argparse.Namespace) -> int:
    print(f"host_snapshot {__version__}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the host-snapshot CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    parser = argparse.ArgumentParser(
        prog="host-snapshot",
        description="Point-in-time CPU, memory, OS and process metrics for this host",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to host_snapshot.yaml")
    sub = parser.add_subparsers(dest="command")

    # snapshot
    snap_p = sub.add_parser("snapshot", help="Collect one snapshot and print it as JSON")
    snap_p.add_argument("--part", choices=PARTS, default=None, help="Collect a single part only")
    snap_p.add_argument("--top", type=_positive_int, default=None, help="Keep only the N busiest processes")
    snap_p.add_argument("--output", "-o", default=None, help="Write JSON to this file instead of stdout")
    snap_p.set_defaults(func=_cmd_snapshot)

    # version
    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
