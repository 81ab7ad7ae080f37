"""Command-line entry point: render node configurations from a TOML file.

Usage::

    brokerconf brokerconf.toml
    brokerconf brokerconf.toml --output-dir build/brokers
    brokerconf brokerconf.toml --format env
    brokerconf brokerconf.toml --format json > cluster.json
    brokerconf brokerconf.toml --client
"""

from __future__ import annotations

import argparse
import logging
import sys
import tomllib
from collections.abc import Sequence
from pathlib import Path

from brokerconf.bundle import dump_bundle
from brokerconf.client import default_client_connect_config
from brokerconf.config import load_config
from brokerconf.errors import BrokerConfError
from brokerconf.generator import NodeConfig, bootstrap_servers
from brokerconf.properties import render_properties


logger = logging.getLogger("brokerconf.cli")

_BUNDLE_FORMATS = ("json", "msgpack")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="brokerconf",
        description="Generate per-node broker configuration for a cluster",
    )
    parser.add_argument(
        "config",
        nargs="?",
        type=Path,
        help="Path to brokerconf.toml (default: discovered from the cwd upwards)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Write one file per node (or one bundle file) here instead of stdout",
    )
    parser.add_argument(
        "--format",
        choices=("properties", "env", *_BUNDLE_FORMATS),
        default="properties",
        help="Output format (default: properties)",
    )
    parser.add_argument(
        "--client",
        action="store_true",
        help="Print the client connect config instead of node configs",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _node_text(config: NodeConfig, fmt: str) -> str:
    if fmt == "env":
        return "".join(f"{name}={value}\n" for name, value in config.environment().items())
    return config.render()


def _write_nodes(configs: Sequence[NodeConfig], output_dir: Path, fmt: str) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    suffix = "env" if fmt == "env" else "properties"
    for config in configs:
        target = output_dir / f"server-{config.node_index}.{suffix}"
        target.write_text(_node_text(config, fmt), encoding="utf-8")
        logger.info("Wrote %s", target)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    bundle: bytes | None = None
    client: dict[str, object] | None = None
    try:
        spec = load_config(args.config)
        configs = spec.generate()
        if args.client:
            client = default_client_connect_config(spec.topology, bootstrap_servers(configs))
        elif args.format in _BUNDLE_FORMATS:
            bundle = dump_bundle(configs, args.format)
    except (
        BrokerConfError,
        ValueError,
        FileNotFoundError,
        ModuleNotFoundError,
        tomllib.TOMLDecodeError,
    ) as e:
        print(f"brokerconf: {e}", file=sys.stderr)
        return 2

    if client is not None:
        print(render_properties({k: str(v) for k, v in client.items()}), end="")
    elif bundle is not None:
        if args.output_dir is not None:
            args.output_dir.mkdir(parents=True, exist_ok=True)
            target = args.output_dir / f"cluster.{args.format}"
            target.write_bytes(bundle)
            logger.info("Wrote %s", target)
        else:
            sys.stdout.buffer.write(bundle)
            sys.stdout.flush()
    elif args.output_dir is not None:
        _write_nodes(configs, args.output_dir, args.format)
    else:
        for config in configs:
            print(f"# node {config.node_index} ({config.external_connect_string})")
            print(_node_text(config, args.format), end="")
    return 0
