"""Hand-off bundles of generated node configurations.

A bundle carries every node's settings plus its connect details in one
document, for launchers running in another process.  JSON is always
available; MessagePack requires the optional ``msgpack`` package
(``pip install brokerconf[msgpack]``).
"""

from __future__ import annotations

import importlib
import json
from collections.abc import Iterable
from types import MappingProxyType
from typing import Any, Literal, TypeAlias

from brokerconf.generator import NodeConfig


__all__ = [
    "BUNDLE_VERSION",
    "BundleFormat",
    "dump_bundle",
    "from_bundle",
    "load_bundle",
    "to_bundle",
]


BUNDLE_VERSION = 1

BundleFormat: TypeAlias = Literal["json", "msgpack"]


def _lazy_import(module_name: str, extra: str) -> Any:
    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError:
        msg = f"'{module_name}' is required. Install with: pip install brokerconf[{extra}]"
        raise ModuleNotFoundError(msg) from None


def to_bundle(configs: Iterable[NodeConfig]) -> dict[str, Any]:
    """Convert node configs to a plain, serializable document."""
    return {
        "version": BUNDLE_VERSION,
        "nodes": [
            {
                "node_index": config.node_index,
                "external_port": config.external_port,
                "external_connect_string": config.external_connect_string,
                "cluster_id": config.cluster_id,
                "properties": dict(config.properties),
            }
            for config in configs
        ],
    }


def from_bundle(document: dict[str, Any]) -> tuple[NodeConfig, ...]:
    """Rebuild node configs from a document produced by ``to_bundle``.

    Raises
    ------
    ValueError
        If the document has an unknown version.
    """
    version = document.get("version")
    if version != BUNDLE_VERSION:
        msg = f"Unsupported bundle version: {version!r}"
        raise ValueError(msg)
    return tuple(
        NodeConfig(
            node_index=node["node_index"],
            properties=MappingProxyType(dict(sorted(node["properties"].items()))),
            external_port=node["external_port"],
            external_connect_string=node["external_connect_string"],
            cluster_id=node.get("cluster_id"),
        )
        for node in document["nodes"]
    )


def dump_bundle(configs: Iterable[NodeConfig], fmt: BundleFormat = "json") -> bytes:
    """Serialize node configs to bytes.

    Examples
    --------
    >>> from brokerconf import ClusterTopology, StaticEndpointResolver, generate_node_configs
    >>> data = dump_bundle(generate_node_configs(ClusterTopology(), StaticEndpointResolver()))
    >>> load_bundle(data)[0].external_port
    9092
    """
    document = to_bundle(configs)
    match fmt:
        case "json":
            return json.dumps(document, indent=2, sort_keys=True).encode("utf-8")
        case "msgpack":
            msgpack = _lazy_import("msgpack", "msgpack")
            return msgpack.packb(document, use_bin_type=True)
        case _:
            msg = f"Unknown bundle format: {fmt!r}"
            raise ValueError(msg)


def load_bundle(data: bytes, fmt: BundleFormat = "json") -> tuple[NodeConfig, ...]:
    """Inverse of ``dump_bundle``."""
    match fmt:
        case "json":
            document = json.loads(data)
        case "msgpack":
            msgpack = _lazy_import("msgpack", "msgpack")
            document = msgpack.unpackb(data, raw=False)
        case _:
            msg = f"Unknown bundle format: {fmt!r}"
            raise ValueError(msg)
    return from_bundle(document)
