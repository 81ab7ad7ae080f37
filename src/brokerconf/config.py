"""TOML-based cluster descriptions.

Provides ``load_config`` / ``discover_config`` for loading
``brokerconf.toml`` into a ``ClusterSpec``: the topology, the endpoint
layout, and (for legacy mode) the coordination service address.

Example file::

    [cluster]
    nodes = 3
    quorum_nodes = 3
    quorum_mode = true

    [security]
    mechanism = "PLAIN"

    [security.users]
    alice = "alice-secret"

    [overrides]
    "num.partitions" = 3
    "auto.create.topics.enable" = false

    [endpoints]
    advertised_host = "broker.local"
    client_port = 9092
    stride = 3

    [coordinator]
    connect = "zookeeper:2181"
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from brokerconf.endpoints import Endpoint, StaticEndpointResolver, fixed_coordinator
from brokerconf.generator import NodeConfig, generate_node_configs
from brokerconf.topology import ClusterTopology


__all__ = [
    "CONFIG_FILENAME",
    "ClusterSpec",
    "discover_config",
    "load_config",
]


CONFIG_FILENAME = "brokerconf.toml"

_ENDPOINT_KEYS: dict[str, type] = {
    "bind_host": str,
    "advertised_host": str,
    "client_port": int,
    "inter_broker_port": int,
    "controller_port": int,
    "stride": int,
}


@dataclass(frozen=True)
class ClusterSpec:
    """Everything needed to generate a cluster's node configurations.

    Parameters
    ----------
    topology : ClusterTopology
        Shape of the cluster.
    endpoints : StaticEndpointResolver
        Port layout used to resolve each node's endpoints.
    coordinator : Endpoint | None
        External coordination service; only used in legacy mode.

    Examples
    --------
    >>> spec = ClusterSpec(topology=ClusterTopology(node_count=2))
    >>> len(spec.generate())
    2
    """

    topology: ClusterTopology = field(default_factory=ClusterTopology)
    endpoints: StaticEndpointResolver = field(default_factory=StaticEndpointResolver)
    coordinator: Endpoint | None = None

    def generate(self) -> tuple[NodeConfig, ...]:
        supplier = fixed_coordinator(self.coordinator) if self.coordinator else None
        return generate_node_configs(self.topology, self.endpoints, supplier)


def discover_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for ``brokerconf.toml``.

    Returns
    -------
    Path | None
        Path to the discovered config file, or ``None`` if not found.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    if not isinstance(value, dict):
        msg = f"[{name}] must be a table, got {type(value).__name__}"
        raise ValueError(msg)
    return value


def _typed(section: str, values: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    if key not in values:
        return default
    value = values[key]
    # TOML booleans are ints to isinstance.
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        msg = f"[{section}] {key} must be {kind.__name__}, got {type(value).__name__} {value!r}"
        raise ValueError(msg)
    return value


def _flatten_overrides(values: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    # Unquoted dotted keys (num.partitions = 3) arrive as nested tables.
    flat: dict[str, Any] = {}
    for key, value in values.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten_overrides(value, f"{name}."))
        elif isinstance(value, list):
            msg = f"[overrides] {name} must be a scalar, got array"
            raise ValueError(msg)
        else:
            flat[name] = value
    return flat


def load_config(path: Path | None = None) -> ClusterSpec:
    r"""Load a ``ClusterSpec`` from a TOML file.

    If *path* is ``None``, auto-discovers ``brokerconf.toml`` by walking up
    from the current working directory.  Returns a default ``ClusterSpec`` if no
    file is found.

    Raises
    ------
    FileNotFoundError
        If an explicit *path* is given but does not exist.
    ValueError
        If a section holds invalid values (unknown endpoint keys, values of
        the wrong type, a malformed coordinator address, impossible node
        counts).

    Examples
    --------
    >>> import tempfile
    >>> with tempfile.TemporaryDirectory() as tmp:
    ...     path = Path(tmp) / CONFIG_FILENAME
    ...     _ = path.write_text("[cluster]\nnodes = 3\n")
    ...     spec = load_config(path)
    >>> spec.topology.node_count
    3
    """
    if path is None:
        discovered = discover_config()
        if discovered is None:
            return ClusterSpec()
        path = discovered

    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open("rb") as f:
        raw = tomllib.load(f)

    cluster_raw = _section(raw, "cluster")
    security_raw = _section(raw, "security")

    users = _typed("security", security_raw, "users", dict, {})
    for name, password in users.items():
        if not isinstance(password, str):
            msg = f"[security.users] {name} must be str, got {type(password).__name__}"
            raise ValueError(msg)

    topology_kwargs: dict[str, Any] = {
        "node_count": _typed("cluster", cluster_raw, "nodes", int, 1),
        "quorum_node_count": _typed("cluster", cluster_raw, "quorum_nodes", int, 1),
        "quorum_mode": _typed("cluster", cluster_raw, "quorum_mode", bool, True),
        "credential_mechanism": _typed("security", security_raw, "mechanism", str, None),
        "users": users,
        "overrides": _flatten_overrides(_section(raw, "overrides")),
    }
    if "cluster_id" in cluster_raw:
        topology_kwargs["cluster_id"] = _typed("cluster", cluster_raw, "cluster_id", str, None)
    topology = ClusterTopology(**topology_kwargs)

    endpoints_raw = _section(raw, "endpoints")
    unknown = sorted(set(endpoints_raw) - set(_ENDPOINT_KEYS))
    if unknown:
        msg = f"Unknown [endpoints] keys: {', '.join(unknown)}"
        raise ValueError(msg)
    endpoints = StaticEndpointResolver(
        **{
            key: _typed("endpoints", endpoints_raw, key, kind, None)
            for key, kind in _ENDPOINT_KEYS.items()
            if key in endpoints_raw
        }
    )

    coordinator_raw = _section(raw, "coordinator")
    connect = _typed("coordinator", coordinator_raw, "connect", str, None)
    coordinator = Endpoint.parse(connect) if connect is not None else None

    return ClusterSpec(topology=topology, endpoints=endpoints, coordinator=coordinator)
