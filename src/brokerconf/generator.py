"""Per-node broker configuration generation.

``generate_node_configs`` walks node indices ``0..node_count-1`` and derives,
for each, the listener wiring, coordination settings, and credential
material that must agree across the whole cluster.  The two coordination
modes contribute disjoint key sets through ``_quorum_settings`` and
``_legacy_settings``; everything else is shared.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from brokerconf.endpoints import CoordinatorSupplier, Endpoint, EndpointResolver
from brokerconf.properties import PropertiesBuilder, render_properties, to_environment
from brokerconf.topology import PLAIN, ClusterTopology


__all__ = [
    "CONTROLLER",
    "EXTERNAL",
    "INTERNAL",
    "NodeConfig",
    "bootstrap_servers",
    "generate_node_configs",
]

logger = logging.getLogger("brokerconf.generator")

# Listener roles
EXTERNAL = "EXTERNAL"
INTERNAL = "INTERNAL"
CONTROLLER = "CONTROLLER"

PLAINTEXT = "PLAINTEXT"
SASL_PLAINTEXT = "SASL_PLAINTEXT"

PLAIN_LOGIN_MODULE = "org.apache.kafka.common.security.plain.PlainLoginModule"

COORDINATOR_CONNECTION_TIMEOUT_MS = 60000

# Single-partition, unreplicated offsets topic and no rebalance delay keep
# small clusters fast to start and usable with one broker.
_TUNING: tuple[tuple[str, int], ...] = (
    ("offsets.topic.replication.factor", 1),
    ("offsets.topic.num.partitions", 1),
    ("group.initial.rebalance.delay.ms", 0),
)


@dataclass(frozen=True)
class NodeConfig:
    """Fully resolved configuration for one node.

    Parameters
    ----------
    node_index : int
        Index of the node, ``0..node_count-1``; also its ``broker.id``.
    properties : Mapping[str, str]
        Read-only broker settings, keys in sorted order.
    external_port : int
        Advertised port of the client-facing listener.
    external_connect_string : str
        ``host:port`` clients use to reach this node.
    cluster_id : str | None
        Cluster id to format storage with in quorum mode, ``None`` otherwise.

    Examples
    --------
    >>> from brokerconf import ClusterTopology, StaticEndpointResolver, generate_node_configs
    >>> configs = generate_node_configs(ClusterTopology(), StaticEndpointResolver())
    >>> configs[0].external_connect_string
    'localhost:9092'
    >>> configs[0].listener_names()
    ('CONTROLLER', 'EXTERNAL', 'INTERNAL')
    """

    node_index: int
    properties: Mapping[str, str] = field(repr=False)
    external_port: int
    external_connect_string: str
    cluster_id: str | None = None

    def listener_names(self) -> tuple[str, ...]:
        """Roles that have a bound listener on this node."""
        raw = self.properties.get("listeners", "")
        return tuple(entry.split(":", 1)[0] for entry in raw.split(",") if entry)

    def render(self) -> str:
        """This node's settings as ``.properties`` file text."""
        return render_properties(self.properties)

    def environment(self, prefix: str = "KAFKA_") -> dict[str, str]:
        """This node's settings as container environment variables."""
        return to_environment(self.properties, prefix)


@dataclass(frozen=True)
class _ModeSettings:
    """Keys and listener entries one coordination mode adds to a node."""

    settings: tuple[tuple[str, str], ...]
    protocols: tuple[tuple[str, str], ...] = ()
    listeners: tuple[tuple[str, str], ...] = ()


def _join(table: Mapping[str, str]) -> str:
    return ",".join(f"{role}:{value}" for role, value in sorted(table.items()))


def _quorum_voters(topology: ClusterTopology, resolver: EndpointResolver) -> str:
    return ",".join(
        f"{q}@{resolver.controller_endpoint(q).connect}"
        for q in range(topology.quorum_node_count)
    )


def _quorum_settings(
    topology: ClusterTopology,
    resolver: EndpointResolver,
    node_index: int,
) -> _ModeSettings:
    settings = [
        ("node.id", str(node_index)),
        ("controller.quorum.voters", _quorum_voters(topology, resolver)),
        ("controller.listener.names", CONTROLLER),
    ]
    listeners: tuple[tuple[str, str], ...] = ()
    # Only the first node binds the controller listener; every node still
    # lists the full voter set.
    if node_index == 0:
        settings.append(("process.roles", "broker,controller"))
        controller = resolver.controller_endpoint(node_index)
        listeners = ((CONTROLLER, str(controller.bind)),)
    else:
        settings.append(("process.roles", "broker"))
    return _ModeSettings(
        settings=tuple(settings),
        protocols=((CONTROLLER, PLAINTEXT),),
        listeners=listeners,
    )


def _legacy_settings(coordinator: Endpoint) -> _ModeSettings:
    return _ModeSettings(
        settings=(
            ("zookeeper.connect", coordinator.address),
            ("zookeeper.sasl.enabled", "false"),
            ("zookeeper.connection.timeout.ms", str(COORDINATOR_CONNECTION_TIMEOUT_MS)),
        ),
    )


def _credential_settings(topology: ClusterTopology) -> Iterable[tuple[str, str]]:
    mechanism = topology.credential_mechanism
    if mechanism is None:
        return ()
    settings = [("sasl.enabled.mechanisms", mechanism)]
    if mechanism == PLAIN:
        pairs = " ".join(
            f"user_{name}={password}" for name, password in topology.users.items()
        )
        settings.append(
            (
                f"listener.name.{EXTERNAL.lower()}.plain.sasl.jaas.config",
                f"{PLAIN_LOGIN_MODULE} required {pairs};",
            )
        )
    else:
        logger.warning(
            "SASL mechanism %s has no server credential wiring; "
            "external listener will have no JAAS config",
            mechanism,
        )
    return settings


def _node_config(
    topology: ClusterTopology,
    resolver: EndpointResolver,
    node_index: int,
    mode: _ModeSettings,
) -> NodeConfig:
    server = PropertiesBuilder(topology.overrides)
    server.put("broker.id", node_index)

    inter_broker = resolver.inter_broker_endpoint(node_index)
    client = resolver.client_endpoint(node_index)

    external_transport = SASL_PLAINTEXT if topology.authenticated else PLAINTEXT
    protocols = {EXTERNAL: external_transport, INTERNAL: PLAINTEXT}
    listeners = {EXTERNAL: str(client.bind), INTERNAL: str(inter_broker.bind)}
    advertised = {EXTERNAL: str(client.connect), INTERNAL: str(inter_broker.connect)}
    server.put("inter.broker.listener.name", INTERNAL)

    server.update(mode.settings)
    protocols.update(mode.protocols)
    listeners.update(mode.listeners)

    server.put("listener.security.protocol.map", _join(protocols))
    server.put("listeners", _join(listeners))
    server.put("advertised.listeners", _join(advertised))
    server.put("early.start.listeners", ",".join(sorted(advertised)))

    server.update(_credential_settings(topology))
    server.update(_TUNING)

    logger.debug(
        "Node %d: %d settings, listeners=%s",
        node_index,
        len(server),
        ",".join(sorted(listeners)),
    )
    return NodeConfig(
        node_index=node_index,
        properties=server.build(),
        external_port=client.connect.port,
        external_connect_string=client.connect.address,
        cluster_id=topology.effective_cluster_id,
    )


def generate_node_configs(
    topology: ClusterTopology,
    resolver: EndpointResolver,
    coordinator: CoordinatorSupplier | None = None,
) -> tuple[NodeConfig, ...]:
    """Derive the configuration of every node in *topology*.

    Parameters
    ----------
    topology : ClusterTopology
        Shape of the cluster; read only.
    resolver : EndpointResolver
        Supplies bind and advertised endpoints per node and role.  Consulted
        for every quorum member's controller endpoint on each node.
    coordinator : CoordinatorSupplier | None
        Returns the external coordination service endpoint.  Required in
        legacy mode, ignored in quorum mode; called once per run.

    Returns
    -------
    tuple[NodeConfig, ...]
        One entry per node, in index order.  Repeated calls with the same
        inputs return equal results.

    Raises
    ------
    DuplicateConfigKeyError
        If an override collides with a derived key.
    ValueError
        If *topology* is in legacy mode and no *coordinator* is given.

    Examples
    --------
    >>> from brokerconf import ClusterTopology, StaticEndpointResolver
    >>> topology = ClusterTopology(node_count=2)
    >>> configs = generate_node_configs(topology, StaticEndpointResolver())
    >>> [c.properties["process.roles"] for c in configs]
    ['broker,controller', 'broker']
    """
    indices = range(topology.node_count)
    modes: list[_ModeSettings]
    if topology.quorum_mode:
        modes = [_quorum_settings(topology, resolver, i) for i in indices]
    else:
        if coordinator is None:
            msg = "A coordinator endpoint supplier is required when quorum_mode is False"
            raise ValueError(msg)
        modes = [_legacy_settings(coordinator())] * len(indices)

    configs = tuple(
        _node_config(topology, resolver, node_index, mode)
        for node_index, mode in zip(indices, modes, strict=True)
    )
    logger.info(
        "Generated %d node configs (mode=%s, voters=%s, auth=%s)",
        len(configs),
        "quorum" if topology.quorum_mode else "legacy",
        topology.quorum_node_count if topology.quorum_mode else "-",
        topology.credential_mechanism or "none",
    )
    return configs


def bootstrap_servers(configs: Iterable[NodeConfig]) -> str:
    """Comma-joined client connect strings, suitable for ``bootstrap.servers``."""
    return ",".join(config.external_connect_string for config in configs)
