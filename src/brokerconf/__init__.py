"""Per-node configuration generation for multi-broker clusters."""

from brokerconf.bundle import dump_bundle, from_bundle, load_bundle, to_bundle
from brokerconf.client import client_connect_config, default_client_connect_config
from brokerconf.config import ClusterSpec, discover_config, load_config
from brokerconf.endpoints import (
    CoordinatorSupplier,
    Endpoint,
    EndpointPair,
    EndpointResolver,
    StaticEndpointResolver,
    fixed_coordinator,
)
from brokerconf.errors import (
    BrokerConfError,
    DuplicateConfigKeyError,
    UnsupportedMechanismError,
)
from brokerconf.generator import (
    CONTROLLER,
    EXTERNAL,
    INTERNAL,
    NodeConfig,
    bootstrap_servers,
    generate_node_configs,
)
from brokerconf.properties import PropertiesBuilder, render_properties, to_environment
from brokerconf.topology import PLAIN, ClusterTopology, generate_cluster_id

__all__ = [
    "BrokerConfError",
    "CONTROLLER",
    "ClusterSpec",
    "ClusterTopology",
    "CoordinatorSupplier",
    "DuplicateConfigKeyError",
    "EXTERNAL",
    "Endpoint",
    "EndpointPair",
    "EndpointResolver",
    "INTERNAL",
    "NodeConfig",
    "PLAIN",
    "PropertiesBuilder",
    "StaticEndpointResolver",
    "UnsupportedMechanismError",
    "bootstrap_servers",
    "client_connect_config",
    "default_client_connect_config",
    "discover_config",
    "dump_bundle",
    "fixed_coordinator",
    "from_bundle",
    "generate_cluster_id",
    "generate_node_configs",
    "load_bundle",
    "load_config",
    "render_properties",
    "to_bundle",
    "to_environment",
]
