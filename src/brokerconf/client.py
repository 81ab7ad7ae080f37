"""Connection settings for clients of a generated cluster."""

from __future__ import annotations

from typing import Any

from brokerconf.errors import UnsupportedMechanismError
from brokerconf.generator import PLAIN_LOGIN_MODULE, SASL_PLAINTEXT
from brokerconf.topology import PLAIN, ClusterTopology


__all__ = [
    "BOOTSTRAP_SERVERS",
    "SASL_JAAS_CONFIG",
    "SASL_MECHANISM",
    "SECURITY_PROTOCOL",
    "client_connect_config",
    "default_client_connect_config",
]


BOOTSTRAP_SERVERS = "bootstrap.servers"
SECURITY_PROTOCOL = "security.protocol"
SASL_MECHANISM = "sasl.mechanism"
SASL_JAAS_CONFIG = "sasl.jaas.config"


def _jaas_quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def client_connect_config(
    topology: ClusterTopology,
    bootstrap_servers: str,
    username: str | None = None,
    password: str | None = None,
) -> dict[str, Any]:
    """Build the settings a client needs to connect to the cluster.

    Parameters
    ----------
    topology : ClusterTopology
        The topology the cluster was generated from.
    bootstrap_servers : str
        Comma-separated ``host:port`` list.
    username, password : str | None
        Credentials to embed.  Ignored unless both are given and the
        topology uses ``PLAIN``.

    Raises
    ------
    UnsupportedMechanismError
        If the topology uses a mechanism other than ``PLAIN``.

    Examples
    --------
    >>> topology = ClusterTopology(credential_mechanism="PLAIN", users={"alice": "secret"})
    >>> config = client_connect_config(topology, "localhost:9092", "alice", "secret")
    >>> config["security.protocol"]
    'SASL_PLAINTEXT'
    """
    config: dict[str, Any] = {}
    mechanism = topology.credential_mechanism
    if mechanism is not None:
        if mechanism != PLAIN:
            raise UnsupportedMechanismError(mechanism)
        config[SECURITY_PROTOCOL] = SASL_PLAINTEXT
        config[SASL_MECHANISM] = mechanism
        if username is not None and password is not None:
            config[SASL_JAAS_CONFIG] = (
                f"{PLAIN_LOGIN_MODULE} required "
                f"username={_jaas_quote(username)} password={_jaas_quote(password)};"
            )

    config[BOOTSTRAP_SERVERS] = bootstrap_servers
    return config


def default_client_connect_config(
    topology: ClusterTopology,
    bootstrap_servers: str,
) -> dict[str, Any]:
    """Like ``client_connect_config``, using the first user by name.

    Credentials are omitted when the topology is anonymous or has no users.
    """
    if topology.authenticated and topology.users:
        username = min(topology.users)
        return client_connect_config(
            topology, bootstrap_servers, username, topology.users[username]
        )
    return client_connect_config(topology, bootstrap_servers)
