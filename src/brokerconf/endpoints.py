"""Network endpoints and the resolver contract used during generation.

Provides ``Endpoint`` and ``EndpointPair`` value types, the
``EndpointResolver`` protocol that callers implement to decide where each
node binds and what it advertises, and ``StaticEndpointResolver``, a
deterministic resolver for fixed port layouts.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, TypeAlias


__all__ = [
    "CoordinatorSupplier",
    "Endpoint",
    "EndpointPair",
    "EndpointResolver",
    "StaticEndpointResolver",
    "fixed_coordinator",
]


@dataclass(frozen=True)
class Endpoint:
    """A host and port.

    ``str(endpoint)`` gives the listener form ``//host:port`` used inside
    ``listeners`` and ``advertised.listeners``; ``address`` gives the bare
    ``host:port`` form used for connect strings.

    Parameters
    ----------
    host : str
        Hostname or IP address.
    port : int
        TCP port.

    Examples
    --------
    >>> ep = Endpoint("localhost", 9092)
    >>> str(ep)
    '//localhost:9092'
    >>> ep.address
    'localhost:9092'
    """

    host: str
    port: int

    def __str__(self) -> str:
        return f"//{self.host}:{self.port}"

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @classmethod
    def parse(cls, raw: str) -> Endpoint:
        """Parse a ``host:port`` string.

        Raises
        ------
        ValueError
            If *raw* has no port or the port is not a valid TCP port.

        Examples
        --------
        >>> Endpoint.parse("zookeeper:2181")
        Endpoint(host='zookeeper', port=2181)
        """
        host, sep, port_str = raw.rpartition(":")
        if not sep or not host or not port_str.isdigit():
            msg = f"Expected 'host:port', got {raw!r}"
            raise ValueError(msg)
        port = int(port_str)
        if port > 65535:
            msg = f"Port out of range in {raw!r}"
            raise ValueError(msg)
        return cls(host=host, port=port)


@dataclass(frozen=True)
class EndpointPair:
    """Where a node listens (``bind``) and how others reach it (``connect``).

    Examples
    --------
    >>> pair = EndpointPair.same(Endpoint("localhost", 9092))
    >>> pair.bind == pair.connect
    True
    """

    bind: Endpoint
    connect: Endpoint

    @classmethod
    def same(cls, endpoint: Endpoint) -> EndpointPair:
        return cls(bind=endpoint, connect=endpoint)


class EndpointResolver(Protocol):
    """Decides the endpoints of each node, per listener role.

    Implementations must answer consistently for a given index for the
    whole of a generation run: the controller endpoint of every quorum
    member is looked up again while configuring each node.
    """

    def inter_broker_endpoint(self, node_index: int) -> EndpointPair: ...

    def controller_endpoint(self, node_index: int) -> EndpointPair: ...

    def client_endpoint(self, node_index: int) -> EndpointPair: ...


CoordinatorSupplier: TypeAlias = Callable[[], Endpoint]


def fixed_coordinator(endpoint: Endpoint) -> CoordinatorSupplier:
    """Return a supplier that always yields *endpoint*."""
    return lambda: endpoint


@dataclass(frozen=True)
class StaticEndpointResolver:
    """Resolver for fixed, evenly strided port layouts.

    Node *i* binds role *R* on ``base_port_R + i * stride``.  Bind and
    advertised hosts may differ, e.g. ``0.0.0.0`` versus a container's
    published hostname; the port is the same on both sides.

    Parameters
    ----------
    bind_host : str
        Host each listener binds to.
    advertised_host : str
        Host published to clients and peers.
    client_port : int
        Base port for the client-facing (``EXTERNAL``) listener.
    inter_broker_port : int
        Base port for the inter-node (``INTERNAL``) listener.
    controller_port : int
        Base port for the quorum controller (``CONTROLLER``) listener.
    stride : int
        Port offset between consecutive nodes.

    Examples
    --------
    >>> resolver = StaticEndpointResolver(stride=10)
    >>> resolver.client_endpoint(2).connect
    Endpoint(host='localhost', port=9112)
    """

    bind_host: str = "0.0.0.0"
    advertised_host: str = "localhost"
    client_port: int = 9092
    inter_broker_port: int = 9093
    controller_port: int = 9094
    stride: int = 3

    def __post_init__(self) -> None:
        if self.stride < 1:
            msg = f"stride must be >= 1, got {self.stride}"
            raise ValueError(msg)

    def _pair(self, base_port: int, node_index: int) -> EndpointPair:
        if node_index < 0:
            msg = f"node index must be >= 0, got {node_index}"
            raise ValueError(msg)
        port = base_port + node_index * self.stride
        return EndpointPair(
            bind=Endpoint(self.bind_host, port),
            connect=Endpoint(self.advertised_host, port),
        )

    def inter_broker_endpoint(self, node_index: int) -> EndpointPair:
        return self._pair(self.inter_broker_port, node_index)

    def controller_endpoint(self, node_index: int) -> EndpointPair:
        return self._pair(self.controller_port, node_index)

    def client_endpoint(self, node_index: int) -> EndpointPair:
        return self._pair(self.client_port, node_index)
