"""Shared fixtures and test resolvers for brokerconf tests."""

from __future__ import annotations

from collections import Counter

import pytest

from brokerconf import (
    ClusterTopology,
    Endpoint,
    EndpointPair,
    StaticEndpointResolver,
)


class RecordingResolver:
    """Resolver that hands out distinct bind/connect hosts and counts lookups."""

    def __init__(self) -> None:
        self.calls: Counter[tuple[str, int]] = Counter()

    def _pair(self, role: str, base: int, node_index: int) -> EndpointPair:
        self.calls[(role, node_index)] += 1
        port = base + node_index
        return EndpointPair(
            bind=Endpoint(f"bind-{node_index}", port),
            connect=Endpoint(f"broker-{node_index}.example", port),
        )

    def inter_broker_endpoint(self, node_index: int) -> EndpointPair:
        return self._pair("inter_broker", 19092, node_index)

    def controller_endpoint(self, node_index: int) -> EndpointPair:
        return self._pair("controller", 29092, node_index)

    def client_endpoint(self, node_index: int) -> EndpointPair:
        return self._pair("client", 9092, node_index)

    def total(self, role: str) -> int:
        return sum(n for (r, _), n in self.calls.items() if r == role)


class FailingResolver(RecordingResolver):
    def client_endpoint(self, node_index: int) -> EndpointPair:
        msg = f"no client endpoint for node {node_index}"
        raise LookupError(msg)


@pytest.fixture
def resolver() -> StaticEndpointResolver:
    return StaticEndpointResolver()


@pytest.fixture
def recording_resolver() -> RecordingResolver:
    return RecordingResolver()


@pytest.fixture
def zookeeper() -> Endpoint:
    return Endpoint("zookeeper", 2181)


@pytest.fixture
def plain_topology() -> ClusterTopology:
    return ClusterTopology(
        node_count=3,
        quorum_node_count=3,
        credential_mechanism="PLAIN",
        users={"alice": "secret"},
    )
