"""Immutable description of a cluster's shape.

``ClusterTopology`` is created once by the caller and never mutated; the
generator reads it to derive every node's configuration.
"""

from __future__ import annotations

import base64
import re
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from brokerconf.properties import stringify


__all__ = [
    "PLAIN",
    "ClusterTopology",
    "generate_cluster_id",
]


PLAIN = "PLAIN"


def generate_cluster_id() -> str:
    """Return a random cluster id in the metadata log's format.

    16 random bytes, URL-safe base64 without padding (22 characters).

    Examples
    --------
    >>> len(generate_cluster_id())
    22
    """
    raw = base64.urlsafe_b64encode(uuid.uuid4().bytes)
    return raw.rstrip(b"=").decode("ascii")


def _frozen_strings(values: Mapping[str, Any]) -> Mapping[str, str]:
    return MappingProxyType({str(k): stringify(v) for k, v in values.items()})


_UNSAFE_CREDENTIAL = re.compile(r"[\s\"';=]")


@dataclass(frozen=True)
class ClusterTopology:
    """The shape of a cluster: node counts, coordination mode, and security.

    Parameters
    ----------
    node_count : int
        Number of broker nodes; at least 1.
    quorum_node_count : int
        Number of controller quorum voters (quorum mode only); at least 1.
        May exceed *node_count*; every voter is still listed.
    quorum_mode : bool
        ``True`` for self-managed quorum coordination, ``False`` for an
        external coordination service.
    credential_mechanism : str | None
        SASL mechanism for the client-facing listener, or ``None`` for
        anonymous access.  Only ``"PLAIN"`` is wired end-to-end.
    users : Mapping[str, str]
        User name to password table for the client-facing listener.  Names
        and passwords may not contain whitespace, quotes, ``=`` or ``;``
        since they are embedded unquoted in the server login config.
    overrides : Mapping[str, str]
        Free-form broker settings applied before derived keys.  Derived
        keys may not be overridden.
    cluster_id : str
        Cluster identifier; generated once per topology.

    Examples
    --------
    >>> topology = ClusterTopology(node_count=3, quorum_node_count=3)
    >>> topology.effective_cluster_id == topology.cluster_id
    True
    >>> ClusterTopology(quorum_mode=False).effective_cluster_id is None
    True
    """

    node_count: int = 1
    quorum_node_count: int = 1
    quorum_mode: bool = True
    credential_mechanism: str | None = None
    users: Mapping[str, str] = field(default_factory=dict)
    overrides: Mapping[str, str] = field(default_factory=dict)
    cluster_id: str = field(default_factory=generate_cluster_id)

    def __post_init__(self) -> None:
        if self.node_count < 1:
            msg = f"node_count must be >= 1, got {self.node_count}"
            raise ValueError(msg)
        if self.quorum_node_count < 1:
            msg = f"quorum_node_count must be >= 1, got {self.quorum_node_count}"
            raise ValueError(msg)
        if not self.cluster_id:
            msg = "cluster_id must not be empty"
            raise ValueError(msg)
        for name, password in self.users.items():
            if not name or _UNSAFE_CREDENTIAL.search(str(name)):
                msg = (
                    f"invalid user name {name!r}: must be non-empty without "
                    "whitespace, quotes, '=' or ';'"
                )
                raise ValueError(msg)
            if _UNSAFE_CREDENTIAL.search(stringify(password)):
                msg = f"password for user {name!r} may not contain whitespace, quotes, '=' or ';'"
                raise ValueError(msg)
        # Snapshot caller-owned mappings so later mutation cannot leak in.
        object.__setattr__(self, "users", _frozen_strings(self.users))
        object.__setattr__(self, "overrides", _frozen_strings(self.overrides))

    @property
    def effective_cluster_id(self) -> str | None:
        """The cluster id nodes are formatted with, or ``None`` in legacy mode."""
        return self.cluster_id if self.quorum_mode else None

    @property
    def authenticated(self) -> bool:
        return self.credential_mechanism is not None

    def with_overrides(
        self,
        overrides: Mapping[str, Any] | None = None,
        /,
        **settings: Any,
    ) -> ClusterTopology:
        """Return a copy with extra broker overrides, keeping the cluster id.

        Keys of *overrides* are used verbatim.  Keyword names use ``_`` for
        ``.``, so ``num_partitions=3`` adds ``num.partitions=3``; keys that
        contain an underscore must go through the mapping.

        Examples
        --------
        >>> base = ClusterTopology()
        >>> derived = base.with_overrides(
        ...     {"log.retention_check.interval.ms": 1000}, num_partitions=3
        ... )
        >>> derived.overrides["num.partitions"], derived.cluster_id == base.cluster_id
        ('3', True)
        >>> derived.overrides["log.retention_check.interval.ms"]
        '1000'
        """
        merged = dict(self.overrides)
        merged.update(overrides or {})
        merged.update({k.replace("_", "."): v for k, v in settings.items()})
        return replace(self, overrides=merged)
