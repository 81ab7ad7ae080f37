"""Error hierarchy for broker configuration generation.

Both errors signal a defect in the caller's request or in key derivation;
neither is meant to be caught and retried.
"""

from __future__ import annotations


__all__ = [
    "BrokerConfError",
    "DuplicateConfigKeyError",
    "UnsupportedMechanismError",
]


class BrokerConfError(Exception):
    """Base class for errors raised by ``brokerconf``."""


class DuplicateConfigKeyError(BrokerConfError):
    """A configuration key was derived twice for the same node.

    Parameters
    ----------
    key : str
        The key that was assigned twice.
    existing : str
        Value already held for *key*.
    attempted : str
        Value that the second assignment tried to store.

    Examples
    --------
    >>> err = DuplicateConfigKeyError("broker.id", "0", "1")
    >>> err.key
    'broker.id'
    """

    def __init__(self, key: str, existing: str, attempted: str) -> None:
        self.key = key
        self.existing = existing
        self.attempted = attempted
        msg = (
            f"Cannot override broker config '{key}={existing}' "
            f"with new value '{attempted}'"
        )
        super().__init__(msg)


class UnsupportedMechanismError(BrokerConfError):
    """Credentials were requested for a SASL mechanism that is not wired end-to-end.

    Parameters
    ----------
    mechanism : str
        The mechanism name the topology was configured with.
    """

    def __init__(self, mechanism: str) -> None:
        self.mechanism = mechanism
        super().__init__(f"unsupported SASL mechanism {mechanism}")
