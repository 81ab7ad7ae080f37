"""Key-unique property accumulation and rendering.

``PropertiesBuilder`` collects a node's settings and refuses to assign any
key twice; ``render_properties`` and ``to_environment`` turn a finished
mapping into the forms node launchers consume.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from brokerconf.errors import DuplicateConfigKeyError


__all__ = [
    "PropertiesBuilder",
    "render_properties",
    "stringify",
    "to_environment",
]


def stringify(value: Any) -> str:
    """Render a setting value the way broker config files spell it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class PropertiesBuilder:
    """Accumulates string properties, failing on any re-assignment.

    Examples
    --------
    >>> builder = PropertiesBuilder({"num.partitions": 3})
    >>> builder.put("broker.id", 0)
    >>> dict(builder.build())
    {'broker.id': '0', 'num.partitions': '3'}
    >>> builder.put("broker.id", 1)
    Traceback (most recent call last):
        ...
    brokerconf.errors.DuplicateConfigKeyError: Cannot override broker config 'broker.id=0' with new value '1'
    """

    def __init__(self, base: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, str] = {}
        if base:
            self.update(base.items())

    def put(self, key: str, value: Any) -> None:
        text = stringify(value)
        existing = self._values.get(key)
        if existing is not None:
            raise DuplicateConfigKeyError(key, existing, text)
        self._values[key] = text

    def update(self, items: Iterable[tuple[str, Any]]) -> None:
        for key, value in items:
            self.put(key, value)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def build(self) -> Mapping[str, str]:
        """Return a read-only snapshot with keys in sorted order."""
        return MappingProxyType(dict(sorted(self._values.items())))


_ESCAPES = {
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\f": "\\f",
}
_KEY_SPECIALS = "=: #!"
_VALUE_SPECIALS = "=:#!"


def _escape(text: str, specials: str) -> str:
    out: list[str] = []
    for i, ch in enumerate(text):
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ch == " " and i == 0:
            out.append("\\ ")
        elif ch in specials:
            out.append("\\" + ch)
        elif ord(ch) > 0x7E or ord(ch) < 0x20:
            out.append(f"\\u{ord(ch):04X}")
        else:
            out.append(ch)
    return "".join(out)


def render_properties(properties: Mapping[str, str]) -> str:
    r"""Render *properties* as ``.properties`` file text.

    Keys are written in sorted order and escaped the way
    ``java.util.Properties.store`` escapes them, so the output reads back
    to the same mapping on the broker side.

    Examples
    --------
    >>> text = render_properties({"listeners": "EXTERNAL://localhost:9092", "broker.id": "0"})
    >>> print(text, end="")
    broker.id=0
    listeners=EXTERNAL\://localhost\:9092
    """
    lines = [
        _escape(key, _KEY_SPECIALS)
        + "="
        + _escape(value, _VALUE_SPECIALS)
        for key, value in sorted(properties.items())
    ]
    return "".join(f"{line}\n" for line in lines)


def to_environment(properties: Mapping[str, str], prefix: str = "KAFKA_") -> dict[str, str]:
    """Map properties to container environment variables.

    ``.`` becomes ``_``, ``_`` becomes ``__`` and ``-`` becomes ``___``
    before upper-casing, which is the convention broker container images
    decode on startup.

    Examples
    --------
    >>> to_environment({"broker.id": "0", "log.dirs": "/tmp/x"})
    {'KAFKA_BROKER_ID': '0', 'KAFKA_LOG_DIRS': '/tmp/x'}
    """
    env: dict[str, str] = {}
    for key, value in sorted(properties.items()):
        name = key.replace("_", "__").replace("-", "___").replace(".", "_")
        env[prefix + name.upper()] = value
    return env
