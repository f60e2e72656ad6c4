"""Install parameter merging.

Combines a base values document with ``--set`` style overrides into the
effective parameters handed to install and upgrade.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from typing import Any

from .errors import ParseError


def parse_set_values(values: Iterable[str]) -> dict[str, str]:
    """Split raw ``path=value`` strings into an ordered override mapping.

    The first ``=`` separates path and value, so values may contain ``=``.
    A repeated path keeps its first position and its last value.

    Raises:
        ParseError: If a string has no ``=`` or an empty path
    """
    overrides: dict[str, str] = {}
    for raw in values:
        path, sep, value = raw.partition("=")
        path = path.strip()
        if not sep or not path:
            raise ParseError(f"invalid override {raw!r}: expected path=value")
        overrides[path] = value
    return overrides


class ParameterParser:
    """Merges a base document with dotted-path overrides.

    Example:
        >>> ParameterParser({"a": {"b": "x"}}, {"a.b": "y"}).parse()
        {'a': {'b': 'y'}}
    """

    def __init__(
        self,
        values: Mapping[str, Any] | None = None,
        overrides: Mapping[str, str] | None = None,
    ) -> None:
        self.values = values or {}
        self.overrides = overrides or {}

    @classmethod
    def from_set_values(
        cls, values: Mapping[str, Any] | None, set_values: Iterable[str]
    ) -> ParameterParser:
        return cls(values, parse_set_values(set_values))

    def parse(self) -> dict[str, Any]:
        """Return the effective parameters.

        Overrides are applied in order onto a deep copy of the base, so the
        base is never mutated and repeated calls give equal results.

        Raises:
            ParseError: If a path is malformed or crosses a non-mapping value
        """
        params: dict[str, Any] = copy.deepcopy(dict(self.values))
        for path, value in self.overrides.items():
            _set_path(params, path, value)
        return params


def _set_path(params: dict[str, Any], path: str, value: str) -> None:
    keys = path.split(".")
    if any(not key for key in keys):
        raise ParseError(f"invalid override path {path!r}: empty key")

    node = params
    for depth, key in enumerate(keys[:-1]):
        child = node.get(key)
        if child is None:
            child = node[key] = {}
        elif not isinstance(child, dict):
            prefix = ".".join(keys[: depth + 1])
            raise ParseError(
                f"cannot set {path!r}: {prefix!r} is already set to a "
                f"non-mapping value"
            )
        node = child
    node[keys[-1]] = value
