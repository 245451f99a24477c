"""Dimension keys.

A dimension key names a filterable axis of a setting (``Environment``,
``Version`` or any custom axis), carries the value requested for it and the
filter strategy that applies it. The reserved default key ``Name`` always
stands for the setting's own name and is evaluated first; every other key
is evaluated in lexicographic order of its name, ignoring case.
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping

from .exceptions import ReservedDimensionError
from .semver import SemanticVersion

DEFAULT_KEY_NAME = "Name"
ENVIRONMENT_KEY_NAME = "Environment"
VERSION_KEY_NAME = "Version"
WILDCARD = "*"

STRING_STRATEGY = "string"
VERSION_STRATEGY = "version"

_ITEM_PATTERN = re.compile(r"^(?P<name>[^\[\]]+)\[(?P<key>[^\[\]]+)\]$")


def is_default_key(name: str) -> bool:
    return name.casefold() == DEFAULT_KEY_NAME.casefold()


@dataclass(frozen=True)
class DimensionKey:
    """A named dimension, the value requested for it and its filter strategy.

    ``strategy`` is either the name of a registered strategy (see
    ``filters.FILTER_STRATEGIES``) or a callable with the same signature.
    Version keys must carry a semantic version.
    """

    name: str
    requested_value: str
    strategy: str | Callable = STRING_STRATEGY

    def __post_init__(self):
        if not self.name:
            raise ValueError("Dimension name is required")
        if is_default_key(self.name):
            raise ReservedDimensionError(self.name)
        if self.requested_value is None:
            raise ValueError(f"Dimension {self.name!r} requires a requested value")
        if self.strategy == VERSION_STRATEGY:
            SemanticVersion.parse(self.requested_value, self.name)

    @classmethod
    def exact(cls, name: str, requested_value: str) -> "DimensionKey":
        """Key filtered by exact match with wildcard fallback."""
        return cls(name, requested_value, STRING_STRATEGY)

    @classmethod
    def version(cls, name: str, requested_value: str) -> "DimensionKey":
        """Key filtered by closest semantic version at or below the request."""
        return cls(name, requested_value, VERSION_STRATEGY)


def order_keys(keys: Iterable[DimensionKey]) -> list[DimensionKey]:
    """Sort keys into evaluation order and reject duplicate names."""
    seen: set[str] = set()
    ordered = sorted(keys, key=lambda k: (k.name.casefold(), k.name))
    for key in ordered:
        folded = key.name.casefold()
        if folded in seen:
            raise ValueError(f"Duplicate dimension: {key.name}")
        seen.add(folded)
    return ordered


def split_assignment(assignment: Mapping[str, str]) -> tuple[str, dict[str, str]]:
    """Split a full assignment into the setting name and the custom dimensions."""
    name = None
    dimensions: dict[str, str] = {}
    seen: set[str] = set()
    for key, value in assignment.items():
        folded = key.casefold()
        if folded in seen:
            raise ValueError(f"Duplicate dimension: {key}")
        seen.add(folded)
        if is_default_key(key):
            name = value
        else:
            dimensions[key] = value
    if not name:
        raise ValueError(f"Assignment is missing the {DEFAULT_KEY_NAME!r} key")
    return name, dimensions


def same_dimensions(stored: Mapping[str, str], wanted: Mapping[str, str]) -> bool:
    """Exact row match: names compare case-insensitively, values exactly."""
    if len(stored) != len(wanted):
        return False
    folded = {name.casefold(): value for name, value in stored.items()}
    return all(folded.get(name.casefold()) == value for name, value in wanted.items())


def check_versions(dimensions: Mapping[str, str], version_dimensions: Iterable[str]) -> None:
    """Reject values of version dimensions that are neither a wildcard nor a semantic version.

    Raises:
        InvalidVersionFormatError: for the first malformed value
    """
    wanted = {name.casefold() for name in version_dimensions}
    for name, value in dimensions.items():
        if name.casefold() in wanted and value != WILDCARD:
            SemanticVersion.parse(value, name)


def item_name(setting_name: str, item_key: str) -> str:
    """Stored name of one item of an itemized setting, e.g. ``Hosts[0]``."""
    return f"{setting_name}[{item_key}]"


def split_item_name(name: str) -> tuple[str, str] | None:
    """Split ``Hosts[0]`` into ``("Hosts", "0")``; None for plain names."""
    match = _ITEM_PATTERN.match(name)
    if match is None:
        return None
    return match.group("name"), match.group("key")
