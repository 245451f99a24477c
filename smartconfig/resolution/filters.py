"""Filter strategies.

A strategy narrows a candidate set by one dimension. It receives the
current candidates, the dimension name and the requested value, and returns
a subset. Exact and wildcard candidates are never mixed in one result.
"""

from typing import Callable, Sequence

from loguru import logger

from .keys import STRING_STRATEGY, VERSION_STRATEGY, WILDCARD
from .models import CandidateRecord
from .semver import SemanticVersion

FilterStrategy = Callable[[Sequence[CandidateRecord], str, str], list[CandidateRecord]]


def _wildcards(records: Sequence[CandidateRecord], dimension: str) -> list[CandidateRecord]:
    return [r for r in records if r.dimension(dimension) == WILDCARD]


def filter_by_string(
    records: Sequence[CandidateRecord],
    dimension: str,
    requested_value: str,
) -> list[CandidateRecord]:
    """Exact (case-insensitive) match, else wildcard rows, else nothing."""
    requested = requested_value.casefold()
    matches = [
        r for r in records
        if r.dimension(dimension) is not None and r.dimension(dimension).casefold() == requested
    ]
    if matches:
        return matches
    return _wildcards(records, dimension)


def filter_by_version(
    records: Sequence[CandidateRecord],
    dimension: str,
    requested_value: str,
) -> list[CandidateRecord]:
    """Closest version at or below the request, else wildcard rows, else nothing.

    Raises:
        InvalidVersionFormatError: if the requested or any stored version is malformed
    """
    requested = SemanticVersion.parse(requested_value, dimension)

    # parse everything first so a corrupt row fails even when it would lose
    versioned: list[tuple[SemanticVersion, CandidateRecord]] = []
    for record in records:
        stored = record.dimension(dimension)
        if stored is None or stored == WILDCARD:
            continue
        versioned.append((SemanticVersion.parse(stored, dimension), record))

    qualifying = [(v, r) for v, r in versioned if v <= requested]
    if qualifying:
        best = max(v.precedence for v, _ in qualifying)
        return [r for v, r in qualifying if v.precedence == best]

    return _wildcards(records, dimension)


FILTER_STRATEGIES: dict[str, FilterStrategy] = {
    STRING_STRATEGY: filter_by_string,
    VERSION_STRATEGY: filter_by_version,
}


def register_strategy(name: str, strategy: FilterStrategy) -> None:
    """Register a strategy under a name usable by DimensionKey.strategy."""
    if not callable(strategy):
        raise TypeError(f"Strategy {name!r} must be callable")
    if name in FILTER_STRATEGIES and FILTER_STRATEGIES[name] is not strategy:
        logger.warning("Replacing filter strategy {}", name)
    FILTER_STRATEGIES[name] = strategy


def get_strategy(strategy: str | FilterStrategy) -> FilterStrategy:
    """Look up a strategy by name; callables are returned unchanged."""
    if callable(strategy):
        return strategy
    try:
        return FILTER_STRATEGIES[strategy]
    except KeyError:
        raise ValueError(f"Unknown filter strategy: {strategy}") from None
