"""Semantic version parsing and precedence.

Follows semver.org 2.0.0: ``MAJOR.MINOR.PATCH`` with optional pre-release
(``-alpha.1``) and build metadata (``+build.5``). Build metadata is kept
but does not take part in ordering.

Example:
    >>> SemanticVersion.parse("1.0.0-alpha") < SemanticVersion.parse("1.0.0")
    True
    >>> SemanticVersion.parse("1.0.0+a").precedence == SemanticVersion.parse("1.0.0+b").precedence
    True
"""

import re

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import InvalidVersionFormatError

_SEMVER_PATTERN = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+(?P<build>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


def _identifier_key(identifier: str) -> tuple[int, int | str]:
    # numeric identifiers sort before alphanumeric ones
    if identifier.isdigit():
        return (0, int(identifier))
    return (1, identifier)


class SemanticVersion(BaseModel):
    """Parsed semantic version with semver precedence ordering."""

    model_config = ConfigDict(frozen=True)

    major: int = Field(ge=0)
    minor: int = Field(ge=0)
    patch: int = Field(ge=0)
    prerelease: str | None = None
    build: str | None = None

    @classmethod
    def parse(cls, value: str, dimension: str | None = None) -> "SemanticVersion":
        """Parse ``value`` or raise InvalidVersionFormatError."""
        if not isinstance(value, str):
            raise InvalidVersionFormatError(repr(value), dimension)
        match = _SEMVER_PATTERN.match(value.strip())
        if match is None:
            raise InvalidVersionFormatError(value, dimension)
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=match.group("prerelease"),
            build=match.group("build"),
        )

    @property
    def precedence(self) -> tuple:
        """Ordering key; a release outranks any of its pre-releases."""
        if self.prerelease is None:
            return (self.major, self.minor, self.patch, 1, ())
        identifiers = tuple(_identifier_key(i) for i in self.prerelease.split("."))
        return (self.major, self.minor, self.patch, 0, identifiers)

    def __lt__(self, other: "SemanticVersion") -> bool:
        return self.precedence < other.precedence

    def __le__(self, other: "SemanticVersion") -> bool:
        return self.precedence <= other.precedence

    def __gt__(self, other: "SemanticVersion") -> bool:
        return self.precedence > other.precedence

    def __ge__(self, other: "SemanticVersion") -> bool:
        return self.precedence >= other.precedence

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text
