from dataclasses import dataclass, field
from typing import Mapping

from .keys import DEFAULT_KEY_NAME, DimensionKey, order_keys


@dataclass(frozen=True)
class CandidateRecord:
    """One stored row: a setting name, its serialized value and its dimension values."""

    setting_name: str
    value: str | None
    dimension_values: Mapping[str, str] = field(default_factory=dict)

    def dimension(self, name: str) -> str | None:
        """Get the stored value for a dimension, None when the row has no such column.

        Dimension names compare case-insensitively.
        """
        value = self.dimension_values.get(name)
        if value is not None:
            return value
        folded = name.casefold()
        for stored_name, stored_value in self.dimension_values.items():
            if stored_name.casefold() == folded:
                return stored_value
        return None

    @property
    def assignment(self) -> dict[str, str]:
        """Full dimension assignment of this row, default key included."""
        return {DEFAULT_KEY_NAME: self.setting_name, **self.dimension_values}


@dataclass(frozen=True)
class ResolutionRequest:
    """A setting name plus the dimension values requested for it."""

    setting_name: str
    keys: tuple[DimensionKey, ...] = ()

    def __post_init__(self):
        if not self.setting_name:
            raise ValueError("setting_name is required")
        object.__setattr__(self, "keys", tuple(order_keys(self.keys)))

    @property
    def requested_values(self) -> dict[str, str]:
        """Requested values in evaluation order, default key first."""
        values = {DEFAULT_KEY_NAME: self.setting_name}
        values.update((key.name, key.requested_value) for key in self.keys)
        return values

    @property
    def dimension_values(self) -> dict[str, str]:
        """Requested values of the custom dimensions only."""
        return {key.name: key.requested_value for key in self.keys}


@dataclass
class ResolutionResult:
    """Outcome of one resolution, kept for diagnostics and the API layer."""

    setting_name: str
    value: str | None
    record: CandidateRecord
    dimensions: dict[str, str] | None = None
    candidates_fetched: int = 0

    def __post_init__(self):
        if self.dimensions is None:
            self.dimensions = {}
