from typing import Any, Mapping, Sequence


def _format_dimensions(dimensions: Mapping[str, str] | None) -> str:
    if not dimensions:
        return "{}"
    return "{" + ", ".join(f"{k}={v!r}" for k, v in dimensions.items()) + "}"


class SmartConfigError(Exception):
    """Base class for all smartconfig errors."""


class ReservedDimensionError(SmartConfigError, ValueError):
    """Raised when a custom dimension uses the default key's name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Dimension name {name!r} is reserved for the setting name")


class ResolutionError(SmartConfigError):
    """Base class for errors that carry the setting name and requested dimensions."""

    def __init__(self, message: str, setting_name: str, dimensions: Mapping[str, str] | None = None):
        self.setting_name = setting_name
        self.dimensions = dict(dimensions or {})
        super().__init__(
            f"{message} (setting={setting_name!r}, dimensions={_format_dimensions(self.dimensions)})"
        )


class SettingNotFoundError(ResolutionError):
    """No stored record survived all dimension filters."""

    def __init__(self, setting_name: str, dimensions: Mapping[str, str] | None = None):
        super().__init__("Setting not found", setting_name, dimensions)


class AmbiguousResolutionError(ResolutionError):
    """More than one stored record survived all dimension filters."""

    def __init__(
        self,
        setting_name: str,
        dimensions: Mapping[str, str] | None = None,
        candidates: Sequence[Any] = (),
    ):
        self.candidates = list(candidates)
        super().__init__(
            f"Ambiguous resolution, {len(self.candidates)} candidates remain",
            setting_name,
            dimensions,
        )


class InvalidVersionFormatError(SmartConfigError, ValueError):
    """A requested or stored version value is not a semantic version."""

    def __init__(self, value: str, dimension: str | None = None):
        self.value = value
        self.dimension = dimension
        where = f" in dimension {dimension!r}" if dimension else ""
        super().__init__(f"Invalid semantic version {value!r}{where}")


class DataSourceError(ResolutionError):
    """Wraps an exception raised by a store."""

    def __init__(
        self,
        setting_name: str,
        dimensions: Mapping[str, str] | None = None,
        store_name: str | None = None,
        operation: str = "select",
    ):
        self.store_name = store_name
        self.operation = operation
        super().__init__(
            f"Data source {store_name or 'store'} failed during {operation}",
            setting_name,
            dimensions,
        )


class ConversionError(SmartConfigError, ValueError):
    """A stored string could not be converted to or from the declared kind."""

    def __init__(self, setting_name: str, kind: str, value: Any):
        self.setting_name = setting_name
        self.kind = kind
        self.value = value
        super().__init__(f"Cannot convert {value!r} as {kind} for setting {setting_name!r}")
