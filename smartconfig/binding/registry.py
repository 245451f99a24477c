"""Settings registry.

The registry is the explicit replacement for discovering settings by
introspection: each setting is declared once with its kind, default and
whether it is required. The registry owns the store and the dimension keys
of the current process (environment, version, custom axes), resolves typed
values through ``SettingResolver`` and writes them back.

Usage:
    registry = SettingsRegistry(SqlStore())
    registry.add_dimension("Environment", "PROD")
    registry.add_dimension("Version", "2.1.0", strategy="version")
    registry.register(SettingDefinition("Timeout", ValueKind.INTEGER, default=30))
    registry.register(SettingDefinition("Hosts", ValueKind.LIST, item_kind=ValueKind.STRING))

    values = registry.load()
    registry.update("Timeout", 45)
    registry.close()
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from loguru import logger

from ..config import SettingsManager
from ..resolution.engine import SettingResolver
from ..resolution.exceptions import SettingNotFoundError
from ..resolution.keys import (
    DEFAULT_KEY_NAME,
    STRING_STRATEGY,
    VERSION_STRATEGY,
    DimensionKey,
    order_keys,
)
from ..stores import DataStore
from .converters import COLLECTION_KINDS, ValueKind, collect, deserialize, itemize, serialize


@dataclass
class SettingDefinition:
    """Static declaration of one bindable setting.

    ``LIST`` and ``DICT`` settings are stored one row per item; ``item_kind``
    (and ``enum_type`` for enum items) describes the items.
    """

    name: str
    kind: ValueKind = ValueKind.STRING
    default: Any = None
    required: bool = False
    enum_type: type[Enum] | None = None
    description: str = ""
    item_kind: ValueKind = ValueKind.STRING

    def __post_init__(self):
        if not self.name:
            raise ValueError("Setting name is required")
        if "[" in self.name or "]" in self.name:
            raise ValueError(f"Setting name {self.name!r} cannot contain brackets")
        self.kind = ValueKind(self.kind)
        self.item_kind = ValueKind(self.item_kind)
        if self.item_kind in COLLECTION_KINDS:
            raise ValueError(f"Setting {self.name!r} cannot nest collections")
        value_kind = self.item_kind if self.is_collection else self.kind
        if value_kind == ValueKind.ENUM and self.enum_type is None:
            raise ValueError(f"Setting {self.name!r} is an enum and needs an enum_type")

    @property
    def is_collection(self) -> bool:
        return self.kind in COLLECTION_KINDS


class SettingsRegistry:
    """Registry of setting definitions bound to one store and one set of dimensions."""

    def __init__(
        self,
        store: DataStore,
        dimensions: Iterable[DimensionKey] = (),
        resolver: SettingResolver | None = None,
    ):
        self.store = store
        self.resolver = resolver or SettingResolver(store)
        self._definitions: dict[str, SettingDefinition] = {}
        self._dimensions: dict[str, DimensionKey] = {}
        for key in dimensions:
            self._add_key(key)

    @classmethod
    def from_settings(cls, store: DataStore, settings: SettingsManager | None = None) -> "SettingsRegistry":
        """Create a registry whose environment and version come from ResolutionSettings."""
        resolution = (settings or SettingsManager.get_instance()).resolution
        registry = cls(store)
        if resolution.environment:
            registry.add_dimension(resolution.environment_key_name, resolution.environment)
        if resolution.version:
            registry.add_dimension(resolution.version_key_name, resolution.version, strategy=VERSION_STRATEGY)
        return registry

    def _add_key(self, key: DimensionKey) -> None:
        # dimension names are case-insensitive, so a differently cased name replaces the key
        dimensions = {k: v for k, v in self._dimensions.items() if k.casefold() != key.name.casefold()}
        dimensions[key.name] = key
        order_keys(dimensions.values())
        self._dimensions = dimensions

    def add_dimension(self, name: str, value: str, strategy: Any = STRING_STRATEGY) -> "SettingsRegistry":
        """Add or replace a dimension requested for every setting.

        Raises:
            ReservedDimensionError: if ``name`` is the default key's name
            InvalidVersionFormatError: if a version dimension's value is not a semantic version
        """
        self._add_key(DimensionKey(name, value, strategy))
        return self

    @property
    def dimension_keys(self) -> list[DimensionKey]:
        """Dimension keys in evaluation order."""
        return order_keys(self._dimensions.values())

    @property
    def version_dimensions(self) -> list[str]:
        """Names of the dimensions filtered by semantic version."""
        return [key.name for key in self._dimensions.values() if key.strategy == VERSION_STRATEGY]

    @property
    def definitions(self) -> list[SettingDefinition]:
        return list(self._definitions.values())

    def register(self, definition: SettingDefinition) -> "SettingsRegistry":
        """Declare a setting; names are unique (case-insensitive)."""
        if any(d.casefold() == definition.name.casefold() for d in self._definitions):
            raise ValueError(f"Setting already registered: {definition.name}")
        self._definitions[definition.name] = definition
        return self

    def register_many(self, definitions: Iterable[SettingDefinition]) -> "SettingsRegistry":
        for definition in definitions:
            self.register(definition)
        return self

    def definition(self, name: str) -> SettingDefinition:
        for registered_name, definition in self._definitions.items():
            if registered_name.casefold() == name.casefold():
                return definition
        raise KeyError(f"Unknown setting: {name}")

    def assignment(self, name: str) -> dict[str, str]:
        """Exact row address of a setting under the current dimensions."""
        values = {DEFAULT_KEY_NAME: name}
        values.update((key.name, key.requested_value) for key in self.dimension_keys)
        return values

    def get(self, name: str) -> Any:
        """Resolve and convert one setting.

        Optional settings fall back to their default when no row matches or
        the stored value is empty; required settings raise SettingNotFoundError.
        """
        definition = self.definition(name)
        if definition.is_collection:
            return self._get_collection(definition)

        try:
            value = self.resolver.resolve(definition.name, self.dimension_keys)
        except SettingNotFoundError:
            if definition.required:
                raise
            logger.debug("Setting {} not found, using default", definition.name)
            return definition.default

        if value is None or value == "":
            if definition.required:
                raise SettingNotFoundError(definition.name, self.assignment(definition.name))
            return definition.default

        return deserialize(definition.name, definition.kind, value, definition.enum_type)

    def _get_collection(self, definition: SettingDefinition) -> list | dict:
        try:
            items = self.resolver.resolve_items(definition.name, self.dimension_keys)
        except SettingNotFoundError:
            if definition.required:
                raise
            logger.debug("Setting {} has no items, using default", definition.name)
            return definition.default
        return collect(definition.name, definition.kind, definition.item_kind, items, definition.enum_type)

    def load(self) -> dict[str, Any]:
        """Resolve every registered setting."""
        logger.info("Loading {} setting(s) from {}", len(self._definitions), self.store)
        return {definition.name: self.get(definition.name) for definition in self._definitions.values()}

    def update(self, name: str, value: Any) -> int:
        """Serialize ``value`` and write it to the row of the current dimensions.

        Collections replace every item stored under the current dimensions.
        """
        definition = self.definition(name)
        assignment = self.assignment(definition.name)
        if value is None and definition.required:
            raise ValueError(f"Setting {definition.name!r} is required and cannot be None")

        if definition.is_collection:
            items = {} if value is None else itemize(
                definition.name, definition.kind, definition.item_kind, value, definition.enum_type
            )
            return self.resolver.persist_items(assignment, items, self.version_dimensions)

        serialized = None if value is None else serialize(
            definition.name, definition.kind, value, definition.enum_type
        )
        return self.resolver.persist(assignment, serialized, self.version_dimensions)

    def initialize(self) -> int:
        """Write defaults for settings that have no row under the current dimensions.

        Missing scalar defaults are written in one atomic batch; each missing
        collection default is written atomically on its own.
        """
        items = []
        rows_affected = 0
        for definition in self._definitions.values():
            if definition.default is None:
                continue
            assignment = self.assignment(definition.name)

            if definition.is_collection:
                if self.resolver.select_exact_items(assignment):
                    continue
                collection = itemize(
                    definition.name, definition.kind, definition.item_kind, definition.default, definition.enum_type
                )
                logger.info("Initializing {} with {} default item(s)", definition.name, len(collection))
                rows_affected += self.resolver.persist_items(assignment, collection, self.version_dimensions)
                continue

            if self.resolver.select_exact(assignment) is not None:
                continue
            serialized = serialize(definition.name, definition.kind, definition.default, definition.enum_type)
            items.append((assignment, serialized))

        if not items:
            logger.info("All scalar settings already initialized")
            return rows_affected

        logger.info("Initializing {} setting(s) with defaults", len(items))
        return rows_affected + self.resolver.persist_many(items, self.version_dimensions)

    def close(self) -> None:
        """Forget definitions and release the store."""
        self._definitions.clear()
        self._dimensions.clear()
        self.store.close()

    def __repr__(self) -> str:
        return f"<SettingsRegistry settings={len(self._definitions)} store={self.store!r}>"
