from typing import TYPE_CHECKING, Callable, Iterable, Mapping, Sequence

from loguru import logger

from .exceptions import DataSourceError, SettingNotFoundError
from .keys import DimensionKey, check_versions, item_name, same_dimensions, split_assignment, split_item_name
from .models import CandidateRecord, ResolutionRequest, ResolutionResult
from .pipeline import ResolutionPipeline

if TYPE_CHECKING:
    from ..stores import DataStore


def _batch_dimensions(items: Sequence[tuple[Mapping[str, str], str | None]]) -> dict[str, str]:
    # distinct values per dimension across the batch, in first-seen order
    values: dict[str, list[str]] = {}
    for assignment, _ in items:
        for name, value in split_assignment(assignment)[1].items():
            seen = values.setdefault(name, [])
            if value not in seen:
                seen.append(value)
    return {name: ", ".join(seen) for name, seen in values.items()}


class SettingResolver:
    """Resolves setting values from a store and writes them back.

    One ``select`` is issued per resolution and nothing is cached, so a
    resolution always reflects the store's current content.

    Usage:
        resolver = SettingResolver(store)
        value = resolver.resolve(
            "Timeout",
            [DimensionKey.exact("Environment", "PROD"), DimensionKey.version("Version", "2.1.0")],
        )
        resolver.persist(
            {"Name": "Timeout", "Environment": "PROD", "Version": "2.1.0"},
            "45",
            version_dimensions=["Version"],
        )
    """

    def __init__(self, store: "DataStore", pipeline: ResolutionPipeline | None = None):
        self.store = store
        self.pipeline = pipeline or ResolutionPipeline()

    def _fetch(
        self,
        select: Callable[[str], list[CandidateRecord]],
        setting_name: str,
        dimensions: Mapping[str, str],
        operation: str,
    ) -> list[CandidateRecord]:
        try:
            return select(setting_name)
        except Exception as e:
            logger.error("Store {} failed to {} {}: {}", self.store, operation, setting_name, e)
            raise DataSourceError(
                setting_name,
                dimensions,
                store_name=type(self.store).__name__,
                operation=operation,
            ) from e

    def resolve_request(self, request: ResolutionRequest) -> ResolutionResult:
        """Resolve a request and return the winning record with diagnostics."""
        records = self._fetch(self.store.select, request.setting_name, request.requested_values, "select")

        record = self.pipeline.run(records, request)
        logger.debug("Resolved {} with {}", request.setting_name, record.assignment)
        return ResolutionResult(
            setting_name=request.setting_name,
            value=record.value,
            record=record,
            dimensions=request.dimension_values,
            candidates_fetched=len(records),
        )

    def resolve(self, setting_name: str, keys: Iterable[DimensionKey] = ()) -> str | None:
        """Resolve the single value that applies to ``setting_name`` and ``keys``.

        Raises:
            SettingNotFoundError: no record matches
            AmbiguousResolutionError: several records match equally well
            InvalidVersionFormatError: a version value cannot be parsed
            DataSourceError: the store failed
        """
        request = ResolutionRequest(setting_name, tuple(keys))
        return self.resolve_request(request).value

    def resolve_items(self, setting_name: str, keys: Iterable[DimensionKey] = ()) -> dict[str, str | None]:
        """Resolve every item of an itemized setting.

        Each item (``Hosts[0]``, ``Hosts[1]``, ...) is resolved on its own
        against the same keys; items with no matching row are left out.

        Raises:
            SettingNotFoundError: no item matches
            AmbiguousResolutionError: several rows match one item equally well
        """
        request = ResolutionRequest(setting_name, tuple(keys))
        records = self._fetch(self.store.select_items, setting_name, request.requested_values, "select_items")

        grouped: dict[str, tuple[str, list[CandidateRecord]]] = {}
        for record in records:
            parsed = split_item_name(record.setting_name)
            if parsed is None:
                continue
            key = parsed[1]
            grouped.setdefault(key.casefold(), (key, []))[1].append(record)

        items: dict[str, str | None] = {}
        for key, item_records in grouped.values():
            item_request = ResolutionRequest(item_name(setting_name, key), request.keys)
            try:
                items[key] = self.pipeline.run(item_records, item_request).value
            except SettingNotFoundError:
                logger.debug("Item {} of {} does not apply", key, setting_name)

        if not items:
            raise SettingNotFoundError(setting_name, request.requested_values)
        logger.debug("Resolved {} item(s) of {}", len(items), setting_name)
        return items

    def select_exact(self, assignment: Mapping[str, str]) -> CandidateRecord | None:
        """Get the row addressed exactly by ``assignment``, without any fallback."""
        setting_name, dimensions = split_assignment(assignment)
        records = self._fetch(self.store.select, setting_name, dimensions, "select")
        folded = setting_name.casefold()
        for record in records:
            if record.setting_name.casefold() == folded and same_dimensions(record.dimension_values, dimensions):
                return record
        return None

    def select_exact_items(self, assignment: Mapping[str, str]) -> dict[str, str | None]:
        """Get the items stored exactly under ``assignment``."""
        setting_name, dimensions = split_assignment(assignment)
        records = self._fetch(self.store.select_items, setting_name, dimensions, "select_items")
        items = {}
        for record in records:
            parsed = split_item_name(record.setting_name)
            if parsed and same_dimensions(record.dimension_values, dimensions):
                items[parsed[1]] = record.value
        return items

    def persist(
        self,
        assignment: Mapping[str, str],
        value: str | None,
        version_dimensions: Iterable[str] = (),
    ) -> int:
        """Write ``value`` to the row addressed exactly by ``assignment``.

        Raises:
            InvalidVersionFormatError: a version dimension is neither ``*`` nor a semantic version
            DataSourceError: the store failed
        """
        setting_name, dimensions = split_assignment(assignment)
        check_versions(dimensions, version_dimensions)
        try:
            rows_affected = self.store.update(assignment, value)
        except Exception as e:
            logger.error("Store {} failed to update {}: {}", self.store, setting_name, e)
            raise DataSourceError(
                setting_name,
                dimensions,
                store_name=type(self.store).__name__,
                operation="update",
            ) from e

        logger.info("Persisted {} with {}", setting_name, dimensions)
        return rows_affected

    def persist_many(
        self,
        items: Sequence[tuple[Mapping[str, str], str | None]],
        version_dimensions: Iterable[str] = (),
    ) -> int:
        """Write several rows in one atomic store call."""
        version_dimensions = list(version_dimensions)
        names = []
        for assignment, _ in items:
            setting_name, dimensions = split_assignment(assignment)
            check_versions(dimensions, version_dimensions)
            names.append(setting_name)

        try:
            rows_affected = self.store.save_many(items)
        except Exception as e:
            logger.error("Store {} failed to save {} setting(s): {}", self.store, len(items), e)
            raise DataSourceError(
                ", ".join(names),
                _batch_dimensions(items),
                store_name=type(self.store).__name__,
                operation="save_many",
            ) from e

        logger.info("Persisted {} setting(s)", rows_affected)
        return rows_affected

    def persist_items(
        self,
        assignment: Mapping[str, str],
        items: Mapping[str, str | None],
        version_dimensions: Iterable[str] = (),
    ) -> int:
        """Replace the items stored under ``assignment`` with ``items`` atomically."""
        setting_name, dimensions = split_assignment(assignment)
        check_versions(dimensions, version_dimensions)
        try:
            rows_affected = self.store.replace_items(setting_name, dimensions, items)
        except Exception as e:
            logger.error("Store {} failed to replace items of {}: {}", self.store, setting_name, e)
            raise DataSourceError(
                setting_name,
                dimensions,
                store_name=type(self.store).__name__,
                operation="replace_items",
            ) from e

        logger.info("Persisted {} item(s) of {} with {}", len(items), setting_name, dimensions)
        return rows_affected
