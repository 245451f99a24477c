from threading import Lock
from typing import Iterable, Mapping, Sequence

from loguru import logger

from ..resolution.keys import item_name, same_dimensions, split_assignment, split_item_name
from ..resolution.models import CandidateRecord
from .base import DataStore, SettingAssignment


class MemoryStore(DataStore):
    """Store that keeps records in a list.

    Useful as a test double and for configurations seeded from a dict.
    Writes are applied to a copy that replaces the rows only on success.

    Usage:
        store = MemoryStore([
            CandidateRecord("Timeout", "30", {"Environment": "*"}),
        ])
        # or
        store = MemoryStore.from_dict({"Timeout": "30"})
    """

    def __init__(self, records: Iterable[CandidateRecord] | None = None):
        self._records: list[CandidateRecord] = list(records or [])
        self._lock = Lock()

    @classmethod
    def from_dict(cls, values: dict[str, str], **dimensions: str) -> "MemoryStore":
        """Build a store with one record per name, all sharing the given dimensions."""
        return cls(CandidateRecord(name, value, dict(dimensions)) for name, value in values.items())

    @property
    def records(self) -> list[CandidateRecord]:
        with self._lock:
            return list(self._records)

    def select(self, setting_name: str) -> list[CandidateRecord]:
        """Get all records with the given name (case-insensitive)."""
        name = setting_name.casefold()
        with self._lock:
            return [r for r in self._records if r.setting_name.casefold() == name]

    def select_items(self, setting_name: str) -> list[CandidateRecord]:
        """Get all item records of the given name (case-insensitive)."""
        with self._lock:
            return [r for r in self._records if self._is_item_of(r, setting_name)]

    def save_many(self, items: Sequence[tuple[SettingAssignment, str | None]]) -> int:
        """Upsert records; the batch is applied all-or-nothing."""
        if not items:
            return 0

        # validate every assignment before touching the rows
        parsed = [(split_assignment(assignment), value) for assignment, value in items]

        with self._lock:
            records = list(self._records)
            for (name, dimensions), value in parsed:
                self._upsert(records, name, dimensions, value)
            self._records = records

        logger.debug("MemoryStore saved {} record(s)", len(parsed))
        return len(parsed)

    def replace_items(
        self,
        setting_name: str,
        dimensions: Mapping[str, str],
        items: Mapping[str, str | None],
    ) -> int:
        """Swap the item rows under exactly ``dimensions`` for ``items``."""
        dimensions = dict(dimensions)
        with self._lock:
            records = [
                r for r in self._records
                if not (self._is_item_of(r, setting_name) and same_dimensions(r.dimension_values, dimensions))
            ]
            deleted = len(self._records) - len(records)
            for key, value in items.items():
                self._upsert(records, item_name(setting_name, key), dimensions, value)
            self._records = records

        logger.debug("MemoryStore replaced {} item(s) of {}", len(items), setting_name)
        return deleted + len(items)

    @staticmethod
    def _is_item_of(record: CandidateRecord, setting_name: str) -> bool:
        parsed = split_item_name(record.setting_name)
        return parsed is not None and parsed[0].casefold() == setting_name.casefold()

    @staticmethod
    def _upsert(records: list[CandidateRecord], name: str, dimensions: dict[str, str], value: str | None) -> None:
        folded = name.casefold()
        for index, record in enumerate(records):
            if record.setting_name.casefold() == folded and same_dimensions(record.dimension_values, dimensions):
                records[index] = CandidateRecord(record.setting_name, value, record.dimension_values)
                return
        records.append(CandidateRecord(name, value, dimensions))

    def __repr__(self) -> str:
        return f"<MemoryStore records={len(self._records)}>"
