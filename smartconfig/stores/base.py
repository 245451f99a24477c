from abc import ABC, abstractmethod
from typing import Mapping, Sequence

from ..resolution.models import CandidateRecord

SettingAssignment = Mapping[str, str]


class DataStore(ABC):
    """Abstract base class for setting stores.

    A store returns every row sharing a setting name and writes rows
    addressed by their exact dimension assignment. It never filters by
    dimension when reading; that is the resolution pipeline's job.
    """

    @abstractmethod
    def select(self, setting_name: str) -> list[CandidateRecord]:
        """Get all stored records for a setting name.

        Args:
            setting_name: The setting name (default key value)

        Returns:
            List of CandidateRecord instances, possibly empty
        """
        raise NotImplementedError("Subclasses must implement this method.")

    @abstractmethod
    def select_items(self, setting_name: str) -> list[CandidateRecord]:
        """Get every stored item row of an itemized setting.

        Item rows are named ``<setting_name>[<item key>]``, e.g. ``Hosts[0]``.

        Args:
            setting_name: The setting name without an item key

        Returns:
            List of CandidateRecord instances, possibly empty
        """
        raise NotImplementedError("Subclasses must implement this method.")

    @abstractmethod
    def save_many(self, items: Sequence[tuple[SettingAssignment, str | None]]) -> int:
        """Upsert several records atomically.

        Each assignment holds the default key and every dimension value
        (wildcards are stored literally). Either all items are written or
        none is.

        Args:
            items: (assignment, value) pairs

        Returns:
            Number of rows affected
        """
        raise NotImplementedError("Subclasses must implement this method.")

    @abstractmethod
    def replace_items(
        self,
        setting_name: str,
        dimensions: Mapping[str, str],
        items: Mapping[str, str | None],
    ) -> int:
        """Replace the items stored under exactly ``dimensions`` with ``items``.

        Item rows of the setting under other dimension values are untouched.
        Either the whole replacement is applied or none of it.

        Returns:
            Number of rows written or deleted
        """
        raise NotImplementedError("Subclasses must implement this method.")

    def update(self, assignment: SettingAssignment, value: str | None) -> int:
        """Upsert a single record addressed by its exact assignment."""
        return self.save_many([(assignment, value)])

    def close(self) -> None:
        """Release resources held by the store."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"

    def __str__(self) -> str:
        return self.__repr__()
