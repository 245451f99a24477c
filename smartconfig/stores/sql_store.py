from typing import Mapping, Sequence

from loguru import logger
from sqlalchemy.exc import OperationalError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from ..database import SessionManager
from ..models import SettingDimension
from ..repositories import SettingRepository
from ..resolution.keys import item_name, split_assignment
from ..resolution.models import CandidateRecord
from .base import DataStore, SettingAssignment


class SqlStore(DataStore):
    """Store backed by the ``settings`` and ``setting_dimensions`` tables.

    Every call runs in its own transaction; ``save_many`` commits all rows
    or none.
    """

    def __init__(
        self,
        session_manager: SessionManager | None = None,
        connection_string: str | None = None,
    ):
        """Initialize the store.

        Args:
            session_manager: Existing session manager to share, owned by the caller
            connection_string: Used to create a private session manager when none is
                given; falls back to DatabaseSettings.url
        """
        self._owns_session_manager = session_manager is None
        self.session_manager = session_manager or SessionManager(connection_string=connection_string)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_fixed(1),
        retry=retry_if_exception_type(OperationalError),
        reraise=True,
    )
    def select(self, setting_name: str) -> list[CandidateRecord]:
        """Get every row for a setting name; transient connection errors are retried."""
        with self.session_manager.session() as session:
            rows = SettingRepository(session).get_by_name(setting_name)
            records = [row.to_record() for row in rows]
        logger.debug("SqlStore fetched {} row(s) for {}", len(records), setting_name)
        return records

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_fixed(1),
        retry=retry_if_exception_type(OperationalError),
        reraise=True,
    )
    def select_items(self, setting_name: str) -> list[CandidateRecord]:
        """Get every item row of an itemized setting; transient connection errors are retried."""
        with self.session_manager.session() as session:
            rows = SettingRepository(session).get_items(setting_name)
            records = [row.to_record() for row in rows]
        logger.debug("SqlStore fetched {} item row(s) for {}", len(records), setting_name)
        return records

    def save_many(self, items: Sequence[tuple[SettingAssignment, str | None]]) -> int:
        """Upsert rows in a single transaction."""
        if not items:
            return 0

        parsed = [(split_assignment(assignment), value) for assignment, value in items]

        rows_affected = 0
        with self.session_manager.session() as session:
            repo = SettingRepository(session)
            for (name, dimensions), value in parsed:
                repo.upsert_by(name=name, dimensions=dimensions, value=value)
                rows_affected += 1

        logger.info("SqlStore saved {} setting row(s)", rows_affected)
        return rows_affected

    def replace_items(
        self,
        setting_name: str,
        dimensions: Mapping[str, str],
        items: Mapping[str, str | None],
    ) -> int:
        """Delete the item rows under exactly ``dimensions`` and write ``items`` in one transaction."""
        with self.session_manager.session() as session:
            repo = SettingRepository(session)
            deleted = repo.delete_items(setting_name, dimensions)
            for key, value in items.items():
                repo.create(
                    name=item_name(setting_name, key),
                    value=value,
                    dimensions=[SettingDimension(name=k, value=v) for k, v in dimensions.items()],
                )

        logger.info("SqlStore replaced {} item(s) of {}", len(items), setting_name)
        return deleted + len(items)

    def close(self) -> None:
        """Dispose the engine when this store created it."""
        if self._owns_session_manager:
            self.session_manager.close()

    def __repr__(self) -> str:
        return f"<SqlStore url={self.session_manager.engine.url!r}>"
