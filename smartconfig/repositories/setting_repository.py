from typing import Mapping

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..models import Setting, SettingDimension
from ..resolution.keys import same_dimensions, split_item_name
from .base import BaseRepository


class SettingRepository(BaseRepository[Setting]):
    """Repository for Setting operations."""

    def __init__(self, session: Session):
        super().__init__(Setting, session)

    def get_by_name(self, name: str) -> list[Setting]:
        """Get every setting row sharing a name, whatever its dimensions."""
        stmt = (
            select(Setting)
            .where(func.lower(Setting.name) == name.lower())
            .order_by(Setting.id)
        )
        return list(self.session.execute(stmt).scalars().all())

    def get_items(self, name: str) -> list[Setting]:
        """Get every item row (``name[key]``) of an itemized setting."""
        stmt = (
            select(Setting)
            .where(func.lower(Setting.name).startswith(f"{name.lower()}[", autoescape=True))
            .order_by(Setting.id)
        )
        items = []
        for row in self.session.execute(stmt).scalars().all():
            parsed = split_item_name(row.name)
            if parsed is not None and parsed[0].lower() == name.lower():
                items.append(row)
        return items

    def find_exact(self, name: str, dimensions: Mapping[str, str]) -> Setting | None:
        """Get the row whose dimension values equal ``dimensions`` exactly."""
        matches = [s for s in self.get_by_name(name) if same_dimensions(s.dimension_values, dimensions)]
        if len(matches) > 1:
            raise ValueError(f"Multiple settings found for {name!r} with dimensions {dict(dimensions)}")
        return matches[0] if matches else None

    def upsert_by(
        self,
        name: str,
        dimensions: Mapping[str, str],
        value: str | None,
    ) -> Setting:
        """Upsert a setting by its name and exact dimension values."""
        existing = self.find_exact(name, dimensions)
        if existing:
            logger.debug("Existing setting found with ID {}, updating it", existing.id)
            self.update(id_value=existing.id, value=value)
            return existing

        logger.debug("No existing setting found for {}, creating a new one", name)
        return self.create(
            name=name,
            value=value,
            dimensions=[SettingDimension(name=k, value=v) for k, v in dimensions.items()],
        )

    def delete_items(self, name: str, dimensions: Mapping[str, str]) -> int:
        """Delete the item rows of ``name`` stored under exactly ``dimensions``."""
        deleted = 0
        for row in self.get_items(name):
            if same_dimensions(row.dimension_values, dimensions) and self.delete(row.id):
                deleted += 1
        return deleted
