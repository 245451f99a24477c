from typing import Any, Generic, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..database.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository providing common CRUD operations."""

    def __init__(self, model: Type[ModelType], session: Session):
        """Initialize repository.

        Args:
            model: The SQLAlchemy model class
            session: Database session
        """
        self.model = model
        self.session = session

    def create(self, **fields) -> ModelType:
        """Create a new entity."""
        # Don't generate ID - let the database handle auto-increment
        instance = self.model(**fields)
        self.session.add(instance)
        self.session.flush()
        return instance

    def get_by_id(self, id_value: Any) -> ModelType | None:
        """Get entity by ID."""
        pk_columns = self.model.__table__.primary_key.columns
        if len(pk_columns) != 1:
            raise ValueError("get_by_id only supports single-column primary keys")

        pk_column = list(pk_columns)[0]
        stmt = select(self.model).where(pk_column == id_value)
        return self.session.execute(stmt).scalar_one_or_none()

    def update(self, id_value: Any, **fields) -> ModelType | None:
        """Update entity by ID."""
        entity = self.get_by_id(id_value)
        if entity:
            for key, value in fields.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)
            self.session.flush()
        return entity

    def delete(self, id_value: Any) -> bool:
        """Delete entity by ID."""
        entity = self.get_by_id(id_value)
        if entity:
            self.session.delete(entity)
            self.session.flush()
            return True
        return False
