from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..config import SettingsManager
from ..database.base import Base
from ..resolution.models import CandidateRecord

_settings = SettingsManager.get_instance()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Setting(Base):
    """Stored setting row; one row per name and dimension assignment."""

    __tablename__ = _settings.storage.table_name_settings

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, index=True)

    # Default key, indexed for the per-name fetch
    name: Mapped[str] = mapped_column(String(512), nullable=False, index=True)

    value: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    dimensions: Mapped[list["SettingDimension"]] = relationship(
        "SettingDimension",
        back_populates="setting",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def dimension_values(self) -> dict[str, str]:
        return {d.name: d.value for d in self.dimensions}

    def to_record(self) -> CandidateRecord:
        """Convert to an in-memory candidate record."""
        return CandidateRecord(
            setting_name=self.name,
            value=self.value,
            dimension_values=self.dimension_values,
        )

    def __repr__(self) -> str:
        return f"<Setting(id='{self.id}', name='{self.name}', dimensions={self.dimension_values})>"


class SettingDimension(Base):
    """Value of one dimension (Environment, Version, ...) for a stored setting."""

    __tablename__ = _settings.storage.table_name_setting_dimensions
    __table_args__ = (UniqueConstraint("setting_id", "name"),)

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, index=True)

    # Foreign key to Setting
    setting_id: Mapped[int] = mapped_column(
        Integer, ForeignKey(f"{_settings.storage.table_name_settings}.id"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    value: Mapped[str] = mapped_column(String(256), nullable=False)

    setting: Mapped["Setting"] = relationship(
        "Setting",
        foreign_keys=[setting_id],
        back_populates="dimensions",
    )

    def __repr__(self) -> str:
        return f"<SettingDimension(name='{self.name}', value='{self.value}')>"
