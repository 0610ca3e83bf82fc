"""Key/value settings table."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from idregistry.models.base import Base


class Setting(Base):
    """Allocation setting stored alongside the issued IDs."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str | None] = mapped_column(String, nullable=True)

    def __repr__(self) -> str:
        return f"<Setting {self.key}>"
