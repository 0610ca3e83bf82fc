"""Issued identifier model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func, text
from sqlalchemy.orm import Mapped, mapped_column

from idregistry.models.base import Base


class IdRecord(Base):
    """One row per issued ID.

    Rows are never physically removed; soft-deleted rows keep their value
    reserved so it is never handed out again.
    """

    __tablename__ = "ids"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    owner: Mapped[str] = mapped_column(String, nullable=False)
    table_name: Mapped[str | None] = mapped_column(String, nullable=True)
    user_id: Mapped[str | None] = mapped_column(String, nullable=True)
    confirmed: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.current_timestamp(),
        nullable=False,
    )
    deleted: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    @property
    def is_confirmed(self) -> bool:
        return bool(self.confirmed)

    @property
    def is_deleted(self) -> bool:
        return bool(self.deleted)

    def __repr__(self) -> str:
        return f"<IdRecord {self.id} owner={self.owner}>"
