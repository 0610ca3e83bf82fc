"""SQLAlchemy models."""

from idregistry.models.base import Base
from idregistry.models.id_record import IdRecord
from idregistry.models.setting import Setting

__all__ = ["Base", "IdRecord", "Setting"]
