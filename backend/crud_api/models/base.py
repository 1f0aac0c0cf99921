"""
Base class for all SQLAlchemy ORM models.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all models."""

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        id_val = getattr(self, "id", None)
        return f"<{class_name}(id={id_val})>"
