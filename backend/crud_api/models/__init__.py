"""
SQLAlchemy ORM models package.

Applications declare their entities on `Base` and list the declaring modules
in the ORM bootstrap configuration (`orm_model_modules`).
"""

from .base import Base

__all__ = ["Base"]
