"""Base model infrastructure for SQLAlchemy models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models.

    Compatible with the existing marketplace database schema
    (``tb_*`` tables, legacy camelCase column names kept as-is).
    """
    pass
