"""
SQLAlchemy declarative base.

All engine tables (companies, contacts, link edges, linked history)
inherit from this Base class so one metadata object describes the store.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass
