"""
Declarative base and shared column mixin
"""
from typing import Any, Dict

from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.orm import declarative_base

from ..core.constants import utc_now

Base = declarative_base()


class BaseModel:
    """
    Mixin para todas las tablas: id entero autoincremental y timestamps.

    Timestamps are timezone-aware UTC; updated_at is refreshed by the ORM
    on every UPDATE.
    """

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} id={self.id}>"
