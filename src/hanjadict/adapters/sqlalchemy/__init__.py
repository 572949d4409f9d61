"""SQLAlchemy adapter package for hanjadict."""

from __future__ import annotations

from .mappings import hanja_dict_table, hanja_reading_table, mapper_registry, start_mappers
from .repositories import SqlAlchemyDictionaryRepository, SqlAlchemyReadingRepository
from .unit_of_work import (
    SqlAlchemyDictionaryUnitOfWork,
    StartupError,
    create_session_factory,
    open_engine,
)

__all__ = [
    "SqlAlchemyDictionaryRepository",
    "SqlAlchemyDictionaryUnitOfWork",
    "SqlAlchemyReadingRepository",
    "StartupError",
    "create_session_factory",
    "hanja_dict_table",
    "hanja_reading_table",
    "mapper_registry",
    "open_engine",
    "start_mappers",
]
