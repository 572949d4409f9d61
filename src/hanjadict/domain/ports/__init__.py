"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import DictionaryRepository, ReadingRepository
from .sources import RecordSource, SourceBatch, SourceRejection, SourceUnavailableError
from .stage_store import Checkpoint, StageStore
from .unit_of_work import (
    DictionaryRepositories,
    DictionaryUnitOfWork,
    DictionaryUnitOfWorkFactory,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "Checkpoint",
    "DictionaryRepositories",
    "DictionaryRepository",
    "DictionaryUnitOfWork",
    "DictionaryUnitOfWorkFactory",
    "ReadingRepository",
    "RecordSource",
    "RepositoryCollection",
    "SourceBatch",
    "SourceRejection",
    "SourceUnavailableError",
    "StageStore",
    "UnitOfWork",
]
