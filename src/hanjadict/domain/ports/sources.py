"""Ports for raw record sources feeding the ingest stage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from hanjadict.domain.model import RawRecord


class SourceUnavailableError(RuntimeError):
    """Raised when a configured source cannot be reached or parsed as a whole."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source


@dataclass(slots=True, frozen=True)
class SourceRejection:
    """A single source row that could not be turned into a ``RawRecord``."""

    key: str
    message: str


@dataclass(slots=True, frozen=True)
class SourceBatch:
    records: tuple[RawRecord, ...]
    rejected: tuple[SourceRejection, ...] = ()


@runtime_checkable
class RecordSource(Protocol):
    """A provider of raw character observations."""

    @property
    def name(self) -> str: ...

    def fetch(self) -> SourceBatch: ...
