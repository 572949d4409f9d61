"""Ports for persisting and reading the dictionary."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hanjadict.domain.model import (
        DictionaryEntry,
        DictionaryStats,
        Element,
        Page,
        ReadingEntry,
        ReviewStats,
    )


@runtime_checkable
class DictionaryRepository(Protocol):
    """Persistence contract for dictionary entries (one per character)."""

    def add(self, entry: DictionaryEntry) -> None: ...

    def get(self, character: str) -> DictionaryEntry | None: ...

    def get_many(self, characters: Sequence[str]) -> dict[str, DictionaryEntry]: ...

    def page_by_element(
        self, element: Element, *, page: int, page_size: int
    ) -> Page[DictionaryEntry]: ...

    def page_by_characters(
        self, characters: Sequence[str], *, page: int, page_size: int
    ) -> Page[DictionaryEntry]: ...

    def review_queue(self, *, limit: int | None = None) -> list[DictionaryEntry]: ...

    def review_stats(self) -> ReviewStats: ...

    def stats(self) -> DictionaryStats: ...

    def increment_usage(self, character: str, *, name: bool = False) -> int | None: ...


@runtime_checkable
class ReadingRepository(Protocol):
    """Persistence contract for the per-character reading rows."""

    def replace_for_character(self, character: str, readings: Sequence[ReadingEntry]) -> None: ...

    def for_character(self, character: str) -> list[ReadingEntry]: ...

    def characters_for_readings(self, readings: Sequence[str]) -> list[str]: ...
