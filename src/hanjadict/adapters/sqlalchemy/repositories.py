"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from sqlalchemy import func, select

from hanjadict.adapters.sqlalchemy.mappings import hanja_dict_table, hanja_reading_table
from hanjadict.domain.model import (
    DecidedBy,
    DictionaryEntry,
    DictionaryStats,
    Page,
    ReadingEntry,
    ReviewStats,
    ReviewStatus,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.orm import Session

    from hanjadict.domain.model import Element

MAX_PAGE_SIZE: Final[int] = 50

_DISPLAY_ORDER = (
    hanja_dict_table.c.name_frequency.desc(),
    hanja_dict_table.c.usage_frequency.desc(),
    hanja_dict_table.c.character.asc(),
)


def clamp_page(page: int, page_size: int) -> tuple[int, int]:
    return max(page, 1), min(max(page_size, 1), MAX_PAGE_SIZE)


class SqlAlchemyDictionaryRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entry: DictionaryEntry) -> None:
        self.session.add(entry)

    def get(self, character: str) -> DictionaryEntry | None:
        stmt = select(DictionaryEntry).where(hanja_dict_table.c.character == character)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_many(self, characters: Sequence[str]) -> dict[str, DictionaryEntry]:
        if not characters:
            return {}
        stmt = select(DictionaryEntry).where(hanja_dict_table.c.character.in_(characters))
        return {entry.character: entry for entry in self.session.execute(stmt).scalars()}

    def _page(
        self, condition: ColumnElement[bool], *, page: int, page_size: int
    ) -> Page[DictionaryEntry]:
        page, page_size = clamp_page(page, page_size)
        total_stmt = select(func.count()).select_from(hanja_dict_table).where(condition)
        total = self.session.execute(total_stmt).scalar_one()
        stmt: Select[tuple[DictionaryEntry]] = (
            select(DictionaryEntry)
            .where(condition)
            .order_by(*_DISPLAY_ORDER)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        items = tuple(self.session.execute(stmt).scalars())
        return Page(items=items, page=page, page_size=page_size, total=total)

    def page_by_element(
        self, element: Element, *, page: int, page_size: int
    ) -> Page[DictionaryEntry]:
        return self._page(hanja_dict_table.c.element == element, page=page, page_size=page_size)

    def page_by_characters(
        self, characters: Sequence[str], *, page: int, page_size: int
    ) -> Page[DictionaryEntry]:
        condition = hanja_dict_table.c.character.in_(list(characters))
        return self._page(condition, page=page, page_size=page_size)

    def review_queue(self, *, limit: int | None = None) -> list[DictionaryEntry]:
        stmt = (
            select(DictionaryEntry)
            .where(hanja_dict_table.c.review_status == ReviewStatus.NEEDS_REVIEW)
            .order_by(hanja_dict_table.c.evidence_score.asc(), hanja_dict_table.c.character)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())

    def review_stats(self) -> ReviewStats:
        pending = self._count(hanja_dict_table.c.review_status == ReviewStatus.NEEDS_REVIEW)
        resolved = self._count(hanja_dict_table.c.decided_by == DecidedBy.MANUAL)
        return ReviewStats(total=pending + resolved, pending=pending, resolved=resolved)

    def stats(self) -> DictionaryStats:
        total_entries = self._count(None)
        total_readings = self.session.execute(
            select(func.count()).select_from(hanja_reading_table)
        ).scalar_one()
        average = self.session.execute(select(func.avg(hanja_dict_table.c.strokes))).scalar_one()
        return DictionaryStats(
            total_entries=total_entries,
            total_readings=total_readings,
            by_element=self._group_counts(hanja_dict_table.c.element),
            by_yin_yang=self._group_counts(hanja_dict_table.c.yin_yang),
            by_review_status=self._group_counts(hanja_dict_table.c.review_status),
            average_strokes=None if average is None else round(float(average), 2),
        )

    def increment_usage(self, character: str, *, name: bool = False) -> int | None:
        entry = self.get(character)
        if entry is None:
            return None
        if name:
            entry.name_frequency += 1
            return entry.name_frequency
        entry.usage_frequency += 1
        return entry.usage_frequency

    def _count(self, condition: ColumnElement[bool] | None) -> int:
        stmt = select(func.count()).select_from(hanja_dict_table)
        if condition is not None:
            stmt = stmt.where(condition)
        return self.session.execute(stmt).scalar_one()

    def _group_counts(self, column: ColumnElement[object]) -> dict[str, int]:
        stmt = (
            select(column, func.count())
            .where(column.is_not(None))
            .group_by(column)
            .order_by(column)
        )
        return {str(value): count for value, count in self.session.execute(stmt).tuples()}


class SqlAlchemyReadingRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def replace_for_character(self, character: str, readings: Sequence[ReadingEntry]) -> None:
        """Make the stored readings of ``character`` equal ``readings``.

        Rows whose reading text is unchanged are updated in place so a repeated
        load leaves identifiers untouched.
        """

        existing = {row.reading: row for row in self.for_character(character)}
        incoming = {reading.reading: reading for reading in readings}
        for text, row in existing.items():
            if text not in incoming:
                self.session.delete(row)
        for text, reading in incoming.items():
            row = existing.get(text)
            if row is None:
                self.session.add(reading)
                continue
            if row.is_primary != reading.is_primary:
                row.is_primary = reading.is_primary
            if row.sound_element != reading.sound_element:
                row.sound_element = reading.sound_element
        self.session.flush()

    def for_character(self, character: str) -> list[ReadingEntry]:
        stmt = (
            select(ReadingEntry)
            .where(hanja_reading_table.c.character == character)
            .order_by(hanja_reading_table.c.is_primary.desc(), hanja_reading_table.c.reading)
        )
        return list(self.session.execute(stmt).scalars())

    def characters_for_readings(self, readings: Sequence[str]) -> list[str]:
        if not readings:
            return []
        stmt = (
            select(hanja_reading_table.c.character)
            .where(hanja_reading_table.c.reading.in_(list(readings)))
            .distinct()
            .order_by(hanja_reading_table.c.character)
        )
        return list(self.session.execute(stmt).scalars())
