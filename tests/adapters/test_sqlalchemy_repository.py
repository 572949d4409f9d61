"""Exercise the SQLAlchemy dictionary and reading repositories."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from hanjadict.adapters.sqlalchemy import (
    SqlAlchemyDictionaryRepository,
    SqlAlchemyReadingRepository,
)
from hanjadict.adapters.sqlalchemy.repositories import MAX_PAGE_SIZE, clamp_page
from hanjadict.domain.model import (
    DecidedBy,
    DictionaryEntry,
    Element,
    ReadingEntry,
    ReviewStatus,
    YinYang,
)
from hanjadict.domain.phonetics import expand_dueum

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def _seed(session: Session) -> None:
    rows = [
        ("李", Element.WOOD, "이", 5, 1, ReviewStatus.OK, 80),
        ("理", Element.FIRE, "리", 0, 7, ReviewStatus.OK, 70),
        ("利", Element.WOOD, "리", 2, 0, ReviewStatus.NEEDS_REVIEW, 30),
        ("家", Element.WOOD, "가", 0, 0, ReviewStatus.NEEDS_REVIEW, 40),
    ]
    for character, element, reading, names, usage, status, score in rows:
        session.add(
            DictionaryEntry(
                character=character,
                element=element,
                strokes=7,
                yin_yang=YinYang.YANG,
                name_frequency=names,
                usage_frequency=usage,
                review_status=status,
                evidence_score=score,
            )
        )
        session.add(ReadingEntry(character=character, reading=reading, is_primary=True))
    session.commit()


def test_get_and_get_many(sqlite_session: Session) -> None:
    _seed(sqlite_session)
    repository = SqlAlchemyDictionaryRepository(sqlite_session)

    entry = repository.get("李")

    assert entry is not None
    assert entry.element is Element.WOOD
    assert repository.get("無") is None
    assert set(repository.get_many(["李", "家", "無"])) == {"李", "家"}
    assert repository.get_many([]) == {}


def test_page_by_element_orders_by_frequency(sqlite_session: Session) -> None:
    _seed(sqlite_session)
    repository = SqlAlchemyDictionaryRepository(sqlite_session)

    page = repository.page_by_element(Element.WOOD, page=1, page_size=10)

    assert [entry.character for entry in page.items] == ["李", "利", "家"]
    assert page.total == 3
    assert not page.has_next


def test_reading_search_includes_dueum_variants(sqlite_session: Session) -> None:
    _seed(sqlite_session)
    readings = SqlAlchemyReadingRepository(sqlite_session)
    entries = SqlAlchemyDictionaryRepository(sqlite_session)

    characters = readings.characters_for_readings(expand_dueum("이"))
    page = entries.page_by_characters(characters, page=1, page_size=10)

    assert [entry.character for entry in page.items] == ["李", "利", "理"]


def test_page_size_is_capped() -> None:
    assert clamp_page(0, 500) == (1, MAX_PAGE_SIZE)
    assert clamp_page(3, 0) == (3, 1)


def test_paging_reports_next_page(sqlite_session: Session) -> None:
    _seed(sqlite_session)
    repository = SqlAlchemyDictionaryRepository(sqlite_session)

    first = repository.page_by_element(Element.WOOD, page=1, page_size=2)
    second = repository.page_by_element(Element.WOOD, page=2, page_size=2)

    assert first.has_next
    assert [entry.character for entry in second.items] == ["家"]


def test_review_queue_and_stats(sqlite_session: Session) -> None:
    _seed(sqlite_session)
    repository = SqlAlchemyDictionaryRepository(sqlite_session)

    queue = repository.review_queue()
    entry = repository.get("家")
    assert entry is not None
    entry.resolve_manually(Element.EARTH)
    sqlite_session.commit()
    stats = repository.review_stats()

    assert [item.character for item in queue] == ["利", "家"]
    assert stats.pending == 1
    assert stats.resolved == 1
    assert stats.total == 2
    assert stats.resolution_rate == pytest.approx(50.0)
    assert repository.get("家").decided_by is DecidedBy.MANUAL  # type: ignore[union-attr]


def test_stats_group_counts(sqlite_session: Session) -> None:
    _seed(sqlite_session)

    stats = SqlAlchemyDictionaryRepository(sqlite_session).stats()

    assert stats.total_entries == 4
    assert stats.total_readings == 4
    assert stats.by_element == {"fire": 1, "wood": 3}
    assert stats.by_yin_yang == {"yang": 4}
    assert stats.by_review_status == {"needs_review": 2, "ok": 2}
    assert stats.average_strokes == pytest.approx(7.0)


def test_increment_usage(sqlite_session: Session) -> None:
    _seed(sqlite_session)
    repository = SqlAlchemyDictionaryRepository(sqlite_session)

    assert repository.increment_usage("家") == 1
    assert repository.increment_usage("家", name=True) == 1
    assert repository.increment_usage("無") is None


def test_replace_for_character_diffs_rows(sqlite_session: Session) -> None:
    _seed(sqlite_session)
    readings = SqlAlchemyReadingRepository(sqlite_session)
    original_id = readings.for_character("家")[0].id

    readings.replace_for_character(
        "家",
        [
            ReadingEntry(character="家", reading="가", is_primary=True),
            ReadingEntry(character="家", reading="고", is_primary=False),
        ],
    )
    sqlite_session.commit()

    rows = readings.for_character("家")
    assert [(row.reading, row.is_primary) for row in rows] == [("가", True), ("고", False)]
    assert rows[0].id == original_id

    readings.replace_for_character("家", [])
    sqlite_session.commit()
    assert readings.for_character("家") == []
