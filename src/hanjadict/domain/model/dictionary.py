"""Persisted dictionary entities and read-side value objects."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from hanjadict.domain.model.enums import DecidedBy, Element, ReviewStatus, YinYang

if TYPE_CHECKING:
    from collections.abc import Mapping


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False, kw_only=True)
class DictionaryEntry:
    """One row per character; the authoritative dictionary state."""

    character: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    codepoint: int | None = None
    meaning: str | None = None
    strokes: int | None = None
    element: Element | None = None
    yin_yang: YinYang | None = None
    review_status: ReviewStatus = ReviewStatus.NEEDS_REVIEW
    evidence_score: int = 0
    decided_by: DecidedBy = DecidedBy.BASE
    ruleset: str = ""
    evidence_fingerprint: str = ""
    evidence_json: str | None = None
    usage_frequency: int = 0
    name_frequency: int = 0
    review_note: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_manual(self) -> bool:
        return self.decided_by is DecidedBy.MANUAL

    def resolve_manually(
        self,
        element: Element,
        *,
        note: str | None = None,
        at: datetime | None = None,
    ) -> None:
        """Record an operator decision; later automatic runs keep it while evidence is stable."""

        self.element = element
        self.review_status = ReviewStatus.OK
        self.decided_by = DecidedBy.MANUAL
        self.review_note = note
        self.updated_at = at or _utcnow()

    def visible_element(self, *, mask_pending: bool) -> Element | None:
        if mask_pending and self.review_status is ReviewStatus.NEEDS_REVIEW:
            return None
        return self.element


@dataclass(eq=False, kw_only=True)
class ReadingEntry:
    character: str
    reading: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    is_primary: bool = False
    sound_element: Element | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class DictionaryStats:
    """Aggregate snapshot of the persisted dictionary."""

    total_entries: int = 0
    total_readings: int = 0
    by_element: Mapping[str, int] = field(default_factory=dict[str, int])
    by_yin_yang: Mapping[str, int] = field(default_factory=dict[str, int])
    by_review_status: Mapping[str, int] = field(default_factory=dict[str, int])
    average_strokes: float | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "total_entries": self.total_entries,
            "total_readings": self.total_readings,
            "by_element": dict(self.by_element),
            "by_yin_yang": dict(self.by_yin_yang),
            "by_review_status": dict(self.by_review_status),
            "average_strokes": self.average_strokes,
        }


@dataclass(slots=True, frozen=True, kw_only=True)
class ReviewStats:
    total: int
    pending: int
    resolved: int

    @property
    def resolution_rate(self) -> float:
        return (self.resolved / self.total) * 100 if self.total else 0.0


@dataclass(slots=True, frozen=True, kw_only=True)
class Page[T]:
    items: tuple[T, ...]
    page: int
    page_size: int
    total: int

    @property
    def has_next(self) -> bool:
        return self.page * self.page_size < self.total
