"""Builders for pipeline records and in-memory sources used across tests."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from hanjadict.domain.model import (
    DecidedBy,
    Element,
    Evidence,
    EvidenceMechanism,
    MergedRecord,
    NormalizedRecord,
    RawRecord,
    Reading,
    ResolvedRecord,
    ReviewStatus,
    Ruleset,
    SourceTag,
    ValidatedRecord,
)
from hanjadict.domain.pipeline.contracts import StageContext
from hanjadict.domain.ports.sources import SourceBatch, SourceUnavailableError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from hanjadict.domain.ports.sources import SourceRejection

COLLECTED_AT = datetime(2024, 5, 1, 12, tzinfo=UTC)

# Meaning only: no strokes and no readings, so no derived evidence is added.
HYEON_BASE = RawRecord(
    character="賢",
    source=SourceTag.HANJA_DATA,
    meaning="어질",
    element_candidate="목",
    mechanism=EvidenceMechanism.BASE,
    confidence=0.9,
    collected_at=COLLECTED_AT,
)
HYEON_EXPANDED = RawRecord(
    character="賢",
    source=SourceTag.HANJA_EXPANDED,
    meaning="어질",
    element_candidate="金",
    mechanism=EvidenceMechanism.EXPANDED,
    confidence=0.9,
    collected_at=COLLECTED_AT,
)


def make_context(**overrides: object) -> StageContext:
    values: dict[str, object] = {"ruleset": Ruleset(), "run_id": "test-run"}
    values.update(overrides)
    return StageContext(**values)  # type: ignore[arg-type]


def make_raw(character: str = "家", **overrides: object) -> RawRecord:
    values: dict[str, object] = {
        "character": character,
        "source": SourceTag.HANJA_DATA,
        "meaning": "집",
        "readings": ("가",),
        "strokes": 10,
        "element_candidate": "목",
        "mechanism": EvidenceMechanism.BASE,
        "confidence": 0.9,
        "collected_at": COLLECTED_AT,
    }
    values.update(overrides)
    return RawRecord(**values)  # type: ignore[arg-type]


def make_normalized(character: str = "家", **overrides: object) -> NormalizedRecord:
    values: dict[str, object] = {
        "character": character,
        "source": SourceTag.HANJA_DATA,
        "meaning": "집",
        "readings": (Reading(text="가", is_primary=True),),
        "strokes": 10,
        "element": Element.WOOD,
        "mechanism": EvidenceMechanism.BASE,
        "confidence": 0.9,
        "collected_at": COLLECTED_AT,
    }
    values.update(overrides)
    return NormalizedRecord(**values)  # type: ignore[arg-type]


def make_evidence(
    mechanism: EvidenceMechanism, element: Element | None, *, weight: float = 0.4
) -> Evidence:
    source = {
        EvidenceMechanism.BASE: SourceTag.HANJA_DATA,
        EvidenceMechanism.EXPANDED: SourceTag.HANJA_EXPANDED,
    }.get(mechanism, f"derived:{mechanism}")
    return Evidence(mechanism=mechanism, source=source, element=element, weight=weight)


def make_merged(character: str = "家", **overrides: object) -> MergedRecord:
    values: dict[str, object] = {
        "character": character,
        "meaning": "집",
        "strokes": 10,
        "sources": (SourceTag.HANJA_DATA,),
        "evidence": (make_evidence(EvidenceMechanism.BASE, Element.WOOD),),
        "readings": (Reading(text="가", is_primary=True),),
        "quality_score": 91,
    }
    values.update(overrides)
    return MergedRecord(**values)  # type: ignore[arg-type]


def make_resolved(character: str = "家", **overrides: object) -> ResolvedRecord:
    values: dict[str, object] = {
        "character": character,
        "meaning": "집",
        "strokes": 10,
        "sources": (SourceTag.HANJA_DATA,),
        "evidence": (
            make_evidence(EvidenceMechanism.BASE, Element.WOOD),
            make_evidence(EvidenceMechanism.EXPANDED, Element.WOOD),
        ),
        "readings": (Reading(text="가", is_primary=True),),
        "element": Element.WOOD,
        "review_status": ReviewStatus.OK,
        "evidence_score": 80,
        "decided_by": DecidedBy.AUTO,
        "ruleset": "weights-v1",
        "evidence_fingerprint": f"fp-{character}",
    }
    values.update(overrides)
    return ResolvedRecord(**values)  # type: ignore[arg-type]


def make_validated(character: str = "家", **overrides: object) -> ValidatedRecord:
    return ValidatedRecord.annotate(make_resolved(character, **overrides), ())


class FakeSource:
    """In-memory ``RecordSource`` returning fixed records, or failing on demand."""

    def __init__(
        self,
        name: str,
        records: Iterable[RawRecord] = (),
        *,
        rejected: Iterable[SourceRejection] = (),
        fail: bool = False,
    ) -> None:
        self._name = name
        self._records = tuple(records)
        self._rejected = tuple(rejected)
        self._fail = fail
        self.calls = 0

    @property
    def name(self) -> str:
        return self._name

    def fetch(self) -> SourceBatch:
        self.calls += 1
        if self._fail:
            raise SourceUnavailableError(self._name, "connection refused")
        return SourceBatch(records=self._records, rejected=self._rejected)
