"""Dedup/Merge stage: one merged record per character, evidence preserved.

Field policy: every scalar field takes the value of the best-ranked record that
has one, ranking by quality score and then by source priority. A null never
overwrites a non-null. Element observations are not merged at all; each
distinct ``(mechanism, source, element)`` observation becomes an ``Evidence``
tuple so the resolve stage sees every vote.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from hanjadict.domain.model import (
    Evidence,
    EvidenceMechanism,
    MergedRecord,
    Reading,
    ReviewStatus,
    SourceTag,
    StageName,
    primary_reading,
)
from hanjadict.domain.phonetics import sound_element, stroke_element
from hanjadict.domain.pipeline.contracts import StageOutcome
from hanjadict.domain.pipeline.result import ResultRecorder

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

    from hanjadict.domain.model import NormalizedRecord, Ruleset, YinYang
    from hanjadict.domain.pipeline.contracts import StageContext

log = getLogger(__name__)

SOURCE_PRIORITY: Final[Mapping[str, int]] = MappingProxyType(
    {
        SourceTag.HANJA_DATA: 10,
        SourceTag.HANJA_EXPANDED: 9,
        SourceTag.SUPREME_COURT: 8,
        SourceTag.EXTERNAL_API: 6,
        SourceTag.USER_INPUT: 4,
    }
)
UNKNOWN_SOURCE_PRIORITY: Final[int] = 1
DERIVED_SOURCE_PREFIX: Final[str] = "derived"


def source_priority(source: str) -> int:
    return SOURCE_PRIORITY.get(source, UNKNOWN_SOURCE_PRIORITY)


def quality_score(record: NormalizedRecord) -> int:
    score = (record.confidence or 0.0) * 40
    if record.meaning:
        score += 15
    if record.readings:
        score += 15
    if record.strokes is not None:
        score += 10
    if record.element is not None:
        score += 10
    if record.yin_yang is not None:
        score += 5
    if record.status is ReviewStatus.OK:
        score += 5
    return min(100, round(score))


def _first_present[T](
    ranked: Iterable[NormalizedRecord], getter: Callable[[NormalizedRecord], T | None]
) -> T | None:
    for record in ranked:
        value = getter(record)
        if value is not None:
            return value
    return None


def _union_readings(records: Iterable[NormalizedRecord]) -> tuple[Reading, ...]:
    flags: dict[str, bool] = {}
    for record in records:
        for reading in record.readings:
            flags.setdefault(reading.text, reading.is_primary)

    merged: list[Reading] = []
    has_primary = False
    for text, is_primary in flags.items():
        keep_primary = is_primary and not has_primary
        has_primary = has_primary or keep_primary
        merged.append(Reading(text=text, is_primary=keep_primary))
    return tuple(merged)


def _collect_evidence(ranked: Iterable[NormalizedRecord], ruleset: Ruleset) -> list[Evidence]:
    seen: set[tuple[EvidenceMechanism, str, str]] = set()
    evidence: list[Evidence] = []
    for record in ranked:
        if record.element is None or record.mechanism is None:
            continue
        key = (record.mechanism, record.source, record.element)
        if key in seen:
            continue
        seen.add(key)
        evidence.append(
            Evidence(
                mechanism=record.mechanism,
                source=record.source,
                element=record.element,
                weight=ruleset.weight_for(record.mechanism),
            )
        )
    return evidence


def _derived_evidence(
    *, strokes: int | None, reading: str | None, ruleset: Ruleset
) -> list[Evidence]:
    derived: list[Evidence] = []
    if ruleset.derives(EvidenceMechanism.STROKE):
        element = stroke_element(strokes)
        if element is not None:
            derived.append(
                Evidence(
                    mechanism=EvidenceMechanism.STROKE,
                    source=f"{DERIVED_SOURCE_PREFIX}:{EvidenceMechanism.STROKE}",
                    element=element,
                    weight=ruleset.weight_for(EvidenceMechanism.STROKE),
                )
            )
    if ruleset.derives(EvidenceMechanism.SOUND):
        element = sound_element(reading)
        if element is not None:
            derived.append(
                Evidence(
                    mechanism=EvidenceMechanism.SOUND,
                    source=f"{DERIVED_SOURCE_PREFIX}:{EvidenceMechanism.SOUND}",
                    element=element,
                    weight=ruleset.weight_for(EvidenceMechanism.SOUND),
                )
            )
    return derived


def merge_group(records: Sequence[NormalizedRecord], *, ruleset: Ruleset) -> MergedRecord:
    """Merge every normalized observation of a single character."""

    if not records:
        raise ValueError("cannot merge an empty group")
    character = records[0].character
    if any(record.character != character for record in records):
        raise ValueError(f"group for {character!r} contains other characters")

    scores = [quality_score(record) for record in records]
    order = sorted(
        range(len(records)),
        key=lambda index: (scores[index], source_priority(records[index].source)),
        reverse=True,
    )
    ranked = [records[index] for index in order]

    strokes = _first_present(ranked, lambda record: record.strokes)
    readings = _union_readings(records)
    yin_yang_candidates: tuple[YinYang, ...] = tuple(
        dict.fromkeys(record.yin_yang for record in records if record.yin_yang is not None)
    )
    evidence = _collect_evidence(ranked, ruleset)
    evidence.extend(
        _derived_evidence(strokes=strokes, reading=primary_reading(readings), ruleset=ruleset)
    )

    return MergedRecord(
        character=character,
        meaning=_first_present(ranked, lambda record: record.meaning),
        strokes=strokes,
        yin_yang=_first_present(ranked, lambda record: record.yin_yang),
        confidence=_first_present(ranked, lambda record: record.confidence),
        sources=tuple(dict.fromkeys(record.source for record in ranked)),
        evidence=tuple(evidence),
        readings=readings,
        yin_yang_candidates=yin_yang_candidates,
        quality_score=max(scores),
    )


def group_by_character(
    records: Iterable[NormalizedRecord],
) -> dict[str, list[NormalizedRecord]]:
    groups: dict[str, list[NormalizedRecord]] = {}
    for record in records:
        groups.setdefault(record.character, []).append(record)
    return groups


@dataclass(slots=True)
class MergeStage:
    name: StageName = StageName.MERGE

    def run(
        self, batch: Sequence[NormalizedRecord], *, context: StageContext
    ) -> StageOutcome[MergedRecord]:
        recorder = ResultRecorder(self.name)
        recorder.processed_count = len(batch)
        groups = group_by_character(batch)

        merged = tuple(
            merge_group(records, ruleset=context.ruleset) for records in groups.values()
        )
        conflicting = sum(
            1
            for record in merged
            if len(
                {
                    evidence.element
                    for evidence in record.evidence
                    if not evidence.source.startswith(DERIVED_SOURCE_PREFIX)
                }
            )
            > 1
        )

        recorder.success_count = len(merged)
        recorder.details["duplicates_merged"] = len(batch) - len(merged)
        recorder.details["source_conflicts"] = conflicting
        log.info(
            "Merged %d records into %d characters (%d with conflicting sources)",
            len(batch),
            len(merged),
            conflicting,
        )
        return StageOutcome(merged, recorder.finish())
