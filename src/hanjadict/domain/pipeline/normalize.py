"""Normalize stage: canonicalize every raw field onto the fixed value domains."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from hanjadict.domain.model import ErrorKind, NormalizedRecord, Reading, StageName
from hanjadict.domain.phonetics import parse_reading
from hanjadict.domain.pipeline.contracts import StageOutcome
from hanjadict.domain.pipeline.result import ResultRecorder
from hanjadict.domain.vocabulary import (
    Unrecognized,
    parse_character,
    parse_confidence,
    parse_element,
    parse_meaning,
    parse_review_status,
    parse_strokes,
    parse_yin_yang,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hanjadict.domain.model import RawRecord
    from hanjadict.domain.pipeline.contracts import StageContext

log = getLogger(__name__)


def _accept[T](value: T | Unrecognized | None, failures: list[Unrecognized]) -> T | None:
    if isinstance(value, Unrecognized):
        failures.append(value)
        return None
    return value


def normalize_record(raw: RawRecord) -> NormalizedRecord | list[Unrecognized]:
    """Canonicalize ``raw`` or return every field that could not be canonicalized."""

    failures: list[Unrecognized] = []
    character = _accept(parse_character(raw.character), failures)

    readings: list[Reading] = []
    for text in raw.readings:
        reading = _accept(parse_reading(text), failures)
        if reading is not None and all(existing.text != reading for existing in readings):
            readings.append(Reading(text=reading, is_primary=not readings))

    strokes = _accept(None if raw.strokes is None else parse_strokes(raw.strokes), failures)
    element = _accept(
        None if raw.element_candidate is None else parse_element(raw.element_candidate),
        failures,
    )
    yin_yang = _accept(
        None if raw.yin_yang_candidate is None else parse_yin_yang(raw.yin_yang_candidate),
        failures,
    )
    status = _accept(None if raw.status is None else parse_review_status(raw.status), failures)
    confidence = _accept(
        None if raw.confidence is None else parse_confidence(raw.confidence),
        failures,
    )
    if element is not None and raw.mechanism is None:
        failures.append(
            Unrecognized(
                "mechanism",
                str(raw.element_candidate),
                "element candidate without a classification mechanism",
            )
        )

    if failures or character is None:
        return failures

    return NormalizedRecord(
        character=character,
        source=raw.source,
        meaning=parse_meaning(raw.meaning),
        readings=tuple(readings),
        strokes=strokes,
        element=element,
        mechanism=raw.mechanism if element is not None else None,
        yin_yang=yin_yang,
        status=status,
        confidence=confidence,
        collected_at=raw.collected_at,
        attributes=dict(raw.attributes),
    )


@dataclass(slots=True)
class NormalizeStage:
    name: StageName = StageName.NORMALIZE

    def run(
        self, batch: Sequence[RawRecord], *, context: StageContext
    ) -> StageOutcome[NormalizedRecord]:
        _ = context
        recorder = ResultRecorder(self.name)
        normalized: list[NormalizedRecord] = []
        rejected_by_field: dict[str, int] = {}

        for index, raw in enumerate(batch):
            recorder.processed_count += 1
            outcome = normalize_record(raw)
            if isinstance(outcome, NormalizedRecord):
                normalized.append(outcome)
                continue

            recorder.error_count += 1
            record_key = f"{raw.source}#{index}:{raw.character}"
            for failure in outcome:
                rejected_by_field[failure.field] = rejected_by_field.get(failure.field, 0) + 1
                recorder.error(
                    ErrorKind.NORMALIZATION,
                    failure.error,
                    record_key=record_key,
                    field=failure.field,
                    original_value=failure.original_value,
                )
            log.debug("Dropped %s: %s", record_key, "; ".join(f.error for f in outcome))

        recorder.success_count = len(normalized)
        recorder.details["rejected_by_field"] = rejected_by_field
        log.info(
            "Normalized %d of %d records (%d rejected)",
            len(normalized),
            recorder.processed_count,
            recorder.error_count,
        )
        return StageOutcome(tuple(normalized), recorder.finish())
