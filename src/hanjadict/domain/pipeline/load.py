"""Load stage: idempotent upsert of validated records into the dictionary store."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from itertools import batched
from logging import getLogger
from typing import TYPE_CHECKING

from hanjadict.domain.model import (
    DictionaryEntry,
    ErrorKind,
    LoadAction,
    LoadOutcome,
    ReadingEntry,
    ReviewStatus,
    StageName,
)
from hanjadict.domain.phonetics import sound_element
from hanjadict.domain.pipeline.contracts import StageOutcome
from hanjadict.domain.pipeline.result import ResultRecorder

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hanjadict.domain.model import DictionaryStats, ResolvedRecord, ValidatedRecord
    from hanjadict.domain.pipeline.contracts import StageContext
    from hanjadict.domain.ports import DictionaryRepositories, DictionaryUnitOfWorkFactory

log = getLogger(__name__)

# Fields overwritten by an automatic load; a manual decision keeps the last three.
_CONTENT_FIELDS = (
    "codepoint",
    "meaning",
    "strokes",
    "yin_yang",
    "evidence_score",
    "ruleset",
    "evidence_fingerprint",
    "evidence_json",
)
_DECISION_FIELDS = ("element", "review_status", "decided_by", "review_note")


def evidence_json(record: ResolvedRecord) -> str:
    payload = [
        {
            "mechanism": str(item.mechanism),
            "source": item.source,
            "element": None if item.element is None else str(item.element),
            "weight": item.weight,
        }
        for item in record.evidence
    ]
    return json.dumps(payload, ensure_ascii=False, sort_keys=True)


def _target_values(item: ValidatedRecord) -> dict[str, object]:
    record = item.record
    review_status = record.review_status
    review_note = None
    if not item.is_valid:
        review_status = ReviewStatus.NEEDS_REVIEW
        review_note = "failed validation: " + ", ".join(item.failed_rules)
    return {
        "codepoint": ord(record.character) if len(record.character) == 1 else None,
        "meaning": record.meaning,
        "strokes": record.strokes,
        "yin_yang": record.yin_yang,
        "evidence_score": record.evidence_score,
        "ruleset": record.ruleset,
        "evidence_fingerprint": record.evidence_fingerprint,
        "evidence_json": evidence_json(record),
        "element": record.element,
        "review_status": review_status,
        "decided_by": record.decided_by,
        "review_note": review_note,
    }


def _reading_rows(record: ResolvedRecord) -> list[ReadingEntry]:
    return [
        ReadingEntry(
            character=record.character,
            reading=reading.text,
            is_primary=reading.is_primary,
            sound_element=sound_element(reading.text),
        )
        for reading in record.readings
    ]


def apply_record(
    repositories: DictionaryRepositories,
    item: ValidatedRecord,
    *,
    now: datetime,
) -> LoadAction:
    """Upsert one record and replace its readings; return what happened to the entry."""

    record = item.record
    values = _target_values(item)
    repositories.readings.replace_for_character(record.character, _reading_rows(record))

    entry = repositories.entries.get(record.character)
    if entry is None:
        entry = DictionaryEntry(character=record.character, created_at=now, updated_at=now)
        for name, value in values.items():
            setattr(entry, name, value)
        repositories.entries.add(entry)
        return LoadAction.INSERTED

    manual_kept = entry.is_manual and entry.evidence_fingerprint == record.evidence_fingerprint
    fields = _CONTENT_FIELDS if manual_kept else (*_CONTENT_FIELDS, *_DECISION_FIELDS)
    changed = [name for name in fields if getattr(entry, name) != values[name]]
    for name in changed:
        setattr(entry, name, values[name])
    if changed:
        entry.updated_at = now
    if manual_kept:
        return LoadAction.PRESERVED_MANUAL
    return LoadAction.UPDATED if changed else LoadAction.UNCHANGED


@dataclass(slots=True)
class LoadStage:
    """Persist validated records in character-ordered batches, one transaction each.

    A batch that fails is rolled back as a whole and retried record by record;
    only records that fail on their own become persistence errors.

    Records with a critical validation failure are skipped unless the run
    includes invalid records; any other invalid record is stored for review.
    """

    unit_of_work_factory: DictionaryUnitOfWorkFactory
    name: StageName = StageName.LOAD

    def _stats(self) -> DictionaryStats:
        with self.unit_of_work_factory() as uow:
            return uow.repositories.entries.stats()

    def _load_batch(
        self, batch: Sequence[ValidatedRecord], now: datetime
    ) -> list[LoadOutcome]:
        with self.unit_of_work_factory() as uow:
            outcomes = [
                LoadOutcome(
                    character=item.character,
                    action=apply_record(uow.repositories, item, now=now),
                )
                for item in batch
            ]
            uow.commit()
        return outcomes

    def run(
        self, batch: Sequence[ValidatedRecord], *, context: StageContext
    ) -> StageOutcome[LoadOutcome]:
        recorder = ResultRecorder(self.name)
        selected = [
            item for item in batch if context.include_invalid or not item.has_critical_failure
        ]
        selected.sort(key=lambda item: item.character)
        skipped_invalid = len(batch) - len(selected)
        now = datetime.now(tz=UTC)

        before = self._stats()
        outcomes: list[LoadOutcome] = []
        retried_batches = 0
        for chunk in batched(selected, context.batch_size):
            recorder.processed_count += len(chunk)
            try:
                outcomes.extend(self._load_batch(chunk, now))
                continue
            except Exception as exc:  # noqa: BLE001
                retried_batches += 1
                log.warning(
                    "Batch %s..%s failed, retrying per record: %s",
                    chunk[0].character,
                    chunk[-1].character,
                    exc,
                )

            for item in chunk:
                try:
                    outcomes.extend(self._load_batch((item,), now))
                except Exception as exc:  # noqa: BLE001
                    log.exception("Could not load %s", item.character)
                    recorder.error_count += 1
                    recorder.error(
                        ErrorKind.PERSISTENCE,
                        str(exc),
                        record_key=item.character,
                    )
        after = self._stats()

        actions = {str(action): 0 for action in LoadAction}
        for outcome in outcomes:
            actions[outcome.action] += 1
        recorder.success_count = len(outcomes)
        recorder.details["actions"] = actions
        recorder.details["skipped_invalid"] = skipped_invalid
        recorder.details["retried_batches"] = retried_batches
        recorder.details["stats_before"] = before.to_dict()
        recorder.details["stats_after"] = after.to_dict()
        log.info(
            "Loaded %d records (%d inserted, %d updated, %d unchanged, %d manual kept); "
            "%d failed, %d invalid skipped",
            len(outcomes),
            actions[LoadAction.INSERTED],
            actions[LoadAction.UPDATED],
            actions[LoadAction.UNCHANGED],
            actions[LoadAction.PRESERVED_MANUAL],
            recorder.error_count,
            skipped_invalid,
        )
        return StageOutcome(tuple(outcomes), recorder.finish())
