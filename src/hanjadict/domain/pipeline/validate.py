"""Validate stage: annotate resolved records with the rules they fail.

Validation never drops a record. Every record in the input batch appears in the
output batch, marked ``is_valid=False`` with its failing rules when any rule
fails. Deciding what to do with invalid records is the load stage's concern.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from hanjadict.domain.model import (
    DecidedBy,
    Element,
    ErrorKind,
    ReviewStatus,
    RuleFailure,
    Severity,
    StageName,
    ValidatedRecord,
    YinYang,
)
from hanjadict.domain.pipeline.contracts import StageOutcome
from hanjadict.domain.pipeline.result import ResultRecorder
from hanjadict.domain.vocabulary import MAX_STROKES, MIN_STROKES, is_cjk_ideograph

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from hanjadict.domain.model import ResolvedRecord
    from hanjadict.domain.pipeline.contracts import StageContext

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ValidationRule:
    """A named check; ``check`` returns ``None`` on pass or the failure reason."""

    name: str
    severity: Severity
    check: Callable[[ResolvedRecord], str | None]

    def apply(self, record: ResolvedRecord) -> RuleFailure | None:
        reason = self.check(record)
        if reason is None:
            return None
        return RuleFailure(rule=self.name, severity=self.severity, reason=reason)


def _required_character(record: ResolvedRecord) -> str | None:
    if not record.character or not record.character.strip():
        return "character is missing"
    return None


def _valid_cjk_character(record: ResolvedRecord) -> str | None:
    if not record.character:
        return None
    if not is_cjk_ideograph(record.character):
        return f"{record.character!r} is not a single CJK ideograph"
    return None


def _required_meaning_or_reading(record: ResolvedRecord) -> str | None:
    if not record.meaning and not record.readings:
        return "neither meaning nor reading present"
    return None


def _valid_strokes_range(record: ResolvedRecord) -> str | None:
    if record.strokes is None:
        return None
    if not MIN_STROKES <= record.strokes <= MAX_STROKES:
        return f"stroke count {record.strokes} outside [{MIN_STROKES}, {MAX_STROKES}]"
    return None


def _valid_confidence_score(record: ResolvedRecord) -> str | None:
    if record.confidence is None:
        return None
    if math.isnan(record.confidence) or not 0.0 <= record.confidence <= 1.0:
        return f"confidence {record.confidence} outside [0, 1]"
    return None


def _valid_element(record: ResolvedRecord) -> str | None:
    if record.element is None or record.element in Element:
        return None
    return f"unknown element {record.element!r}"


def _valid_yin_yang(record: ResolvedRecord) -> str | None:
    if record.yin_yang is None or record.yin_yang in YinYang:
        return None
    return f"unknown yin-yang value {record.yin_yang!r}"


def _consistent_element_data(record: ResolvedRecord) -> str | None:
    if record.review_status is ReviewStatus.OK and record.element is None:
        return "resolved as ok without an element"
    if record.decided_by is DecidedBy.AUTO:
        candidates = {evidence.element for evidence in record.evidence}
        if record.element not in candidates:
            return f"automatic element {record.element} is not among the evidence"
    return None


def _consistent_yin_yang_data(record: ResolvedRecord) -> str | None:
    if len(set(record.yin_yang_candidates)) > 1:
        observed = ", ".join(str(value) for value in record.yin_yang_candidates)
        return f"sources disagree on yin-yang ({observed})"
    return None


DEFAULT_RULES: Final[tuple[ValidationRule, ...]] = (
    ValidationRule("required_character", Severity.CRITICAL, _required_character),
    ValidationRule("valid_cjk_character", Severity.CRITICAL, _valid_cjk_character),
    ValidationRule(
        "required_meaning_or_reading", Severity.CRITICAL, _required_meaning_or_reading
    ),
    ValidationRule("valid_strokes_range", Severity.WARNING, _valid_strokes_range),
    ValidationRule("valid_confidence_score", Severity.WARNING, _valid_confidence_score),
    ValidationRule("valid_element", Severity.WARNING, _valid_element),
    ValidationRule("valid_yin_yang", Severity.WARNING, _valid_yin_yang),
    ValidationRule("consistent_element_data", Severity.INFO, _consistent_element_data),
    ValidationRule("consistent_yin_yang_data", Severity.INFO, _consistent_yin_yang_data),
)

DUPLICATE_RULE: Final[str] = "no_duplicate_characters"


def validate_record(
    record: ResolvedRecord, rules: Sequence[ValidationRule] = DEFAULT_RULES
) -> ValidatedRecord:
    failures = tuple(
        failure for failure in (rule.apply(record) for rule in rules) if failure is not None
    )
    return ValidatedRecord.annotate(record, failures)


def validate_batch(
    batch: Sequence[ResolvedRecord], rules: Sequence[ValidationRule] = DEFAULT_RULES
) -> list[ValidatedRecord]:
    """Apply ``rules`` to each record plus the batch-level duplicate check."""

    seen: set[str] = set()
    validated: list[ValidatedRecord] = []
    for record in batch:
        failures = [failure for failure in (rule.apply(record) for rule in rules) if failure]
        if record.character in seen:
            failures.append(
                RuleFailure(
                    rule=DUPLICATE_RULE,
                    severity=Severity.CRITICAL,
                    reason=f"{record.character} appears more than once in the batch",
                )
            )
        seen.add(record.character)
        validated.append(ValidatedRecord.annotate(record, tuple(failures)))
    return validated


@dataclass(slots=True)
class ValidateStage:
    rules: tuple[ValidationRule, ...] = DEFAULT_RULES
    name: StageName = StageName.VALIDATE

    def run(
        self, batch: Sequence[ResolvedRecord], *, context: StageContext
    ) -> StageOutcome[ValidatedRecord]:
        _ = context
        recorder = ResultRecorder(self.name)
        validated = validate_batch(batch, self.rules)

        rule_counts: dict[str, dict[str, int]] = {
            rule: {"checked": len(validated), "failed": 0}
            for rule in (*(rule.name for rule in self.rules), DUPLICATE_RULE)
        }
        for item in validated:
            for failure in item.failures:
                rule_counts[failure.rule]["failed"] += 1
                recorder.error(
                    ErrorKind.VALIDATION,
                    f"{failure.rule} ({failure.severity}): {failure.reason}",
                    record_key=item.character,
                    field=failure.rule,
                )

        valid = sum(1 for item in validated if item.is_valid)
        recorder.processed_count = len(validated)
        recorder.success_count = valid
        recorder.error_count = len(validated) - valid
        recorder.details["rules"] = rule_counts
        recorder.details["valid"] = valid
        recorder.details["invalid"] = len(validated) - valid
        log.info(
            "Validated %d records: %d valid, %d invalid",
            len(validated),
            valid,
            len(validated) - valid,
        )
        return StageOutcome(tuple(validated), recorder.finish())
