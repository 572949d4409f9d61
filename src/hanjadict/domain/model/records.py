"""Per-stage record shapes flowing through the dictionary pipeline.

Every stage consumes one of these types and produces the next one:

``RawRecord`` -> ``NormalizedRecord`` -> ``MergedRecord`` -> ``ResolvedRecord``
-> ``ValidatedRecord``.

The records are immutable; stages derive new instances instead of mutating
shared state. Field types stay resolvable at runtime because the filesystem
adapter validates stage batches against these dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime  # noqa: TC003

from hanjadict.domain.model.enums import (  # noqa: TC001
    DecidedBy,
    Element,
    EvidenceMechanism,
    LoadAction,
    ReviewStatus,
    Severity,
    YinYang,
)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(slots=True, frozen=True, kw_only=True)
class RawRecord:
    """One observation of a character from one source, as the source spelled it."""

    character: str
    source: str
    meaning: str | None = None
    readings: tuple[str, ...] = ()
    strokes: int | str | None = None
    element_candidate: str | None = None
    mechanism: EvidenceMechanism | None = None
    yin_yang_candidate: str | None = None
    status: str | None = None
    confidence: float | None = None
    collected_at: datetime = field(default_factory=_utcnow)
    attributes: dict[str, str] = field(default_factory=dict[str, str])


@dataclass(slots=True, frozen=True, kw_only=True)
class Reading:
    text: str
    is_primary: bool = False


def primary_reading(readings: tuple[Reading, ...]) -> str | None:
    for reading in readings:
        if reading.is_primary:
            return reading.text
    return None


@dataclass(slots=True, frozen=True, kw_only=True)
class NormalizedRecord:
    character: str
    source: str
    meaning: str | None = None
    readings: tuple[Reading, ...] = ()
    strokes: int | None = None
    element: Element | None = None
    mechanism: EvidenceMechanism | None = None
    yin_yang: YinYang | None = None
    status: ReviewStatus | None = None
    confidence: float | None = None
    collected_at: datetime = field(default_factory=_utcnow)
    attributes: dict[str, str] = field(default_factory=dict[str, str])


@dataclass(slots=True, frozen=True, kw_only=True)
class Evidence:
    """One ``(mechanism, weight, suggested element)`` observation for resolution."""

    mechanism: EvidenceMechanism
    source: str
    element: Element | None
    weight: float


@dataclass(slots=True, frozen=True, kw_only=True)
class MergedRecord:
    character: str
    meaning: str | None = None
    strokes: int | None = None
    yin_yang: YinYang | None = None
    confidence: float | None = None
    sources: tuple[str, ...] = ()
    evidence: tuple[Evidence, ...] = ()
    readings: tuple[Reading, ...] = ()
    yin_yang_candidates: tuple[YinYang, ...] = ()
    quality_score: int = 0


@dataclass(slots=True, frozen=True, kw_only=True)
class ResolvedRecord:
    """A merged record with its final element decision attached."""

    character: str
    meaning: str | None = None
    strokes: int | None = None
    yin_yang: YinYang | None = None
    confidence: float | None = None
    sources: tuple[str, ...] = ()
    evidence: tuple[Evidence, ...] = ()
    readings: tuple[Reading, ...] = ()
    yin_yang_candidates: tuple[YinYang, ...] = ()
    quality_score: int = 0
    element: Element | None = None
    review_status: ReviewStatus = ReviewStatus.NEEDS_REVIEW
    evidence_score: int = 0
    decided_by: DecidedBy = DecidedBy.BASE
    ruleset: str = ""
    evidence_fingerprint: str = ""


@dataclass(slots=True, frozen=True, kw_only=True)
class RuleFailure:
    rule: str
    severity: Severity
    reason: str


@dataclass(slots=True, frozen=True, kw_only=True)
class ValidatedRecord:
    """A resolved record annotated with the rules it failed.

    ``failed_rules`` and ``is_valid`` are stored next to ``failures`` so the
    serialized batch is self-describing; build instances with ``annotate``.
    """

    record: ResolvedRecord
    failures: tuple[RuleFailure, ...] = ()
    failed_rules: tuple[str, ...] = ()
    is_valid: bool = True

    @classmethod
    def annotate(
        cls, record: ResolvedRecord, failures: tuple[RuleFailure, ...]
    ) -> ValidatedRecord:
        return cls(
            record=record,
            failures=failures,
            failed_rules=tuple(failure.rule for failure in failures),
            is_valid=not failures,
        )

    @property
    def has_critical_failure(self) -> bool:
        return any(failure.severity is Severity.CRITICAL for failure in self.failures)

    @property
    def character(self) -> str:
        return self.record.character


@dataclass(slots=True, frozen=True, kw_only=True)
class LoadOutcome:
    """What the load stage did to the stored entry of one character."""

    character: str
    action: LoadAction
