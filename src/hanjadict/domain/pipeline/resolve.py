"""Resolve stage: weighted-evidence selection of one element per character.

The decision function is pure. Given the same evidence and the same ruleset it
always returns the same decision, which is what makes pipeline reruns
idempotent and lets the load stage tell a changed evidence set from a rerun.

Algorithm
---------
1. Collapse evidence to distinct ``(mechanism, element)`` pairs and sum the
   ruleset weight of each pair per suggested element.
2. A unique top element whose weight reaches the ruleset threshold wins:
   ``ok`` / ``auto``.
3. Otherwise (tie at the top, weight below threshold, no evidence) the record
   needs review and falls back to the base candidate, then the expanded one:
   ``needs_review`` / ``base``.
4. ``evidence_score`` is the top weight as an integer percentage in [0, 100].
"""

from __future__ import annotations

import hashlib
import json
import math
from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Final

from hanjadict.domain.model import (
    DecidedBy,
    Element,
    ErrorKind,
    EvidenceMechanism,
    ResolvedRecord,
    ReviewStatus,
    StageName,
)
from hanjadict.domain.pipeline.contracts import StageOutcome
from hanjadict.domain.pipeline.result import ResultRecorder

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from hanjadict.domain.model import Evidence, MergedRecord, Ruleset
    from hanjadict.domain.pipeline.contracts import StageContext

log = getLogger(__name__)

_WEIGHT_TOLERANCE: Final[float] = 1e-9
_FALLBACK_ORDER: Final[tuple[EvidenceMechanism, ...]] = (
    EvidenceMechanism.BASE,
    EvidenceMechanism.EXPANDED,
)


class ReviewReason(StrEnum):
    TIE = "tie"
    BELOW_THRESHOLD = "below_threshold"
    NO_EVIDENCE = "no_evidence"


@dataclass(slots=True, frozen=True)
class Decision:
    element: Element | None
    review_status: ReviewStatus
    evidence_score: int
    decided_by: DecidedBy
    reason: ReviewReason | None = None


def _distinct_votes(evidence: Iterable[Evidence]) -> list[tuple[EvidenceMechanism, Element]]:
    votes = (
        (item.mechanism, item.element) for item in evidence if item.element is not None
    )
    return list(dict.fromkeys(votes))


def tally(evidence: Iterable[Evidence], ruleset: Ruleset) -> dict[Element, float]:
    totals: dict[Element, float] = {}
    for mechanism, element in _distinct_votes(evidence):
        totals[element] = totals.get(element, 0.0) + ruleset.weight_for(mechanism)
    return totals


def evidence_fingerprint(evidence: Iterable[Evidence]) -> str:
    """Stable digest of the votes; unchanged while the same mechanisms say the same thing."""

    votes = sorted(f"{mechanism}:{element}" for mechanism, element in _distinct_votes(evidence))
    digest = hashlib.sha256(json.dumps(votes).encode("utf-8")).hexdigest()
    return digest[:16]


def _score(weight: float) -> int:
    return max(0, min(100, math.floor(weight * 100 + 0.5 + _WEIGHT_TOLERANCE)))


def _fallback(evidence: Sequence[Evidence]) -> Element | None:
    for mechanism in _FALLBACK_ORDER:
        for item in evidence:
            if item.mechanism is mechanism and item.element is not None:
                return item.element
    return None


def decide(evidence: Sequence[Evidence], ruleset: Ruleset) -> Decision:
    totals = tally(evidence, ruleset)
    ranked = sorted(totals.items(), key=lambda pair: pair[1], reverse=True)
    if not ranked:
        return Decision(
            element=_fallback(evidence),
            review_status=ReviewStatus.NEEDS_REVIEW,
            evidence_score=0,
            decided_by=DecidedBy.BASE,
            reason=ReviewReason.NO_EVIDENCE,
        )

    top_element, top_weight = ranked[0]
    tied = len(ranked) > 1 and math.isclose(
        ranked[1][1], top_weight, abs_tol=_WEIGHT_TOLERANCE
    )
    score = _score(top_weight)
    if not tied and top_weight >= ruleset.threshold - _WEIGHT_TOLERANCE:
        return Decision(
            element=top_element,
            review_status=ReviewStatus.OK,
            evidence_score=score,
            decided_by=DecidedBy.AUTO,
        )
    return Decision(
        element=_fallback(evidence),
        review_status=ReviewStatus.NEEDS_REVIEW,
        evidence_score=score,
        decided_by=DecidedBy.BASE,
        reason=ReviewReason.TIE if tied else ReviewReason.BELOW_THRESHOLD,
    )


def resolve_record(record: MergedRecord, ruleset: Ruleset) -> ResolvedRecord:
    decision = decide(record.evidence, ruleset)
    return ResolvedRecord(
        character=record.character,
        meaning=record.meaning,
        strokes=record.strokes,
        yin_yang=record.yin_yang,
        confidence=record.confidence,
        sources=record.sources,
        evidence=record.evidence,
        readings=record.readings,
        yin_yang_candidates=record.yin_yang_candidates,
        quality_score=record.quality_score,
        element=decision.element,
        review_status=decision.review_status,
        evidence_score=decision.evidence_score,
        decided_by=decision.decided_by,
        ruleset=ruleset.version,
        evidence_fingerprint=evidence_fingerprint(record.evidence),
    )


@dataclass(slots=True)
class ResolveStage:
    name: StageName = StageName.RESOLVE

    def run(
        self, batch: Sequence[MergedRecord], *, context: StageContext
    ) -> StageOutcome[ResolvedRecord]:
        recorder = ResultRecorder(self.name)
        ruleset = context.ruleset
        resolved: list[ResolvedRecord] = []
        reasons: dict[str, int] = {}

        for record in batch:
            recorder.processed_count += 1
            decision = decide(record.evidence, ruleset)
            resolved.append(resolve_record(record, ruleset))
            if decision.reason is not None:
                reasons[decision.reason] = reasons.get(decision.reason, 0) + 1
                recorder.warn(
                    ErrorKind.RESOLUTION,
                    f"needs review ({decision.reason}), score {decision.evidence_score}",
                    record_key=record.character,
                )

        auto_resolved = sum(1 for record in resolved if record.review_status is ReviewStatus.OK)
        recorder.success_count = len(resolved)
        recorder.details["ruleset"] = ruleset.version
        recorder.details["auto_resolved"] = auto_resolved
        recorder.details["needs_review"] = len(resolved) - auto_resolved
        recorder.details["review_reasons"] = reasons
        log.info(
            "Resolved %d characters with ruleset %s: %d automatic, %d need review",
            len(resolved),
            ruleset.version,
            auto_resolved,
            len(resolved) - auto_resolved,
        )
        return StageOutcome(tuple(resolved), recorder.finish())
