from __future__ import annotations

import itertools
from types import MappingProxyType

import pytest

from hanjadict.domain.model import (
    DecidedBy,
    Element,
    ErrorKind,
    EvidenceMechanism,
    ReviewStatus,
    Ruleset,
)
from hanjadict.domain.pipeline import ResolveStage
from hanjadict.domain.pipeline.resolve import (
    ReviewReason,
    decide,
    evidence_fingerprint,
    resolve_record,
    tally,
)
from tests.helpers.records import make_context, make_evidence, make_merged

BASE = EvidenceMechanism.BASE
EXPANDED = EvidenceMechanism.EXPANDED
STROKE = EvidenceMechanism.STROKE
SOUND = EvidenceMechanism.SOUND


def test_tie_between_base_and_expanded_needs_review() -> None:
    evidence = [make_evidence(BASE, Element.WOOD), make_evidence(EXPANDED, Element.METAL)]

    decision = decide(evidence, Ruleset())

    assert decision.review_status is ReviewStatus.NEEDS_REVIEW
    assert decision.decided_by is DecidedBy.BASE
    assert decision.element is Element.WOOD
    assert decision.evidence_score == 40
    assert decision.reason is ReviewReason.TIE


def test_clear_majority_is_resolved_automatically() -> None:
    evidence = [
        make_evidence(BASE, Element.WOOD),
        make_evidence(EXPANDED, Element.METAL),
        make_evidence(STROKE, Element.METAL, weight=0.3),
    ]

    decision = decide(evidence, Ruleset())

    assert decision.review_status is ReviewStatus.OK
    assert decision.decided_by is DecidedBy.AUTO
    assert decision.element is Element.METAL
    assert decision.evidence_score == 70


def test_unique_top_below_threshold_needs_review() -> None:
    decision = decide([make_evidence(BASE, Element.FIRE)], Ruleset())

    assert decision.review_status is ReviewStatus.NEEDS_REVIEW
    assert decision.element is Element.FIRE
    assert decision.reason is ReviewReason.BELOW_THRESHOLD


def test_threshold_is_a_ruleset_parameter() -> None:
    decision = decide([make_evidence(BASE, Element.FIRE)], Ruleset(threshold=0.4))

    assert decision.review_status is ReviewStatus.OK
    assert decision.decided_by is DecidedBy.AUTO


def test_no_evidence_falls_back_to_none() -> None:
    decision = decide([], Ruleset())

    assert decision.element is None
    assert decision.evidence_score == 0
    assert decision.reason is ReviewReason.NO_EVIDENCE


def test_fallback_prefers_expanded_when_base_is_missing() -> None:
    ruleset = Ruleset(
        weights=MappingProxyType({BASE: 0.4, EXPANDED: 0.4, STROKE: 0.3, SOUND: 0.45})
    )
    evidence = [make_evidence(EXPANDED, Element.METAL), make_evidence(SOUND, Element.FIRE)]

    decision = decide(evidence, ruleset)

    assert decision.reason is ReviewReason.BELOW_THRESHOLD
    assert decision.evidence_score == 45
    assert decision.element is Element.METAL


def test_duplicate_mechanism_votes_count_once() -> None:
    evidence = [
        make_evidence(BASE, Element.WOOD),
        make_evidence(BASE, Element.WOOD),
        make_evidence(EXPANDED, Element.METAL),
    ]

    assert tally(evidence, Ruleset()) == {Element.WOOD: 0.4, Element.METAL: 0.4}


def test_resolution_is_independent_of_evidence_order() -> None:
    evidence = [
        make_evidence(BASE, Element.WOOD),
        make_evidence(EXPANDED, Element.METAL),
        make_evidence(STROKE, Element.EARTH, weight=0.3),
        make_evidence(SOUND, Element.EARTH, weight=0.3),
    ]
    record = make_merged("賢", evidence=tuple(evidence))
    expected = resolve_record(record, Ruleset())

    for permutation in itertools.permutations(evidence):
        result = resolve_record(make_merged("賢", evidence=permutation), Ruleset())
        assert result.element is expected.element
        assert result.review_status is expected.review_status
        assert result.evidence_score == expected.evidence_score
        assert result.evidence_fingerprint == expected.evidence_fingerprint


@pytest.mark.parametrize(
    "weights",
    [
        {BASE: 0.0, EXPANDED: 0.0, STROKE: 0.0, SOUND: 0.0},
        {BASE: 2.0, EXPANDED: 2.0, STROKE: 2.0, SOUND: 2.0},
        {BASE: 0.333, EXPANDED: 0.125, STROKE: 0.3, SOUND: 0.3},
    ],
)
def test_evidence_score_stays_in_bounds(weights: dict[EvidenceMechanism, float]) -> None:
    ruleset = Ruleset(weights=MappingProxyType(weights))
    evidence = [
        make_evidence(BASE, Element.WOOD),
        make_evidence(STROKE, Element.WOOD),
        make_evidence(SOUND, Element.WOOD),
        make_evidence(EXPANDED, Element.METAL),
    ]

    score = decide(evidence, ruleset).evidence_score

    assert 0 <= score <= 100


def test_fingerprint_changes_with_votes_only() -> None:
    first = [make_evidence(BASE, Element.WOOD), make_evidence(EXPANDED, Element.METAL)]
    reweighted = [
        make_evidence(EXPANDED, Element.METAL, weight=0.9),
        make_evidence(BASE, Element.WOOD, weight=0.1),
    ]
    changed = [make_evidence(BASE, Element.WOOD), make_evidence(EXPANDED, Element.WATER)]

    assert evidence_fingerprint(first) == evidence_fingerprint(reweighted)
    assert evidence_fingerprint(first) != evidence_fingerprint(changed)
    assert len(evidence_fingerprint(first)) == 16


def test_resolve_stage_flags_review_as_warning() -> None:
    conflict = make_merged(
        "賢",
        evidence=(make_evidence(BASE, Element.WOOD), make_evidence(EXPANDED, Element.METAL)),
    )
    agreed = make_merged(
        "家",
        evidence=(make_evidence(BASE, Element.WOOD), make_evidence(EXPANDED, Element.WOOD)),
    )

    outcome = ResolveStage().run([conflict, agreed], context=make_context())

    assert outcome.result.success_count == 2
    assert outcome.result.details["auto_resolved"] == 1
    assert outcome.result.details["needs_review"] == 1
    assert outcome.result.details["review_reasons"] == {"tie": 1}
    (warning,) = outcome.result.warnings
    assert warning.kind is ErrorKind.RESOLUTION
    assert warning.record_key == "賢"
    assert all(record.ruleset == "weights-v1" for record in outcome.records)
