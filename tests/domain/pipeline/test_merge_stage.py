from __future__ import annotations

from hanjadict.domain.model import (
    Element,
    EvidenceMechanism,
    Reading,
    Ruleset,
    SourceTag,
    YinYang,
)
from hanjadict.domain.pipeline import MergeStage
from hanjadict.domain.pipeline.merge import merge_group, quality_score, source_priority
from tests.helpers.records import make_context, make_normalized

ALL_DERIVED = Ruleset(
    derived_rules=frozenset({EvidenceMechanism.STROKE, EvidenceMechanism.SOUND})
)


def test_quality_score_components() -> None:
    record = make_normalized(yin_yang=YinYang.YANG)

    # 0.9 * 40 + meaning + reading + strokes + element + yin-yang
    assert quality_score(record) == 36 + 15 + 15 + 10 + 10 + 5


def test_source_priority_defaults_to_one() -> None:
    assert source_priority(SourceTag.HANJA_DATA) == 10
    assert source_priority("somewhere") == 1


def test_merge_produces_one_record_per_character() -> None:
    batch = [
        make_normalized("家"),
        make_normalized("賢"),
        make_normalized("家", source=SourceTag.HANJA_EXPANDED),
    ]

    outcome = MergeStage().run(batch, context=make_context(ruleset=Ruleset()))

    assert [record.character for record in outcome.records] == ["家", "賢"]
    assert outcome.result.details["duplicates_merged"] == 1


def test_null_never_overwrites_value() -> None:
    complete = make_normalized(source=SourceTag.USER_INPUT, meaning="집", strokes=10)
    sparse = make_normalized(
        source=SourceTag.HANJA_DATA, meaning=None, strokes=None, confidence=1.0
    )

    merged = merge_group([sparse, complete], ruleset=Ruleset())

    assert merged.meaning == "집"
    assert merged.strokes == 10


def test_evidence_is_kept_per_mechanism_and_source() -> None:
    base = make_normalized("賢", element=Element.WOOD)
    expanded = make_normalized(
        "賢",
        source=SourceTag.HANJA_EXPANDED,
        element=Element.METAL,
        mechanism=EvidenceMechanism.EXPANDED,
    )

    merged = merge_group([base, expanded, base], ruleset=Ruleset())

    assert {(item.mechanism, item.element) for item in merged.evidence} == {
        (EvidenceMechanism.BASE, Element.WOOD),
        (EvidenceMechanism.EXPANDED, Element.METAL),
    }


def test_derived_evidence_from_strokes_and_primary_reading() -> None:
    record = make_normalized("賢", strokes=15, readings=(Reading(text="현", is_primary=True),))

    merged = merge_group([record], ruleset=ALL_DERIVED)

    derived = {
        item.mechanism: item.element
        for item in merged.evidence
        if item.mechanism in {EvidenceMechanism.STROKE, EvidenceMechanism.SOUND}
    }
    assert derived == {
        EvidenceMechanism.STROKE: Element.EARTH,
        EvidenceMechanism.SOUND: Element.EARTH,
    }


def test_default_ruleset_derives_nothing() -> None:
    record = make_normalized("賢", strokes=16, readings=(Reading(text="현", is_primary=True),))

    merged = merge_group([record], ruleset=Ruleset())

    assert {item.mechanism for item in merged.evidence} == {EvidenceMechanism.BASE}


def test_readings_union_keeps_one_primary() -> None:
    first = make_normalized(readings=(Reading(text="가", is_primary=True),))
    second = make_normalized(
        source=SourceTag.HANJA_EXPANDED,
        readings=(Reading(text="고", is_primary=True), Reading(text="가", is_primary=False)),
    )

    merged = merge_group([first, second], ruleset=Ruleset())

    assert merged.readings == (
        Reading(text="가", is_primary=True),
        Reading(text="고", is_primary=False),
    )


def test_yin_yang_candidates_are_distinct() -> None:
    merged = merge_group(
        [
            make_normalized(yin_yang=YinYang.YIN),
            make_normalized(source=SourceTag.HANJA_EXPANDED, yin_yang=YinYang.YANG),
            make_normalized(source=SourceTag.SUPREME_COURT, yin_yang=YinYang.YIN),
        ],
        ruleset=Ruleset(),
    )

    assert merged.yin_yang_candidates == (YinYang.YIN, YinYang.YANG)
