from __future__ import annotations

from hanjadict.domain.model import Element, EvidenceMechanism, NormalizedRecord, Reading, YinYang
from hanjadict.domain.pipeline import NormalizeStage
from hanjadict.domain.pipeline.normalize import normalize_record
from tests.helpers.records import make_context, make_raw


def test_normalize_record_canonicalizes_fields() -> None:
    raw = make_raw(
        "賢",
        meaning=" 어질 ",
        readings=("현", " 현", "견"),
        strokes="15",
        element_candidate="金",
        mechanism=EvidenceMechanism.EXPANDED,
        yin_yang_candidate="陰",
        status="정상",
    )

    record = normalize_record(raw)

    assert isinstance(record, NormalizedRecord)
    assert record.meaning == "어질"
    assert record.readings == (
        Reading(text="현", is_primary=True),
        Reading(text="견", is_primary=False),
    )
    assert record.strokes == 15
    assert record.element is Element.METAL
    assert record.yin_yang is YinYang.YIN


def test_unknown_element_rejects_the_record() -> None:
    outcome = NormalizeStage().run(
        [make_raw("家"), make_raw("賢", element_candidate="xyz")], context=make_context()
    )

    assert [record.character for record in outcome.records] == ["家"]
    assert outcome.result.error_count == 1
    (error,) = outcome.result.errors
    assert error.field == "element"
    assert error.original_value == "xyz"
    assert outcome.result.details["rejected_by_field"] == {"element": 1}


def test_every_failing_field_is_reported() -> None:
    outcome = NormalizeStage().run(
        [make_raw("A", strokes=0, confidence=2.0)], context=make_context()
    )

    assert outcome.records == ()
    assert {error.field for error in outcome.result.errors} == {
        "character",
        "strokes",
        "confidence",
    }


def test_element_without_mechanism_is_rejected() -> None:
    result = normalize_record(make_raw(mechanism=None))

    assert isinstance(result, list)
    assert result[0].field == "mechanism"
