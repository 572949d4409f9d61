from __future__ import annotations

import pytest

from hanjadict.domain.model import Element, ReviewStatus, YinYang
from hanjadict.domain.vocabulary import (
    Unrecognized,
    is_cjk_ideograph,
    parse_character,
    parse_confidence,
    parse_element,
    parse_meaning,
    parse_review_status,
    parse_strokes,
    parse_yin_yang,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("木", Element.WOOD),
        ("화", Element.FIRE),
        ("흙", Element.EARTH),
        ("쇠", Element.METAL),
        ("철", Element.METAL),
        ("Water", Element.WATER),
        (" METAL ", Element.METAL),
    ],
)
def test_parse_element_accepts_known_spellings(value: str, expected: Element) -> None:
    assert parse_element(value) is expected


def test_parse_element_rejects_unknown_value() -> None:
    result = parse_element("xyz")

    assert isinstance(result, Unrecognized)
    assert result.field == "element"
    assert result.original_value == "xyz"


@pytest.mark.parametrize(
    ("value", "expected"),
    [("음", YinYang.YIN), ("陽", YinYang.YANG), ("阴", YinYang.YIN), ("YANG", YinYang.YANG)],
)
def test_parse_yin_yang(value: str, expected: YinYang) -> None:
    assert parse_yin_yang(value) is expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("정상", ReviewStatus.OK),
        ("0", ReviewStatus.OK),
        ("검토필요", ReviewStatus.NEEDS_REVIEW),
        ("1", ReviewStatus.NEEDS_REVIEW),
        ("needs_review", ReviewStatus.NEEDS_REVIEW),
    ],
)
def test_parse_review_status(value: str, expected: ReviewStatus) -> None:
    assert parse_review_status(value) is expected


def test_parse_strokes_bounds() -> None:
    assert parse_strokes(1) == 1
    assert parse_strokes("50") == 50
    assert isinstance(parse_strokes(0), Unrecognized)
    assert isinstance(parse_strokes(51), Unrecognized)
    assert isinstance(parse_strokes("ten"), Unrecognized)
    assert isinstance(parse_strokes(True), Unrecognized)  # noqa: FBT003


def test_parse_confidence_bounds() -> None:
    assert parse_confidence(0.0) == 0.0
    assert parse_confidence(1) == 1.0
    assert isinstance(parse_confidence(1.5), Unrecognized)
    assert isinstance(parse_confidence(float("nan")), Unrecognized)


@pytest.mark.parametrize("character", ["家", "㐀", "𠀀", "豈"])
def test_cjk_blocks_are_accepted(character: str) -> None:
    assert is_cjk_ideograph(character)
    assert parse_character(character) == character


@pytest.mark.parametrize("value", ["a", "가", "家族", ""])
def test_parse_character_rejects_non_ideographs(value: str) -> None:
    assert isinstance(parse_character(value), Unrecognized)


def test_parse_meaning_treats_blank_as_absent() -> None:
    assert parse_meaning("  ") is None
    assert parse_meaning(" 집 ") == "집"
    assert parse_meaning(None) is None
