"""Canonical value domains and the lookup tables that map source spellings onto them.

Each ``parse_*`` function is total over its input: it returns either the
canonical value or an ``Unrecognized`` describing why the input was rejected.
Nothing is guessed and nothing falls back to a default.
"""

from __future__ import annotations

import math
import unicodedata
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from hanjadict.domain.model import Element, ReviewStatus, YinYang

if TYPE_CHECKING:
    from collections.abc import Mapping

MIN_STROKES: Final[int] = 1
MAX_STROKES: Final[int] = 50
MAX_READING_LENGTH: Final[int] = 10

# Inclusive code point ranges of the CJK ideograph blocks.
CJK_RANGES: Final[tuple[tuple[int, int], ...]] = (
    (0x4E00, 0x9FFF),  # unified ideographs
    (0x3400, 0x4DBF),  # extension A
    (0x20000, 0x2EBEF),  # extensions B-F
    (0x30000, 0x323AF),  # extensions G-H
    (0xF900, 0xFAFF),  # compatibility ideographs
    (0x2F800, 0x2FA1F),  # compatibility supplement
)

ELEMENT_VOCABULARY: Final[Mapping[str, Element]] = MappingProxyType(
    {
        # Han characters
        "木": Element.WOOD,
        "火": Element.FIRE,
        "土": Element.EARTH,
        "金": Element.METAL,
        "水": Element.WATER,
        # Korean readings and everyday words
        "목": Element.WOOD,
        "나무": Element.WOOD,
        "화": Element.FIRE,
        "불": Element.FIRE,
        "토": Element.EARTH,
        "흙": Element.EARTH,
        "금": Element.METAL,
        "쇠": Element.METAL,
        "철": Element.METAL,
        "수": Element.WATER,
        "물": Element.WATER,
        # English
        "wood": Element.WOOD,
        "fire": Element.FIRE,
        "earth": Element.EARTH,
        "metal": Element.METAL,
        "water": Element.WATER,
    }
)

YIN_YANG_VOCABULARY: Final[Mapping[str, YinYang]] = MappingProxyType(
    {
        "음": YinYang.YIN,
        "陰": YinYang.YIN,
        "阴": YinYang.YIN,
        "yin": YinYang.YIN,
        "양": YinYang.YANG,
        "陽": YinYang.YANG,
        "阳": YinYang.YANG,
        "yang": YinYang.YANG,
    }
)

REVIEW_STATUS_VOCABULARY: Final[Mapping[str, ReviewStatus]] = MappingProxyType(
    {
        "ok": ReviewStatus.OK,
        "정상": ReviewStatus.OK,
        "완료": ReviewStatus.OK,
        "확인": ReviewStatus.OK,
        "0": ReviewStatus.OK,
        "needs_review": ReviewStatus.NEEDS_REVIEW,
        "검토필요": ReviewStatus.NEEDS_REVIEW,
        "검토": ReviewStatus.NEEDS_REVIEW,
        "수정필요": ReviewStatus.NEEDS_REVIEW,
        "1": ReviewStatus.NEEDS_REVIEW,
    }
)


@dataclass(slots=True, frozen=True)
class Unrecognized:
    """A value outside its domain, kept verbatim for error reporting."""

    field: str
    original_value: str
    error: str


def _lookup_key(value: str) -> str:
    return unicodedata.normalize("NFKC", value).strip().casefold()


def parse_element(value: str) -> Element | Unrecognized:
    element = ELEMENT_VOCABULARY.get(_lookup_key(value))
    if element is None:
        return Unrecognized("element", value, f"unknown five-element value {value!r}")
    return element


def parse_yin_yang(value: str) -> YinYang | Unrecognized:
    polarity = YIN_YANG_VOCABULARY.get(_lookup_key(value))
    if polarity is None:
        return Unrecognized("yin_yang", value, f"unknown yin-yang value {value!r}")
    return polarity


def parse_review_status(value: str) -> ReviewStatus | Unrecognized:
    status = REVIEW_STATUS_VOCABULARY.get(_lookup_key(value))
    if status is None:
        return Unrecognized("status", value, f"unknown review status {value!r}")
    return status


def parse_strokes(value: int | str) -> int | Unrecognized:
    if isinstance(value, bool):
        return Unrecognized("strokes", str(value), "stroke count must be an integer")
    if isinstance(value, str):
        text = value.strip()
        if not text.isdecimal():
            return Unrecognized("strokes", value, "stroke count must be an integer")
        value = int(text)
    if not MIN_STROKES <= value <= MAX_STROKES:
        return Unrecognized(
            "strokes",
            str(value),
            f"stroke count {value} outside [{MIN_STROKES}, {MAX_STROKES}]",
        )
    return value


def parse_confidence(value: float) -> float | Unrecognized:
    if isinstance(value, bool) or math.isnan(value) or not 0.0 <= value <= 1.0:
        return Unrecognized("confidence", str(value), f"confidence {value} outside [0, 1]")
    return float(value)


def is_cjk_ideograph(character: str) -> bool:
    if len(character) != 1:
        return False
    codepoint = ord(character)
    return any(low <= codepoint <= high for low, high in CJK_RANGES)


def parse_character(value: str) -> str | Unrecognized:
    # Compatibility ideographs are distinct characters; no NFKC folding here.
    character = value.strip()
    if len(character) != 1:
        return Unrecognized("character", value, "expected exactly one character")
    if not is_cjk_ideograph(character):
        return Unrecognized(
            "character",
            value,
            f"U+{ord(character):04X} is not in a CJK ideograph block",
        )
    return character


def parse_meaning(value: str | None) -> str | None:
    if value is None:
        return None
    meaning = unicodedata.normalize("NFC", value).strip()
    return meaning or None
