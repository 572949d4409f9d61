"""Hangul reading helpers: normalization, initial-sound rules and dueum variants."""

from __future__ import annotations

import re
import unicodedata
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from hanjadict.domain.model import Element
from hanjadict.domain.vocabulary import MAX_READING_LENGTH, Unrecognized

if TYPE_CHECKING:
    from collections.abc import Mapping

HANGUL_SYLLABLES: Final = re.compile(r"^[가-힣]+$")
_SYLLABLE_BASE: Final[int] = 0xAC00
_SYLLABLES_PER_INITIAL: Final[int] = 21 * 28
INITIALS: Final[str] = "ㄱㄲㄴㄷㄸㄹㅁㅂㅃㅅㅆㅇㅈㅉㅊㅋㅌㅍㅎ"

SOUND_ELEMENTS: Final[Mapping[str, Element]] = MappingProxyType(
    {
        "ㄱ": Element.WOOD,
        "ㄲ": Element.WOOD,
        "ㅋ": Element.WOOD,
        "ㄴ": Element.FIRE,
        "ㄷ": Element.FIRE,
        "ㄸ": Element.FIRE,
        "ㄹ": Element.FIRE,
        "ㅌ": Element.FIRE,
        "ㅇ": Element.EARTH,
        "ㅎ": Element.EARTH,
        "ㅅ": Element.METAL,
        "ㅆ": Element.METAL,
        "ㅈ": Element.METAL,
        "ㅉ": Element.METAL,
        "ㅊ": Element.METAL,
        "ㅁ": Element.WATER,
        "ㅂ": Element.WATER,
        "ㅃ": Element.WATER,
        "ㅍ": Element.WATER,
    }
)

# Word-initial sound law: a reading may appear with or without its initial ㄹ/ㄴ.
_DUEUM_PAIRS: Final[tuple[tuple[str, str], ...]] = (
    ("이", "리"),
    ("유", "류"),
    ("임", "림"),
    ("노", "로"),
    ("나", "라"),
    ("양", "량"),
    ("여", "려"),
    ("연", "련"),
    ("열", "렬"),
    ("염", "렴"),
    ("영", "령"),
    ("예", "례"),
    ("요", "료"),
    ("용", "룡"),
    ("우", "루"),
    ("육", "륙"),
    ("윤", "륜"),
    ("은", "른"),
    ("을", "를"),
    ("음", "름"),
    ("읍", "릅"),
    ("응", "릉"),
    ("인", "린"),
    ("일", "릴"),
    ("익", "릭"),
)


def _build_dueum_map() -> dict[str, tuple[str, ...]]:
    variants: dict[str, list[str]] = {}
    for left, right in _DUEUM_PAIRS:
        variants.setdefault(left, []).append(right)
        variants.setdefault(right, []).append(left)
    variants.setdefault("의", []).append("리")
    return {reading: tuple(options) for reading, options in variants.items()}


DUEUM_VARIANTS: Final[Mapping[str, tuple[str, ...]]] = MappingProxyType(_build_dueum_map())


def normalize_reading(value: str) -> str:
    return unicodedata.normalize("NFKC", value).strip()


def parse_reading(value: str) -> str | Unrecognized:
    reading = normalize_reading(value)
    if not reading:
        return Unrecognized("readings", value, "reading is empty")
    if len(reading) > MAX_READING_LENGTH:
        return Unrecognized(
            "readings", value, f"reading longer than {MAX_READING_LENGTH} characters"
        )
    if HANGUL_SYLLABLES.match(reading) is None:
        return Unrecognized("readings", value, "reading must consist of Hangul syllables")
    return reading


def initial_consonant(syllable: str) -> str | None:
    if not syllable:
        return None
    offset = ord(syllable[0]) - _SYLLABLE_BASE
    if not 0 <= offset < len(INITIALS) * _SYLLABLES_PER_INITIAL:
        return None
    return INITIALS[offset // _SYLLABLES_PER_INITIAL]


def sound_element(reading: str | None) -> Element | None:
    """Element suggested by the initial consonant of a reading (발음오행)."""

    if not reading:
        return None
    initial = initial_consonant(reading)
    if initial is None:
        return None
    return SOUND_ELEMENTS.get(initial)


def stroke_element(strokes: int | None) -> Element | None:
    """Element suggested by the last digit of a stroke count (수리오행)."""

    if strokes is None or strokes < 1:
        return None
    match strokes % 10:
        case 1 | 2:
            return Element.WOOD
        case 3 | 4:
            return Element.FIRE
        case 5 | 6:
            return Element.EARTH
        case 7 | 8:
            return Element.METAL
        case _:
            return Element.WATER


def expand_dueum(reading: str) -> tuple[str, ...]:
    """Return the reading followed by its dueum variants, without duplicates."""

    normalized = normalize_reading(reading)
    expansions = [normalized, *DUEUM_VARIANTS.get(normalized, ())]
    return tuple(dict.fromkeys(expansions))
