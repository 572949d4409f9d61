"""Translate registry rows into raw dictionary records."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

from hanjadict.domain.model import RawRecord, SourceTag

if TYPE_CHECKING:
    from datetime import datetime

    from .schema import GovHanjaRecord

REGISTRY_CONFIDENCE: Final[float] = 1.0
_MEANING_PATTERN: Final = re.compile(r":\s*([^(]+)\(")
_GLOSS_PREFIX: Final = re.compile(r"^[^:]+:\s*")


def decode_character(code: str) -> str:
    """Turn a hexadecimal code point such as ``"04f3d"`` into its character."""

    try:
        codepoint = int(code.strip(), 16)
        return chr(codepoint)
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"invalid code point {code!r}") from exc


def extract_meaning(gloss: str | None) -> str | None:
    """Pull the meaning out of a gloss like ``"가 : 절(가)"``."""

    if not gloss:
        return None
    match = _MEANING_PATTERN.search(gloss)
    meaning = match.group(1) if match else _GLOSS_PREFIX.sub("", gloss)
    return meaning.strip() or None


def registry_strokes(row: GovHanjaRecord) -> int | None:
    for value in (row.totstroke, row.stroke):
        if value is not None and value > 0:
            return value
    return None


def to_raw_record(row: GovHanjaRecord, *, collected_at: datetime) -> RawRecord:
    attributes = {"hex_code": row.cd}
    if row.rnum is not None:
        attributes["registry_index"] = str(row.rnum)
    if row.rad_id is not None:
        attributes["radical_id"] = str(row.rad_id)
    if row.type:
        attributes["type"] = row.type
    if row.dic:
        attributes["dictionary"] = row.dic

    return RawRecord(
        character=decode_character(row.cd),
        source=SourceTag.SUPREME_COURT,
        meaning=extract_meaning(row.gloss),
        readings=(row.ineum,) if row.ineum else (),
        strokes=registry_strokes(row),
        confidence=REGISTRY_CONFIDENCE,
        collected_at=collected_at,
        attributes=attributes,
    )
