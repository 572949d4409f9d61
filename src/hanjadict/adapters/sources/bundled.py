"""Reference tables shipped with the package (``data/*.json``)."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from importlib import resources
from logging import getLogger
from typing import Final

from pydantic import BaseModel, ConfigDict, ValidationError

from hanjadict.domain.model import EvidenceMechanism, RawRecord, SourceTag
from hanjadict.domain.ports.sources import SourceBatch, SourceRejection, SourceUnavailableError

log = getLogger(__name__)

BUNDLED_CONFIDENCE: Final[float] = 0.9
_DATA_PACKAGE: Final[str] = "hanjadict.adapters.sources"


class BundledRow(BaseModel):
    model_config = ConfigDict(extra="forbid")

    character: str
    meaning: str | None = None
    reading: str | None = None
    strokes: int | str | None = None
    element: str | None = None
    yin_yang: str | None = None


@dataclass(slots=True, frozen=True)
class BundledTableSource:
    """One packaged table; every element it carries is a vote of ``mechanism``."""

    source_tag: str
    resource: str
    mechanism: EvidenceMechanism

    @property
    def name(self) -> str:
        return self.source_tag

    def _load(self) -> list[object]:
        try:
            text = (resources.files(_DATA_PACKAGE) / "data" / self.resource).read_text(
                encoding="utf-8"
            )
            payload = json.loads(text)
        except (OSError, json.JSONDecodeError) as exc:
            raise SourceUnavailableError(self.name, f"cannot read {self.resource}: {exc}") from exc
        if not isinstance(payload, list):
            raise SourceUnavailableError(self.name, f"{self.resource} is not a list of rows")
        return payload

    def fetch(self) -> SourceBatch:
        collected_at = datetime.now(tz=UTC)
        records: list[RawRecord] = []
        rejected: list[SourceRejection] = []
        for index, item in enumerate(self._load()):
            try:
                row = BundledRow.model_validate(item)
            except ValidationError as exc:
                rejected.append(SourceRejection(key=str(index), message=str(exc)))
                continue
            records.append(
                RawRecord(
                    character=row.character,
                    source=self.source_tag,
                    meaning=row.meaning,
                    readings=(row.reading,) if row.reading else (),
                    strokes=row.strokes,
                    element_candidate=row.element,
                    mechanism=self.mechanism if row.element else None,
                    yin_yang_candidate=row.yin_yang,
                    confidence=BUNDLED_CONFIDENCE,
                    collected_at=collected_at,
                    attributes={"table": self.resource, "row": str(index)},
                )
            )
        log.debug("Loaded %d rows from %s", len(records), self.resource)
        return SourceBatch(records=tuple(records), rejected=tuple(rejected))


def base_table_source() -> BundledTableSource:
    return BundledTableSource(
        source_tag=SourceTag.HANJA_DATA,
        resource="hanja_base.json",
        mechanism=EvidenceMechanism.BASE,
    )


def expanded_table_source() -> BundledTableSource:
    return BundledTableSource(
        source_tag=SourceTag.HANJA_EXPANDED,
        resource="hanja_expanded.json",
        mechanism=EvidenceMechanism.EXPANDED,
    )
