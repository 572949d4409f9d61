"""Ingest stage: collect raw records from every configured source."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from hanjadict.domain.model import ErrorKind, RawRecord, StageName
from hanjadict.domain.pipeline.contracts import StageFailedError, StageOutcome
from hanjadict.domain.pipeline.result import ResultRecorder
from hanjadict.domain.ports.sources import SourceUnavailableError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hanjadict.domain.pipeline.contracts import StageContext
    from hanjadict.domain.ports.sources import RecordSource

log = getLogger(__name__)


@dataclass(slots=True)
class IngestStage:
    """Pure collection: records from different sources are never combined here."""

    sources: Sequence[RecordSource] = field(default_factory=tuple)
    name: StageName = StageName.INGEST

    def run(self, batch: Sequence[object], *, context: StageContext) -> StageOutcome[RawRecord]:
        _ = batch
        recorder = ResultRecorder(self.name)
        if not self.sources:
            raise StageFailedError(self.name, "no sources configured")

        records: list[RawRecord] = []
        per_source: dict[str, int] = {}
        reachable = 0
        for source in self.sources:
            try:
                fetched = source.fetch()
            except SourceUnavailableError as exc:
                log.warning("Source %s unavailable: %s", source.name, exc)
                recorder.error(ErrorKind.SOURCE, str(exc), record_key=source.name)
                recorder.error_count += 1
                per_source[source.name] = 0
                continue

            reachable += 1
            records.extend(fetched.records)
            per_source[source.name] = len(fetched.records)
            recorder.processed_count += len(fetched.records) + len(fetched.rejected)
            recorder.error_count += len(fetched.rejected)
            for rejection in fetched.rejected:
                recorder.error(
                    ErrorKind.SOURCE,
                    rejection.message,
                    record_key=f"{source.name}:{rejection.key}",
                )
            log.info(
                "Collected %d records from %s (%d rejected)",
                len(fetched.records),
                source.name,
                len(fetched.rejected),
            )

        if reachable == 0:
            raise StageFailedError(self.name, "no source could be read")

        recorder.success_count = len(records)
        recorder.details["records_by_source"] = per_source
        recorder.details["run_id"] = context.run_id
        return StageOutcome(tuple(records), recorder.finish())
