"""JSON files as the stage store: one batch file and one result file per stage."""

from __future__ import annotations

import os
from functools import cache
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

from pydantic import TypeAdapter, ValidationError

from hanjadict.domain.model import (
    LoadOutcome,
    MergedRecord,
    NormalizedRecord,
    RawRecord,
    ResolvedRecord,
    StageName,
    ValidatedRecord,
)
from hanjadict.domain.pipeline.contracts import MissingStageOutputError, StageInputError
from hanjadict.domain.pipeline.report import PipelineReport
from hanjadict.domain.pipeline.result import ProcessingResult
from hanjadict.domain.ports.stage_store import Checkpoint

if TYPE_CHECKING:
    from collections.abc import Sequence

log = getLogger(__name__)

CHECKPOINT_FILENAME: Final[str] = "checkpoint.json"

RECORD_TYPES: Final[dict[StageName, type[Any]]] = {
    StageName.INGEST: RawRecord,
    StageName.NORMALIZE: NormalizedRecord,
    StageName.MERGE: MergedRecord,
    StageName.RESOLVE: ResolvedRecord,
    StageName.VALIDATE: ValidatedRecord,
    StageName.LOAD: LoadOutcome,
    StageName.REPORT: PipelineReport,
}

_RESULT_ADAPTER: Final = TypeAdapter(ProcessingResult)
_CHECKPOINT_ADAPTER: Final = TypeAdapter(Checkpoint)


@cache
def batch_adapter(stage: StageName) -> TypeAdapter[tuple[Any, ...]]:
    return TypeAdapter(tuple[RECORD_TYPES[stage], ...])


def _write_atomic(path: Path, payload: bytes) -> None:
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_bytes(payload)
    os.replace(tmp_path, path)


class FileStageStore:
    """Stores ``<stage>.json`` batches and ``<stage>.result.json`` results under ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def batch_path(self, stage: StageName) -> Path:
        return self.root / f"{stage}.json"

    def result_path(self, stage: StageName) -> Path:
        return self.root / f"{stage}.result.json"

    @property
    def checkpoint_path(self) -> Path:
        return self.root / CHECKPOINT_FILENAME

    def _ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def has_output(self, stage: StageName) -> bool:
        return self.batch_path(stage).is_file()

    def read_batch(self, stage: StageName) -> tuple[object, ...]:
        path = self.batch_path(stage)
        try:
            payload = path.read_bytes()
        except FileNotFoundError as exc:
            raise MissingStageOutputError(stage) from exc
        try:
            return batch_adapter(stage).validate_json(payload)
        except ValidationError as exc:
            raise StageInputError(f"{path} does not hold {stage} records: {exc}") from exc

    def write_batch(self, stage: StageName, records: Sequence[object]) -> None:
        self._ensure_root()
        payload = batch_adapter(stage).dump_json(tuple(records), indent=2)
        _write_atomic(self.batch_path(stage), payload)
        log.debug("Wrote %d %s records to %s", len(records), stage, self.batch_path(stage))

    def discard(self, stage: StageName) -> None:
        self.batch_path(stage).unlink(missing_ok=True)

    def read_result(self, stage: StageName) -> ProcessingResult | None:
        path = self.result_path(stage)
        if not path.is_file():
            return None
        try:
            return _RESULT_ADAPTER.validate_json(path.read_bytes())
        except ValidationError as exc:
            raise StageInputError(f"{path} is not a processing result: {exc}") from exc

    def write_result(self, result: ProcessingResult) -> None:
        self._ensure_root()
        _write_atomic(self.result_path(result.stage), _RESULT_ADAPTER.dump_json(result, indent=2))

    def read_checkpoint(self) -> Checkpoint | None:
        if not self.checkpoint_path.is_file():
            return None
        try:
            return _CHECKPOINT_ADAPTER.validate_json(self.checkpoint_path.read_bytes())
        except ValidationError:
            log.warning("Ignoring unreadable checkpoint %s", self.checkpoint_path)
            return None

    def write_checkpoint(self, checkpoint: Checkpoint) -> None:
        self._ensure_root()
        _write_atomic(self.checkpoint_path, _CHECKPOINT_ADAPTER.dump_json(checkpoint, indent=2))
