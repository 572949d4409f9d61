from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from hanjadict.adapters.filesystem import FileStageStore
from hanjadict.domain.model import StageName
from hanjadict.domain.pipeline import MissingStageOutputError, ProcessingResult, StageInputError
from hanjadict.domain.ports import Checkpoint
from tests.helpers.records import make_raw, make_validated

if TYPE_CHECKING:
    from pathlib import Path


def test_batches_are_read_back_as_typed_records(tmp_path: Path) -> None:
    store = FileStageStore(tmp_path / "work")
    records = (make_raw("家", attributes={"row": "1"}), make_raw("賢", strokes="16"))

    store.write_batch(StageName.INGEST, records)

    assert store.has_output(StageName.INGEST)
    assert store.batch_path(StageName.INGEST).name == "ingest.json"
    assert store.read_batch(StageName.INGEST) == records


def test_nested_records_survive_storage(tmp_path: Path) -> None:
    store = FileStageStore(tmp_path)
    validated = (make_validated("家"),)

    store.write_batch(StageName.VALIDATE, validated)

    assert store.read_batch(StageName.VALIDATE) == validated


def test_missing_batch_raises(tmp_path: Path) -> None:
    with pytest.raises(MissingStageOutputError):
        FileStageStore(tmp_path).read_batch(StageName.MERGE)


def test_batch_of_wrong_shape_raises(tmp_path: Path) -> None:
    store = FileStageStore(tmp_path)
    store.batch_path(StageName.NORMALIZE).write_text('[{"character": 3}]', encoding="utf-8")

    with pytest.raises(StageInputError):
        store.read_batch(StageName.NORMALIZE)


def test_discard_removes_batch_only(tmp_path: Path) -> None:
    store = FileStageStore(tmp_path)
    store.write_batch(StageName.INGEST, (make_raw(),))
    store.write_result(ProcessingResult(stage=StageName.INGEST, success=True))

    store.discard(StageName.INGEST)

    assert not store.has_output(StageName.INGEST)
    result = store.read_result(StageName.INGEST)
    assert result is not None
    assert result.success


def test_checkpoint_round_trip_and_corruption(tmp_path: Path) -> None:
    store = FileStageStore(tmp_path)
    assert store.read_checkpoint() is None

    checkpoint = Checkpoint(run_id="run-1").with_completed(StageName.INGEST)
    store.write_checkpoint(checkpoint)
    assert store.read_checkpoint() == checkpoint

    store.checkpoint_path.write_text("{}", encoding="utf-8")
    assert store.read_checkpoint() is None
