"""Full pipeline runs against an in-memory SQLite dictionary."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from hanjadict.app import lookup_character, manual_resolve, run_pipeline, search_by_reading
from hanjadict.config import PipelineConfig
from hanjadict.domain.model import (
    DecidedBy,
    Element,
    ErrorMode,
    LoadAction,
    ReviewStatus,
    SourceTag,
    StageName,
)
from tests.helpers.records import HYEON_BASE, HYEON_EXPANDED, FakeSource, make_raw

if TYPE_CHECKING:
    from pathlib import Path

    from hanjadict.domain.pipeline import ProcessingResult
    from hanjadict.domain.ports import DictionaryUnitOfWorkFactory


@pytest.fixture(autouse=True)
def default_ruleset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HANJADICT_RULESET", raising=False)


def _hyeon_sources() -> list[FakeSource]:
    return [
        FakeSource(SourceTag.HANJA_DATA, [HYEON_BASE]),
        FakeSource(SourceTag.HANJA_EXPANDED, [HYEON_EXPANDED]),
    ]


def _load_actions(result: ProcessingResult) -> dict[str, int]:
    return result.details["actions"]


def test_conflicting_sources_need_review(
    tmp_path: Path, uow_factory: DictionaryUnitOfWorkFactory
) -> None:
    run = run_pipeline(
        config=PipelineConfig(work_dir=tmp_path),
        sources=_hyeon_sources(),
        unit_of_work_factory=uow_factory,
    )

    assert run.succeeded
    view = lookup_character("賢", unit_of_work_factory=uow_factory)
    assert view is not None
    assert view.element is Element.WOOD
    assert view.review_status is ReviewStatus.NEEDS_REVIEW
    assert view.decided_by is DecidedBy.BASE
    assert view.evidence_score == 40
    assert run.report is not None
    assert run.report.data_flow.needs_review == 1
    assert (tmp_path / "report.md").exists()
    assert (tmp_path / "report.html").exists()


def test_rerun_is_idempotent_and_keeps_manual_decisions(
    tmp_path: Path, uow_factory: DictionaryUnitOfWorkFactory
) -> None:
    config = PipelineConfig(work_dir=tmp_path)
    run_pipeline(config=config, sources=_hyeon_sources(), unit_of_work_factory=uow_factory)

    rerun = run_pipeline(config=config, sources=_hyeon_sources(), unit_of_work_factory=uow_factory)
    load = rerun.result_for(StageName.LOAD)
    assert load is not None
    assert _load_actions(load)[LoadAction.UNCHANGED] == 1

    manual_resolve("賢", Element.METAL, note="family register", unit_of_work_factory=uow_factory)
    third = run_pipeline(config=config, sources=_hyeon_sources(), unit_of_work_factory=uow_factory)

    load = third.result_for(StageName.LOAD)
    assert load is not None
    assert _load_actions(load)[LoadAction.PRESERVED_MANUAL] == 1
    view = lookup_character("賢", unit_of_work_factory=uow_factory)
    assert view is not None
    assert view.element is Element.METAL
    assert view.decided_by is DecidedBy.MANUAL


def test_unreachable_sources_abort_the_run(
    tmp_path: Path, uow_factory: DictionaryUnitOfWorkFactory
) -> None:
    sources = [FakeSource(SourceTag.HANJA_DATA, fail=True)]

    aborted = run_pipeline(
        config=PipelineConfig(work_dir=tmp_path / "abort", error_mode=ErrorMode.ABORT),
        sources=sources,
        unit_of_work_factory=uow_factory,
    )

    assert aborted.failed == (StageName.INGEST,)
    assert aborted.report is not None
    assert aborted.report.failed_stages == (StageName.INGEST,)


def test_partial_source_failure_still_loads(
    tmp_path: Path, uow_factory: DictionaryUnitOfWorkFactory
) -> None:
    sources = [
        FakeSource(SourceTag.HANJA_DATA, [make_raw("家")]),
        FakeSource(SourceTag.SUPREME_COURT, fail=True),
    ]

    run = run_pipeline(
        config=PipelineConfig(work_dir=tmp_path),
        sources=sources,
        unit_of_work_factory=uow_factory,
    )

    assert run.succeeded
    found = search_by_reading("가", unit_of_work_factory=uow_factory)
    assert [view.character for view in found.items] == ["家"]


def test_bundled_tables_build_the_dictionary(
    tmp_path: Path, uow_factory: DictionaryUnitOfWorkFactory
) -> None:
    run = run_pipeline(
        config=PipelineConfig(work_dir=tmp_path, sources=("base", "expanded")),
        unit_of_work_factory=uow_factory,
    )

    assert run.succeeded
    assert run.report is not None
    assert run.report.data_flow.loaded > 100

    hyeon = lookup_character("賢", unit_of_work_factory=uow_factory)
    assert hyeon is not None
    assert hyeon.review_status is ReviewStatus.NEEDS_REVIEW
    assert hyeon.element is Element.WOOD
    assert hyeon.decided_by is DecidedBy.BASE
    assert hyeon.evidence_score == 40

    star = lookup_character("星", unit_of_work_factory=uow_factory)
    assert star is not None
    assert star.review_status is ReviewStatus.NEEDS_REVIEW
    assert star.element is Element.FIRE
