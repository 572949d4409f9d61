from __future__ import annotations

from typing import Any

import pytest

from hanjadict.domain.model import ErrorKind, StageName
from hanjadict.domain.pipeline import ProcessingResult, ReportStage, StageError, StageMetrics
from hanjadict.domain.pipeline.report import build_report
from tests.helpers.records import make_context


def _result(
    stage: StageName,
    count: int,
    *,
    errors: int = 0,
    duration_ms: float = 1.0,
    success: bool = True,
    details: dict[str, Any] | None = None,
) -> ProcessingResult:
    return ProcessingResult(
        stage=stage,
        success=success,
        processed_count=count + errors,
        success_count=count,
        error_count=errors,
        errors=tuple(
            StageError(kind=ErrorKind.NORMALIZATION, message="bad strokes") for _ in range(errors)
        ),
        metrics=StageMetrics(processing_time_ms=duration_ms),
        details=details or {},
    )


def _full_run(*, load_ms: float = 1.0) -> list[ProcessingResult]:
    return [
        _result(StageName.INGEST, 10),
        _result(StageName.NORMALIZE, 9, errors=1),
        _result(StageName.MERGE, 8),
        _result(StageName.RESOLVE, 8, details={"auto_resolved": 6, "needs_review": 2}),
        _result(StageName.VALIDATE, 8),
        _result(
            StageName.LOAD,
            8,
            duration_ms=load_ms,
            details={
                "stats_after": {
                    "total_entries": 8,
                    "by_element": {"wood": 4, "fire": 2},
                    "by_yin_yang": {"yin": 5, "yang": 3},
                }
            },
        ),
    ]


def test_report_derives_flow_and_quality() -> None:
    report = build_report(_full_run(), run_id="run-1")

    flow = report.data_flow
    assert (flow.ingested, flow.normalized, flow.merged, flow.loaded) == (10, 9, 8, 8)
    assert (flow.resolved, flow.needs_review) == (6, 2)
    assert report.quality.completeness == pytest.approx(0.8)
    assert report.quality.accuracy == pytest.approx(0.9)
    assert report.quality.validity == pytest.approx(0.8)
    assert report.quality.consistency == pytest.approx(0.75)
    assert report.errors_by_kind == {ErrorKind.NORMALIZATION: 1}
    assert report.errors_by_stage[StageName.NORMALIZE] == 1
    assert report.field_completeness == {"element": 75.0, "yin_yang": 100.0}
    assert report.failed_stages == ()
    assert report.skipped_stages == ()
    assert report.recommendations == ("2 entries await manual review of their element",)


def test_report_flags_slow_stages() -> None:
    report = build_report(_full_run(load_ms=20_000.0), run_id="run-1")

    assert report.performance.slowest_stage is StageName.LOAD
    assert "Consider optimizing the load stage" in report.recommendations
    assert "Consider parallel processing or database optimization" in report.recommendations


def test_report_on_empty_run() -> None:
    report = build_report([], run_id="empty")

    assert report.data_flow.ingested == 0
    assert report.quality.completeness == 0.0
    assert report.quality.accuracy == 0.0
    assert report.skipped_stages == (
        StageName.INGEST,
        StageName.NORMALIZE,
        StageName.MERGE,
        StageName.RESOLVE,
        StageName.VALIDATE,
        StageName.LOAD,
    )
    assert report.performance.stages == ()
    assert report.recommendations == ()


def test_report_lists_failed_and_missing_stages() -> None:
    results = [
        _result(StageName.INGEST, 4),
        ProcessingResult.failed(StageName.NORMALIZE, "no input"),
    ]

    report = build_report(results, run_id="run-2")

    assert report.failed_stages == (StageName.NORMALIZE,)
    assert StageName.MERGE in report.skipped_stages
    assert report.errors_by_kind == {ErrorKind.PIPELINE: 1}
    assert report.recommendations[-1] == "Re-run or inspect failed stages: normalize"
    assert report.quality.accuracy == pytest.approx(0.75)


def test_report_ratios_stay_within_bounds() -> None:
    results = [
        _result(StageName.INGEST, 2),
        _result(StageName.NORMALIZE, 0, errors=5),
        _result(StageName.LOAD, 7),
    ]

    report = build_report(results, run_id="run-3")

    assert report.quality.accuracy == 0.0
    assert report.quality.completeness == 1.0


def test_report_stage_emits_single_report() -> None:
    outcome = ReportStage().run(_full_run(), context=make_context())

    (report,) = outcome.records
    assert report.run_id == "test-run"
    assert outcome.result.success
    assert outcome.result.processed_count == 6
    assert outcome.result.details["failed_stages"] == []
