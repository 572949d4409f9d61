"""Report stage: derive data-flow, quality and performance metrics from stage results.

The report only observes. It reads the processing results of the other stages
and never touches records or the dictionary store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from hanjadict.domain.model import StageName
from hanjadict.domain.pipeline.contracts import STAGE_ORDER, StageOutcome
from hanjadict.domain.pipeline.result import ResultRecorder

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from hanjadict.domain.pipeline.contracts import StageContext
    from hanjadict.domain.pipeline.result import ProcessingResult

log = getLogger(__name__)

SLOW_STAGE_MS: Final[float] = 10_000.0
MIN_THROUGHPUT: Final[float] = 100.0


@dataclass(slots=True, frozen=True, kw_only=True)
class DataFlow:
    ingested: int = 0
    normalized: int = 0
    merged: int = 0
    resolved: int = 0
    needs_review: int = 0
    validated: int = 0
    loaded: int = 0


@dataclass(slots=True, frozen=True, kw_only=True)
class QualityMetrics:
    completeness: float = 0.0
    accuracy: float = 0.0
    validity: float = 0.0
    consistency: float = 0.0


@dataclass(slots=True, frozen=True, kw_only=True)
class StagePerformance:
    stage: StageName
    success: bool
    processed_count: int
    duration_ms: float
    throughput_per_second: float


@dataclass(slots=True, frozen=True, kw_only=True)
class PerformanceSummary:
    stages: tuple[StagePerformance, ...] = ()
    total_duration_ms: float = 0.0
    overall_throughput: float = 0.0
    slowest_stage: StageName | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class PipelineReport:
    run_id: str
    generated_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    data_flow: DataFlow = field(default_factory=DataFlow)
    quality: QualityMetrics = field(default_factory=QualityMetrics)
    errors_by_kind: dict[str, int] = field(default_factory=dict[str, int])
    errors_by_stage: dict[str, int] = field(default_factory=dict[str, int])
    failed_stages: tuple[StageName, ...] = ()
    skipped_stages: tuple[StageName, ...] = ()
    field_completeness: dict[str, float] = field(default_factory=dict[str, float])
    statistics: dict[str, Any] = field(default_factory=dict[str, Any])
    performance: PerformanceSummary = field(default_factory=PerformanceSummary)
    recommendations: tuple[str, ...] = ()

    def summary_lines(self) -> list[str]:
        flow = self.data_flow
        lines = [
            f"Run {self.run_id}: ingested {flow.ingested}, normalized {flow.normalized}, "
            f"merged {flow.merged}, loaded {flow.loaded}",
            f"Resolved {flow.resolved} automatically, {flow.needs_review} need review",
            f"Completeness {self.quality.completeness:.1%}, "
            f"accuracy {self.quality.accuracy:.1%}, validity {self.quality.validity:.1%}, "
            f"consistency {self.quality.consistency:.1%}",
        ]
        if self.failed_stages:
            lines.append("Failed stages: " + ", ".join(self.failed_stages))
        lines.extend(f"Recommendation: {item}" for item in self.recommendations)
        return lines


def _ratio(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return max(0.0, min(1.0, numerator / denominator))


def _data_flow(results: Mapping[StageName, ProcessingResult]) -> DataFlow:
    def produced(stage: StageName) -> int:
        result = results.get(stage)
        return result.success_count if result is not None else 0

    resolve = results.get(StageName.RESOLVE)
    resolve_details = resolve.details if resolve is not None else {}
    return DataFlow(
        ingested=produced(StageName.INGEST),
        normalized=produced(StageName.NORMALIZE),
        merged=produced(StageName.MERGE),
        resolved=int(resolve_details.get("auto_resolved", 0)),
        needs_review=int(resolve_details.get("needs_review", 0)),
        validated=produced(StageName.VALIDATE),
        loaded=produced(StageName.LOAD),
    )


def _quality(flow: DataFlow, total_errors: int) -> QualityMetrics:
    if flow.ingested == 0:
        return QualityMetrics()
    return QualityMetrics(
        completeness=_ratio(flow.loaded, flow.ingested),
        accuracy=_ratio(flow.ingested - total_errors, flow.ingested),
        validity=_ratio(flow.validated, flow.ingested),
        consistency=_ratio(flow.resolved, flow.merged),
    )


def _field_completeness(statistics: Mapping[str, Any]) -> dict[str, float]:
    total = int(statistics.get("total_entries", 0))
    if total == 0:
        return {}
    completeness: dict[str, float] = {}
    for name, key in (("element", "by_element"), ("yin_yang", "by_yin_yang")):
        counts: Mapping[str, int] = statistics.get(key, {})
        completeness[name] = round(sum(counts.values()) / total * 100, 2)
    return completeness


def _performance(results: Sequence[ProcessingResult]) -> PerformanceSummary:
    stages = tuple(
        StagePerformance(
            stage=result.stage,
            success=result.success,
            processed_count=result.processed_count,
            duration_ms=result.metrics.processing_time_ms,
            throughput_per_second=result.metrics.throughput_per_second,
        )
        for result in results
    )
    if not stages:
        return PerformanceSummary()
    total_ms = sum(stage.duration_ms for stage in stages)
    total_processed = sum(stage.processed_count for stage in stages)
    overall = total_processed * 1000 / total_ms if total_ms > 0 else 0.0
    slowest = max(stages, key=lambda stage: stage.duration_ms)
    return PerformanceSummary(
        stages=stages,
        total_duration_ms=round(total_ms, 3),
        overall_throughput=round(overall, 3),
        slowest_stage=slowest.stage,
    )


def _recommendations(
    performance: PerformanceSummary,
    flow: DataFlow,
    failed: Sequence[StageName],
) -> tuple[str, ...]:
    recommendations: list[str] = []
    slowest = next(
        (stage for stage in performance.stages if stage.stage == performance.slowest_stage),
        None,
    )
    if slowest is not None and slowest.duration_ms > SLOW_STAGE_MS:
        recommendations.append(f"Consider optimizing the {slowest.stage} stage")
    if performance.stages and performance.overall_throughput < MIN_THROUGHPUT:
        recommendations.append("Consider parallel processing or database optimization")
    if flow.needs_review:
        recommendations.append(
            f"{flow.needs_review} entries await manual review of their element"
        )
    if failed:
        recommendations.append("Re-run or inspect failed stages: " + ", ".join(failed))
    return tuple(recommendations)


def build_report(results: Sequence[ProcessingResult], *, run_id: str) -> PipelineReport:
    by_stage = {result.stage: result for result in results if result.stage != StageName.REPORT}
    ordered = [by_stage[stage] for stage in STAGE_ORDER if stage in by_stage]

    errors_by_kind: dict[str, int] = {}
    errors_by_stage: dict[str, int] = {}
    for result in ordered:
        errors_by_stage[result.stage] = result.error_count
        for error in result.errors:
            errors_by_kind[error.kind] = errors_by_kind.get(error.kind, 0) + 1
    total_errors = sum(errors_by_stage.values())

    flow = _data_flow(by_stage)
    load = by_stage.get(StageName.LOAD)
    statistics: dict[str, Any] = dict(load.details.get("stats_after", {})) if load else {}
    failed = tuple(result.stage for result in ordered if not result.success)
    skipped = tuple(
        stage for stage in STAGE_ORDER if stage != StageName.REPORT and stage not in by_stage
    )
    performance = _performance(ordered)

    return PipelineReport(
        run_id=run_id,
        data_flow=flow,
        quality=_quality(flow, total_errors),
        errors_by_kind=errors_by_kind,
        errors_by_stage=errors_by_stage,
        failed_stages=failed,
        skipped_stages=skipped,
        field_completeness=_field_completeness(statistics),
        statistics=statistics,
        performance=performance,
        recommendations=_recommendations(performance, flow, failed),
    )


@dataclass(slots=True)
class ReportStage:
    name: StageName = StageName.REPORT

    def run(
        self, batch: Sequence[ProcessingResult], *, context: StageContext
    ) -> StageOutcome[PipelineReport]:
        recorder = ResultRecorder(self.name)
        recorder.processed_count = len(batch)
        report = build_report(batch, run_id=context.run_id)
        for line in report.summary_lines():
            log.info("%s", line)
        recorder.success_count = 1
        recorder.details["failed_stages"] = list(report.failed_stages)
        recorder.details["skipped_stages"] = list(report.skipped_stages)
        return StageOutcome((report,), recorder.finish())
