"""Stage orchestrator for the dictionary pipeline."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any

from hanjadict.domain.model import ErrorMode, StageName
from hanjadict.domain.pipeline.contracts import (
    STAGE_ORDER,
    StageContext,
    StageFailedError,
    upstream_of,
)
from hanjadict.domain.pipeline.report import PipelineReport
from hanjadict.domain.pipeline.result import ProcessingResult
from hanjadict.domain.ports.stage_store import Checkpoint

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Mapping, Sequence

    from hanjadict.domain.pipeline.contracts import PipelineStage
    from hanjadict.domain.ports.stage_store import StageStore

log = getLogger(__name__)

_RECORD_STAGES = STAGE_ORDER[:-1]


@dataclass(slots=True, frozen=True, kw_only=True)
class PipelineRun:
    """Outcome of ``PipelineOrchestrator.run_all``."""

    run_id: str
    results: tuple[ProcessingResult, ...] = ()
    skipped: tuple[StageName, ...] = ()
    failed: tuple[StageName, ...] = ()
    report: PipelineReport | None = None

    @property
    def succeeded(self) -> bool:
        return not self.failed

    def result_for(self, stage: StageName) -> ProcessingResult | None:
        return next((result for result in self.results if result.stage == stage), None)


@dataclass(slots=True)
class PipelineOrchestrator:
    """Run the stages in order, persisting every stage output through ``store``.

    Each stage reads its upstream batch from the store, so any stage can also be
    run on its own once its input exists. A failing stage has its output
    discarded; in ``abort`` mode the run stops there, in ``continue`` mode the
    remaining stages run when their input exists and are skipped otherwise.
    """

    stages: Mapping[StageName, PipelineStage[Any, Any]]
    store: StageStore
    error_mode: ErrorMode = ErrorMode.ABORT
    report_on_failure: bool = True
    report_sink: Callable[[PipelineReport], None] | None = None

    def run_all(
        self,
        *,
        context: StageContext | None = None,
        skip: Collection[StageName] = (),
        resume: bool = False,
    ) -> PipelineRun:
        active_context = context or StageContext()
        checkpoint = self.store.read_checkpoint() if resume else None
        if checkpoint is None:
            checkpoint = Checkpoint(run_id=active_context.run_id)
        else:
            active_context = replace(active_context, run_id=checkpoint.run_id)
            log.info(
                "Resuming run %s (completed: %s)",
                checkpoint.run_id,
                ", ".join(checkpoint.completed) or "none",
            )
        resumable = set(checkpoint.completed) if resume else set[StageName]()

        results: list[ProcessingResult] = []
        skipped: list[StageName] = []
        failed: list[StageName] = []
        for stage in _RECORD_STAGES:
            if self._reuse(stage, skip=skip, resumable=resumable):
                skipped.append(stage)
                prior = self.store.read_result(stage)
                if prior is not None:
                    results.append(prior)
                continue

            upstream = upstream_of(stage)
            if upstream is not None and not self.store.has_output(upstream):
                log.warning("Skipping %s stage: no output from %s", stage, upstream)
                skipped.append(stage)
                continue

            result, _ = self._execute(stage, active_context)
            results.append(result)
            checkpoint = self._checkpoint(checkpoint, result)
            if result.success:
                continue
            failed.append(stage)
            if self.error_mode is ErrorMode.ABORT:
                log.error("Aborting run %s after %s stage failure", active_context.run_id, stage)
                break

        report = None
        if failed and not self.report_on_failure:
            log.info("Not reporting on failed run %s", active_context.run_id)
        elif self._reuse(StageName.REPORT, skip=skip, resumable=resumable):
            skipped.append(StageName.REPORT)
        else:
            result, records = self._execute(
                StageName.REPORT, active_context, results=tuple(results)
            )
            checkpoint = self._checkpoint(checkpoint, result)
            results.append(result)
            if not result.success:
                failed.append(StageName.REPORT)
            report = self._emit_report(records)

        return PipelineRun(
            run_id=active_context.run_id,
            results=tuple(results),
            skipped=tuple(skipped),
            failed=tuple(failed),
            report=report,
        )

    def run_stage(
        self, stage: StageName, *, context: StageContext | None = None
    ) -> ProcessingResult:
        """Run one stage against the stored output of its upstream stage."""

        active_context = context or StageContext()
        checkpoint = self.store.read_checkpoint() or Checkpoint(run_id=active_context.run_id)
        result, records = self._execute(stage, active_context)
        self._checkpoint(checkpoint, result)
        if stage is StageName.REPORT:
            self._emit_report(records)
        return result

    def _reuse(
        self,
        stage: StageName,
        *,
        skip: Collection[StageName],
        resumable: Collection[StageName],
    ) -> bool:
        if stage not in skip and stage not in resumable:
            return False
        if self.store.has_output(stage):
            log.info("Skipping %s stage: reusing stored output", stage)
            return True
        if stage in skip:
            log.warning("Cannot skip %s stage: no stored output, running it", stage)
        return False

    def _input_for(
        self, stage: StageName, results: Sequence[ProcessingResult] | None
    ) -> Sequence[object]:
        if stage is StageName.INGEST:
            return ()
        if stage is StageName.REPORT:
            if results is not None:
                return results
            stored = (self.store.read_result(name) for name in _RECORD_STAGES)
            return tuple(result for result in stored if result is not None)
        upstream = upstream_of(stage)
        if upstream is None:
            raise ValueError(f"The {stage} stage has no upstream batch")
        return self.store.read_batch(upstream)

    def _execute(
        self,
        stage: StageName,
        context: StageContext,
        *,
        results: Sequence[ProcessingResult] | None = None,
    ) -> tuple[ProcessingResult, tuple[object, ...]]:
        implementation = self.stages.get(stage)
        if implementation is None:
            raise ValueError(f"No implementation registered for the {stage} stage")

        started = datetime.now(tz=UTC)
        log.info("Running %s stage", stage)
        try:
            outcome = implementation.run(self._input_for(stage, results), context=context)
        except StageFailedError as exc:
            log.error("%s", exc)  # noqa: TRY400
            result = ProcessingResult.failed(stage, exc.reason, start_time=started)
        except Exception as exc:  # noqa: BLE001
            log.exception("%s stage raised an unexpected error", stage)
            result = ProcessingResult.failed(
                stage, f"{type(exc).__name__}: {exc}", start_time=started
            )
        else:
            self.store.write_batch(stage, outcome.records)
            self.store.write_result(outcome.result)
            log.info(
                "Finished %s stage: %d processed, %d succeeded, %d errors in %.1f ms",
                stage,
                outcome.result.processed_count,
                outcome.result.success_count,
                outcome.result.error_count,
                outcome.result.metrics.processing_time_ms,
            )
            return outcome.result, outcome.records

        self.store.discard(stage)
        self.store.write_result(result)
        return result, ()

    def _checkpoint(self, checkpoint: Checkpoint, result: ProcessingResult) -> Checkpoint:
        if result.success:
            updated = checkpoint.with_completed(result.stage)
        else:
            updated = checkpoint.with_failed(result.stage)
        self.store.write_checkpoint(updated)
        log.debug("Checkpoint written after %s stage", result.stage)
        return updated

    def _emit_report(self, records: Sequence[object]) -> PipelineReport | None:
        report = next((item for item in records if isinstance(item, PipelineReport)), None)
        if report is not None and self.report_sink is not None:
            self.report_sink(report)
        return report
