"""Machine-readable processing results emitted by every pipeline stage."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from hanjadict.domain.model import ErrorKind, StageName


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(slots=True, frozen=True, kw_only=True)
class StageError:
    """One structured error or warning attached to a stage result."""

    kind: ErrorKind
    message: str
    record_key: str | None = None
    field: str | None = None
    original_value: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class StageMetrics:
    processing_time_ms: float = 0.0
    throughput_per_second: float = 0.0


@dataclass(slots=True, frozen=True, kw_only=True)
class ProcessingResult:
    stage: StageName
    success: bool
    processed_count: int = 0
    success_count: int = 0
    error_count: int = 0
    errors: tuple[StageError, ...] = ()
    warnings: tuple[StageError, ...] = ()
    metrics: StageMetrics = field(default_factory=StageMetrics)
    start_time: datetime = field(default_factory=_utcnow)
    end_time: datetime = field(default_factory=_utcnow)
    details: dict[str, Any] = field(default_factory=dict[str, Any])

    @classmethod
    def failed(
        cls,
        stage: StageName,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.PIPELINE,
        start_time: datetime | None = None,
    ) -> ProcessingResult:
        """Result for a stage that could not produce any output."""

        end_time = _utcnow()
        started = start_time or end_time
        return cls(
            stage=stage,
            success=False,
            error_count=1,
            errors=(StageError(kind=kind, message=message),),
            metrics=StageMetrics(
                processing_time_ms=(end_time - started).total_seconds() * 1000,
            ),
            start_time=started,
            end_time=end_time,
        )


@dataclass(slots=True)
class ResultRecorder:
    """Mutable accumulator a stage fills while it works, then freezes with ``finish``."""

    stage: StageName
    start_time: datetime = field(default_factory=_utcnow)
    processed_count: int = 0
    success_count: int = 0
    error_count: int = 0
    errors: list[StageError] = field(default_factory=list[StageError])
    warnings: list[StageError] = field(default_factory=list[StageError])
    details: dict[str, Any] = field(default_factory=dict[str, Any])
    _started: float = field(default_factory=time.perf_counter)

    def error(
        self,
        kind: ErrorKind,
        message: str,
        *,
        record_key: str | None = None,
        field: str | None = None,
        original_value: object = None,
    ) -> None:
        self.errors.append(
            StageError(
                kind=kind,
                message=message,
                record_key=record_key,
                field=field,
                original_value=None if original_value is None else str(original_value),
            )
        )

    def warn(
        self,
        kind: ErrorKind,
        message: str,
        *,
        record_key: str | None = None,
    ) -> None:
        self.warnings.append(StageError(kind=kind, message=message, record_key=record_key))

    def finish(self, *, success: bool = True) -> ProcessingResult:
        elapsed = time.perf_counter() - self._started
        throughput = self.processed_count / elapsed if elapsed > 0 else 0.0
        return ProcessingResult(
            stage=self.stage,
            success=success,
            processed_count=self.processed_count,
            success_count=self.success_count,
            error_count=self.error_count,
            errors=tuple(self.errors),
            warnings=tuple(self.warnings),
            metrics=StageMetrics(
                processing_time_ms=round(elapsed * 1000, 3),
                throughput_per_second=round(throughput, 3),
            ),
            start_time=self.start_time,
            end_time=_utcnow(),
            details=dict(self.details),
        )
