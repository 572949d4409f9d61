"""Seven-stage batch pipeline building the Hanja dictionary.

Stages run strictly in order (ingest, normalize, merge, resolve, validate,
load, report). Each consumes the previous stage's record batch and returns a
new batch plus a ``ProcessingResult``; the orchestrator persists both so any
stage can be re-run on its own or skipped on a later run.
"""

from __future__ import annotations

from .contracts import (
    DEFAULT_BATCH_SIZE,
    STAGE_ORDER,
    MissingStageOutputError,
    PipelineStage,
    StageContext,
    StageFailedError,
    StageInputError,
    StageOutcome,
    upstream_of,
)
from .ingest import IngestStage
from .load import LoadStage
from .merge import MergeStage
from .normalize import NormalizeStage
from .orchestrator import PipelineOrchestrator, PipelineRun
from .report import PipelineReport, ReportStage
from .resolve import ResolveStage
from .result import ProcessingResult, StageError, StageMetrics
from .validate import ValidateStage

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "STAGE_ORDER",
    "IngestStage",
    "LoadStage",
    "MergeStage",
    "MissingStageOutputError",
    "NormalizeStage",
    "PipelineOrchestrator",
    "PipelineReport",
    "PipelineRun",
    "PipelineStage",
    "ProcessingResult",
    "ReportStage",
    "ResolveStage",
    "StageContext",
    "StageError",
    "StageFailedError",
    "StageInputError",
    "StageMetrics",
    "StageOutcome",
    "ValidateStage",
    "upstream_of",
]
