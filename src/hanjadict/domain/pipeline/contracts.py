"""Stage contracts shared by the pipeline stages and the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final, Protocol
from uuid import uuid4

from hanjadict.domain.model import Ruleset, StageName

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hanjadict.domain.pipeline.result import ProcessingResult

DEFAULT_BATCH_SIZE: Final[int] = 100

STAGE_ORDER: Final[tuple[StageName, ...]] = (
    StageName.INGEST,
    StageName.NORMALIZE,
    StageName.MERGE,
    StageName.RESOLVE,
    StageName.VALIDATE,
    StageName.LOAD,
    StageName.REPORT,
)


def upstream_of(stage: StageName) -> StageName | None:
    """Return the stage whose output ``stage`` consumes (``None`` for ingest and report)."""

    if stage in {StageName.INGEST, StageName.REPORT}:
        return None
    return STAGE_ORDER[STAGE_ORDER.index(stage) - 1]


class StageFailedError(RuntimeError):
    """Raised by a stage that cannot produce any output."""

    def __init__(self, stage: StageName, message: str) -> None:
        super().__init__(f"{stage} stage failed: {message}")
        self.stage = stage
        self.reason = message


class MissingStageOutputError(FileNotFoundError):
    """Raised when a stage input batch has not been materialised yet."""

    def __init__(self, stage: StageName) -> None:
        super().__init__(f"No output recorded for the {stage} stage")
        self.stage = stage


class StageInputError(ValueError):
    """Raised when a stored batch does not match its record schema."""


@dataclass(slots=True, frozen=True, kw_only=True)
class StageContext:
    """Run-wide settings handed to every stage."""

    ruleset: Ruleset = field(default_factory=Ruleset)
    batch_size: int = DEFAULT_BATCH_SIZE
    include_invalid: bool = False
    run_id: str = field(default_factory=lambda: uuid4().hex)
    started_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))


@dataclass(slots=True, frozen=True)
class StageOutcome[TOut]:
    records: tuple[TOut, ...]
    result: ProcessingResult


class PipelineStage[TIn, TOut](Protocol):
    """Contract implemented by each pipeline stage."""

    name: StageName

    def run(self, batch: Sequence[TIn], *, context: StageContext) -> StageOutcome[TOut]: ...
