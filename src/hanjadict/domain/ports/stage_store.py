"""Port for persisting stage batches, results and checkpoints between runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

from hanjadict.domain.model import StageName  # noqa: TC001

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hanjadict.domain.pipeline.result import ProcessingResult


@dataclass(slots=True, frozen=True, kw_only=True)
class Checkpoint:
    """Stages completed by a run, rewritten after every stage."""

    run_id: str
    completed: tuple[StageName, ...] = ()
    failed: tuple[StageName, ...] = ()
    updated_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def with_completed(self, stage: StageName) -> Checkpoint:
        completed = tuple(dict.fromkeys((*self.completed, stage)))
        failed = tuple(name for name in self.failed if name != stage)
        return Checkpoint(run_id=self.run_id, completed=completed, failed=failed)

    def with_failed(self, stage: StageName) -> Checkpoint:
        completed = tuple(name for name in self.completed if name != stage)
        failed = tuple(dict.fromkeys((*self.failed, stage)))
        return Checkpoint(run_id=self.run_id, completed=completed, failed=failed)


class StageStore(Protocol):
    """Storage for stage outputs (record batches) and their processing results."""

    def has_output(self, stage: StageName) -> bool: ...

    def read_batch(self, stage: StageName) -> tuple[object, ...]: ...

    def write_batch(self, stage: StageName, records: Sequence[object]) -> None: ...

    def discard(self, stage: StageName) -> None: ...

    def read_result(self, stage: StageName) -> ProcessingResult | None: ...

    def write_result(self, result: ProcessingResult) -> None: ...

    def read_checkpoint(self) -> Checkpoint | None: ...

    def write_checkpoint(self, checkpoint: Checkpoint) -> None: ...
