"""Application entry points: pipeline runs and the dictionary read interface."""

from __future__ import annotations

from contextlib import contextmanager, nullcontext
from dataclasses import dataclass, replace
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING, Any

from hanjadict.adapters.filesystem import FileStageStore, write_report
from hanjadict.adapters.registry import RegistrySource
from hanjadict.adapters.sources import base_table_source, expanded_table_source
from hanjadict.adapters.sqlalchemy import (
    SqlAlchemyDictionaryUnitOfWork,
    create_session_factory,
    open_engine,
)
from hanjadict.config import (
    ConfigurationError,
    get_database_config,
    get_pipeline_config,
    get_registry_config,
    get_ruleset,
)
from hanjadict.domain.model import ErrorMode, Page, StageName
from hanjadict.domain.phonetics import expand_dueum
from hanjadict.domain.pipeline import (
    IngestStage,
    LoadStage,
    MergeStage,
    NormalizeStage,
    PipelineOrchestrator,
    ReportStage,
    ResolveStage,
    StageContext,
    ValidateStage,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Iterator, Sequence
    from contextlib import AbstractContextManager
    from pathlib import Path

    from hanjadict.config import PipelineConfig
    from hanjadict.domain.model import (
        DecidedBy,
        DictionaryEntry,
        Element,
        ReadingEntry,
        ReviewStats,
        ReviewStatus,
        YinYang,
    )
    from hanjadict.domain.pipeline import PipelineReport, PipelineRun, PipelineStage
    from hanjadict.domain.pipeline.result import ProcessingResult
    from hanjadict.domain.ports import (
        DictionaryUnitOfWorkFactory,
        ReadingRepository,
        RecordSource,
    )


log = getLogger(__name__)


class UnknownCharacterError(ValueError):
    """Raised when an operation names a character that is not in the dictionary."""

    def __init__(self, character: str) -> None:
        super().__init__(f"Character {character!r} is not in the dictionary")
        self.character = character


@dataclass(slots=True, frozen=True, kw_only=True)
class EntryView:
    """Read-side snapshot of a dictionary entry and its readings."""

    character: str
    meaning: str | None
    strokes: int | None
    element: Element | None
    yin_yang: YinYang | None
    review_status: ReviewStatus
    evidence_score: int
    decided_by: DecidedBy
    readings: tuple[str, ...]
    usage_frequency: int
    name_frequency: int
    review_note: str | None = None

    @classmethod
    def from_entry(
        cls,
        entry: DictionaryEntry,
        readings: Sequence[ReadingEntry] = (),
        *,
        mask_pending: bool = False,
    ) -> EntryView:
        return cls(
            character=entry.character,
            meaning=entry.meaning,
            strokes=entry.strokes,
            element=entry.visible_element(mask_pending=mask_pending),
            yin_yang=entry.yin_yang,
            review_status=entry.review_status,
            evidence_score=entry.evidence_score,
            decided_by=entry.decided_by,
            readings=tuple(row.reading for row in readings),
            usage_frequency=entry.usage_frequency,
            name_frequency=entry.name_frequency,
            review_note=entry.review_note,
        )


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


@contextmanager
def dictionary_unit_of_work(
    database_uri: str | None = None,
) -> Iterator[DictionaryUnitOfWorkFactory]:
    """Open the dictionary database and yield a unit-of-work factory bound to it.

    The engine is disposed when the block exits.
    """

    uri = database_uri or get_database_config().uri
    engine = open_engine(uri)
    try:
        yield partial(SqlAlchemyDictionaryUnitOfWork, create_session_factory(engine))
    finally:
        engine.dispose()


def _dictionary(
    unit_of_work_factory: DictionaryUnitOfWorkFactory | None,
) -> AbstractContextManager[DictionaryUnitOfWorkFactory]:
    if unit_of_work_factory is not None:
        return nullcontext(unit_of_work_factory)
    return dictionary_unit_of_work()


def build_sources(names: Sequence[str]) -> list[RecordSource]:
    sources: list[RecordSource] = []
    for name in names:
        match name:
            case "base":
                sources.append(base_table_source())
            case "expanded":
                sources.append(expanded_table_source())
            case "registry":
                sources.append(RegistrySource(get_registry_config()))
            case _:
                raise ConfigurationError(f"Unknown source: {name}")
    return sources


def build_stages(
    *,
    sources: Sequence[RecordSource],
    unit_of_work_factory: DictionaryUnitOfWorkFactory,
) -> dict[StageName, PipelineStage[Any, Any]]:
    return {
        StageName.INGEST: IngestStage(sources=tuple(sources)),
        StageName.NORMALIZE: NormalizeStage(),
        StageName.MERGE: MergeStage(),
        StageName.RESOLVE: ResolveStage(),
        StageName.VALIDATE: ValidateStage(),
        StageName.LOAD: LoadStage(unit_of_work_factory),
        StageName.REPORT: ReportStage(),
    }


def _report_sink(directory: Path) -> Callable[[PipelineReport], None]:
    def sink(report: PipelineReport) -> None:
        write_report(directory, report)

    return sink


def build_orchestrator(
    config: PipelineConfig,
    *,
    unit_of_work_factory: DictionaryUnitOfWorkFactory,
    sources: Sequence[RecordSource] | None = None,
    report_on_failure: bool = True,
) -> PipelineOrchestrator:
    effective_sources = build_sources(config.sources) if sources is None else sources
    return PipelineOrchestrator(
        stages=build_stages(
            sources=effective_sources, unit_of_work_factory=unit_of_work_factory
        ),
        store=FileStageStore(config.work_dir),
        error_mode=config.error_mode,
        report_on_failure=report_on_failure,
        report_sink=_report_sink(config.work_dir),
    )


def _context(
    config: PipelineConfig, *, include_invalid: bool, batch_size: int | None
) -> StageContext:
    effective_batch_size = config.batch_size if batch_size is None else batch_size
    if effective_batch_size < 1:
        raise ValueError("Batch size must be positive")
    return StageContext(
        ruleset=get_ruleset(),
        batch_size=effective_batch_size,
        include_invalid=include_invalid,
    )


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def run_pipeline(  # noqa: PLR0913
    *,
    continue_on_error: bool | None = None,
    skip: Collection[StageName] = (),
    resume: bool = False,
    include_invalid: bool = False,
    batch_size: int | None = None,
    report_on_failure: bool = True,
    config: PipelineConfig | None = None,
    sources: Sequence[RecordSource] | None = None,
    unit_of_work_factory: DictionaryUnitOfWorkFactory | None = None,
) -> PipelineRun:
    """Run every stage in order using the configured sources and database."""

    effective_config = config or get_pipeline_config()
    context = _context(effective_config, include_invalid=include_invalid, batch_size=batch_size)
    if continue_on_error is not None:
        error_mode = ErrorMode.CONTINUE if continue_on_error else ErrorMode.ABORT
        effective_config = replace(effective_config, error_mode=error_mode)
    log.info(
        "Starting pipeline run: work_dir=%s, sources=%s, error_mode=%s, ruleset=%s",
        effective_config.work_dir,
        ", ".join(effective_config.sources),
        effective_config.error_mode,
        context.ruleset.version,
    )

    with _dictionary(unit_of_work_factory) as factory:
        orchestrator = build_orchestrator(
            effective_config,
            unit_of_work_factory=factory,
            sources=sources,
            report_on_failure=report_on_failure,
        )
        run = orchestrator.run_all(context=context, skip=skip, resume=resume)

    log.info(
        "Finished pipeline run %s: %d skipped, %d failed",
        run.run_id,
        len(run.skipped),
        len(run.failed),
    )
    return run


def run_single_stage(
    stage: StageName,
    *,
    include_invalid: bool = False,
    batch_size: int | None = None,
    config: PipelineConfig | None = None,
    sources: Sequence[RecordSource] | None = None,
    unit_of_work_factory: DictionaryUnitOfWorkFactory | None = None,
) -> ProcessingResult:
    """Run one stage against the stored output of the stage before it."""

    effective_config = config or get_pipeline_config()
    context = _context(effective_config, include_invalid=include_invalid, batch_size=batch_size)
    if stage is not StageName.INGEST and sources is None:
        sources = ()
    with _dictionary(unit_of_work_factory) as factory:
        orchestrator = build_orchestrator(
            effective_config, unit_of_work_factory=factory, sources=sources
        )
        return orchestrator.run_stage(stage, context=context)


# ---------------------------------------------------------------------------
# Dictionary reads and review
# ---------------------------------------------------------------------------


def lookup_character(
    character: str,
    *,
    count_usage: bool = False,
    count_name: bool = False,
    unit_of_work_factory: DictionaryUnitOfWorkFactory | None = None,
) -> EntryView | None:
    """Return a character's entry, optionally bumping its usage or name counter."""

    with _dictionary(unit_of_work_factory) as factory, factory() as uow:
        entries = uow.repositories.entries
        if count_usage:
            entries.increment_usage(character)
        if count_name:
            entries.increment_usage(character, name=True)
        entry = entries.get(character)
        if entry is None:
            return None
        view = EntryView.from_entry(entry, uow.repositories.readings.for_character(character))
        if count_usage or count_name:
            uow.commit()
    return view


def search_by_reading(
    reading: str,
    *,
    page: int = 1,
    page_size: int = 20,
    mask_pending: bool = False,
    unit_of_work_factory: DictionaryUnitOfWorkFactory | None = None,
) -> Page[EntryView]:
    """Find characters read as ``reading`` or one of its dueum variants."""

    readings = expand_dueum(reading)
    log.debug("Searching readings %s", ", ".join(readings))
    with _dictionary(unit_of_work_factory) as factory, factory() as uow:
        characters = uow.repositories.readings.characters_for_readings(readings)
        found = uow.repositories.entries.page_by_characters(
            characters, page=page, page_size=page_size
        )
        return _views(uow.repositories.readings, found, mask_pending=mask_pending)


def search_by_element(
    element: Element,
    *,
    page: int = 1,
    page_size: int = 20,
    mask_pending: bool = False,
    unit_of_work_factory: DictionaryUnitOfWorkFactory | None = None,
) -> Page[EntryView]:
    with _dictionary(unit_of_work_factory) as factory, factory() as uow:
        found = uow.repositories.entries.page_by_element(
            element, page=page, page_size=page_size
        )
        return _views(uow.repositories.readings, found, mask_pending=mask_pending)


def _views(
    readings: ReadingRepository, found: Page[DictionaryEntry], *, mask_pending: bool
) -> Page[EntryView]:
    items = tuple(
        EntryView.from_entry(
            entry, readings.for_character(entry.character), mask_pending=mask_pending
        )
        for entry in found.items
    )
    return Page(items=items, page=found.page, page_size=found.page_size, total=found.total)


def review_queue(
    *,
    limit: int | None = None,
    unit_of_work_factory: DictionaryUnitOfWorkFactory | None = None,
) -> list[EntryView]:
    """Entries waiting for a manual element decision, weakest evidence first."""

    with _dictionary(unit_of_work_factory) as factory, factory() as uow:
        return [
            EntryView.from_entry(entry, uow.repositories.readings.for_character(entry.character))
            for entry in uow.repositories.entries.review_queue(limit=limit)
        ]


def review_stats(
    *, unit_of_work_factory: DictionaryUnitOfWorkFactory | None = None
) -> ReviewStats:
    with _dictionary(unit_of_work_factory) as factory, factory() as uow:
        return uow.repositories.entries.review_stats()


def manual_resolve(
    character: str,
    element: Element,
    *,
    note: str | None = None,
    unit_of_work_factory: DictionaryUnitOfWorkFactory | None = None,
) -> EntryView:
    """Record an operator's element decision for ``character``."""

    with _dictionary(unit_of_work_factory) as factory, factory() as uow:
        entry = uow.repositories.entries.get(character)
        if entry is None:
            raise UnknownCharacterError(character)
        previous = entry.element
        entry.resolve_manually(element, note=note)
        uow.commit()
        log.info("Resolved %s manually: %s -> %s", character, previous, element)
        return EntryView.from_entry(entry, uow.repositories.readings.for_character(character))
