"""Pipeline run settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from hanjadict.domain.model import ErrorMode
from hanjadict.domain.pipeline.contracts import DEFAULT_BATCH_SIZE

from .env import env_int, env_list, optional_env_var
from .errors import ConfigurationError
from .storage import get_storage_config

if TYPE_CHECKING:
    from pathlib import Path

    from .storage import StorageConfig

KNOWN_SOURCES: Final[frozenset[str]] = frozenset({"base", "expanded", "registry"})
DEFAULT_SOURCES: Final[tuple[str, ...]] = ("base", "expanded")


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    work_dir: Path
    batch_size: int = DEFAULT_BATCH_SIZE
    error_mode: ErrorMode = ErrorMode.ABORT
    sources: tuple[str, ...] = DEFAULT_SOURCES


def get_pipeline_config(*, storage: StorageConfig | None = None) -> PipelineConfig:
    storage_config = storage or get_storage_config()

    raw_mode = optional_env_var("HANJADICT_ERROR_MODE") or ErrorMode.ABORT
    try:
        error_mode = ErrorMode(raw_mode.lower())
    except ValueError as exc:
        raise ConfigurationError(
            f"HANJADICT_ERROR_MODE must be 'abort' or 'continue', got {raw_mode!r}"
        ) from exc

    sources = env_list("HANJADICT_SOURCES", default=DEFAULT_SOURCES)
    unknown = sorted(set(sources) - KNOWN_SOURCES)
    if unknown:
        raise ConfigurationError(f"Unknown sources in HANJADICT_SOURCES: {', '.join(unknown)}")
    if not sources:
        raise ConfigurationError("HANJADICT_SOURCES must name at least one source")

    return PipelineConfig(
        work_dir=storage_config.pipeline_dir(),
        batch_size=env_int("HANJADICT_BATCH_SIZE", default=DEFAULT_BATCH_SIZE),
        error_mode=error_mode,
        sources=tuple(dict.fromkeys(sources)),
    )
