"""Court-registry source configuration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .env import optional_env_var
from .errors import MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, ShouldCacheHook

REGISTRY_TIMEOUT_SECONDS = 15.0
REGISTRY_PATH_VAR = "HANJADICT_REGISTRY_PATH"
REGISTRY_URL_VAR = "HANJADICT_REGISTRY_URL"


@dataclass(frozen=True)
class RegistryConfig:
    """Where to read the registry list from: a local export or an HTTP endpoint."""

    path: Path | None
    url: str | None
    resilience: ResilienceConfig


def _cache_non_empty(payload: object) -> bool:
    return bool(payload)


def get_registry_config(
    *,
    resilience: ResilienceConfig | None = None,
    cache_predicate: ShouldCacheHook | None = None,
) -> RegistryConfig:
    path = optional_env_var(REGISTRY_PATH_VAR)
    url = optional_env_var(REGISTRY_URL_VAR)
    if path is None and url is None:
        raise MissingConfigurationError(
            f"Missing configuration for: {REGISTRY_PATH_VAR} or {REGISTRY_URL_VAR}"
        )
    return RegistryConfig(
        path=Path(path).expanduser() if path else None,
        url=url,
        resilience=resilience
        or ResilienceConfig(
            name="registry",
            timeout_seconds=REGISTRY_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
            cache=CacheConfig(should_cache=cache_predicate or _cache_non_empty),
        ),
    )
