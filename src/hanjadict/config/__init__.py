"""Application configuration helpers."""

from __future__ import annotations

from .env import env_int, env_list, optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .pipeline import PipelineConfig, get_pipeline_config
from .registry import RegistryConfig, get_registry_config
from .ruleset import get_ruleset, load_ruleset
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "PipelineConfig",
    "RateLimit",
    "RegistryConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "env_int",
    "env_list",
    "get_database_config",
    "get_pipeline_config",
    "get_registry_config",
    "get_ruleset",
    "get_storage_config",
    "load_ruleset",
    "optional_env_var",
    "require_env_vars",
]
