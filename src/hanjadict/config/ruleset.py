"""Loading of versioned conflict-resolution rulesets from TOML files.

Example::

    version = "weights-v2"
    threshold = 0.55
    derived_rules = ["stroke"]

    [weights]
    base = 0.4
    expanded = 0.35

Weights not listed keep their default value.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from types import MappingProxyType
from typing import Any

from hanjadict.domain.model import EvidenceMechanism, Ruleset
from hanjadict.domain.model.ruleset import DEFAULT_WEIGHTS

from .env import optional_env_var
from .errors import ConfigurationError

RULESET_VAR = "HANJADICT_RULESET"


def _mechanism(name: str, path: Path) -> EvidenceMechanism:
    try:
        return EvidenceMechanism(name)
    except ValueError as exc:
        raise ConfigurationError(f"{path}: unknown evidence mechanism {name!r}") from exc


def _number(value: Any, what: str, path: Path) -> float:  # noqa: ANN401
    if isinstance(value, bool) or not isinstance(value, int | float) or value < 0:
        raise ConfigurationError(f"{path}: {what} must be a non-negative number")
    return float(value)


def ruleset_from_mapping(data: dict[str, Any], *, path: Path) -> Ruleset:
    version = data.get("version")
    if not isinstance(version, str) or not version.strip():
        raise ConfigurationError(f"{path}: ruleset needs a non-empty 'version'")

    weights = dict(DEFAULT_WEIGHTS)
    raw_weights = data.get("weights", {})
    if not isinstance(raw_weights, dict):
        raise ConfigurationError(f"{path}: 'weights' must be a table")
    for name, value in raw_weights.items():
        weights[_mechanism(name, path)] = _number(value, f"weight {name!r}", path)

    threshold = _number(data.get("threshold", Ruleset().threshold), "threshold", path)
    if threshold == 0:
        raise ConfigurationError(f"{path}: threshold must be greater than zero")

    derived = Ruleset().derived_rules
    if "derived_rules" in data:
        raw_derived = data["derived_rules"]
        if not isinstance(raw_derived, list):
            raise ConfigurationError(f"{path}: 'derived_rules' must be a list")
        derived = frozenset(_mechanism(str(name), path) for name in raw_derived)
        invalid = derived - {EvidenceMechanism.STROKE, EvidenceMechanism.SOUND}
        if invalid:
            names = ", ".join(sorted(invalid))
            raise ConfigurationError(f"{path}: only stroke and sound can be derived ({names})")

    return Ruleset(
        version=version.strip(),
        weights=MappingProxyType(weights),
        threshold=threshold,
        derived_rules=derived,
    )


def load_ruleset(path: Path) -> Ruleset:
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Ruleset file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"{path}: invalid TOML ({exc})") from exc
    return ruleset_from_mapping(data, path=path)


def get_ruleset() -> Ruleset:
    """Return the ruleset named by ``HANJADICT_RULESET`` or the built-in default."""

    raw = optional_env_var(RULESET_VAR)
    if raw is None:
        return Ruleset()
    return load_ruleset(Path(raw).expanduser())
