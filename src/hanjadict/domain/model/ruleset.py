"""Versioned conflict-resolution policy."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from hanjadict.domain.model.enums import EvidenceMechanism

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_RULESET_VERSION: Final[str] = "weights-v1"
DEFAULT_THRESHOLD: Final[float] = 0.5
DEFAULT_WEIGHTS: Final[Mapping[EvidenceMechanism, float]] = MappingProxyType(
    {
        EvidenceMechanism.BASE: 0.4,
        EvidenceMechanism.EXPANDED: 0.4,
        EvidenceMechanism.STROKE: 0.3,
        EvidenceMechanism.SOUND: 0.3,
    }
)


@dataclass(slots=True, frozen=True, kw_only=True)
class Ruleset:
    """Weight table and thresholds stamped onto every resolved record.

    ``derived_rules`` lists the mechanisms the merge stage computes from the
    record itself (stroke count, reading) instead of reading them from sources.
    Nothing is derived unless a ruleset opts in.
    """

    version: str = DEFAULT_RULESET_VERSION
    weights: Mapping[EvidenceMechanism, float] = field(default_factory=lambda: DEFAULT_WEIGHTS)
    threshold: float = DEFAULT_THRESHOLD
    derived_rules: frozenset[EvidenceMechanism] = frozenset()

    def weight_for(self, mechanism: EvidenceMechanism) -> float:
        return self.weights.get(mechanism, 0.0)

    def derives(self, mechanism: EvidenceMechanism) -> bool:
        return mechanism in self.derived_rules
