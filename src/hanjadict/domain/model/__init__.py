"""Public domain model surface."""

from __future__ import annotations

from hanjadict.domain.model.dictionary import (
    DictionaryEntry,
    DictionaryStats,
    Page,
    ReadingEntry,
    ReviewStats,
)
from hanjadict.domain.model.enums import (
    DecidedBy,
    Element,
    ErrorKind,
    ErrorMode,
    EvidenceMechanism,
    LoadAction,
    ReviewStatus,
    Severity,
    SourceTag,
    StageName,
    YinYang,
)
from hanjadict.domain.model.records import (
    Evidence,
    LoadOutcome,
    MergedRecord,
    NormalizedRecord,
    RawRecord,
    Reading,
    ResolvedRecord,
    RuleFailure,
    ValidatedRecord,
    primary_reading,
)
from hanjadict.domain.model.ruleset import Ruleset

__all__ = [  # noqa: RUF022
    # records
    "RawRecord",
    "Reading",
    "NormalizedRecord",
    "Evidence",
    "MergedRecord",
    "ResolvedRecord",
    "RuleFailure",
    "LoadOutcome",
    "ValidatedRecord",
    "primary_reading",
    # persisted
    "DictionaryEntry",
    "ReadingEntry",
    "DictionaryStats",
    "ReviewStats",
    "Page",
    # policy
    "Ruleset",
    # enums
    "DecidedBy",
    "Element",
    "ErrorKind",
    "ErrorMode",
    "LoadAction",
    "EvidenceMechanism",
    "ReviewStatus",
    "Severity",
    "SourceTag",
    "StageName",
    "YinYang",
]
