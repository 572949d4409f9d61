"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Element(StrEnum):
    WOOD = "wood"
    FIRE = "fire"
    EARTH = "earth"
    METAL = "metal"
    WATER = "water"


class YinYang(StrEnum):
    YIN = "yin"
    YANG = "yang"


class ReviewStatus(StrEnum):
    OK = "ok"
    NEEDS_REVIEW = "needs_review"


class DecidedBy(StrEnum):
    """Mechanism that set the final element of a dictionary entry."""

    AUTO = "auto"
    BASE = "base"
    MANUAL = "manual"


class EvidenceMechanism(StrEnum):
    """Independent classification mechanisms feeding conflict resolution."""

    BASE = "base"
    EXPANDED = "expanded"
    STROKE = "stroke"
    SOUND = "sound"


class StageName(StrEnum):
    INGEST = "ingest"
    NORMALIZE = "normalize"
    MERGE = "merge"
    RESOLVE = "resolve"
    VALIDATE = "validate"
    LOAD = "load"
    REPORT = "report"


class ErrorKind(StrEnum):
    SOURCE = "source"
    NORMALIZATION = "normalization"
    MERGE = "merge"
    RESOLUTION = "resolution"
    VALIDATION = "validation"
    PERSISTENCE = "persistence"
    PIPELINE = "pipeline"


class Severity(StrEnum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class ErrorMode(StrEnum):
    ABORT = "abort"
    CONTINUE = "continue"


class SourceTag(StrEnum):
    """Well-known source identifiers; adapters may use other strings."""

    HANJA_DATA = "hanja-data"
    HANJA_EXPANDED = "hanja-expanded"
    SUPREME_COURT = "supreme-court"
    EXTERNAL_API = "external-api"
    USER_INPUT = "user-input"


class LoadAction(StrEnum):
    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    PRESERVED_MANUAL = "preserved_manual"
