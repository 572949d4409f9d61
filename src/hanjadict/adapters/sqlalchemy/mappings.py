"""SQLAlchemy table metadata and imperative mappings for the dictionary model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)

from hanjadict.domain.model import (
    DecidedBy,
    DictionaryEntry,
    Element,
    ReadingEntry,
    ReviewStatus,
    YinYang,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

hanja_dict_table = Table(
    "hanja_dict",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("character", String(4), nullable=False, unique=True),
    Column("codepoint", Integer, nullable=True),
    Column("meaning", String, nullable=True),
    Column("strokes", Integer, nullable=True),
    Column("element", Enum(Element, native_enum=False, length=16), nullable=True),
    Column("yin_yang", Enum(YinYang, native_enum=False, length=8), nullable=True),
    Column(
        "review_status",
        Enum(ReviewStatus, native_enum=False, length=16),
        nullable=False,
        default=ReviewStatus.NEEDS_REVIEW,
    ),
    Column("evidence_score", Integer, nullable=False, default=0),
    Column(
        "decided_by",
        Enum(DecidedBy, native_enum=False, length=16),
        nullable=False,
        default=DecidedBy.BASE,
    ),
    Column("ruleset", String(64), nullable=False, default=""),
    Column("evidence_fingerprint", String(64), nullable=False, default=""),
    Column("evidence_json", Text, nullable=True),
    Column("usage_frequency", Integer, nullable=False, default=0),
    Column("name_frequency", Integer, nullable=False, default=0),
    Column("review_note", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
    Index("ix_hanja_dict_element", "element"),
    Index("ix_hanja_dict_review_status", "review_status"),
)

hanja_reading_table = Table(
    "hanja_reading",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("character", String(4), nullable=False),
    Column("reading", String(16), nullable=False),
    Column("is_primary", Boolean, nullable=False, default=False),
    Column("sound_element", Enum(Element, native_enum=False, length=16), nullable=True),
    UniqueConstraint("character", "reading"),
    Index("ix_hanja_reading_reading", "reading"),
)


@cache
def start_mappers() -> orm.registry:
    """Map the dictionary entities onto their tables (once per process)."""

    log.info("Starting SQLAlchemy mappers")
    mapper_registry.map_imperatively(DictionaryEntry, hanja_dict_table)
    mapper_registry.map_imperatively(ReadingEntry, hanja_reading_table)
    orm.configure_mappers()
    return mapper_registry
