"""Create dictionary entry and reading tables.

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_ELEMENTS = ("WOOD", "FIRE", "EARTH", "METAL", "WATER")


def upgrade() -> None:
    op.create_table(
        "hanja_dict",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("character", sa.String(length=4), nullable=False),
        sa.Column("codepoint", sa.Integer(), nullable=True),
        sa.Column("meaning", sa.String(), nullable=True),
        sa.Column("strokes", sa.Integer(), nullable=True),
        sa.Column(
            "element",
            sa.Enum(*_ELEMENTS, name="element", native_enum=False, length=16),
            nullable=True,
        ),
        sa.Column(
            "yin_yang",
            sa.Enum("YIN", "YANG", name="yinyang", native_enum=False, length=8),
            nullable=True,
        ),
        sa.Column(
            "review_status",
            sa.Enum("OK", "NEEDS_REVIEW", name="reviewstatus", native_enum=False, length=16),
            nullable=False,
        ),
        sa.Column("evidence_score", sa.Integer(), nullable=False),
        sa.Column(
            "decided_by",
            sa.Enum("AUTO", "BASE", "MANUAL", name="decidedby", native_enum=False, length=16),
            nullable=False,
        ),
        sa.Column("ruleset", sa.String(length=64), nullable=False),
        sa.Column("evidence_fingerprint", sa.String(length=64), nullable=False),
        sa.Column("evidence_json", sa.Text(), nullable=True),
        sa.Column("usage_frequency", sa.Integer(), nullable=False),
        sa.Column("name_frequency", sa.Integer(), nullable=False),
        sa.Column("review_note", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_hanja_dict"),
        sa.UniqueConstraint("character", name="uq_hanja_dict_character"),
    )
    with op.batch_alter_table("hanja_dict") as batch_op:
        batch_op.create_index("ix_hanja_dict_element", ["element"], unique=False)
        batch_op.create_index("ix_hanja_dict_review_status", ["review_status"], unique=False)

    op.create_table(
        "hanja_reading",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("character", sa.String(length=4), nullable=False),
        sa.Column("reading", sa.String(length=16), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        sa.Column(
            "sound_element",
            sa.Enum(*_ELEMENTS, name="element", native_enum=False, length=16),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_hanja_reading"),
        sa.UniqueConstraint("character", "reading", name="uq_hanja_reading_character_reading"),
    )
    with op.batch_alter_table("hanja_reading") as batch_op:
        batch_op.create_index("ix_hanja_reading_reading", ["reading"], unique=False)


def downgrade() -> None:
    with op.batch_alter_table("hanja_reading") as batch_op:
        batch_op.drop_index("ix_hanja_reading_reading")
    op.drop_table("hanja_reading")
    with op.batch_alter_table("hanja_dict") as batch_op:
        batch_op.drop_index("ix_hanja_dict_review_status")
        batch_op.drop_index("ix_hanja_dict_element")
    op.drop_table("hanja_dict")
