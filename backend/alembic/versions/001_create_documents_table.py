"""Create documents table

Revision ID: 001
Revises: None
Create Date: 2026-10-17 00:00:00.000000+00:00

What:  Creates the `documents` table: provenance, blob key, extracted text,
       analysis state/results and soft-delete bookkeeping.
How:   Enum columns are VARCHAR + CHECK (matches native_enum=False in the
       model); extracted_metadata is JSONB on PostgreSQL, JSON elsewhere.

Rollback: downgrade() drops the table (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ANALYSIS_STATUSES = ("PENDING", "ANALYZING", "COMPLETED", "FAILED")
CATEGORIES = ("invoice", "CV", "report", "letter", "contract", "article", "other")
RECORD_STATES = ("ACTIVE", "DELETED")


def upgrade() -> None:
    op.create_table(
        "documents",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("original_name", sa.String(255), nullable=False),
        sa.Column("media_type", sa.String(255), nullable=False),
        sa.Column("size_bytes", sa.Integer(), nullable=False),
        sa.Column(
            "storage_key",
            sa.String(255),
            nullable=False,
            comment="Blob store key, relative to the storage root",
        ),
        sa.Column("extracted_text", sa.Text(), nullable=False),
        sa.Column(
            "analysis_status",
            sa.Enum(*ANALYSIS_STATUSES, name="analysis_status", native_enum=False, length=20),
            nullable=False,
        ),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column(
            "category",
            sa.Enum(*CATEGORIES, name="document_category", native_enum=False, length=20),
            nullable=True,
        ),
        sa.Column(
            "extracted_metadata",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=True,
        ),
        sa.Column(
            "record_state",
            sa.Enum(*RECORD_STATES, name="record_state", native_enum=False, length=10),
            nullable=False,
        ),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("storage_key"),
    )

    # List query: WHERE is_deleted = false ORDER BY created_at
    op.create_index(
        "idx_documents_active_created_at",
        "documents",
        ["is_deleted", "created_at"],
    )
    op.create_index(
        "idx_documents_analysis_status",
        "documents",
        ["analysis_status"],
    )


def downgrade() -> None:
    op.drop_index("idx_documents_analysis_status", table_name="documents")
    op.drop_index("idx_documents_active_created_at", table_name="documents")
    op.drop_table("documents")
