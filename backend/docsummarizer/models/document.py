"""
DocSummarizer Backend: Document SQLAlchemy Model
=================================================

What:  ORM model representing the `documents` table.
Why:   Maps Python objects to database rows for type-safe database operations.
How:   Inherits from DeclarativeBase; Alembic reads this for migrations.
Who:   Used by DocumentRepository for all reads and writes.
When:  Created by the upload pipeline; mutated by analyze and delete.

Table Design Rationale:
    - UUID primary key: non-sequential, assigned in Python so SQLite and
      PostgreSQL behave the same
    - storage_key: UNIQUE; exactly one record owns a given blob
    - extracted_text: bounded at upload time, never re-extracted
    - analysis_status: PENDING → ANALYZING → COMPLETED | FAILED
    - record_state + is_deleted + deleted_at: soft delete; rows are never
      physically removed
    - updated_at: refreshed on every update; the stale-analysis sweep reads it

    Enum columns are stored as VARCHAR with a CHECK constraint
    (native_enum=False) so the same model runs on SQLite in tests.

    Index on (is_deleted, created_at): the list query always filters
    is_deleted = false and orders by created_at.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    false,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from docsummarizer.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisStatus(str, enum.Enum):
    """Where a document is in the analyze workflow."""

    PENDING = "PENDING"
    ANALYZING = "ANALYZING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class DocumentCategory(str, enum.Enum):
    """Classification returned by the analysis client."""

    INVOICE = "invoice"
    CV = "CV"
    REPORT = "report"
    LETTER = "letter"
    CONTRACT = "contract"
    ARTICLE = "article"
    OTHER = "other"


class RecordState(str, enum.Enum):
    ACTIVE = "ACTIVE"
    DELETED = "DELETED"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Document(Base):
    """
    An uploaded document, its extracted text and its analysis results.

    Lifecycle:
        1. Created by upload (analysis_status = PENDING, record_state = ACTIVE)
        2. analyze moves it through ANALYZING to COMPLETED or FAILED;
           summary/category/extracted_metadata are written only on success
           and kept as they are when a later re-analysis fails
        3. delete flips record_state to DELETED and stamps deleted_at
    """

    __tablename__ = "documents"

    # ── Identity ──────────────────────────────────────────────────────────
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # ── Provenance (immutable) ────────────────────────────────────────────
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    media_type: Mapped[str] = mapped_column(String(255), nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)

    # Format: YYYY/MM/DD/<token><ms timestamp>.<ext>
    storage_key: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Blob store key, relative to the storage root",
    )

    extracted_text: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # ── Analysis ──────────────────────────────────────────────────────────
    analysis_status: Mapped[AnalysisStatus] = mapped_column(
        Enum(
            AnalysisStatus,
            name="analysis_status",
            native_enum=False,
            length=20,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=AnalysisStatus.PENDING,
    )
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[DocumentCategory]] = mapped_column(
        Enum(
            DocumentCategory,
            name="document_category",
            native_enum=False,
            length=20,
            values_callable=_enum_values,
        ),
        nullable=True,
    )
    extracted_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=True,
    )

    # ── Soft delete ───────────────────────────────────────────────────────
    record_state: Mapped[RecordState] = mapped_column(
        Enum(
            RecordState,
            name="record_state",
            native_enum=False,
            length=10,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=RecordState.ACTIVE,
    )
    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    __table_args__ = (
        Index("idx_documents_active_created_at", "is_deleted", "created_at"),
        Index("idx_documents_analysis_status", "analysis_status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Document(id={self.id}, status='{self.analysis_status}', "
            f"state='{self.record_state}')>"
        )
