"""
DocSummarizer Backend: Pydantic Request/Response Schemas
=========================================================

What:  Pydantic models defining the API contract.
Why:   Strict input validation, automatic serialization, and OpenAPI docs.
How:   Every successful response is an envelope {message, data}; the list
       endpoint adds `pagination`. Errors use ErrorResponse.

Design Decision:
    Schemas are separate from the SQLAlchemy model: soft-delete bookkeeping
    (record_state, is_deleted, deleted_at) never leaves the service, and the
    list view carries a text preview instead of the full extracted text.
"""

import math
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from docsummarizer.models.document import AnalysisStatus, DocumentCategory

TEXT_PREVIEW_LENGTH = 200


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class DocumentResponse(BaseModel):
    """Full representation of an active document."""

    id: uuid.UUID
    original_name: str
    media_type: str
    size_bytes: int
    storage_key: str
    extracted_text: str
    analysis_status: AnalysisStatus
    summary: Optional[str] = None
    category: Optional[DocumentCategory] = None
    extracted_metadata: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DocumentListItem(BaseModel):
    """
    Compact document representation for list views.

    Carries the first 200 characters of the extracted text instead of the
    full (up to 200,000 character) body.
    """

    id: uuid.UUID
    original_name: str
    media_type: str
    size_bytes: int
    text_preview: str
    analysis_status: AnalysisStatus
    summary: Optional[str] = None
    category: Optional[DocumentCategory] = None
    created_at: datetime

    @classmethod
    def from_document(cls, document) -> "DocumentListItem":
        return cls(
            id=document.id,
            original_name=document.original_name,
            media_type=document.media_type,
            size_bytes=document.size_bytes,
            text_preview=(document.extracted_text or "")[:TEXT_PREVIEW_LENGTH],
            analysis_status=document.analysis_status,
            summary=document.summary,
            category=document.category,
            created_at=document.created_at,
        )


class PaginationMeta(BaseModel):
    """
    Offset pagination metadata.

    total_pages = ceil(total / limit); has_next / has_previous are derived
    from the requested page.
    """

    total: int
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_previous: bool

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PaginationMeta":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_previous=page > 1,
        )


class DocumentEnvelope(BaseModel):
    message: str
    data: DocumentResponse


class AnalysisOutcome(str, Enum):
    COMPLETED = "completed"
    ALREADY_COMPLETED = "already_completed"


class AnalyzeEnvelope(BaseModel):
    """Analyze result; `outcome` tells a fresh analysis from a short-circuit."""

    message: str
    outcome: AnalysisOutcome
    data: DocumentResponse


class DocumentListEnvelope(BaseModel):
    message: str
    data: List[DocumentListItem]
    pagination: PaginationMeta


class DeletedDocument(BaseModel):
    id: uuid.UUID
    deleted_at: datetime


class DeleteEnvelope(BaseModel):
    message: str
    data: DeletedDocument


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class AnalyzeRequest(BaseModel):
    force_reanalysis: bool = Field(
        default=False,
        description="Re-run analysis even if the document is already COMPLETED",
    )


class DocumentSort(str, Enum):
    CREATED_AT_DESC = "created_at_desc"
    CREATED_AT_ASC = "created_at_asc"


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "Document not found.",
            "details": {"resource": "document"},
            "request_id": "550e8400-e29b-41d4-a716-446655440000"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str
    database: str = Field(description="connected, disconnected")
    storage: str = Field(description="writable, unavailable")
    llm: str = Field(description="available, unavailable, not_configured")
    llm_provider: str
    uptime_seconds: float
