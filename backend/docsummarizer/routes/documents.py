"""
DocSummarizer Backend: Document Route Handlers
===============================================

What:  Upload, list, get, analyze and soft-delete endpoints.
How:   Each handler validates HTTP-level input, delegates to DocumentService
       and wraps the result in a {message, data} envelope. Errors propagate
       to the global exception handlers in main.py.
Who:   API clients; Swagger UI at /docs.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Query, UploadFile

from docsummarizer import messages
from docsummarizer.dependencies import get_document_service, get_upload_validator
from docsummarizer.exceptions import UploadValidationError
from docsummarizer.models.document import AnalysisStatus, DocumentCategory
from docsummarizer.schemas.document import (
    AnalysisOutcome,
    AnalyzeEnvelope,
    AnalyzeRequest,
    DeletedDocument,
    DeleteEnvelope,
    DocumentEnvelope,
    DocumentListEnvelope,
    DocumentListItem,
    DocumentResponse,
    DocumentSort,
    ErrorResponse,
)
from docsummarizer.services.document_service import DocumentService
from docsummarizer.services.upload_validator import UploadValidator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["Documents"])


@router.post(
    "/upload",
    status_code=201,
    response_model=DocumentEnvelope,
    responses={
        400: {"description": "Empty, too large, or content mismatch", "model": ErrorResponse},
        415: {"description": "Not a PDF or DOCX", "model": ErrorResponse},
        422: {"description": "Text could not be extracted", "model": ErrorResponse},
        500: {"description": "Storage or database failure", "model": ErrorResponse},
    },
    summary="Upload a PDF or DOCX document",
    description=(
        "Stores the file, extracts its text and creates a PENDING document record. "
        "Maximum size 5MB."
    ),
)
async def upload_document(
    file: Optional[UploadFile] = File(default=None, description="PDF or DOCX file, max 5MB"),
    validator: UploadValidator = Depends(get_upload_validator),
    service: DocumentService = Depends(get_document_service),
) -> DocumentEnvelope:
    if file is None:
        raise UploadValidationError(message=messages.MISSING_FILE, field="file")

    try:
        content = await file.read()
        logger.info(
            "Received upload: filename=%s, type=%s, size=%d bytes",
            file.filename or "unknown",
            file.content_type,
            len(content),
        )
        media_type = validator.validate(content, file.content_type, declared_size=file.size)
        document = await service.upload(
            content=content,
            media_type=media_type,
            original_name=file.filename or "document",
            size_bytes=len(content),
        )
    finally:
        await file.close()

    return DocumentEnvelope(
        message=messages.DOCUMENT_UPLOADED,
        data=DocumentResponse.model_validate(document),
    )


@router.get(
    "",
    response_model=DocumentListEnvelope,
    summary="List documents",
    description="Paginated list of active documents, newest first by default.",
)
async def list_documents(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: int = Query(default=20, ge=1, le=100, description="Items per page (max 100)"),
    analysis_status: Optional[AnalysisStatus] = Query(default=None),
    category: Optional[DocumentCategory] = Query(default=None),
    sort: DocumentSort = Query(default=DocumentSort.CREATED_AT_DESC),
    service: DocumentService = Depends(get_document_service),
) -> DocumentListEnvelope:
    items, pagination = await service.list(
        analysis_status=analysis_status,
        category=category,
        sort=sort,
        page=page,
        limit=limit,
    )
    return DocumentListEnvelope(
        message=messages.DOCUMENTS_FETCHED,
        data=[DocumentListItem.from_document(d) for d in items],
        pagination=pagination,
    )


@router.get(
    "/{document_id}",
    response_model=DocumentEnvelope,
    responses={
        400: {"description": "Malformed id", "model": ErrorResponse},
        404: {"description": "Not found or deleted", "model": ErrorResponse},
    },
    summary="Get a document",
)
async def get_document(
    document_id: str,
    service: DocumentService = Depends(get_document_service),
) -> DocumentEnvelope:
    document = await service.get(document_id)
    return DocumentEnvelope(
        message=messages.DOCUMENT_FETCHED,
        data=DocumentResponse.model_validate(document),
    )


@router.post(
    "/{document_id}/analyze",
    response_model=AnalyzeEnvelope,
    responses={
        400: {"description": "Malformed id", "model": ErrorResponse},
        404: {"description": "Not found or deleted", "model": ErrorResponse},
        409: {"description": "Analysis already running", "model": ErrorResponse},
        429: {"description": "LLM provider rate limit", "model": ErrorResponse},
        502: {"description": "LLM provider failure", "model": ErrorResponse},
        503: {"description": "LLM provider unreachable or out of credits", "model": ErrorResponse},
    },
    summary="Summarize and classify a document",
    description=(
        "Runs LLM analysis. A COMPLETED document is returned unchanged unless "
        "force_reanalysis is true."
    ),
)
async def analyze_document(
    document_id: str,
    body: Optional[AnalyzeRequest] = Body(default=None),
    service: DocumentService = Depends(get_document_service),
) -> AnalyzeEnvelope:
    force = body.force_reanalysis if body else False
    document, outcome = await service.analyze(document_id, force_reanalysis=force)
    message = (
        messages.ANALYSIS_ALREADY_COMPLETED
        if outcome is AnalysisOutcome.ALREADY_COMPLETED
        else messages.ANALYSIS_COMPLETED
    )
    return AnalyzeEnvelope(
        message=message,
        outcome=outcome,
        data=DocumentResponse.model_validate(document),
    )


@router.delete(
    "/{document_id}",
    response_model=DeleteEnvelope,
    responses={
        400: {"description": "Malformed id", "model": ErrorResponse},
        404: {"description": "Not found or already deleted", "model": ErrorResponse},
    },
    summary="Soft-delete a document",
)
async def delete_document(
    document_id: str,
    service: DocumentService = Depends(get_document_service),
) -> DeleteEnvelope:
    document = await service.delete(document_id)
    return DeleteEnvelope(
        message=messages.DOCUMENT_DELETED,
        data=DeletedDocument(id=document.id, deleted_at=document.deleted_at),
    )
