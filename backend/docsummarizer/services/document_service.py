"""
DocSummarizer Backend: Document Service (Business Logic Orchestrator)
======================================================================

What:  Coordinates the upload and analyze pipelines plus the get / list /
       delete pass-throughs.
How:   Composes BlobStore, TextExtractor, LLMService and DocumentRepository,
       all passed in by the dependency wiring.
Who:   Called by route handlers and by the lifespan stale-analysis sweep.

Upload Pipeline:
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────┐
    │  Store   │───▶│  Extract    │───▶│  Truncate    │───▶│  Create  │
    │  (Blob)  │    │  (Text)     │    │  (200k chars)│    │  (DB)    │
    └──────────┘    └─────────────┘    └──────────────┘    └──────────┘

    Extract or Create fails → best-effort BlobStore.delete(key), then the
    original error propagates. A failing compensating delete is logged and
    never replaces the original error.

Analyze State Machine:
    PENDING    --analyze-->              ANALYZING
    ANALYZING  --success-->              COMPLETED
    ANALYZING  --failure-->              FAILED
    COMPLETED  --analyze(force=false)--> COMPLETED (short-circuit, no LLM call)
    COMPLETED  --analyze(force=true)-->  ANALYZING
    FAILED     --analyze-->              ANALYZING

    The ANALYZING transition is a conditional update on the observed status
    and is committed before the LLM call, as is the FAILED transition.
    Results from an earlier successful analysis survive a failed re-analysis.
"""

import logging
import uuid
from datetime import timedelta
from typing import List, Optional, Tuple

from docsummarizer import messages
from docsummarizer.config import Settings
from docsummarizer.exceptions import (
    ConflictError,
    DocSummarizerError,
    InvalidAnalysisResultError,
    InvalidIdentifierError,
    NotFoundError,
    PersistenceError,
)
from docsummarizer.models.document import AnalysisStatus, Document, utcnow
from docsummarizer.repositories.document_repository import DocumentRepository
from docsummarizer.schemas.document import AnalysisOutcome, DocumentSort, PaginationMeta
from docsummarizer.services.blob_store import BlobStore
from docsummarizer.services.llm_base import LLMService
from docsummarizer.services.text_extractor import TextExtractor

logger = logging.getLogger(__name__)


def parse_document_id(raw: str) -> uuid.UUID:
    """
    Validates a client-supplied identifier.

    Raises:
        InvalidIdentifierError: not a well-formed UUID
    """
    try:
        return uuid.UUID(str(raw))
    except (ValueError, TypeError, AttributeError):
        raise InvalidIdentifierError(identifier=str(raw)) from None


class DocumentService:
    """
    Business logic layer for document operations.

    Responsibilities:
        - upload(): store → extract → truncate → persist, with compensation
        - analyze(): status-driven LLM analysis with idempotent short-circuit
        - get() / list() / delete(): identifier validation + repository calls
        - recover_stale_analyses(): fail records stuck in ANALYZING
    """

    def __init__(
        self,
        repository: DocumentRepository,
        blob_store: BlobStore,
        text_extractor: TextExtractor,
        analysis_client: LLMService,
        config: Settings,
    ):
        self.repository = repository
        self.blob_store = blob_store
        self.text_extractor = text_extractor
        self.analysis_client = analysis_client
        self.max_text_length = config.max_text_length

    # ── Upload ────────────────────────────────────────────────────────────
    async def _compensate(self, key: str) -> None:
        try:
            await self.blob_store.delete(key)
        except Exception as e:
            logger.error("Compensating delete failed for blob %s: %s", key, str(e))

    async def upload(
        self,
        content: bytes,
        media_type: str,
        original_name: str,
        size_bytes: Optional[int] = None,
    ) -> Document:
        """
        Upload pipeline. Input is assumed validated by UploadValidator.

        Error Recovery:
            Store fails   → StorageError, nothing to undo
            Extract fails → blob deleted, ExtractionError
            Create fails  → blob deleted, PersistenceError

        Returns:
            The created Document in PENDING state.
        """
        key = await self.blob_store.put(content, original_name)

        try:
            text = await self.text_extractor.extract(content, media_type)
        except Exception:
            logger.error("%s for %s", messages.TEXT_EXTRACTION_FAILED, original_name)
            await self._compensate(key)
            raise

        if len(text) > self.max_text_length:
            logger.warning(
                "%s for %s (%d → %d chars)",
                messages.TEXT_TRUNCATED,
                original_name,
                len(text),
                self.max_text_length,
            )
            text = text[: self.max_text_length]

        try:
            document = await self.repository.create(
                original_name=original_name,
                media_type=media_type,
                size_bytes=size_bytes if size_bytes is not None else len(content),
                storage_key=key,
                extracted_text=text,
                analysis_status=AnalysisStatus.PENDING,
            )
            await self.repository.commit()
        except Exception:
            logger.error("%s for %s", messages.DOCUMENT_UPLOAD_FAILED_DATABASE_SAVE, original_name)
            await self._compensate(key)
            raise

        logger.info("%s id=%s key=%s", messages.DOCUMENT_UPLOADED, document.id, key)
        return document

    # ── Analyze ───────────────────────────────────────────────────────────
    async def _mark_failed(self, document_id: uuid.UUID, document: Document) -> None:
        """
        Records FAILED, keeping earlier results. Called from an except block;
        its own persistence errors are logged so the error that triggered it
        is the one that propagates.

        The session is rolled back first: a failed flush of the results leaves
        it unusable, and the rollback also discards any half-applied results.
        """
        try:
            await self.repository.rollback()
            moved = await self.repository.transition_status(
                document_id, AnalysisStatus.ANALYZING, AnalysisStatus.FAILED
            )
            await self.repository.commit()
        except PersistenceError as e:
            logger.error("Could not record FAILED for %s: %s", document_id, e.context)
            return
        if moved:
            await self.repository.refresh(document)
        else:
            logger.warning("Document %s left ANALYZING before it could be failed", document_id)

    async def analyze(
        self,
        raw_id: str,
        force_reanalysis: bool = False,
    ) -> Tuple[Document, AnalysisOutcome]:
        """
        Analyze pipeline.

        Returns:
            (document, outcome) where outcome is COMPLETED for a fresh
            analysis or ALREADY_COMPLETED for the short-circuit.

        Raises:
            InvalidIdentifierError: malformed id (repository not touched)
            NotFoundError: absent or soft-deleted
            ConflictError: already ANALYZING, or another request won the race
            AnalysisError / InvalidAnalysisResultError: after recording FAILED
        """
        document_id = parse_document_id(raw_id)
        document = await self.repository.get(document_id)
        if document is None:
            raise NotFoundError(resource="document", resource_id=str(document_id))

        observed = document.analysis_status

        if observed == AnalysisStatus.COMPLETED and not force_reanalysis:
            logger.info("%s id=%s", messages.ANALYSIS_ALREADY_COMPLETED, document_id)
            return document, AnalysisOutcome.ALREADY_COMPLETED

        if observed == AnalysisStatus.ANALYZING:
            raise ConflictError(
                message=messages.ANALYSIS_IN_PROGRESS,
                context={"document_id": str(document_id)},
            )

        if not await self.repository.transition_status(
            document_id, observed, AnalysisStatus.ANALYZING
        ):
            await self.repository.rollback()
            raise ConflictError(
                context={"document_id": str(document_id), "observed": observed.value},
            )
        # No transaction stays open across the provider call
        text = document.extracted_text
        await self.repository.commit()
        logger.info("Document %s: %s → ANALYZING", document_id, observed.value)

        # From here on every failure must leave the record FAILED, not ANALYZING
        try:
            result = await self.analysis_client.analyze(text)

            if not result.summary or result.category is None or result.metadata is None:
                raise InvalidAnalysisResultError(context={"document_id": str(document_id)})

            document = await self.repository.update(
                document_id,
                summary=result.summary,
                category=result.category,
                extracted_metadata=result.metadata,
                analysis_status=AnalysisStatus.COMPLETED,
            )
            await self.repository.commit()
        except DocSummarizerError as e:
            logger.error(
                "%s id=%s error=%s context=%s",
                messages.ANALYSIS_FAILED, document_id, e.error_code, e.context,
            )
            await self._mark_failed(document_id, document)
            raise
        except Exception as e:
            logger.error(
                "Unexpected analysis error for %s: %s", document_id, str(e), exc_info=True
            )
            await self._mark_failed(document_id, document)
            raise

        logger.info(
            "%s id=%s category=%s",
            messages.ANALYSIS_COMPLETED, document_id, result.category.value,
        )
        return document, AnalysisOutcome.COMPLETED

    # ── Pass-throughs ─────────────────────────────────────────────────────
    async def get(self, raw_id: str) -> Document:
        document_id = parse_document_id(raw_id)
        document = await self.repository.get(document_id)
        if document is None:
            raise NotFoundError(resource="document", resource_id=str(document_id))
        return document

    async def list(
        self,
        analysis_status: Optional[AnalysisStatus] = None,
        category=None,
        sort: DocumentSort = DocumentSort.CREATED_AT_DESC,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Document], PaginationMeta]:
        return await self.repository.list(
            analysis_status=analysis_status,
            category=category,
            sort=sort,
            page=page,
            limit=limit,
        )

    async def delete(self, raw_id: str) -> Document:
        """Soft delete; the blob is kept."""
        document_id = parse_document_id(raw_id)
        document = await self.repository.soft_delete(document_id)
        await self.repository.commit()
        logger.info("%s id=%s", messages.DOCUMENT_DELETED, document_id)
        return document

    # ── Maintenance ───────────────────────────────────────────────────────
    async def recover_stale_analyses(self, older_than_seconds: int) -> int:
        """
        Fails records stuck in ANALYZING (a process died mid-call) so they can
        be analyzed again. Runs once at startup.
        """
        cutoff = utcnow() - timedelta(seconds=older_than_seconds)
        count = await self.repository.fail_stale_analyses(cutoff)
        await self.repository.commit()
        if count:
            logger.warning("%s count=%d", messages.ANALYSIS_STALE_RECOVERED, count)
        return count
