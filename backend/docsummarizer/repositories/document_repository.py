"""
DocSummarizer Backend: Document Record Store
=============================================

What:  All SQL touching the `documents` table.
How:   A thin repository over one AsyncSession. Every read composes
       `is_deleted = false`, so soft-deleted rows are invisible to
       get / list / update / transition / soft_delete. SQLAlchemy errors are
       logged and re-raised as PersistenceError with a generic message.
Who:   DocumentService. One repository per request, sharing the request's
       session.

Transactions:
    Writes are flushed, not committed. DocumentService decides when a step
    must be durable and calls commit(); get_db_session commits whatever is
    left at the end of the request.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, List, Optional, Tuple

from sqlalchemy import asc, desc, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from docsummarizer import messages
from docsummarizer.exceptions import NotFoundError, PersistenceError
from docsummarizer.models.document import (
    AnalysisStatus,
    Document,
    DocumentCategory,
    RecordState,
    utcnow,
)
from docsummarizer.schemas.document import DocumentSort, PaginationMeta

logger = logging.getLogger(__name__)


class DocumentRepository:
    """CRUD, guarded status transitions and paginated listing for Document."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _active(self):
        return select(Document).where(Document.is_deleted.is_(False))

    async def create(self, **fields: Any) -> Document:
        document = Document(**fields)
        try:
            self.session.add(document)
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error("%s: %s", messages.DB_CREATE_FAILED, str(e))
            raise PersistenceError(
                message=messages.DOCUMENT_UPLOAD_FAILED_DATABASE_SAVE,
                context={"operation": "create", "error_type": type(e).__name__},
            ) from e
        logger.info("Document record created: %s", document.id)
        return document

    async def get(self, document_id: uuid.UUID) -> Optional[Document]:
        """Returns the active document or None."""
        try:
            result = await self.session.execute(
                self._active().where(Document.id == document_id)
            )
        except SQLAlchemyError as e:
            logger.error("%s for %s: %s", messages.DB_GET_FAILED, document_id, str(e))
            raise PersistenceError(
                message=messages.DB_GET_FAILED,
                context={"operation": "get", "document_id": str(document_id)},
            ) from e
        return result.scalar_one_or_none()

    async def update(self, document_id: uuid.UUID, **patch: Any) -> Document:
        """
        Applies `patch` to the active document.

        Raises:
            NotFoundError: no active document with this id
        """
        document = await self.get(document_id)
        if document is None:
            raise NotFoundError(resource="document", resource_id=str(document_id))

        for field, value in patch.items():
            setattr(document, field, value)
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error("%s for %s: %s", messages.DB_UPDATE_FAILED, document_id, str(e))
            raise PersistenceError(
                message=messages.DB_UPDATE_FAILED,
                context={"operation": "update", "document_id": str(document_id)},
            ) from e
        return document

    async def transition_status(
        self,
        document_id: uuid.UUID,
        expected: AnalysisStatus,
        new: AnalysisStatus,
    ) -> bool:
        """
        Conditional update: sets `new` only if the row still has `expected`.

        Returns False when no row matched, which means another request changed
        the status first (or the document was deleted meanwhile).
        """
        stmt = (
            update(Document)
            .where(
                Document.id == document_id,
                Document.analysis_status == expected,
                Document.is_deleted.is_(False),
            )
            .values(analysis_status=new, updated_at=utcnow())
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("%s for %s: %s", messages.DB_UPDATE_FAILED, document_id, str(e))
            raise PersistenceError(
                message=messages.DB_UPDATE_FAILED,
                context={"operation": "transition_status", "document_id": str(document_id)},
            ) from e
        return result.rowcount == 1

    async def list(
        self,
        analysis_status: Optional[AnalysisStatus] = None,
        category: Optional[DocumentCategory] = None,
        sort: DocumentSort = DocumentSort.CREATED_AT_DESC,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Document], PaginationMeta]:
        """
        Offset-paginated listing of active documents.

        Query plan (default sort, no filters):
            SELECT ... WHERE is_deleted = false ORDER BY created_at DESC
            LIMIT :limit OFFSET (:page - 1) * :limit
            → idx_documents_active_created_at
        """
        conditions = [Document.is_deleted.is_(False)]
        if analysis_status is not None:
            conditions.append(Document.analysis_status == analysis_status)
        if category is not None:
            conditions.append(Document.category == category)

        order = asc(Document.created_at) if sort == DocumentSort.CREATED_AT_ASC else desc(Document.created_at)
        query = (
            select(Document)
            .where(*conditions)
            .order_by(order)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        count_query = select(func.count(Document.id)).where(*conditions)

        try:
            items = list((await self.session.execute(query)).scalars().all())
            total = (await self.session.execute(count_query)).scalar() or 0
        except SQLAlchemyError as e:
            logger.error("%s: %s", messages.DB_LIST_FAILED, str(e), exc_info=True)
            raise PersistenceError(
                message=messages.DB_LIST_FAILED,
                context={"operation": "list", "error_type": type(e).__name__},
            ) from e

        return items, PaginationMeta.build(total=total, page=page, limit=limit)

    async def soft_delete(self, document_id: uuid.UUID) -> Document:
        """
        Marks the document DELETED. The row and its blob stay in place.

        Raises:
            NotFoundError: no active document with this id
        """
        return await self.update(
            document_id,
            record_state=RecordState.DELETED,
            is_deleted=True,
            deleted_at=utcnow(),
        )

    async def fail_stale_analyses(self, cutoff: datetime) -> int:
        """Moves ANALYZING rows last touched before `cutoff` to FAILED."""
        stmt = (
            update(Document)
            .where(
                Document.analysis_status == AnalysisStatus.ANALYZING,
                Document.updated_at < cutoff,
                Document.is_deleted.is_(False),
            )
            .values(analysis_status=AnalysisStatus.FAILED, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("%s (stale sweep): %s", messages.DB_UPDATE_FAILED, str(e))
            raise PersistenceError(
                message=messages.DB_UPDATE_FAILED,
                context={"operation": "fail_stale_analyses"},
            ) from e
        return result.rowcount

    async def refresh(self, document: Document) -> Document:
        await self.session.refresh(document)
        return document

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            logger.error("Commit failed: %s", str(e))
            await self.session.rollback()
            raise PersistenceError(
                message=messages.DB_UPDATE_FAILED,
                context={"operation": "commit", "error_type": type(e).__name__},
            ) from e

    async def rollback(self) -> None:
        await self.session.rollback()
