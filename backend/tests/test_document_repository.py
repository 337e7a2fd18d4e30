"""
DocSummarizer Backend: Document Repository Tests
=================================================

What:  Tests for the Record Store against a real (in-memory SQLite) database.

What we test:
    ✅ create / get round trip with defaults (PENDING, ACTIVE)
    ✅ Soft-deleted rows invisible to get, list and update
    ✅ Conditional status transition succeeds once, then reports a lost race
    ✅ list() filters, sorts and paginates with correct metadata
    ✅ Stale ANALYZING rows are failed by the sweep
    ✅ SQLAlchemy errors surface as PersistenceError
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from docsummarizer.exceptions import NotFoundError, PersistenceError
from docsummarizer.models.document import AnalysisStatus, DocumentCategory, RecordState
from docsummarizer.repositories.document_repository import DocumentRepository
from docsummarizer.schemas.document import DocumentSort

BASE_TIME = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


async def create_document(repository, index=0, **overrides):
    fields = {
        "original_name": f"doc-{index}.pdf",
        "media_type": "application/pdf",
        "size_bytes": 100 + index,
        "storage_key": f"2024/01/15/{uuid.uuid4().hex}.pdf",
        "extracted_text": f"text of document {index}",
        "created_at": BASE_TIME + timedelta(minutes=index),
    }
    fields.update(overrides)
    document = await repository.create(**fields)
    await repository.commit()
    return document


class TestDocumentRepository:

    @pytest.mark.asyncio
    async def test_create_and_get(self, db_session):
        repository = DocumentRepository(db_session)
        created = await create_document(repository)

        fetched = await repository.get(created.id)

        assert fetched is not None
        assert fetched.analysis_status == AnalysisStatus.PENDING
        assert fetched.record_state == RecordState.ACTIVE
        assert fetched.is_deleted is False
        assert fetched.extracted_text == "text of document 0"

    @pytest.mark.asyncio
    async def test_get_unknown_returns_none(self, db_session):
        repository = DocumentRepository(db_session)
        assert await repository.get(uuid.uuid4()) is None

    @pytest.mark.asyncio
    async def test_soft_delete_hides_document(self, db_session):
        repository = DocumentRepository(db_session)
        created = await create_document(repository)

        deleted = await repository.soft_delete(created.id)
        await repository.commit()

        assert deleted.record_state == RecordState.DELETED
        assert deleted.deleted_at is not None
        assert await repository.get(created.id) is None
        items, pagination = await repository.list()
        assert items == []
        assert pagination.total == 0
        with pytest.raises(NotFoundError):
            await repository.update(created.id, summary="late")
        with pytest.raises(NotFoundError):
            await repository.soft_delete(created.id)

    @pytest.mark.asyncio
    async def test_transition_status_guard(self, db_session):
        repository = DocumentRepository(db_session)
        created = await create_document(repository)

        first = await repository.transition_status(created.id, AnalysisStatus.PENDING, AnalysisStatus.ANALYZING)
        await repository.commit()
        second = await repository.transition_status(created.id, AnalysisStatus.PENDING, AnalysisStatus.ANALYZING)

        assert first is True
        assert second is False
        refreshed = await repository.refresh(created)
        assert refreshed.analysis_status == AnalysisStatus.ANALYZING

    @pytest.mark.asyncio
    async def test_list_pagination(self, db_session):
        repository = DocumentRepository(db_session)
        for i in range(5):
            await create_document(repository, index=i)

        items, pagination = await repository.list(page=2, limit=2)

        assert [d.original_name for d in items] == ["doc-2.pdf", "doc-1.pdf"]
        assert pagination.total == 5
        assert pagination.total_pages == 3
        assert pagination.has_next is True
        assert pagination.has_previous is True

    @pytest.mark.asyncio
    async def test_list_sort_ascending(self, db_session):
        repository = DocumentRepository(db_session)
        for i in range(3):
            await create_document(repository, index=i)

        items, _ = await repository.list(sort=DocumentSort.CREATED_AT_ASC)

        assert [d.original_name for d in items] == ["doc-0.pdf", "doc-1.pdf", "doc-2.pdf"]

    @pytest.mark.asyncio
    async def test_list_filters(self, db_session):
        repository = DocumentRepository(db_session)
        await create_document(repository, index=0)
        await create_document(
            repository,
            index=1,
            analysis_status=AnalysisStatus.COMPLETED,
            category=DocumentCategory.INVOICE,
            summary="an invoice",
        )
        await create_document(
            repository,
            index=2,
            analysis_status=AnalysisStatus.COMPLETED,
            category=DocumentCategory.LETTER,
            summary="a letter",
        )

        completed, pagination = await repository.list(analysis_status=AnalysisStatus.COMPLETED)
        invoices, _ = await repository.list(category=DocumentCategory.INVOICE)

        assert pagination.total == 2
        assert {d.original_name for d in completed} == {"doc-1.pdf", "doc-2.pdf"}
        assert [d.original_name for d in invoices] == ["doc-1.pdf"]

    @pytest.mark.asyncio
    async def test_page_past_the_end(self, db_session):
        repository = DocumentRepository(db_session)
        await create_document(repository)

        items, pagination = await repository.list(page=3, limit=10)

        assert items == []
        assert pagination.total == 1
        assert pagination.has_next is False

    @pytest.mark.asyncio
    async def test_fail_stale_analyses(self, db_session):
        repository = DocumentRepository(db_session)
        now = datetime.now(timezone.utc)
        stale = await create_document(
            repository, index=0,
            analysis_status=AnalysisStatus.ANALYZING,
            updated_at=now - timedelta(hours=2),
        )
        fresh = await create_document(
            repository, index=1,
            analysis_status=AnalysisStatus.ANALYZING,
            updated_at=now,
        )

        count = await repository.fail_stale_analyses(now - timedelta(minutes=15))
        await repository.commit()

        assert count == 1
        assert (await repository.refresh(stale)).analysis_status == AnalysisStatus.FAILED
        assert (await repository.refresh(fresh)).analysis_status == AnalysisStatus.ANALYZING

    @pytest.mark.asyncio
    async def test_database_error_becomes_persistence_error(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("db down"))
        repository = DocumentRepository(mock_db_session)

        with pytest.raises(PersistenceError) as exc_info:
            await repository.get(uuid.uuid4())

        assert "db down" not in exc_info.value.message
