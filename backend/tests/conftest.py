"""
DocSummarizer Backend: Test Configuration (conftest.py)
========================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (real in-memory database, temp
       storage, stub analysis client, API client).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine: in-memory SQLite engine with the schema created
    ├── db_session: AsyncSession on db_engine
    ├── temp_storage / blob_store: BlobStore rooted in tmp_path
    ├── analysis_client: AsyncMock LLMService returning a fixed result
    ├── docx_bytes: factory building a real DOCX in memory
    ├── document_service: DocumentService wired to the fixtures above
    └── test_client: HTTPX AsyncClient with dependency overrides
"""

import io
import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

# Override settings for testing BEFORE any docsummarizer imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LLM_PROVIDER"] = "openrouter"
os.environ["OPENROUTER_API_KEY"] = "test-key-not-real"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="docsummarizer_test_")
os.environ["LOG_LEVEL"] = "WARNING"

import docx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from docsummarizer.config import Settings
from docsummarizer.database import Base
from docsummarizer.models.document import DocumentCategory
from docsummarizer.repositories.document_repository import DocumentRepository
from docsummarizer.services.blob_store import BlobStore
from docsummarizer.services.document_service import DocumentService
from docsummarizer.services.llm_base import AnalysisResult, LLMService
from docsummarizer.services.text_extractor import TextExtractor
from docsummarizer.services.upload_validator import DOCX_MEDIA_TYPE, PDF_MEDIA_TYPE, UploadValidator


def stub_mime_detector(content: bytes) -> str:
    """Header sniffing without libmagic: %PDF → PDF, PK → DOCX."""
    if content.startswith(b"%PDF"):
        return PDF_MEDIA_TYPE
    if content.startswith(b"PK"):
        return DOCX_MEDIA_TYPE
    return "text/plain"


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite with one shared connection (StaticPool), so every
    session opened during a test sees the same data.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A mock async database session for tests that only need to observe calls.
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Collaborators
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings(temp_storage):
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        storage_root=temp_storage,
        openrouter_api_key="test-key-not-real",
    )


@pytest.fixture
def temp_storage(tmp_path):
    """A fresh storage directory for each test."""
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def blob_store(temp_storage):
    return BlobStore(temp_storage)


@pytest.fixture
def analysis_result():
    return AnalysisResult(
        summary="A quarterly report on regional sales.",
        category=DocumentCategory.REPORT,
        metadata={"date": "2024-03-31", "sender": "Acme Corp", "totalAmount": None, "keywords": ["sales"]},
    )


@pytest.fixture
def analysis_client(analysis_result):
    """Stub LLMService; tests replace analyze.side_effect / return_value as needed."""
    client = AsyncMock(spec=LLMService)
    client.analyze.return_value = analysis_result
    client.health_check.return_value = True
    return client


@pytest.fixture
def docx_bytes():
    """
    Factory building a real DOCX in memory.

    Usage:
        data = docx_bytes("first paragraph", "second paragraph")
    """

    def build(*paragraphs: str) -> bytes:
        document = docx.Document()
        for paragraph in paragraphs:
            document.add_paragraph(paragraph)
        buffer = io.BytesIO()
        document.save(buffer)
        return buffer.getvalue()

    return build


@pytest.fixture
def document_service(db_session, blob_store, analysis_client, test_settings):
    return DocumentService(
        repository=DocumentRepository(db_session),
        blob_store=blob_store,
        text_extractor=TextExtractor(),
        analysis_client=analysis_client,
        config=test_settings,
    )


# ══════════════════════════════════════════════════════════════════════════
# API client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory, blob_store, analysis_client):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    The database session, blob store, analysis client and upload validator
    are swapped for test doubles via app.dependency_overrides.
    """
    from docsummarizer.database import get_db_session
    from docsummarizer.dependencies import (
        get_analysis_client,
        get_blob_store,
        get_upload_validator,
    )
    from docsummarizer.main import app

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_analysis_client] = lambda: analysis_client
    app.dependency_overrides[get_upload_validator] = lambda: UploadValidator(
        max_file_size=5_242_880, mime_detector=stub_mime_detector
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
