"""
DocSummarizer Backend: Dependency Wiring
=========================================

What:  FastAPI providers that assemble DocumentService for each request.
How:   Stateless or process-wide collaborators (blob store, extractor,
       analysis client, validator) are built once from `settings` and cached;
       the repository is built per request around the request's session.
       Tests replace any provider through `app.dependency_overrides`.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from docsummarizer.config import Settings, settings
from docsummarizer.database import get_db_session
from docsummarizer.repositories.document_repository import DocumentRepository
from docsummarizer.services.blob_store import BlobStore
from docsummarizer.services.document_service import DocumentService
from docsummarizer.services.llm_base import LLMService
from docsummarizer.services.llm_factory import create_llm_service
from docsummarizer.services.text_extractor import TextExtractor
from docsummarizer.services.upload_validator import UploadValidator


def get_settings() -> Settings:
    return settings


@lru_cache
def get_blob_store() -> BlobStore:
    return BlobStore(settings.storage_root)


@lru_cache
def get_text_extractor() -> TextExtractor:
    return TextExtractor()


@lru_cache
def get_analysis_client() -> LLMService:
    # One client per process; OpenRouter keeps a pooled httpx connection
    return create_llm_service(settings)


@lru_cache
def get_upload_validator() -> UploadValidator:
    return UploadValidator(max_file_size=settings.max_file_size)


def get_document_service(
    session: AsyncSession = Depends(get_db_session),
    blob_store: BlobStore = Depends(get_blob_store),
    text_extractor: TextExtractor = Depends(get_text_extractor),
    analysis_client: LLMService = Depends(get_analysis_client),
    config: Settings = Depends(get_settings),
) -> DocumentService:
    return DocumentService(
        repository=DocumentRepository(session),
        blob_store=blob_store,
        text_extractor=text_extractor,
        analysis_client=analysis_client,
        config=config,
    )


async def close_analysis_client() -> None:
    """Closes the cached analysis client, if one was ever built."""
    if get_analysis_client.cache_info().currsize:
        await get_analysis_client().aclose()
