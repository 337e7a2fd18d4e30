"""
DocSummarizer Backend: Text Extraction
=======================================

What:  Turns uploaded PDF / DOCX bytes into plain text.
How:   One extractor class per media type behind a small ABC, selected from
       a registry keyed by media type. pypdf reads PDFs page by page;
       python-docx reads DOCX paragraphs. Parsing is CPU-bound and runs in a
       worker thread so the event loop keeps serving requests.
Who:   DocumentService, step 2 of the upload pipeline.

Failure kinds:
    unsupported_media_type: no extractor registered for the media type
    corrupt_content:        the parser rejected the bytes
"""

import asyncio
import io
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import docx
from pypdf import PdfReader

from docsummarizer import messages
from docsummarizer.exceptions import ExtractionError, ExtractionFailureKind
from docsummarizer.services.upload_validator import DOCX_MEDIA_TYPE, PDF_MEDIA_TYPE

logger = logging.getLogger(__name__)


class BaseExtractor(ABC):
    """Contract for a single-format text extractor."""

    failure_message = messages.TEXT_EXTRACTION_FAILED

    @abstractmethod
    def extract(self, data: bytes) -> str:
        """Returns the plain text of `data`; may raise any parser exception."""


class PdfExtractor(BaseExtractor):
    failure_message = messages.TEXT_EXTRACTION_PDF_FAILED

    def extract(self, data: bytes) -> str:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
        return "\n\n".join(pages).strip()


class DocxExtractor(BaseExtractor):
    failure_message = messages.TEXT_EXTRACTION_DOCX_FAILED

    def extract(self, data: bytes) -> str:
        document = docx.Document(io.BytesIO(data))
        return "\n".join(p.text for p in document.paragraphs if p.text.strip())


class TextExtractor:
    """
    Dispatches to the extractor registered for a media type.

    extract(data, media_type) -> str
    """

    EXTRACTORS: Dict[str, BaseExtractor] = {
        PDF_MEDIA_TYPE: PdfExtractor(),
        DOCX_MEDIA_TYPE: DocxExtractor(),
    }

    def __init__(self, extractors: Optional[Dict[str, BaseExtractor]] = None):
        self.extractors = extractors if extractors is not None else dict(self.EXTRACTORS)

    async def extract(self, data: bytes, media_type: str) -> str:
        extractor = self.extractors.get(media_type)
        if extractor is None:
            raise ExtractionError(
                kind=ExtractionFailureKind.UNSUPPORTED_MEDIA_TYPE,
                message=messages.UNSUPPORTED_FILE_TYPE,
                context={"media_type": media_type},
            )

        try:
            text = await asyncio.to_thread(extractor.extract, data)
        except Exception as e:
            logger.warning(
                "Text extraction failed | type=%s error=%s: %s",
                media_type, type(e).__name__, str(e),
            )
            raise ExtractionError(
                kind=ExtractionFailureKind.CORRUPT_CONTENT,
                message=extractor.failure_message,
                context={"media_type": media_type, "error_type": type(e).__name__},
            ) from e

        # PostgreSQL TEXT rejects NUL; pypdf can emit it
        text = text.replace("\x00", "")

        logger.info("%s type=%s chars=%d", messages.TEXT_EXTRACTION_SUCCESS, media_type, len(text))
        return text
