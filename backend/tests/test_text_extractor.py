"""
DocSummarizer Backend: Text Extraction Tests
=============================================

What we test:
    ✅ DOCX paragraphs joined with newlines, blank paragraphs skipped
    ✅ PDF pages joined with blank lines
    ✅ Corrupt bytes → ExtractionError(corrupt_content), HTTP 422
    ✅ Unknown media type → ExtractionError(unsupported_media_type), HTTP 415
"""

from unittest.mock import MagicMock, patch

import pytest

from docsummarizer.exceptions import ExtractionError, ExtractionFailureKind
from docsummarizer.services.text_extractor import TextExtractor
from docsummarizer.services.upload_validator import DOCX_MEDIA_TYPE, PDF_MEDIA_TYPE


class TestTextExtractor:

    def setup_method(self):
        self.extractor = TextExtractor()

    @pytest.mark.asyncio
    async def test_docx_extraction(self, docx_bytes):
        data = docx_bytes("Invoice 42", "", "Total due: $100")
        text = await self.extractor.extract(data, DOCX_MEDIA_TYPE)
        assert text == "Invoice 42\nTotal due: $100"

    @pytest.mark.asyncio
    async def test_pdf_extraction_joins_pages(self):
        pages = [MagicMock(), MagicMock(), MagicMock()]
        pages[0].extract_text.return_value = "Page one"
        pages[1].extract_text.return_value = None
        pages[2].extract_text.return_value = "Page three"
        with patch("docsummarizer.services.text_extractor.PdfReader") as mock_reader:
            mock_reader.return_value.pages = pages
            text = await self.extractor.extract(b"%PDF-1.7", PDF_MEDIA_TYPE)
        assert text == "Page one\n\n\n\nPage three"

    @pytest.mark.asyncio
    async def test_nul_characters_removed(self):
        page = MagicMock()
        page.extract_text.return_value = "Inv\x00oice\x00 42"
        with patch("docsummarizer.services.text_extractor.PdfReader") as mock_reader:
            mock_reader.return_value.pages = [page]
            text = await self.extractor.extract(b"%PDF-1.7", PDF_MEDIA_TYPE)
        assert text == "Invoice 42"

    @pytest.mark.asyncio
    async def test_corrupt_pdf(self):
        with pytest.raises(ExtractionError) as exc_info:
            await self.extractor.extract(b"this is not a pdf", PDF_MEDIA_TYPE)
        assert exc_info.value.kind is ExtractionFailureKind.CORRUPT_CONTENT
        assert exc_info.value.status_code == 422

    @pytest.mark.asyncio
    async def test_corrupt_docx(self):
        with pytest.raises(ExtractionError) as exc_info:
            await self.extractor.extract(b"PK\x03\x04 truncated", DOCX_MEDIA_TYPE)
        assert exc_info.value.kind is ExtractionFailureKind.CORRUPT_CONTENT

    @pytest.mark.asyncio
    async def test_unsupported_media_type(self):
        with pytest.raises(ExtractionError) as exc_info:
            await self.extractor.extract(b"hello", "text/plain")
        assert exc_info.value.kind is ExtractionFailureKind.UNSUPPORTED_MEDIA_TYPE
        assert exc_info.value.status_code == 415
