"""
DocSummarizer Backend: Gemini Service Tests
============================================

What:  Tests for the Gemini analysis client.
How:   A mock GenerativeModel is injected; no real API calls are made.

What we test:
    ✅ Successful analysis through the shared JSON parser
    ✅ google.api_core exceptions map to failure kinds
    ✅ Blocked/empty candidate → malformed_response
    ✅ Health check tolerates list_models failures
"""

import json
from unittest.mock import AsyncMock, MagicMock, PropertyMock, patch

import pytest
from google.api_core import exceptions as google_exceptions

from docsummarizer.config import Settings
from docsummarizer.exceptions import (
    AnalysisError,
    AnalysisFailureKind,
    InvalidAnalysisResultError,
)
from docsummarizer.models.document import DocumentCategory
from docsummarizer.services.gemini_service import GeminiService


class TestGeminiService:

    def setup_method(self):
        self.model = MagicMock()
        self.model.generate_content_async = AsyncMock()
        self.service = GeminiService(
            Settings(llm_provider="gemini", gemini_api_key=""),
            model=self.model,
        )

    def respond_with(self, text: str) -> None:
        response = MagicMock()
        response.text = text
        self.model.generate_content_async.return_value = response

    @pytest.mark.asyncio
    async def test_successful_analysis(self):
        self.respond_with(json.dumps({
            "summary": "Employment contract between two parties.",
            "documentType": "contract",
            "extractedMetadata": {"date": "2023-09-01", "sender": None, "totalAmount": None, "keywords": []},
        }))

        result = await self.service.analyze("THIS AGREEMENT ...")

        assert result.category is DocumentCategory.CONTRACT
        assert result.metadata["date"] == "2023-09-01"
        kwargs = self.model.generate_content_async.call_args.kwargs
        assert kwargs["generation_config"] == {"response_mime_type": "application/json"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error, kind",
        [
            (google_exceptions.Unauthenticated("bad key"), AnalysisFailureKind.AUTH),
            (google_exceptions.PermissionDenied("denied"), AnalysisFailureKind.AUTH),
            (google_exceptions.ResourceExhausted("quota"), AnalysisFailureKind.RATE_LIMIT),
            (google_exceptions.DeadlineExceeded("slow"), AnalysisFailureKind.UPSTREAM),
            (google_exceptions.ServiceUnavailable("down"), AnalysisFailureKind.NETWORK),
            (google_exceptions.InternalServerError("boom"), AnalysisFailureKind.UPSTREAM),
        ],
    )
    async def test_api_error_mapping(self, error, kind):
        self.model.generate_content_async.side_effect = error

        with pytest.raises(AnalysisError) as exc_info:
            await self.service.analyze("text")

        assert exc_info.value.kind is kind

    @pytest.mark.asyncio
    async def test_connection_error_is_network(self):
        self.model.generate_content_async.side_effect = ConnectionError("reset")

        with pytest.raises(AnalysisError) as exc_info:
            await self.service.analyze("text")

        assert exc_info.value.kind is AnalysisFailureKind.NETWORK

    @pytest.mark.asyncio
    async def test_blocked_candidate_is_malformed(self):
        response = MagicMock()
        type(response).text = PropertyMock(side_effect=ValueError("no candidates"))
        self.model.generate_content_async.return_value = response

        with pytest.raises(AnalysisError) as exc_info:
            await self.service.analyze("text")

        assert exc_info.value.kind is AnalysisFailureKind.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    async def test_incomplete_json_is_invalid_result(self):
        self.respond_with(json.dumps({"summary": "Only a summary"}))

        with pytest.raises(InvalidAnalysisResultError):
            await self.service.analyze("text")

    @pytest.mark.asyncio
    async def test_health_check_success(self):
        model_info = MagicMock()
        model_info.name = "models/gemini-1.5-flash"
        with patch("docsummarizer.services.gemini_service.genai.list_models", return_value=[model_info]):
            assert await self.service.health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_failure(self):
        with patch(
            "docsummarizer.services.gemini_service.genai.list_models",
            side_effect=google_exceptions.Unauthenticated("bad key"),
        ):
            assert await self.service.health_check() is False
