"""
DocSummarizer Backend: OpenRouter Service Tests
================================================

What:  Tests for the OpenRouter analysis client.
How:   httpx.MockTransport stands in for the OpenRouter API, so the real
       request building and response handling run without network access.

What we test:
    ✅ Successful analysis parses summary, category and metadata
    ✅ Request carries the model, JSON response format and auth headers
    ✅ HTTP status codes map to failure kinds (auth, quota, rate_limit, upstream)
    ✅ Retry-After passed through on 429
    ✅ Transport errors → network, timeouts → upstream
    ✅ Non-JSON content → malformed_response, incomplete JSON → invalid result
"""

import json

import httpx
import pytest

from docsummarizer.config import Settings
from docsummarizer.exceptions import (
    AnalysisError,
    AnalysisFailureKind,
    InvalidAnalysisResultError,
)
from docsummarizer.models.document import DocumentCategory
from docsummarizer.services.gemini_service import GeminiService
from docsummarizer.services.llm_factory import create_llm_service
from docsummarizer.services.openrouter_service import OpenRouterService


def completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


VALID_CONTENT = json.dumps({
    "summary": "An invoice for consulting services.",
    "documentType": "invoice",
    "extractedMetadata": {
        "date": "2024-02-01",
        "sender": "Consulting LLC",
        "totalAmount": "$1,200.00",
        "keywords": ["invoice", "consulting"],
    },
})


class TestOpenRouterAnalyze:

    def setup_method(self):
        self.config = Settings(
            openrouter_api_key="sk-or-test",
            openrouter_model="openai/gpt-4o-mini",
        )
        self.requests = []

    def make_service(self, handler) -> OpenRouterService:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        return OpenRouterService(self.config, transport=httpx.MockTransport(recording_handler))

    @pytest.mark.asyncio
    async def test_successful_analysis(self):
        service = self.make_service(lambda r: httpx.Response(200, json=completion(VALID_CONTENT)))

        result = await service.analyze("INVOICE #42 ...")

        assert result.summary == "An invoice for consulting services."
        assert result.category is DocumentCategory.INVOICE
        assert result.metadata["sender"] == "Consulting LLC"
        await service.aclose()

    @pytest.mark.asyncio
    async def test_request_shape(self):
        service = self.make_service(lambda r: httpx.Response(200, json=completion(VALID_CONTENT)))

        await service.analyze("document body")

        request = self.requests[0]
        assert request.url.path.endswith("/chat/completions")
        assert request.headers["Authorization"] == "Bearer sk-or-test"
        assert "X-Title" in request.headers
        body = json.loads(request.content)
        assert body["model"] == "openai/gpt-4o-mini"
        assert body["response_format"] == {"type": "json_object"}
        assert body["messages"][0]["role"] == "system"
        assert "document body" in body["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_category_is_case_insensitive(self):
        content = json.dumps({"summary": "A resume.", "documentType": "cv", "extractedMetadata": {}})
        service = self.make_service(lambda r: httpx.Response(200, json=completion(content)))

        result = await service.analyze("text")

        assert result.category is DocumentCategory.CV

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, kind, http_status",
        [
            (401, AnalysisFailureKind.AUTH, 502),
            (403, AnalysisFailureKind.AUTH, 502),
            (402, AnalysisFailureKind.QUOTA, 503),
            (429, AnalysisFailureKind.RATE_LIMIT, 429),
            (500, AnalysisFailureKind.UPSTREAM, 502),
            (503, AnalysisFailureKind.UPSTREAM, 502),
        ],
    )
    async def test_http_status_mapping(self, status, kind, http_status):
        service = self.make_service(lambda r: httpx.Response(status, json={"error": {"message": "nope"}}))

        with pytest.raises(AnalysisError) as exc_info:
            await service.analyze("text")

        assert exc_info.value.kind is kind
        assert exc_info.value.status_code == http_status
        assert "nope" not in exc_info.value.message

    @pytest.mark.asyncio
    async def test_rate_limit_retry_after(self):
        service = self.make_service(lambda r: httpx.Response(429, headers={"Retry-After": "30"}))

        with pytest.raises(AnalysisError) as exc_info:
            await service.analyze("text")

        assert exc_info.value.retry_after == 30

    @pytest.mark.asyncio
    async def test_connect_error_is_network(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        service = self.make_service(handler)

        with pytest.raises(AnalysisError) as exc_info:
            await service.analyze("text")

        assert exc_info.value.kind is AnalysisFailureKind.NETWORK

    @pytest.mark.asyncio
    async def test_timeout_is_upstream(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        service = self.make_service(handler)

        with pytest.raises(AnalysisError) as exc_info:
            await service.analyze("text")

        assert exc_info.value.kind is AnalysisFailureKind.UPSTREAM

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["not json at all", "", "[1, 2, 3]"])
    async def test_malformed_content(self, content):
        service = self.make_service(lambda r: httpx.Response(200, json=completion(content)))

        with pytest.raises(AnalysisError) as exc_info:
            await service.analyze("text")

        assert exc_info.value.kind is AnalysisFailureKind.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    async def test_missing_choices_is_malformed(self):
        service = self.make_service(lambda r: httpx.Response(200, json={"id": "gen-1"}))

        with pytest.raises(AnalysisError) as exc_info:
            await service.analyze("text")

        assert exc_info.value.kind is AnalysisFailureKind.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"documentType": "report", "extractedMetadata": {}},
            {"summary": "", "documentType": "report", "extractedMetadata": {}},
            {"summary": "ok", "extractedMetadata": {}},
            {"summary": "ok", "documentType": "spreadsheet", "extractedMetadata": {}},
            {"summary": "ok", "documentType": "report"},
            {"summary": "ok", "documentType": "report", "extractedMetadata": "none"},
        ],
    )
    async def test_incomplete_result(self, payload):
        service = self.make_service(lambda r: httpx.Response(200, json=completion(json.dumps(payload))))

        with pytest.raises(InvalidAnalysisResultError):
            await service.analyze("text")


class TestOpenRouterHealthCheck:

    def setup_method(self):
        self.config = Settings(openrouter_api_key="sk-or-test")

    @pytest.mark.asyncio
    async def test_healthy(self):
        service = OpenRouterService(
            self.config,
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"data": []})),
        )
        assert await service.health_check() is True

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        service = OpenRouterService(self.config, transport=httpx.MockTransport(handler))
        assert await service.health_check() is False


class TestProviderFactory:

    def test_default_provider_is_openrouter(self):
        service = create_llm_service(Settings(openrouter_api_key="sk-or-test"))
        assert isinstance(service, OpenRouterService)

    def test_gemini_provider(self):
        service = create_llm_service(Settings(llm_provider="gemini", gemini_api_key=""))
        assert isinstance(service, GeminiService)

    def test_unknown_provider_rejected_by_settings(self):
        with pytest.raises(ValueError):
            Settings(llm_provider="ollama")
