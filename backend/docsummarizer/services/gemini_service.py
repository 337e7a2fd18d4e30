"""
DocSummarizer Backend: Google Gemini Service Implementation
============================================================

What:  Alternative analysis provider using the Google Gemini API.
How:   The shared system prompt is set as the model's system instruction and
       the response MIME type is forced to application/json, so the answer
       goes through the same strict parser as OpenRouter's.
Who:   Built by llm_factory.create_llm_service() when LLM_PROVIDER=gemini.

Error translation (google.api_core.exceptions → AnalysisFailureKind):
    Unauthenticated / PermissionDenied → auth
    ResourceExhausted                  → rate_limit
    DeadlineExceeded                   → upstream (timeout)
    ServiceUnavailable                 → network
    any other GoogleAPIError           → upstream
    blocked / empty candidate          → malformed_response
"""

import asyncio
import logging
import time
import uuid
from typing import Any, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from docsummarizer import messages
from docsummarizer.config import Settings
from docsummarizer.exceptions import AnalysisError, AnalysisFailureKind
from docsummarizer.services.llm_base import (
    SYSTEM_PROMPT,
    USER_PROMPT_TEMPLATE,
    AnalysisResult,
    LLMService,
    parse_analysis_payload,
)

logger = logging.getLogger(__name__)

# Order matters: subclasses before GoogleAPIError
_ERROR_KINDS = (
    (google_exceptions.Unauthenticated, AnalysisFailureKind.AUTH),
    (google_exceptions.PermissionDenied, AnalysisFailureKind.AUTH),
    (google_exceptions.ResourceExhausted, AnalysisFailureKind.RATE_LIMIT),
    (google_exceptions.DeadlineExceeded, AnalysisFailureKind.UPSTREAM),
    (google_exceptions.ServiceUnavailable, AnalysisFailureKind.NETWORK),
    (google_exceptions.GoogleAPIError, AnalysisFailureKind.UPSTREAM),
)


def _kind_for(error: Exception) -> AnalysisFailureKind:
    for exc_type, kind in _ERROR_KINDS:
        if isinstance(error, exc_type):
            return kind
    return AnalysisFailureKind.UPSTREAM


class GeminiService(LLMService):
    """
    Gemini document analysis client.

    Args:
        config: Settings instance (API key, model, timeout).
        model:  Optional pre-built GenerativeModel; tests pass a mock.
    """

    provider_name = "gemini"

    def __init__(self, config: Settings, model: Optional[Any] = None):
        if config.gemini_api_key:
            genai.configure(api_key=config.gemini_api_key)

        self.model_name = config.gemini_model
        self.timeout = config.analysis_timeout_seconds
        self.model = model or genai.GenerativeModel(
            config.gemini_model,
            system_instruction=SYSTEM_PROMPT,
        )
        logger.info(
            "GeminiService initialized with model=%s, timeout=%ss",
            self.model_name,
            self.timeout,
        )

    async def analyze(self, text: str) -> AnalysisResult:
        call_id = str(uuid.uuid4())[:8]
        start_time = time.time()
        logger.info("[%s] Starting Gemini analysis (%d chars)", call_id, len(text))

        try:
            response = await self.model.generate_content_async(
                USER_PROMPT_TEMPLATE.format(text=text),
                generation_config={"response_mime_type": "application/json"},
                request_options={"timeout": self.timeout},
            )
        except google_exceptions.GoogleAPIError as e:
            kind = _kind_for(e)
            logger.error(
                "[%s] Gemini API call failed after %.0fms (%s): %s",
                call_id,
                (time.time() - start_time) * 1000,
                type(e).__name__,
                str(e),
            )
            raise AnalysisError(
                kind=kind,
                context={"call_id": call_id, "error_type": type(e).__name__},
            ) from e
        except (ConnectionError, TimeoutError) as e:
            logger.error("[%s] Gemini transport error: %s", call_id, str(e))
            raise AnalysisError(
                kind=AnalysisFailureKind.NETWORK,
                context={"call_id": call_id, "error_type": type(e).__name__},
            ) from e

        # .text raises ValueError when the candidate was blocked or is empty
        try:
            content = response.text
        except ValueError as e:
            logger.error("[%s] Gemini returned no usable candidate: %s", call_id, str(e))
            raise AnalysisError(
                kind=AnalysisFailureKind.MALFORMED_RESPONSE,
                context={"call_id": call_id, "reason": "no candidate"},
            ) from e

        result = parse_analysis_payload(content, provider=self.provider_name)
        logger.info(
            "[%s] %s in %.0fms (category=%s)",
            call_id,
            messages.LLM_ANALYSIS_SUCCESS,
            (time.time() - start_time) * 1000,
            result.category.value,
        )
        return result

    async def health_check(self) -> bool:
        """
        Lists models (no token cost) to verify the key and connectivity.
        """
        try:
            model_names = await asyncio.to_thread(lambda: [m.name for m in genai.list_models()])
        except Exception as e:
            logger.warning("Gemini health check failed: %s", str(e))
            return False
        target = f"models/{self.model_name}"
        if target not in model_names:
            logger.warning("Configured model %s not found in available models", target)
        return True
