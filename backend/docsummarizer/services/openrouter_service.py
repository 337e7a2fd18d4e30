"""
DocSummarizer Backend: OpenRouter Service Implementation
=========================================================

What:  Default analysis provider. Calls OpenRouter's OpenAI-compatible
       chat completions endpoint and asks for a JSON object answer.
How:   One shared httpx.AsyncClient (connection pooling, bounded timeout),
       one POST per analyze() call, HTTP status translated into
       AnalysisFailureKind:

           401 / 403   → auth
           402         → quota
           429         → rate_limit (Retry-After passed through)
           other ≥ 400 → upstream
           timeout     → upstream
           transport   → network

Who:   Built by llm_factory.create_llm_service() when LLM_PROVIDER=openrouter.
"""

import logging
import time
import uuid
from typing import Optional

import httpx

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

_STATUS_KINDS = {
    401: AnalysisFailureKind.AUTH,
    403: AnalysisFailureKind.AUTH,
    402: AnalysisFailureKind.QUOTA,
    429: AnalysisFailureKind.RATE_LIMIT,
}


def _retry_after(response: httpx.Response) -> Optional[int]:
    value = response.headers.get("Retry-After")
    if value and value.isdigit():
        return int(value)
    return None


class OpenRouterService(LLMService):
    """
    OpenRouter chat-completions client.

    Args:
        config:    Settings instance (API key, base URL, model, timeout).
        transport: Optional httpx transport; tests pass httpx.MockTransport.
    """

    provider_name = "openrouter"

    def __init__(
        self,
        config: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.model = config.openrouter_model
        self.client = httpx.AsyncClient(
            base_url=config.openrouter_base_url,
            timeout=httpx.Timeout(float(config.analysis_timeout_seconds)),
            headers={
                "Authorization": f"Bearer {config.openrouter_api_key}",
                "Content-Type": "application/json",
                "HTTP-Referer": config.openrouter_referer,
                "X-Title": config.openrouter_app_title,
            },
            transport=transport,
        )
        logger.info(
            "OpenRouterService initialized with model=%s, timeout=%ss",
            self.model,
            config.analysis_timeout_seconds,
        )

    def _build_payload(self, text: str) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": USER_PROMPT_TEMPLATE.format(text=text)},
            ],
            "response_format": {"type": "json_object"},
        }

    async def analyze(self, text: str) -> AnalysisResult:
        call_id = str(uuid.uuid4())[:8]
        start_time = time.time()
        logger.info("[%s] Starting OpenRouter analysis (%d chars)", call_id, len(text))

        try:
            response = await self.client.post("/chat/completions", json=self._build_payload(text))
        except httpx.TimeoutException as e:
            logger.error("[%s] OpenRouter request timed out: %s", call_id, str(e))
            raise AnalysisError(
                kind=AnalysisFailureKind.UPSTREAM,
                context={"call_id": call_id, "reason": "timeout"},
            ) from e
        except httpx.TransportError as e:
            logger.error("[%s] OpenRouter transport error: %s", call_id, str(e))
            raise AnalysisError(
                kind=AnalysisFailureKind.NETWORK,
                context={"call_id": call_id, "error_type": type(e).__name__},
            ) from e

        duration_ms = (time.time() - start_time) * 1000

        if response.status_code >= 400:
            kind = _STATUS_KINDS.get(response.status_code, AnalysisFailureKind.UPSTREAM)
            logger.error(
                "[%s] OpenRouter API error %d after %.0fms: %s",
                call_id,
                response.status_code,
                duration_ms,
                response.text[:500],
            )
            raise AnalysisError(
                kind=kind,
                retry_after=_retry_after(response) if kind is AnalysisFailureKind.RATE_LIMIT else None,
                context={"call_id": call_id, "status_code": response.status_code},
            )

        try:
            body = response.json()
            content = body["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error("[%s] OpenRouter returned an unexpected body: %s", call_id, str(e))
            raise AnalysisError(
                kind=AnalysisFailureKind.MALFORMED_RESPONSE,
                context={"call_id": call_id, "error_type": type(e).__name__},
            ) from e

        result = parse_analysis_payload(content, provider=self.provider_name)
        logger.info(
            "[%s] %s in %.0fms (category=%s)",
            call_id,
            messages.LLM_ANALYSIS_SUCCESS,
            duration_ms,
            result.category.value,
        )
        return result

    async def health_check(self) -> bool:
        """
        GET /models is free and needs no credits; any 2xx means the API is
        reachable with our key.
        """
        try:
            response = await self.client.get("/models", timeout=5.0)
        except httpx.HTTPError as e:
            logger.warning("OpenRouter health check failed: %s", str(e))
            return False
        return response.is_success

    async def aclose(self) -> None:
        await self.client.aclose()
