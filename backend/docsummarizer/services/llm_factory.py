"""
DocSummarizer Backend: Analysis Provider Factory
=================================================

Builds the LLMService selected by LLM_PROVIDER.
"""

from typing import Dict, Type

from docsummarizer.config import Settings
from docsummarizer.services.gemini_service import GeminiService
from docsummarizer.services.llm_base import LLMService
from docsummarizer.services.openrouter_service import OpenRouterService

PROVIDERS: Dict[str, Type[LLMService]] = {
    "openrouter": OpenRouterService,
    "gemini": GeminiService,
}


def create_llm_service(config: Settings) -> LLMService:
    provider_cls = PROVIDERS.get(config.llm_provider)
    if provider_cls is None:
        raise ValueError(
            f"Unknown LLM provider '{config.llm_provider}'. Choose from: {list(PROVIDERS)}"
        )
    return provider_cls(config)
