"""
DocSummarizer Backend: Abstract LLM Service Interface
======================================================

What:  Abstract base class defining the contract for document analysis
       providers, plus the result type and the strict response parser they
       share.
Why:   DocumentService depends on `LLMService` only; the concrete provider is
       chosen from settings (see llm_factory.py).
How:   Concrete implementations inherit from LLMService and implement
       analyze() and health_check(). Both providers ask the model for the same
       JSON object and hand the raw text to `parse_analysis_payload()`.

Response contract (what the model is asked to return):
    {
      "summary": "...",
      "documentType": "invoice | CV | report | letter | contract | article | other",
      "extractedMetadata": {"date": ..., "sender": ..., "totalAmount": ..., "keywords": [...]}
    }

Parsing rules:
    - body is not JSON, or not a JSON object     → AnalysisError(malformed_response)
    - summary empty, documentType missing/unknown,
      or extractedMetadata not an object          → InvalidAnalysisResultError
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from docsummarizer.exceptions import (
    AnalysisError,
    AnalysisFailureKind,
    InvalidAnalysisResultError,
)
from docsummarizer.models.document import DocumentCategory

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You are an expert document analysis and summarization service. \
Process the provided document text and extract specific information.
The output MUST be a single JSON object with this schema:
{
  "summary": "A concise, 3-5 sentence summary of the document.",
  "documentType": "One of: invoice, CV, report, letter, contract, article, other. Choose the most specific type.",
  "extractedMetadata": {
    "date": "The primary date mentioned in the document (YYYY-MM-DD or null)",
    "sender": "The name or organization that created or sent the document (or null)",
    "totalAmount": "The total monetary amount with currency, e.g. '$1,234.50' (or null)",
    "keywords": "A list of 5 key terms or concepts from the document (or [])"
  }
}
If a field is not applicable or not found, set its value to null. The summary is mandatory.
Respond ONLY with the JSON object."""

USER_PROMPT_TEMPLATE = (
    "Analyze the following document text and provide the output in the "
    "requested JSON format:\n\n---\n\n{text}"
)

_CATEGORY_LOOKUP = {c.value.lower(): c for c in DocumentCategory}


class AnalysisResult(BaseModel):
    """Validated outcome of one analysis call."""

    summary: str = Field(min_length=1)
    category: DocumentCategory = Field(
        validation_alias=AliasChoices("documentType", "category"),
    )
    metadata: Dict[str, Any] = Field(
        validation_alias=AliasChoices("extractedMetadata", "metadata"),
    )

    model_config = {"populate_by_name": True, "str_strip_whitespace": True}

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v: Any) -> Any:
        """Accepts category names case-insensitively ("cv" → CV)."""
        if isinstance(v, str):
            return _CATEGORY_LOOKUP.get(v.strip().lower(), v)
        return v


def parse_analysis_payload(raw: Optional[str], provider: str) -> AnalysisResult:
    """
    Turns the model's raw message content into an AnalysisResult.

    Raises:
        AnalysisError(malformed_response): no content, or not a JSON object
        InvalidAnalysisResultError: JSON object failing the schema
    """
    if not raw or not raw.strip():
        raise AnalysisError(
            kind=AnalysisFailureKind.MALFORMED_RESPONSE,
            context={"provider": provider, "reason": "empty content"},
        )

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error("%s returned non-JSON content: %s", provider, str(e))
        raise AnalysisError(
            kind=AnalysisFailureKind.MALFORMED_RESPONSE,
            context={"provider": provider, "reason": "invalid json"},
        ) from e

    if not isinstance(payload, dict):
        raise AnalysisError(
            kind=AnalysisFailureKind.MALFORMED_RESPONSE,
            context={"provider": provider, "reason": f"expected object, got {type(payload).__name__}"},
        )

    try:
        return AnalysisResult.model_validate(payload)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        logger.error("%s response missing or invalid fields: %s", provider, fields)
        raise InvalidAnalysisResultError(
            context={"provider": provider, "invalid_fields": fields},
        ) from e


class LLMService(ABC):
    """
    Abstract interface for LLM-backed document analysis.

    Contract:
        - analyze() accepts extracted document text and returns an AnalysisResult
        - Provider and transport failures are translated into AnalysisError with
          one of the AnalysisFailureKind values; the provider's own error text
          is logged, never put in the message
        - No retries: one call per analyze request
    """

    provider_name = "llm"

    @abstractmethod
    async def analyze(self, text: str) -> AnalysisResult:
        """
        Summarize and classify a document.

        Raises:
            AnalysisError: auth, rate_limit, quota, malformed_response,
                network or upstream failure
            InvalidAnalysisResultError: the model answered with incomplete JSON
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability probe used by GET /health."""
        ...

    async def aclose(self) -> None:
        """Releases provider resources. Called at application shutdown."""
        return None
