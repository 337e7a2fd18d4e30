"""
DocSummarizer Backend: Custom Exception Hierarchy
==================================================

What:  Application-specific exceptions for every failure the document
       pipelines can report.
How:   Each exception carries a client-safe message, an optional context dict
       (logged, never returned), a machine-readable `error_code` and the HTTP
       status it maps to. The global handler registered in main.py renders
       them as structured JSON.
Who:   Raised by the blob store, text extractor, analysis clients, repository
       and DocumentService; caught by global handlers.

Exception Hierarchy:
    DocSummarizerError (base)                  → 500
    ├── UploadValidationError                  → 400 (client can fix)
    │   └── UnsupportedMediaTypeError          → 415
    ├── InvalidIdentifierError                 → 400
    ├── NotFoundError                          → 404
    ├── ConflictError                          → 409
    ├── StorageError                           → 500
    ├── ExtractionError                        → 415 unsupported / 422 corrupt
    ├── PersistenceError                       → 500
    ├── AnalysisError                          → 429 / 502 / 503 by kind
    └── InvalidAnalysisResultError             → 502
"""

from enum import Enum
from typing import Any, Dict, Optional

from docsummarizer import messages


class DocSummarizerError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    error_code = "internal_error"
    status_code = 500

    def __init__(
        self,
        message: str = messages.INTERNAL_SERVER_ERROR,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class UploadValidationError(DocSummarizerError):
    """
    Raised when an upload fails boundary validation.

    When:    Empty file, size exceeded, content not matching the declared type.
    HTTP:    400 Bad Request
    """

    error_code = "validation_error"
    status_code = 400

    def __init__(
        self,
        message: str = messages.VALIDATION_ERROR,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UnsupportedMediaTypeError(UploadValidationError):
    """Declared media type is neither PDF nor DOCX."""

    error_code = "unsupported_media_type"
    status_code = 415

    def __init__(
        self,
        message: str = messages.INVALID_FILE_TYPE,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, field="file", context=context)


class InvalidIdentifierError(DocSummarizerError):
    """
    Raised when a document id is not a well-formed UUID.

    Checked before any repository call, so a malformed id never reaches the
    database.
    """

    error_code = "invalid_identifier"
    status_code = 400

    def __init__(
        self,
        identifier: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if identifier is not None:
            ctx["identifier"] = identifier
        super().__init__(message=messages.DOCUMENT_INVALID_ID, context=ctx)


class NotFoundError(DocSummarizerError):
    """
    Raised when a requested document does not exist or was soft-deleted.

    HTTP:    404 Not Found
    """

    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        resource: str = "document",
        resource_id: Optional[str] = None,
        message: str = messages.DOCUMENT_NOT_FOUND,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(DocSummarizerError):
    """
    Raised when a guarded status transition loses a race.

    When:    Two analyze requests target the same document; the conditional
             update of the second one matches no row. Also raised for a
             document that is already ANALYZING.
    HTTP:    409 Conflict
    """

    error_code = "conflict"
    status_code = 409

    def __init__(
        self,
        message: str = messages.ANALYSIS_CONFLICT,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StorageError(DocSummarizerError):
    """
    Raised when blob store operations fail.

    What:    Could not read, write, or delete a blob on the storage volume.
    HTTP:    500 Internal Server Error

    The message is generic; file system paths stay in the context.
    """

    error_code = "storage_failure"
    status_code = 500

    def __init__(
        self,
        message: str = messages.DOCUMENT_UPLOAD_FAILED,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ExtractionFailureKind(str, Enum):
    """Why text extraction failed."""

    UNSUPPORTED_MEDIA_TYPE = "unsupported_media_type"
    CORRUPT_CONTENT = "corrupt_content"


class ExtractionError(DocSummarizerError):
    """
    Raised when text cannot be extracted from an uploaded file.

    Kinds:
        unsupported_media_type → 415 (no extractor registered for the type)
        corrupt_content        → 422 (parser rejected the bytes)
    """

    error_code = "extraction_failure"

    def __init__(
        self,
        kind: ExtractionFailureKind,
        message: str = messages.DOCUMENT_UPLOAD_FAILED_TEXT_EXTRACTION,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["kind"] = kind.value
        super().__init__(message=message, context=ctx)
        self.kind = kind

    @property
    def status_code(self) -> int:  # type: ignore[override]
        if self.kind is ExtractionFailureKind.UNSUPPORTED_MEDIA_TYPE:
            return 415
        return 422


class PersistenceError(DocSummarizerError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. SQL, constraint
        names and driver errors are logged server-side only.
    """

    error_code = "persistence_failure"
    status_code = 500

    def __init__(
        self,
        message: str = messages.DOCUMENT_UPLOAD_FAILED_DATABASE_SAVE,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AnalysisFailureKind(str, Enum):
    """Distinct causes an analysis client can report."""

    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    QUOTA = "quota"
    MALFORMED_RESPONSE = "malformed_response"
    NETWORK = "network"
    UPSTREAM = "upstream"


_ANALYSIS_MESSAGES = {
    AnalysisFailureKind.AUTH: messages.LLM_UNAUTHORIZED,
    AnalysisFailureKind.RATE_LIMIT: messages.LLM_RATE_LIMIT,
    AnalysisFailureKind.QUOTA: messages.LLM_INSUFFICIENT_CREDITS,
    AnalysisFailureKind.MALFORMED_RESPONSE: messages.LLM_RESPONSE_MALFORMED,
    AnalysisFailureKind.NETWORK: messages.LLM_NETWORK_ERROR,
    AnalysisFailureKind.UPSTREAM: messages.LLM_ANALYSIS_FAILED,
}

_ANALYSIS_STATUS_CODES = {
    AnalysisFailureKind.AUTH: 502,
    AnalysisFailureKind.RATE_LIMIT: 429,
    AnalysisFailureKind.QUOTA: 503,
    AnalysisFailureKind.MALFORMED_RESPONSE: 502,
    AnalysisFailureKind.NETWORK: 503,
    AnalysisFailureKind.UPSTREAM: 502,
}


class AnalysisError(DocSummarizerError):
    """
    Raised when the LLM provider call fails.

    What:    The analysis client translated a provider/transport failure into
             one of the AnalysisFailureKind values.
    How:     The message is chosen from the kind, never copied from the
             provider's error body (that goes into context for the logs).

    Response includes:
        - details.kind: the failure kind
        - Retry-After header for rate_limit when the provider sent one
    """

    error_code = "analysis_failure"

    def __init__(
        self,
        kind: AnalysisFailureKind,
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["kind"] = kind.value
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=_ANALYSIS_MESSAGES[kind], context=ctx)
        self.kind = kind
        self.retry_after = retry_after

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return _ANALYSIS_STATUS_CODES[self.kind]


class InvalidAnalysisResultError(DocSummarizerError):
    """
    Raised when the provider answered with JSON that lacks a required field
    (summary, category or metadata) or carries an unknown category.

    HTTP:    502 Bad Gateway
    """

    error_code = "invalid_analysis_result"
    status_code = 502

    def __init__(
        self,
        message: str = messages.LLM_RESPONSE_INVALID,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
