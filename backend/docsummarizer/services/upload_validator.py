"""
DocSummarizer Backend: Upload Validation
=========================================

What:  Boundary checks applied to an upload before the pipeline runs.
Why:   The upload pipeline assumes a non-empty PDF or DOCX file of at most
       MAX_FILE_SIZE bytes; everything else is rejected here with a 4xx.
How:   Checks run cheapest first:
           1. Declared media type is PDF or DOCX     → 415
           2. Non-empty                              → 400
           3. Size (declared and actual) within limit → 400
           4. Magic bytes agree with the declared type → 400

Why the magic-byte check:
    The declared Content-Type comes from the client. python-magic inspects the
    file header so a renamed executable is not handed to the PDF parser.
    DOCX files are ZIP containers, so libmagic may report them as
    application/zip; that is accepted for a declared DOCX.
"""

import logging
from typing import Callable, Optional

from docsummarizer import messages
from docsummarizer.exceptions import (
    DocSummarizerError,
    UnsupportedMediaTypeError,
    UploadValidationError,
)

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
DOCX_MEDIA_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)

ALLOWED_MEDIA_TYPES = {PDF_MEDIA_TYPE, DOCX_MEDIA_TYPE}

# What libmagic may legitimately report for each declared type
_ACCEPTED_DETECTIONS = {
    PDF_MEDIA_TYPE: {PDF_MEDIA_TYPE},
    DOCX_MEDIA_TYPE: {DOCX_MEDIA_TYPE, "application/zip", "application/octet-stream"},
}

MimeDetector = Callable[[bytes], str]


def detect_mime_type(content: bytes) -> str:
    """Default detector: libmagic via python-magic."""
    import magic

    return magic.from_buffer(content, mime=True)


class UploadValidator:
    """
    Validates an upload against the size limit and the PDF/DOCX allow-list.

    Args:
        max_file_size: Upper bound in bytes (Settings.max_file_size).
        mime_detector: Callable returning the detected MIME type of a buffer.
                       Tests pass a stub; production uses libmagic.
    """

    def __init__(
        self,
        max_file_size: int,
        mime_detector: Optional[MimeDetector] = None,
    ):
        self.max_file_size = max_file_size
        self.mime_detector = mime_detector or detect_mime_type

    def validate_media_type(self, media_type: Optional[str]) -> str:
        normalized = (media_type or "").split(";")[0].strip().lower()
        if normalized not in ALLOWED_MEDIA_TYPES:
            raise UnsupportedMediaTypeError(
                context={
                    "declared_type": media_type,
                    "allowed": sorted(ALLOWED_MEDIA_TYPES),
                },
            )
        return normalized

    def validate_size(self, declared_size: Optional[int], actual_size: int) -> None:
        if actual_size == 0:
            raise UploadValidationError(message=messages.FILE_EMPTY, field="file")

        if declared_size and declared_size > self.max_file_size:
            raise UploadValidationError(
                message=messages.FILE_TOO_LARGE,
                field="file",
                context={"max_size": self.max_file_size, "reported_size": declared_size},
            )

        if actual_size > self.max_file_size:
            raise UploadValidationError(
                message=messages.FILE_TOO_LARGE,
                field="file",
                context={"max_size": self.max_file_size, "actual_size": actual_size},
            )

    def validate_content(self, content: bytes, media_type: str) -> None:
        try:
            detected = self.mime_detector(content)
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise DocSummarizerError(
                message=messages.INTERNAL_SERVER_ERROR,
                context={"error": str(e)},
            )

        if detected not in _ACCEPTED_DETECTIONS[media_type]:
            raise UploadValidationError(
                message=messages.FILE_CONTENT_MISMATCH,
                field="file",
                context={"declared_type": media_type, "detected_type": detected},
            )

    def validate(
        self,
        content: bytes,
        media_type: Optional[str],
        declared_size: Optional[int] = None,
    ) -> str:
        """
        Runs every check and returns the normalized media type.

        Raises:
            UnsupportedMediaTypeError: declared type is not PDF/DOCX (415)
            UploadValidationError: empty, too large, or content mismatch (400)
        """
        normalized = self.validate_media_type(media_type)
        self.validate_size(declared_size, len(content))
        self.validate_content(content, normalized)
        return normalized
