"""
DocSummarizer Backend: User-Facing Messages
============================================

What:  Every message string the API returns to clients, in one place.
How:   Services and exceptions import these constants instead of writing
       inline strings, so responses and tests match on stable text.
"""

# ── General ───────────────────────────────────────────────────────────────
INTERNAL_SERVER_ERROR = "An unexpected error occurred. Please try again later."
VALIDATION_ERROR = "Validation failed. Please check your input."

# ── Documents ─────────────────────────────────────────────────────────────
DOCUMENT_UPLOADED = "Document uploaded and text extracted successfully."
DOCUMENT_UPLOAD_FAILED = "Document upload failed. Please try again."
DOCUMENT_UPLOAD_FAILED_TEXT_EXTRACTION = "Document upload failed during text extraction."
DOCUMENT_UPLOAD_FAILED_DATABASE_SAVE = "Document upload failed during database save."
DOCUMENT_NOT_FOUND = "Document not found."
DOCUMENT_FETCHED = "Document retrieved successfully."
DOCUMENTS_FETCHED = "Documents retrieved successfully."
DOCUMENT_DELETED = "Document deleted successfully."
DOCUMENT_INVALID_ID = "Invalid document ID provided."

# ── Analysis ──────────────────────────────────────────────────────────────
ANALYSIS_COMPLETED = "Document analysis completed successfully."
ANALYSIS_ALREADY_COMPLETED = "Analysis for this document has already been completed."
ANALYSIS_FAILED = "Document analysis failed. Please try again."
ANALYSIS_IN_PROGRESS = "Document analysis is currently in progress."
ANALYSIS_CONFLICT = "Document analysis was started by another request."
ANALYSIS_STALE_RECOVERED = "Stale analyses marked as failed."

# ── File Storage ──────────────────────────────────────────────────────────
FILE_SAVED = "File saved successfully."
FILE_SAVE_FAILED = "Failed to save file."
FILE_READ_FAILED = "Failed to read file."
FILE_DELETED = "File deleted successfully."
FILE_DELETE_FAILED = "Failed to delete file."
FILE_KEY_INVALID = "Invalid storage key."

# ── Text Extraction ───────────────────────────────────────────────────────
TEXT_EXTRACTION_SUCCESS = "Text extracted successfully from document."
TEXT_EXTRACTION_FAILED = "Failed to extract text from document."
TEXT_EXTRACTION_PDF_FAILED = "Failed to extract text from PDF."
TEXT_EXTRACTION_DOCX_FAILED = "Failed to extract text from DOCX."
UNSUPPORTED_FILE_TYPE = "Only PDF and DOCX files are supported."
TEXT_TRUNCATED = "Document text truncated to maximum allowed length."

# ── LLM Provider ──────────────────────────────────────────────────────────
LLM_UNAUTHORIZED = "The AI provider rejected our credentials. Please contact support."
LLM_RATE_LIMIT = "AI provider rate limit exceeded. Please try again later."
LLM_INSUFFICIENT_CREDITS = "Insufficient credits on the AI provider account."
LLM_RESPONSE_MALFORMED = "The AI provider returned an unreadable response."
LLM_NETWORK_ERROR = "Could not reach the AI provider. Please try again later."
LLM_ANALYSIS_FAILED = "Failed to analyze document with the AI provider."
LLM_RESPONSE_INVALID = "LLM response is missing required fields."
LLM_ANALYSIS_SUCCESS = "LLM analysis completed successfully."

# ── Upload Validation ─────────────────────────────────────────────────────
FILE_TOO_LARGE = "File size exceeds the maximum allowed limit of 5MB."
FILE_EMPTY = "The uploaded file is empty."
INVALID_FILE_TYPE = "Invalid file type. Only PDF and DOCX files are allowed."
FILE_CONTENT_MISMATCH = "File content does not match its declared type."
MISSING_FILE = "No file provided for upload."

# ── Database ──────────────────────────────────────────────────────────────
DB_CREATE_FAILED = "Failed to create record in database."
DB_UPDATE_FAILED = "Failed to update record in database."
DB_GET_FAILED = "Failed to retrieve record from database."
DB_LIST_FAILED = "Failed to list records from database."
