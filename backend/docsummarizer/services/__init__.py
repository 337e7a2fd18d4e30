"""
DocSummarizer Backend: Services Layer
======================================

Service Inventory:
    - BlobStore: raw file bytes on the storage volume, keyed by generated keys
    - UploadValidator: size / media type / magic-byte checks at the boundary
    - TextExtractor: PDF and DOCX plain-text extraction
    - LLMService (abstract): interface for document analysis providers
    - OpenRouterService, GeminiService: concrete analysis providers
    - DocumentService: orchestrates the upload and analyze pipelines
"""
