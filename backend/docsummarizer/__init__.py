"""
DocSummarizer Backend: Application Package
==========================================

What: Document summarizer microservice. Clients upload a PDF or DOCX file,
      the service stores the bytes, extracts the text and later asks an LLM
      to summarize and classify it.

Layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   DocumentService (orchestration)   │  ← upload / analyze pipelines
    ├─────────────────────────────────────┤
    │ Blob store · Extractor · LLM client │  ← leaf collaborators
    ├─────────────────────────────────────┤
    │   DocumentRepository (persistence)  │  ← async SQLAlchemy
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
