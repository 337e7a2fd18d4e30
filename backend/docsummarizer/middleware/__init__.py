"""
DocSummarizer Backend: Middleware Package
==========================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    Request ID runs first so every log line of the request, including the
    access log line, carries the correlation id.
"""
