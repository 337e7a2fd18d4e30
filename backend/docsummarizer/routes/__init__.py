"""
DocSummarizer Backend: API Routes Package
==========================================

Route Inventory:
    - documents.py: POST   /api/v1/documents/upload
                    GET    /api/v1/documents
                    GET    /api/v1/documents/{id}
                    POST   /api/v1/documents/{id}/analyze
                    DELETE /api/v1/documents/{id}
    - health.py:    GET    /health

Routes stay thin: parse the request, call DocumentService, wrap the result
in the {message, data} envelope.
"""
