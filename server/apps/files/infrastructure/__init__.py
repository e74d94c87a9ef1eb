"""Infrastructure layer for files app.

This package contains integrations with external systems:
- S3-compatible blob storage backend (MinIO locally)
- Metadata helpers (MIME type, blob keys, thumbnail naming)
- Bearer credential verification

Keep infrastructure concerns separate from business logic.
"""
