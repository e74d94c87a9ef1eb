"""Business logic layer for files app.

This package contains all business logic for shared files:
- Share token generation
- File record lifecycle (create, lookup, access checks, downloads)
- Storage quota ledger
- Upload, download and delete workflows
- Thumbnail pipeline and retention sweep

All business logic should be implemented here, separate from
models (data layer) and infrastructure (external systems).
"""
