# backend/pawledger/routes/__init__.py
"""HTTP routes. Versioned business endpoints live under ``routes.v1``."""
