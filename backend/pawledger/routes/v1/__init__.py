# backend/pawledger/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import bookings, checkout, grooming, wallet

__all__ = [
    "bookings",
    "checkout",
    "grooming",
    "wallet",
]
