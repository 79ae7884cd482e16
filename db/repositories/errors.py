"""
Repository-layer exceptions for shop boost storage and persistence flows.
"""

from __future__ import annotations


class ShopBoostRepositoryError(Exception):
    """Base exception for shop boost repository failures."""


class ObjectStorageError(ShopBoostRepositoryError):
    """Raised when downloading an uploaded export from object storage fails."""


class ShopBoostPersistenceError(ShopBoostRepositoryError):
    """Raised when a relational store read or write fails."""


class IntakeLookupError(ShopBoostPersistenceError):
    """Raised when the pending intake query itself fails."""
