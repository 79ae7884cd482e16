"""
Repository layer exports.
"""

from db.repositories.errors import (
    IntakeLookupError,
    ObjectStorageError,
    ShopBoostPersistenceError,
    ShopBoostRepositoryError,
)
from db.repositories.shop_boost_repository import (
    ShopBoostRepository,
    ShopBoostStore,
    SqlAlchemyShopBoostStore,
)
from db.repositories.storage import HttpObjectStorage, LocalObjectStorage, ObjectStorageBackend
from db.repositories.types import (
    HealthSnapshotCreate,
    ImportFileCreate,
    ImportRowCreate,
    InspectionSuggestionCreate,
    IntakeRecord,
    MenuSuggestionCreate,
)

__all__ = [
    "ShopBoostRepository",
    "ShopBoostStore",
    "SqlAlchemyShopBoostStore",
    "ObjectStorageBackend",
    "LocalObjectStorage",
    "HttpObjectStorage",
    "IntakeRecord",
    "ImportFileCreate",
    "ImportRowCreate",
    "HealthSnapshotCreate",
    "MenuSuggestionCreate",
    "InspectionSuggestionCreate",
    "ShopBoostRepositoryError",
    "ObjectStorageError",
    "ShopBoostPersistenceError",
    "IntakeLookupError",
]
