"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.ai_training import AITrainingData, AITrainingEvent
from db.models.shop_boost_intake import IntakeStatus, ShopBoostIntake
from db.models.shop_health import (
    InspectionTemplateSuggestion,
    MenuItemSuggestion,
    ShopAIProfile,
    ShopHealthSnapshotRecord,
)
from db.models.shop_import import ImportFileKind, ShopImportFile, ShopImportRow

__all__ = [
    "ShopBoostIntake",
    "IntakeStatus",
    "ShopImportFile",
    "ShopImportRow",
    "ImportFileKind",
    "ShopHealthSnapshotRecord",
    "MenuItemSuggestion",
    "InspectionTemplateSuggestion",
    "ShopAIProfile",
    "AITrainingEvent",
    "AITrainingData",
]
