"""
app/services package marker.
"""

from app.services.import_artifacts import ImportArtifactRecorder, ImportStats
from app.services.shop_boost_service import (
    ShopBoostService,
    build_shop_boost_profile,
    get_shop_boost_service,
)
from app.services.training_event_recorder import TrainingEventRecorder

__all__ = [
    "ImportArtifactRecorder",
    "ImportStats",
    "ShopBoostService",
    "TrainingEventRecorder",
    "build_shop_boost_profile",
    "get_shop_boost_service",
]
