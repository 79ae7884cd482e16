"""
app/api/routers package marker.
"""

from app.api.routers.shop_boost import router as shop_boost_router

__all__ = [
    "shop_boost_router",
]
