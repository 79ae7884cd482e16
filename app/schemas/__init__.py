"""
app/schemas package marker.
"""

from app.schemas.shop_boost import ShopBoostProfileNotFoundResponse, ShopBoostProfileRequest

__all__ = [
    "ShopBoostProfileNotFoundResponse",
    "ShopBoostProfileRequest",
]
