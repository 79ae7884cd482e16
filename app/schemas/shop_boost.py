"""
Schemas for the shop boost profile endpoint.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field


class ShopBoostProfileRequest(BaseModel):
    intake_id: UUID | None = Field(
        default=None,
        description="Pending intake to process; defaults to the most recent pending intake.",
    )


class ShopBoostProfileNotFoundResponse(BaseModel):
    detail: str
