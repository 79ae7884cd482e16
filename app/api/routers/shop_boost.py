"""
Shop boost profile trigger endpoint.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, status

from app.schemas.shop_boost import ShopBoostProfileNotFoundResponse, ShopBoostProfileRequest
from app.services.shop_boost_service import ShopBoostService, get_shop_boost_service
from llm_synthesis.schema import ShopHealthSnapshot

router = APIRouter(tags=["shop-boost"])


@router.post(
    "/shop-boost/{shop_id}/profile",
    response_model=ShopHealthSnapshot,
    responses={status.HTTP_404_NOT_FOUND: {"model": ShopBoostProfileNotFoundResponse}},
)
def build_shop_boost_profile(
    shop_id: UUID,
    payload: ShopBoostProfileRequest | None = Body(default=None),
    service: ShopBoostService = Depends(get_shop_boost_service),
) -> ShopHealthSnapshot:
    intake_id = payload.intake_id if payload is not None else None
    snapshot = service.build_shop_boost_profile(
        str(shop_id),
        str(intake_id) if intake_id is not None else None,
    )
    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No pending intake could be turned into a shop health snapshot.",
        )
    return snapshot
