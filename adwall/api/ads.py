# =========================================================
# FILE: adwall/api/ads.py
# =========================================================

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from adwall.api.deps import get_current_user, get_optional_user, require_admin
from adwall.core.database import get_db
from adwall.models.ad import Ad
from adwall.schemas.ads import (
    ActivationRequest,
    AdCreate,
    AdResponse,
    AdStatsResponse,
    AdUpdate,
    AuthorItem,
    LikeResponse,
)
from adwall.services import ad_service, billing_service
from adwall.services.billing_service import AdMutationResult

router = APIRouter(prefix="/api/ads", tags=["ads"])
logger = logging.getLogger("adwall.ads")


def _ad_response(ad: Ad, author: Optional[str] = None, policy_override: Optional[str] = None) -> AdResponse:
    resp = AdResponse.model_validate(ad)
    resp.image_urls = list(ad.image_urls or [])
    resp.video_urls = list(ad.video_urls or [])
    if author is not None:
        resp.author = author
    resp.policy_override = policy_override
    return resp


async def _mutation_response(db: AsyncSession, result: AdMutationResult, viewer) -> AdResponse:
    ad, owner = await ad_service.get_ad_with_owner(db, result.ad.id)
    return _ad_response(
        ad,
        ad_service.display_author(ad, owner, viewer),
        policy_override=result.policy_override,
    )


@router.get("", response_model=List[AdResponse])
async def list_ads(
        search: Optional[str] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        sort_by: Optional[str] = None,
        mine: bool = False,
        target_user: Optional[str] = None,
        user=Depends(get_optional_user),
        db: AsyncSession = Depends(get_db),
):
    if mine and not user:
        raise HTTPException(status_code=401, detail="Not authenticated")

    rows = await ad_service.list_ads(
        db,
        viewer=user,
        search=search,
        status=status,
        category=category,
        sort_by=sort_by,
        mine=mine,
        target_user=target_user,
    )
    return [_ad_response(ad, ad_service.display_author(ad, owner, user)) for ad, owner in rows]


@router.get("/stats", response_model=AdStatsResponse)
async def ad_stats(
        mine: bool = False,
        user=Depends(get_optional_user),
        db: AsyncSession = Depends(get_db),
):
    owner_id = user["id"] if mine and user else None
    return AdStatsResponse(**await ad_service.stats(db, owner_id))


@router.get("/authors", response_model=List[AuthorItem])
async def ad_authors(_admin=Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return [AuthorItem(**a) for a in await ad_service.authors(db)]


@router.get("/{ad_id}", response_model=AdResponse)
async def get_ad(
        ad_id: int,
        user=Depends(get_optional_user),
        db: AsyncSession = Depends(get_db),
):
    ad, owner = await ad_service.get_ad_with_owner(db, ad_id)
    return _ad_response(ad, ad_service.display_author(ad, owner, user))


@router.post("", response_model=AdResponse, status_code=201)
async def create_ad(
        data: AdCreate,
        user=Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
):
    return await _mutation_response(db, await ad_service.create_ad(db, data, user), user)


@router.put("/{ad_id}", response_model=AdResponse)
async def update_ad(
        ad_id: int,
        data: AdUpdate,
        user=Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
):
    return await _mutation_response(db, await ad_service.update_ad(db, ad_id, data, user), user)


@router.patch("/{ad_id}/status", response_model=AdResponse)
async def set_ad_activation(
        ad_id: int,
        data: ActivationRequest,
        user=Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
):
    return await _mutation_response(db, await ad_service.set_activation(db, ad_id, data.active, user), user)


@router.delete("/{ad_id}")
async def delete_ad(
        ad_id: int,
        user=Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
):
    await ad_service.delete_ad(db, ad_id, user)
    return {"message": "Ad deleted"}


@router.post("/{ad_id}/clicks", response_model=AdResponse)
async def record_click(ad_id: int, db: AsyncSession = Depends(get_db)):
    """Count a click and charge the advertiser; 402 when they cannot pay."""
    ad = await billing_service.record_click(db, ad_id)
    return _ad_response(ad)


@router.post("/{ad_id}/likes", response_model=LikeResponse)
async def like_ad(ad_id: int, db: AsyncSession = Depends(get_db)):
    likes = await ad_service.like_ad(db, ad_id)
    return LikeResponse(success=True, likes=likes)
