# =========================================================
# FILE: /adwall/services/ad_service.py
# =========================================================

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from adwall.core.errors import ForbiddenError, NotFoundError, ValidationFailed
from adwall.models.ad import Ad, ANONYMOUS_AUTHOR, DEFAULT_CATEGORY
from adwall.models.user import User
from adwall.schemas.ads import AdCreate, AdUpdate
from adwall.services import billing_service, form_schema_service, upload_service
from adwall.services.billing_service import AdMutationResult, STATUS_ACTIVE
from adwall.core.money import from_cents, to_cents
from adwall.services.scoring import sort_by_bid_score

logger = logging.getLogger("adwall.ads")

SORT_COLUMNS = {
    "created_at": Ad.created_at,
    "price": Ad.price_cents,
    "clicks": Ad.clicks,
    "likes": Ad.likes,
}
SORT_BID = "bid"


def is_admin(user: Optional[Dict[str, Any]]) -> bool:
    return bool(user) and user.get("role") == "admin"


def ensure_can_modify(ad: Ad, user: Optional[Dict[str, Any]]) -> None:
    if not user:
        raise ForbiddenError("Not allowed to modify this ad")
    if ad.user_id != user["id"] and not is_admin(user):
        raise ForbiddenError("Not allowed to modify this ad")


def display_author(ad: Ad, owner_name: Optional[str], viewer: Optional[Dict[str, Any]]) -> str:
    """Admins see who is behind an anonymous ad."""
    if is_admin(viewer) and ad.is_anonymous and owner_name:
        return f"{owner_name} ({ANONYMOUS_AUTHOR})"
    return ad.author


async def get_ad(db: AsyncSession, ad_id: int) -> Ad:
    ad = (await db.execute(select(Ad).where(Ad.id == ad_id))).scalar_one_or_none()
    if not ad:
        raise NotFoundError("Ad not found")
    return ad


async def get_ad_with_owner(db: AsyncSession, ad_id: int):
    row = (
        await db.execute(
            select(Ad, User.username)
            .outerjoin(User, User.id == Ad.user_id)
            .where(Ad.id == ad_id)
        )
    ).first()
    if not row:
        raise NotFoundError("Ad not found")
    return row[0], row[1]


async def list_ads(
        db: AsyncSession,
        viewer: Optional[Dict[str, Any]] = None,
        search: Optional[str] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        sort_by: Optional[str] = None,
        mine: bool = False,
        target_user: Optional[str] = None,
):
    """Return (ad, owner username) rows matching the filters."""
    stmt = select(Ad, User.username).outerjoin(User, User.id == Ad.user_id)

    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(
            Ad.title.like(pattern),
            Ad.description.like(pattern),
            Ad.author.like(pattern),
        ))
    if status and status != "All":
        stmt = stmt.where(Ad.status == status)
    if category and category != "All":
        stmt = stmt.where(Ad.category == category)

    if is_admin(viewer) and target_user:
        if target_user != "All":
            stmt = stmt.where(Ad.author == target_user)
    elif mine:
        if not viewer:
            raise ForbiddenError("Login required")
        stmt = stmt.where(Ad.user_id == viewer["id"])

    if sort_by == SORT_BID:
        # newest first, then a stable sort by score keeps that order for ties
        stmt = stmt.order_by(Ad.created_at.desc(), Ad.id.desc())
        rows = (await db.execute(stmt)).all()
        return sort_by_bid_score(rows, key=lambda r: r[0])

    column = SORT_COLUMNS.get(sort_by or "created_at", Ad.created_at)
    stmt = stmt.order_by(column.desc(), Ad.id.desc())
    return list((await db.execute(stmt)).all())


def _check_form(payload: Dict[str, Any]) -> None:
    schema = form_schema_service.get_schema("ad-form")
    errors = form_schema_service.validate(schema, payload)
    if errors:
        raise ValidationFailed(errors[0].message)


async def create_ad(db: AsyncSession, data: AdCreate, owner: Dict[str, Any]) -> AdMutationResult:
    payload = data.model_dump()
    _check_form(payload)
    price_cents = to_cents(data.price)
    if price_cents <= 0:
        raise ValidationFailed("Price must be greater than 0")

    status, override = await billing_service.solvency_gate(
        db, owner["id"], from_cents(price_cents), data.status
    )

    ad = Ad(
        user_id=owner["id"],
        title=data.title,
        description=data.description,
        author=ANONYMOUS_AUTHOR if data.is_anonymous else owner["username"],
        is_anonymous=data.is_anonymous,
        image_urls=list(data.image_urls),
        video_urls=list(data.video_urls),
        target_url=data.target_url,
        price_cents=price_cents,
        category=data.category or DEFAULT_CATEGORY,
        clicks=0,
        likes=0,
        status=status,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow(),
    )
    db.add(ad)
    await db.commit()
    await db.refresh(ad)

    logger.info("Ad %s created by %s with status %s", ad.id, owner["id"], ad.status)
    return AdMutationResult(ad=ad, policy_override=override)


async def update_ad(db: AsyncSession, ad_id: int, data: AdUpdate, actor: Dict[str, Any]) -> AdMutationResult:
    ad, owner_name = await get_ad_with_owner(db, ad_id)
    ensure_can_modify(ad, actor)

    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    for name in ("title", "description", "target_url", "category"):
        if name in changes:
            setattr(ad, name, changes[name])
    if "image_urls" in changes:
        ad.image_urls = list(changes["image_urls"])
    if "video_urls" in changes:
        ad.video_urls = list(changes["video_urls"])

    if "is_anonymous" in changes:
        ad.is_anonymous = changes["is_anonymous"]
        if ad.is_anonymous:
            ad.author = ANONYMOUS_AUTHOR
        elif owner_name:
            ad.author = owner_name

    price_changed = "price" in changes and to_cents(changes["price"]) != ad.price_cents
    if "price" in changes:
        ad.price_cents = to_cents(changes["price"])

    requested = changes.get("status", ad.status)
    override = None
    if requested == STATUS_ACTIVE and (price_changed or "status" in changes):
        requested, override = await billing_service.solvency_gate(db, ad.user_id, ad.price, STATUS_ACTIVE)
    ad.status = requested
    ad.updated_at = datetime.utcnow()

    await db.commit()
    await db.refresh(ad)

    if override:
        logger.info("Ad %s kept Paused on update: owner cannot afford %s", ad.id, ad.price)
    return AdMutationResult(ad=ad, policy_override=override)


async def set_activation(db: AsyncSession, ad_id: int, active: bool, actor: Dict[str, Any]) -> AdMutationResult:
    ad = await get_ad(db, ad_id)
    ensure_can_modify(ad, actor)
    return await billing_service.toggle_activation(db, ad_id, active)


async def delete_ad(db: AsyncSession, ad_id: int, actor: Dict[str, Any]) -> None:
    ad = await get_ad(db, ad_id)
    ensure_can_modify(ad, actor)

    media = list(ad.image_urls or []) + list(ad.video_urls or [])
    await db.delete(ad)
    await db.commit()

    removed = upload_service.remove_media(media)
    logger.info("Ad %s deleted by %s (%d media file(s) removed)", ad_id, actor["id"], removed)


async def like_ad(db: AsyncSession, ad_id: int) -> int:
    result = await db.execute(
        update(Ad)
        .where(Ad.id == ad_id)
        .values(likes=Ad.likes + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        raise NotFoundError("Ad not found")
    await db.commit()
    likes = (await db.execute(select(Ad.likes).where(Ad.id == ad_id))).scalar_one()
    return int(likes)


async def rename_author(db: AsyncSession, user_id: str, username: str) -> None:
    """Keep the display name of a user's non-anonymous ads in sync. Caller commits."""
    await db.execute(
        update(Ad)
        .where(Ad.user_id == user_id, Ad.is_anonymous == False)  # noqa: E712
        .values(author=username)
        .execution_options(synchronize_session=False)
    )


async def stats(db: AsyncSession, owner_id: Optional[str] = None) -> Dict[str, Any]:
    filters = [Ad.user_id == owner_id] if owner_id else []

    total = (await db.execute(select(func.count(Ad.id)).where(*filters))).scalar_one()
    active = (
        await db.execute(select(func.count(Ad.id)).where(*filters, Ad.status == STATUS_ACTIVE))
    ).scalar_one()
    sums = (
        await db.execute(
            select(
                func.coalesce(func.sum(Ad.clicks), 0),
                func.coalesce(func.sum(Ad.likes), 0),
                func.avg(Ad.price_cents),
            ).where(*filters)
        )
    ).one()

    trend = (
        await db.execute(
            select(Ad.title, Ad.clicks).where(*filters).order_by(Ad.clicks.desc(), Ad.id.asc()).limit(5)
        )
    ).all()
    top_liked = (
        await db.execute(
            select(Ad.title, Ad.likes).where(*filters).order_by(Ad.likes.desc(), Ad.id.asc()).limit(5)
        )
    ).all()

    count = func.count(Ad.id)
    categories = (
        await db.execute(
            select(Ad.category, count).where(*filters).group_by(Ad.category).order_by(count.desc(), Ad.category.asc())
        )
    ).all()

    return {
        "total": int(total or 0),
        "active": int(active or 0),
        "total_clicks": int(sums[0] or 0),
        "total_likes": int(sums[1] or 0),
        "avg_price": round(float(sums[2] or 0) / 100, 2),
        "trend": [{"title": t, "clicks": c} for t, c in trend],
        "top_liked": [{"title": t, "likes": n} for t, n in top_liked],
        "category_stats": [{"name": name, "value": n} for name, n in categories],
    }


async def authors(db: AsyncSession) -> List[Dict[str, str]]:
    rows = (await db.execute(select(User.username, User.role).order_by(User.username.asc()))).all()
    return [{"username": u, "role": r} for u, r in rows]
