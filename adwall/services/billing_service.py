# =========================================================
# FILE: /adwall/services/billing_service.py
# =========================================================
"""
Per-click billing and solvency gating for ads.

record_click() runs as one database transaction: the owner row is locked,
the balance is debited with a guarded UPDATE (balance >= price) so it can
never go negative, the charge is logged, the click is counted and the
owner's other Active ads that are no longer affordable are paused.

All comparisons and arithmetic run on integer cents.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from adwall.core.errors import InsufficientFundsError, NotFoundError
from adwall.core.money import from_cents, to_cents
from adwall.models.ad import Ad
from adwall.models.transaction import Transaction
from adwall.models.user import User
from adwall.services.ledger_service import TX_AD_CHARGE, get_user

logger = logging.getLogger("adwall.billing")

STATUS_ACTIVE = "Active"
STATUS_PAUSED = "Paused"

INSUFFICIENT_BALANCE_OVERRIDE = "insufficient_balance"


@dataclass
class AdMutationResult:
    """Persisted ad plus the reason a requested Active status was not honoured."""
    ad: Ad
    policy_override: Optional[str] = None

    @property
    def overridden(self) -> bool:
        return self.policy_override is not None


async def _load_ad(db: AsyncSession, ad_id: int) -> Ad:
    ad = (await db.execute(select(Ad).where(Ad.id == ad_id))).scalar_one_or_none()
    if not ad:
        raise NotFoundError("Ad not found")
    return ad


async def owner_balance_cents(db: AsyncSession, owner_id: str, for_update: bool = False) -> int:
    user = await get_user(db, owner_id, for_update=for_update)
    await db.refresh(user)
    return user.balance_cents


async def solvency_gate(
        db: AsyncSession,
        owner_id: Optional[str],
        price,
        intended_status: str,
) -> Tuple[str, Optional[str]]:
    """
    Return the status to persist for an ad that wants `intended_status`.

    Only Active is gated: an owner whose balance is below the price gets
    Paused instead, together with the override reason.
    """
    if intended_status != STATUS_ACTIVE or owner_id is None:
        return intended_status, None

    if await owner_balance_cents(db, owner_id) < to_cents(price):
        return STATUS_PAUSED, INSUFFICIENT_BALANCE_OVERRIDE
    return STATUS_ACTIVE, None


async def toggle_activation(db: AsyncSession, ad_id: int, desired_active: bool) -> AdMutationResult:
    ad = await _load_ad(db, ad_id)

    if desired_active:
        status, override = await solvency_gate(db, ad.user_id, ad.price, STATUS_ACTIVE)
    else:
        status, override = STATUS_PAUSED, None

    ad.status = status
    await db.commit()
    await db.refresh(ad)

    if override:
        logger.info("Activation of ad %s refused: owner balance below price %s", ad.id, ad.price)
    return AdMutationResult(ad=ad, policy_override=override)


async def _sweep_unaffordable(db: AsyncSession, owner_id: str, balance_cents: int, exclude_ad_id: int) -> int:
    result = await db.execute(
        update(Ad)
        .where(
            Ad.user_id == owner_id,
            Ad.status == STATUS_ACTIVE,
            Ad.price_cents > balance_cents,
            Ad.id != exclude_ad_id,
        )
        .values(status=STATUS_PAUSED, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def _count_click(db: AsyncSession, ad_id: int) -> None:
    await db.execute(
        update(Ad)
        .where(Ad.id == ad_id)
        .values(clicks=Ad.clicks + 1)
        .execution_options(synchronize_session=False)
    )


async def _pause_for_insufficient_funds(
        db: AsyncSession,
        ad_id: int,
        owner_id: str,
        balance_cents: int,
        price_cents: int,
) -> InsufficientFundsError:
    # nothing has been written yet, so this is the only change committed
    await db.execute(
        update(Ad)
        .where(Ad.id == ad_id)
        .values(status=STATUS_PAUSED, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    balance, price = from_cents(balance_cents), from_cents(price_cents)
    logger.warning(
        "Ad %s paused: owner %s balance %s below click price %s",
        ad_id, owner_id, balance, price,
    )
    return InsufficientFundsError(
        "Insufficient balance: the ad has been paused",
        ad_id=ad_id, balance=balance, price=price,
    )


async def record_click(db: AsyncSession, ad_id: int) -> Ad:
    """
    Count a click on an ad and bill its owner.

    Raises NotFoundError when the ad does not exist and
    InsufficientFundsError (after pausing the ad) when the owner cannot
    pay the click price; in that case the click is not counted.
    """
    try:
        ad = await _load_ad(db, ad_id)
        price_cents = ad.price_cents
        owner_id = ad.user_id

        if owner_id is None:
            # Ownerless ads have nobody to bill
            await _count_click(db, ad.id)
            await db.commit()
            await db.refresh(ad)
            logger.info("Click on ownerless ad %s counted without charge", ad.id)
            return ad

        balance_cents = await owner_balance_cents(db, owner_id, for_update=True)
        if balance_cents < price_cents:
            raise await _pause_for_insufficient_funds(db, ad.id, owner_id, balance_cents, price_cents)

        charged = await db.execute(
            update(User)
            .where(User.id == owner_id, User.balance_cents >= price_cents)
            .values(balance_cents=User.balance_cents - price_cents)
            .execution_options(synchronize_session=False)
        )
        if charged.rowcount == 0:
            # balance moved between the read and the debit
            raise await _pause_for_insufficient_funds(db, ad.id, owner_id, balance_cents, price_cents)

        db.add(Transaction(
            user_id=owner_id,
            amount_cents=-price_cents,
            type=TX_AD_CHARGE,
            description=f"Click charge for ad #{ad.id} ({ad.title})",
            created_at=datetime.utcnow(),
        ))
        await _count_click(db, ad.id)
        await db.flush()

        new_balance_cents = await owner_balance_cents(db, owner_id)
        paused = await _sweep_unaffordable(db, owner_id, new_balance_cents, exclude_ad_id=ad.id)

        await db.commit()
    except InsufficientFundsError:
        raise
    except NotFoundError:
        await db.rollback()
        raise
    except Exception:
        await db.rollback()
        logger.exception("Click on ad %s rolled back", ad_id)
        raise

    await db.refresh(ad)
    new_balance = from_cents(new_balance_cents)
    logger.info("Charged %s for click on ad %s, owner balance now %s", ad.price, ad.id, new_balance)
    if paused:
        logger.warning("Risk sweep paused %d ad(s) of owner %s (balance %s)", paused, owner_id, new_balance)
    return ad
