# FILE: adwall/services/ledger_service.py
"""Wallet ledger: every balance change goes through here or billing_service."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from adwall.core.errors import NotFoundError, ValidationFailed
from adwall.core.money import from_cents, to_cents
from adwall.models.transaction import Transaction
from adwall.models.user import User

logger = logging.getLogger("adwall.ledger")

TX_TOP_UP = "top-up"
TX_AD_CHARGE = "ad-charge"
TX_SIGNUP_BONUS = "signup-bonus"
TX_ADMIN_CREDIT = "admin-credit"


async def get_user(db: AsyncSession, user_id: str, for_update: bool = False) -> User:
    stmt = select(User).where(User.id == user_id)
    if for_update:
        stmt = stmt.with_for_update()
    user = (await db.execute(stmt)).scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")
    return user


async def credit(
        db: AsyncSession,
        user_id: str,
        amount: Any,
        tx_type: str,
        description: Optional[str] = None,
) -> Decimal:
    """Add a positive amount to the balance and log it. Caller commits."""
    cents = to_cents(amount)
    if cents <= 0:
        raise ValidationFailed("Amount must be greater than 0")

    result = await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(balance_cents=User.balance_cents + cents)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError("User not found")

    db.add(Transaction(
        user_id=user_id,
        amount_cents=cents,
        type=tx_type,
        description=description,
        created_at=datetime.utcnow(),
    ))
    await db.flush()

    user = await get_user(db, user_id)
    await db.refresh(user)
    logger.info(
        "Credited %s to user %s (%s), balance now %s",
        from_cents(cents), user_id, tx_type, user.balance,
    )
    return user.balance


async def top_up(db: AsyncSession, user_id: str, amount: Any, by_admin: bool = False) -> Decimal:
    if by_admin:
        tx_type, description = TX_ADMIN_CREDIT, "Balance credited by administrator"
    else:
        tx_type, description = TX_TOP_UP, "Wallet top-up"
    try:
        balance = await credit(db, user_id, amount, tx_type, description)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    return balance


async def list_transactions(db: AsyncSession, user_id: str, limit: int = 100) -> List[Transaction]:
    result = await db.execute(
        select(Transaction)
        .where(Transaction.user_id == user_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def ledger_total_cents(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(func.coalesce(func.sum(Transaction.amount_cents), 0))
        .where(Transaction.user_id == user_id)
    )
    return int(result.scalar() or 0)


async def audit(db: AsyncSession, user_id: str) -> Dict[str, Any]:
    """Compare the stored balance against the sum of the user's ledger."""
    user = await get_user(db, user_id)
    await db.refresh(user)
    total = await ledger_total_cents(db, user_id)
    reconciled = user.balance_cents == total
    if not reconciled:
        logger.warning(
            "Ledger mismatch for user %s: balance=%s ledger=%s",
            user_id, user.balance, from_cents(total),
        )
    return {
        "user_id": user_id,
        "balance": user.balance,
        "ledger_total": from_cents(total),
        "reconciled": reconciled,
    }
