# FILE: adwall/api/admin.py
"""Admin wallet operations."""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adwall.api.deps import require_admin
from adwall.core.database import get_db
from adwall.models.user import User
from adwall.schemas.wallet import AdminUserItem, BalanceResponse, LedgerAuditResponse, TopUpRequest
from adwall.services import ledger_service

router = APIRouter(prefix="/api/admin", tags=["admin"])
logger = logging.getLogger("adwall.admin")


@router.get("/users", response_model=List[AdminUserItem])
async def list_users(_admin=Depends(require_admin), db: AsyncSession = Depends(get_db)):
    rows = (await db.execute(select(User).order_by(User.created_at.asc()))).scalars().all()
    return [AdminUserItem.model_validate(u) for u in rows]


@router.post("/users/{user_id}/topup", response_model=BalanceResponse)
async def admin_top_up(
        user_id: str,
        data: TopUpRequest,
        admin=Depends(require_admin),
        db: AsyncSession = Depends(get_db),
):
    balance = await ledger_service.top_up(db, user_id, data.amount, by_admin=True)
    logger.info("Admin %s credited %s to user %s", admin["username"], data.amount, user_id)
    return BalanceResponse(balance=balance)


@router.get("/users/{user_id}/audit", response_model=LedgerAuditResponse)
async def audit_user(
        user_id: str,
        _admin=Depends(require_admin),
        db: AsyncSession = Depends(get_db),
):
    return LedgerAuditResponse(**await ledger_service.audit(db, user_id))
