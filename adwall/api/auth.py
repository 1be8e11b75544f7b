# FILE: adwall/api/auth.py
import logging
import uuid
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adwall.core.config import ADMIN_USERNAME, SIGNUP_BONUS
from adwall.core.database import get_db
from adwall.models.user import User
from adwall.schemas.auth import UserCreate, UserLogin, ProfileUpdate, TokenResponse, UserResponse
from adwall.schemas.wallet import TopUpRequest, BalanceResponse, TransactionResponse
from adwall.services import ad_service, ledger_service
from adwall.services.auth_service import hash_password, verify_password, create_token
from adwall.api.deps import get_current_user

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger("adwall.auth")


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        role=user.role,
        balance=user.balance,
        created_at=user.created_at.replace(tzinfo=timezone.utc).isoformat(),
    )


@router.post("/register", response_model=TokenResponse)
async def register(data: UserCreate, db: AsyncSession = Depends(get_db)):
    existing = (await db.execute(select(User).where(User.username == data.username))).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=400, detail="Username already taken")

    user = User(
        id=str(uuid.uuid4()),
        username=data.username,
        password_hash=hash_password(data.password),
        role="admin" if data.username == ADMIN_USERNAME else "user",
        balance_cents=0,
        created_at=datetime.utcnow(),
    )
    db.add(user)
    await db.flush()
    if SIGNUP_BONUS > 0:
        await ledger_service.credit(
            db, user.id, SIGNUP_BONUS, ledger_service.TX_SIGNUP_BONUS, "Welcome bonus"
        )
    await db.commit()
    await db.refresh(user)

    logger.info("Registered user %s (%s)", user.username, user.role)
    return TokenResponse(
        token=create_token(user.id, user.username, user.role),
        user=_user_response(user),
    )


@router.post("/login", response_model=TokenResponse)
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    user = (await db.execute(select(User).where(User.username == data.username))).scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=400, detail="User does not exist")
    if not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=400, detail="Wrong password")

    return TokenResponse(
        token=create_token(user.id, user.username, user.role),
        user=_user_response(user),
    )


@router.get("/me", response_model=UserResponse)
async def auth_me(user=Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    row = await ledger_service.get_user(db, user["id"])
    return _user_response(row)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
        data: ProfileUpdate,
        user=Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
):
    row = await ledger_service.get_user(db, user["id"])

    if data.username and data.username != row.username:
        taken = (
            await db.execute(select(User).where(User.username == data.username))
        ).scalar_one_or_none()
        if taken:
            raise HTTPException(status_code=400, detail="Username already taken")
        row.username = data.username
        await ad_service.rename_author(db, row.id, data.username)

    if data.password:
        row.password_hash = hash_password(data.password)

    await db.commit()
    await db.refresh(row)
    return _user_response(row)


@router.get("/transactions", response_model=List[TransactionResponse])
async def my_transactions(
        limit: int = 100,
        user=Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
):
    rows = await ledger_service.list_transactions(db, user["id"], limit=limit)
    return [TransactionResponse.model_validate(t) for t in rows]


@router.post("/topup", response_model=BalanceResponse)
async def top_up_me(
        data: TopUpRequest,
        user=Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
):
    balance = await ledger_service.top_up(db, user["id"], data.amount)
    return BalanceResponse(balance=balance)
