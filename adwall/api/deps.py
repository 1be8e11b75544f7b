# FILE: adwall/api/deps.py

import jwt
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adwall.core.database import get_db
from adwall.models.user import User
from adwall.services.auth_service import decode_token

security = HTTPBearer(auto_error=False)


async def _user_from_token(token: str, db: AsyncSession) -> dict:
    payload = decode_token(token)

    user_id = payload.get("user_id") or payload.get("id")
    if not user_id or not isinstance(user_id, str):
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = (await db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    return {
        "id": user.id,
        "username": user.username,
        "role": user.role,
    }


async def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(security),
        db: AsyncSession = Depends(get_db),
):
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        return await _user_from_token(credentials.credentials, db)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


async def get_optional_user(
        credentials: HTTPAuthorizationCredentials = Depends(security),
        db: AsyncSession = Depends(get_db),
) -> Optional[dict]:
    """Guests get None; a bad token is treated like no token."""
    if not credentials or not credentials.credentials:
        return None
    try:
        return await _user_from_token(credentials.credentials, db)
    except (jwt.InvalidTokenError, HTTPException):
        return None


async def require_admin(user=Depends(get_current_user)):
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin only")
    return user
