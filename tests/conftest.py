import os
import tempfile
import uuid
from decimal import Decimal
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="adwall-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP / 'test.db'}"
os.environ["UPLOAD_DIR"] = str(_TMP / "uploads")
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SIGNUP_BONUS"] = "100"
os.environ["ADMIN_USERNAME"] = "admin"

import httpx
import pytest
import pytest_asyncio

from adwall.core.database import Base, SessionLocal, engine
from adwall.core.money import to_cents
from adwall.models.ad import Ad
from adwall.models.user import User
from adwall.server import app
from adwall.services import ledger_service
from adwall.services.auth_service import hash_password

import adwall.models  # noqa: F401


@pytest_asyncio.fixture(autouse=True)
async def fresh_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest_asyncio.fixture
async def session():
    async with SessionLocal() as db:
        yield db


@pytest_asyncio.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def register(client, username="alice", password="secret123"):
    resp = await client.post("/api/auth/register", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    return body["token"], body["user"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def ad_payload(**overrides):
    data = {
        "title": "Coffee beans",
        "description": "Fresh roast every morning",
        "image_urls": ["/uploads/beans.png"],
        "video_urls": [],
        "target_url": "https://example.com/beans",
        "price": 30,
        "category": "Lifestyle",
    }
    data.update(overrides)
    return data


async def make_user(db, username="owner", balance="0", role="user"):
    user = User(
        id=str(uuid.uuid4()),
        username=username,
        password_hash=hash_password("pw"),
        role=role,
        balance_cents=0,
    )
    db.add(user)
    await db.flush()
    if Decimal(balance) > 0:
        await ledger_service.credit(db, user.id, balance, ledger_service.TX_TOP_UP)
    await db.commit()
    return user


async def make_ad(db, owner_id, price="10", status="Active", title="Ad"):
    ad = Ad(
        user_id=owner_id,
        title=title,
        description="desc",
        author="owner",
        image_urls=["/uploads/a.png"],
        video_urls=[],
        target_url="https://example.com",
        price_cents=to_cents(price),
        category="Other",
        clicks=0,
        likes=0,
        status=status,
    )
    db.add(ad)
    await db.commit()
    await db.refresh(ad)
    return ad
