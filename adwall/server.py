# adwall/server.py
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import select
from starlette.middleware.cors import CORSMiddleware

from adwall.api import admin, ads, auth, form_schema, root, upload
from adwall.core.config import ADMIN_USERNAME, ADMIN_PASSWORD, LOG_LEVEL, allowed_origins
from adwall.core.database import SessionLocal, engine, init_db
from adwall.core.errors import AdWallError, InsufficientFundsError
from adwall.models.user import User
from adwall.services.auth_service import hash_password
from adwall.services.upload_service import PUBLIC_PREFIX, upload_dir

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logger = logging.getLogger("adwall")


async def ensure_admin_account():
    """Create the admin account if it does not exist."""
    if ADMIN_PASSWORD == "admin1234":
        logger.warning("ADMIN_PASSWORD is using the default value, change it in .env")

    async with SessionLocal() as db:
        existing = (
            await db.execute(select(User).where(User.username == ADMIN_USERNAME))
        ).scalar_one_or_none()
        if existing:
            return
        db.add(User(
            id=str(uuid.uuid4()),
            username=ADMIN_USERNAME,
            password_hash=hash_password(ADMIN_PASSWORD),
            role="admin",
            balance_cents=0,
            created_at=datetime.utcnow(),
        ))
        await db.commit()
        logger.info("Created admin account %s", ADMIN_USERNAME)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Mini Ad Wall API starting up")
    await init_db()
    await ensure_admin_account()
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Database engine disposed")


app = FastAPI(title="Mini Ad Wall API", lifespan=lifespan)


@app.exception_handler(AdWallError)
async def adwall_error_handler(request: Request, exc: AdWallError):
    content = {"detail": exc.detail, "code": exc.code}
    if isinstance(exc, InsufficientFundsError):
        content.update({
            "ad_id": exc.ad_id,
            "balance": str(exc.balance),
            "price": str(exc.price),
        })
    return JSONResponse(status_code=exc.status_code, content=content)


for router in (root.router, auth.router, ads.router, admin.router, upload.router, form_schema.router):
    app.include_router(router)

app.mount(PUBLIC_PREFIX, StaticFiles(directory=str(upload_dir())), name="uploads")

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=allowed_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)
