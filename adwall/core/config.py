# adwall/core/config.py
import os
from decimal import Decimal
from pathlib import Path
from typing import List, Optional
from dotenv import load_dotenv

# ================== ENV ==================

ROOT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(ROOT_DIR / "adwall/.env")

def env(*names: str, default: Optional[str] = None) -> str:
    for n in names:
        v = os.environ.get(n)
        if v is not None and str(v).strip() != "":
            return v
    if default is not None:
        return default
    raise KeyError(f"Missing required env var. Tried: {', '.join(names)}")

# ================== JWT ==================

JWT_SECRET = env("JWT_SECRET", default="mini-ad-wall-secret-key")
JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_HOURS = int(env("JWT_EXPIRATION_HOURS", default="24"))

# ================== WALLET / BILLING ==================

# Promotional credit granted at registration
SIGNUP_BONUS = Decimal(env("SIGNUP_BONUS", default="100"))

# score = price + price * clicks * BID_SCORE_WEIGHT
BID_SCORE_WEIGHT = float(env("BID_SCORE_WEIGHT", default="0.42"))

# ================== ACCOUNTS ==================

ADMIN_USERNAME = env("ADMIN_USERNAME", default="admin")
ADMIN_PASSWORD = env("ADMIN_PASSWORD", default="admin1234")

# ================== UPLOADS ==================

UPLOAD_DIR = Path(env("UPLOAD_DIR", default=str(ROOT_DIR / "uploads")))
MAX_UPLOAD_BYTES = int(env("MAX_UPLOAD_MB", default="500")) * 1024 * 1024

# ================== HTTP ==================

def allowed_origins() -> List[str]:
    raw = env("ALLOWED_ORIGINS", default="*")
    return [o.strip() for o in raw.split(",") if o.strip()]

LOG_LEVEL = env("LOG_LEVEL", default="INFO").upper()

# ================== DATABASE ==================
# SQLite for local development, anything SQLAlchemy async supports otherwise

def get_database_url() -> str:
    """Get database URL - DATABASE_URL or a local SQLite file."""
    url = os.environ.get("DATABASE_URL", "")
    if url:
        return url

    db_path = ROOT_DIR / "adwall" / "adwall.db"
    return f"sqlite+aiosqlite:///{db_path}"
