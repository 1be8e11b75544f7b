from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Integer, Boolean, ForeignKey, DateTime, JSON

from adwall.core.database import Base
from adwall.core.money import from_cents

AD_STATUSES = ("Active", "Paused", "Draft", "Rejected")
ANONYMOUS_AUTHOR = "Anonymous"
DEFAULT_CATEGORY = "Other"

class Ad(Base):
    __tablename__ = "ads"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # owner; NULL once the owning account is gone
    user_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True
    )

    title: Mapped[str] = mapped_column(String(100))
    description: Mapped[str] = mapped_column(Text)
    # display name, ANONYMOUS_AUTHOR when is_anonymous
    author: Mapped[str] = mapped_column(String(50))
    is_anonymous: Mapped[bool] = mapped_column(Boolean, default=False)

    image_urls: Mapped[list] = mapped_column(JSON, default=list)
    video_urls: Mapped[list] = mapped_column(JSON, default=list)
    target_url: Mapped[str] = mapped_column(String(255))

    # charged per click, in cents
    price_cents: Mapped[int] = mapped_column(Integer)
    category: Mapped[str] = mapped_column(String(50), default=DEFAULT_CATEGORY)

    clicks: Mapped[int] = mapped_column(Integer, default=0)
    likes: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(20), default="Active", index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def price(self) -> Decimal:
        return from_cents(self.price_cents)
