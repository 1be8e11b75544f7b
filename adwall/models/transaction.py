# /adwall/models/transaction.py
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, ForeignKey, DateTime

from adwall.core.database import Base
from adwall.core.money import from_cents


class Transaction(Base):
    """Wallet ledger - one immutable row per balance change."""
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True)

    # Amount in cents (positive for credit, negative for debit)
    amount_cents: Mapped[int] = mapped_column(Integer)

    # Type: top-up, ad-charge, signup-bonus, admin-credit
    type: Mapped[str] = mapped_column(String(30))

    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    @property
    def amount(self) -> Decimal:
        return from_cents(self.amount_cents)
