from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class TopUpRequest(BaseModel):
    amount: Decimal = Field(gt=0)


class BalanceResponse(BaseModel):
    balance: Decimal


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    amount: Decimal
    type: str
    description: Optional[str] = None
    created_at: datetime


class LedgerAuditResponse(BaseModel):
    user_id: str
    balance: Decimal
    ledger_total: Decimal
    reconciled: bool


class AdminUserItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    username: str
    role: str
    balance: Decimal
