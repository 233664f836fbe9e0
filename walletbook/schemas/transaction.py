from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from walletbook.schemas.wallet import WalletOut


class TransactionCreate(BaseModel):
    kind: str = Field(pattern="^(income|expense)$")
    # Raw user input such as "S/. 1,250.50"; parsed by the service layer.
    amount: str | int | float
    categoryId: int | None = None
    description: str | None = Field(default=None, max_length=500)
    # Must be true to record an expense larger than the current balance.
    confirmOverdraft: bool = False


class TransactionOut(BaseModel):
    id: int
    kind: str
    amountCents: int
    categoryId: int
    categoryName: str
    description: str | None
    occurredAt: datetime


class MutationOut(BaseModel):
    transaction: TransactionOut | None = None
    wallet: WalletOut
