from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class CategoryAmount(BaseModel):
    category: str
    amountCents: int
    # Share of the kind's month total, in percent with one decimal.
    sharePercent: float = 0.0


class KindSummary(BaseModel):
    totalCents: int
    monthCents: int
    breakdown: list[CategoryAmount] = Field(default_factory=list)


class SpendingInsight(BaseModel):
    kind: Literal["top_expense", "comparison"]
    message: str
    category: str
    percent: float
    comparedTo: str | None = None


class WalletOut(BaseModel):
    balanceCents: int
    month: str
    income: KindSummary
    expense: KindSummary
    recommendations: list[str] = Field(default_factory=list)
    insights: list[SpendingInsight] = Field(default_factory=list)


class ReconcileOut(BaseModel):
    storedBalanceCents: int | None
    derivedBalanceCents: int
    driftCents: int | None
    consistent: bool
