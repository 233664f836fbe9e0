from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from walletbook.models.base import Base
from walletbook.models.category import Category


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_transactions_amount_positive"),
        CheckConstraint("kind IN ('income', 'expense')", name="ck_transactions_kind"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    category_id: Mapped[int] = mapped_column(Integer, ForeignKey("categories.id"), index=True)

    # 'income' | 'expense'
    kind: Mapped[str] = mapped_column(String(10), index=True)

    amount_cents: Mapped[int] = mapped_column(Integer)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # UTC, timezone-naive
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), index=True)

    category: Mapped[Category] = relationship(lazy="joined")

    @property
    def signed_cents(self) -> int:
        return self.amount_cents if self.kind == "income" else -self.amount_cents
