from __future__ import annotations

from sqlalchemy import ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from walletbook.models.base import Base


class Wallet(Base):
    __tablename__ = "wallets"

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)

    # Maintained by the store procedures. The displayed balance is always
    # derived from transactions; this value is only used for reconciliation.
    balance_cents: Mapped[int] = mapped_column(Integer, default=0)
