from __future__ import annotations

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from walletbook.models.base import Base

INCOME = "income"
EXPENSE = "expense"
KINDS = (INCOME, EXPENSE)


class Category(Base):
    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("name", "kind", name="uq_categories_name_kind"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    name: Mapped[str] = mapped_column(String(100))

    # 'income' | 'expense'
    kind: Mapped[str] = mapped_column(String(10), index=True)
