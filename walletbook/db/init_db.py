from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from walletbook.core.logging import get_logger
from walletbook.models.base import Base
from walletbook.models.category import EXPENSE, INCOME, Category
from walletbook.models.transaction import Transaction  # noqa: F401
from walletbook.models.user import User  # noqa: F401
from walletbook.models.wallet import Wallet  # noqa: F401

logger = get_logger(__name__)

DEFAULT_CATEGORIES: list[tuple[str, str]] = [
    ("Salary", INCOME),
    ("Investments", INCOME),
    ("Gifts", INCOME),
    ("Freelance", INCOME),
    ("Savings", INCOME),
    ("Other", INCOME),
    ("Food", EXPENSE),
    ("Transport", EXPENSE),
    ("Entertainment", EXPENSE),
    ("Services", EXPENSE),
    ("Shopping", EXPENSE),
    ("Other", EXPENSE),
]


def create_tables(db: Session) -> None:
    """Create missing tables directly from the models (local runs and tests)."""
    Base.metadata.create_all(bind=db.get_bind())


def ensure_seed_data(db: Session) -> int:
    """Insert the default categories when the table is empty. Returns rows inserted."""
    if db.scalar(select(Category.id).limit(1)) is not None:
        return 0

    db.add_all([Category(name=name, kind=kind) for name, kind in DEFAULT_CATEGORIES])
    db.commit()
    logger.info("Seeded %d default categories", len(DEFAULT_CATEGORIES))
    return len(DEFAULT_CATEGORIES)
