"""Store procedures for transaction writes.

Each procedure runs as one database transaction: the transaction row and
the stored wallet balance change together or not at all.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from walletbook.core.datetime_utils import utcnow_naive
from walletbook.core.exceptions import NotFoundError, StoreError
from walletbook.core.logging import get_logger
from walletbook.models.transaction import Transaction
from walletbook.models.wallet import Wallet

logger = get_logger(__name__)


def _wallet_for_update(db: Session, user_id: int) -> Wallet:
    wallet = db.scalar(select(Wallet).where(Wallet.user_id == user_id).with_for_update())
    if wallet is None:
        # Accounts registered before wallets existed get one on first write.
        wallet = Wallet(user_id=user_id, balance_cents=0)
        db.add(wallet)
    return wallet


def create_transaction(
    db: Session,
    *,
    user_id: int,
    category_id: int,
    amount_cents: int,
    kind: str,
    description: str | None,
) -> Transaction:
    try:
        row = Transaction(
            user_id=user_id,
            category_id=category_id,
            kind=kind,
            amount_cents=amount_cents,
            description=description,
            occurred_at=utcnow_naive(),
        )
        db.add(row)

        wallet = _wallet_for_update(db, user_id)
        wallet.balance_cents = (wallet.balance_cents or 0) + row.signed_cents

        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("create_transaction failed for user %s: %s", user_id, exc)
        raise StoreError("Could not save the transaction", {"reason": str(getattr(exc, "orig", None) or exc)}) from exc

    db.refresh(row)
    return row


def delete_transaction(db: Session, *, user_id: int, transaction_id: int) -> None:
    try:
        row = db.scalar(
            select(Transaction).where(Transaction.id == transaction_id, Transaction.user_id == user_id)
        )
        if row is None:
            raise NotFoundError("Transaction not found")

        wallet = _wallet_for_update(db, user_id)
        wallet.balance_cents = (wallet.balance_cents or 0) - row.signed_cents

        db.delete(row)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("delete_transaction failed for user %s, tx %s: %s", user_id, transaction_id, exc)
        raise StoreError("Could not delete the transaction", {"reason": str(getattr(exc, "orig", None) or exc)}) from exc
