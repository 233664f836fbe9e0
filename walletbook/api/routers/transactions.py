from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from walletbook.api.deps import get_current_user, get_db
from walletbook.core.datetime_utils import as_utc
from walletbook.models.transaction import Transaction
from walletbook.models.user import User
from walletbook.schemas.transaction import MutationOut, TransactionCreate, TransactionOut
from walletbook.services import wallet as wallet_service

router = APIRouter(prefix="/transactions", tags=["transactions"])


def transaction_out(row: Transaction) -> TransactionOut:
    return TransactionOut(
        id=row.id,
        kind=row.kind,
        amountCents=row.amount_cents,
        categoryId=row.category_id,
        categoryName=row.category.name,
        description=row.description,
        occurredAt=as_utc(row.occurred_at),
    )


@router.get("", response_model=list[TransactionOut])
def list_transactions(
    kind: str = "all",
    scope: str = "all",
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[TransactionOut]:
    rows = wallet_service.list_transactions(db, current_user, kind=kind, scope=scope)
    return [transaction_out(r) for r in rows]


@router.post("", response_model=MutationOut)
def create_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MutationOut:
    row, snapshot = wallet_service.add_transaction(
        db,
        current_user,
        kind=payload.kind,
        amount=payload.amount,
        category_id=payload.categoryId,
        description=payload.description,
        confirm_overdraft=payload.confirmOverdraft,
    )
    return MutationOut(transaction=transaction_out(row), wallet=snapshot)


@router.delete("/{tx_id}", response_model=MutationOut)
def delete_transaction(
    tx_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MutationOut:
    snapshot = wallet_service.remove_transaction(db, current_user, tx_id)
    return MutationOut(wallet=snapshot)
