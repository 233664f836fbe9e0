from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from walletbook.api.deps import get_current_user, get_db
from walletbook.models.user import User
from walletbook.schemas.wallet import ReconcileOut, WalletOut
from walletbook.services import wallet as wallet_service

router = APIRouter(prefix="/wallet", tags=["wallet"])


@router.get("", response_model=WalletOut)
def get_wallet(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> WalletOut:
    return wallet_service.build_snapshot(db, current_user)


@router.get("/reconcile", response_model=ReconcileOut)
def reconcile_wallet(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ReconcileOut:
    return wallet_service.reconcile(db, current_user)
