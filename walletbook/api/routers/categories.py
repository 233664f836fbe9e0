from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from walletbook.api.deps import get_current_user, get_db
from walletbook.models.user import User
from walletbook.schemas.category import CategoryOut
from walletbook.services import wallet as wallet_service

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryOut])
def list_categories(
    kind: str | None = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
) -> list[CategoryOut]:
    rows = wallet_service.list_categories(db, kind)
    return [CategoryOut(id=r.id, name=r.name, kind=r.kind) for r in rows]
