from __future__ import annotations

from typing import Iterator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from walletbook.core.config import settings
from walletbook.core.exceptions import SessionRequiredError
from walletbook.core.security import decode_access_token
from walletbook.db.session import SessionLocal
from walletbook.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _extract_token(request: Request, cred: HTTPAuthorizationCredentials | None) -> str | None:
    if cred and cred.credentials:
        return cred.credentials
    return request.cookies.get(settings.auth_cookie_name)


def resolve_session_user(db: Session, token: str | None) -> User | None:
    """Return the live user behind ``token``, or None when there is no usable session."""
    if not token:
        return None

    try:
        user_id = int(decode_access_token(token))
    except (JWTError, ValueError):
        return None

    user = db.get(User, user_id)
    if not user or not user.is_active:
        return None
    return user


def get_optional_user(
    request: Request,
    cred: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User | None:
    return resolve_session_user(db, _extract_token(request, cred))


def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
    if user is None:
        raise SessionRequiredError("Not authenticated", {"loginUrl": settings.login_url})
    return user
