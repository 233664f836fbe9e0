from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from walletbook.api.deps import get_current_user, get_db, get_optional_user
from walletbook.core.config import settings
from walletbook.core.security import create_access_token
from walletbook.models.user import User
from walletbook.schemas.auth import LoginRequest, RegisterRequest, SessionOut, TokenResponse, UserOut
from walletbook.services import accounts

router = APIRouter(prefix="/auth", tags=["auth"])


def user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        name=user.name,
        surname=user.surname,
        username=user.username,
        email=user.email,
        timeZone=user.time_zone,
    )


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        secure=bool(settings.auth_cookie_secure),
        samesite=settings.auth_cookie_samesite,
        max_age=int(settings.jwt_expire_minutes) * 60,
        path="/",
    )


@router.post("/register", response_model=UserOut)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> UserOut:
    user = accounts.register_user(
        db,
        name=payload.name,
        surname=payload.surname,
        username=payload.username,
        email=payload.email,
        password=payload.password,
        time_zone=payload.timeZone,
    )
    return user_out(user)


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)) -> TokenResponse:
    user = accounts.authenticate(db, email=payload.email, password=payload.password)
    token = create_access_token(str(user.id))
    _set_session_cookie(response, token)
    return TokenResponse(access_token=token)


@router.post("/logout")
def logout(response: Response) -> dict:
    response.delete_cookie(key=settings.auth_cookie_name, path="/")
    return {"ok": True}


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)) -> UserOut:
    return user_out(current_user)


@router.get("/session", response_model=SessionOut)
def session(user: User | None = Depends(get_optional_user)) -> SessionOut:
    # Called by clients at startup to restore a persisted session; never 401s.
    if user is None:
        return SessionOut(authenticated=False, loginUrl=settings.login_url)
    return SessionOut(authenticated=True, user=user_out(user))
