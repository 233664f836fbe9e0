from __future__ import annotations

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    surname: str = Field(min_length=1, max_length=100)
    username: str = Field(min_length=1, max_length=50)
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=6, max_length=128)
    timeZone: str | None = Field(default=None, max_length=64)


class UserOut(BaseModel):
    id: int
    name: str
    surname: str
    username: str
    email: str
    timeZone: str | None = None


class SessionOut(BaseModel):
    authenticated: bool
    user: UserOut | None = None
    loginUrl: str | None = None
