from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Sequence

from jose import jwt
from passlib.context import CryptContext
from passlib.hash import hex_sha256

from walletbook.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)


class PasswordVerifier:
    """One password hashing scheme that can be checked against a stored hash."""

    name: str = ""

    def hash(self, password: str) -> str:
        raise NotImplementedError

    def verify(self, password: str, password_hash: str) -> bool:
        raise NotImplementedError

    def needs_update(self, password_hash: str) -> bool:
        return False


class BcryptVerifier(PasswordVerifier):
    name = "bcrypt"

    def __init__(self, context: CryptContext = pwd_context) -> None:
        self.context = context

    def hash(self, password: str) -> str:
        return self.context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        if not self.context.identify(password_hash, required=False):
            return False
        return self.context.verify(password, password_hash)

    def needs_update(self, password_hash: str) -> bool:
        return self.context.needs_update(password_hash)


class Sha256HexVerifier(PasswordVerifier):
    """Unsalted hex SHA-256, used by accounts created before bcrypt."""

    name = "sha256-hex"

    def hash(self, password: str) -> str:
        return hex_sha256.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        if not hex_sha256.identify(password_hash):
            return False
        return hex_sha256.verify(password, password_hash)


class StringHash32Verifier(PasswordVerifier):
    """The oldest scheme: a 32-bit ``h * 31 + c`` string hash over UTF-16 code units."""

    name = "string-hash-32"

    def hash(self, password: str) -> str:
        h = 0
        data = password.encode("utf-16-le")
        for i in range(0, len(data), 2):
            h = (h * 31 + int.from_bytes(data[i : i + 2], "little")) & 0xFFFFFFFF
        if h >= 0x80000000:
            h -= 0x100000000
        return format(abs(h), "x").zfill(8)

    def verify(self, password: str, password_hash: str) -> bool:
        return self.hash(password) == password_hash


# Order matters: the first entry is the canonical scheme every match is upgraded to.
PASSWORD_VERIFIERS: tuple[PasswordVerifier, ...] = (
    BcryptVerifier(),
    Sha256HexVerifier(),
    StringHash32Verifier(),
)


@dataclass(frozen=True)
class PasswordCheck:
    matched: bool
    scheme: str | None = None
    # Set when the stored hash should be replaced by this canonical hash.
    new_hash: str | None = None


def check_password(
    password: str,
    password_hash: str,
    verifiers: Sequence[PasswordVerifier] = PASSWORD_VERIFIERS,
) -> PasswordCheck:
    canonical = verifiers[0]
    for verifier in verifiers:
        if not verifier.verify(password, password_hash):
            continue
        if verifier is not canonical or verifier.needs_update(password_hash):
            return PasswordCheck(matched=True, scheme=verifier.name, new_hash=canonical.hash(password))
        return PasswordCheck(matched=True, scheme=verifier.name)
    return PasswordCheck(matched=False)


def hash_password(password: str) -> str:
    return PASSWORD_VERIFIERS[0].hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return check_password(password, password_hash).matched


def create_access_token(subject: str) -> str:
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=settings.jwt_expire_minutes)
    to_encode = {"sub": subject, "exp": expire}
    return jwt.encode(to_encode, settings.jwt_secret, algorithm="HS256")


def decode_access_token(token: str) -> str:
    payload = jwt.decode(token, settings.jwt_secret, algorithms=["HS256"])
    sub = payload.get("sub")
    if not sub:
        raise ValueError("Missing sub")
    return str(sub)
