"""Registration and login."""

from __future__ import annotations

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from walletbook.core.exceptions import AuthenticationError, StoreError, ValidationError
from walletbook.core.logging import get_logger
from walletbook.core.security import check_password, hash_password
from walletbook.models.user import User
from walletbook.models.wallet import Wallet

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def create_wallet(db: Session, user_id: int) -> Wallet:
    wallet = Wallet(user_id=user_id, balance_cents=0)
    db.add(wallet)
    db.commit()
    return wallet


def find_conflicting_user(db: Session, email: str, username: str) -> User | None:
    return db.scalar(select(User).where(or_(User.email == email, User.username == username)))


def _duplicate_error(existing: User, email: str) -> ValidationError:
    if existing.email == email:
        return ValidationError("Email already registered")
    return ValidationError("Username already exists")


def register_user(
    db: Session,
    *,
    name: str,
    surname: str,
    username: str,
    email: str,
    password: str,
    time_zone: str | None = None,
) -> User:
    email = normalize_email(email)
    username = username.strip()

    existing = find_conflicting_user(db, email, username)
    if existing:
        raise _duplicate_error(existing, email)

    user = User(
        name=name.strip(),
        surname=surname.strip(),
        username=username,
        email=email,
        password_hash=hash_password(password),
        time_zone=time_zone,
    )
    try:
        db.add(user)
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same email or username.
        db.rollback()
        winner = db.scalar(select(User).where(or_(User.email == email, User.username == username)))
        logger.warning("Registration for %s hit a unique constraint: %s", email, exc)
        if winner is None:
            raise StoreError("Could not create the account") from exc
        raise _duplicate_error(winner, email) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Creating user %s failed: %s", email, exc)
        raise StoreError("Could not create the account") from exc
    db.refresh(user)

    try:
        create_wallet(db, user.id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Creating wallet for user %s failed, removing the user: %s", user.id, exc)
        db.delete(user)
        db.commit()
        raise StoreError("Could not create the account wallet") from exc

    logger.info("Registered user %s", user.id)
    return user


def authenticate(db: Session, *, email: str, password: str) -> User:
    """Return the user for valid credentials, upgrading a legacy hash on the way."""
    user = db.scalar(select(User).where(User.email == normalize_email(email)))
    if not user or not user.is_active:
        raise AuthenticationError(INVALID_CREDENTIALS)

    result = check_password(password, user.password_hash)
    if not result.matched:
        raise AuthenticationError(INVALID_CREDENTIALS)

    if result.new_hash is not None:
        try:
            user.password_hash = result.new_hash
            db.add(user)
            db.commit()
            logger.info("Upgraded password hash for user %s from %s", user.id, result.scheme)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("Password hash upgrade failed for user %s: %s", user.id, exc)
            db.refresh(user)

    return user
