"""Balance-consistency workflow.

Every mutation goes through the store procedures and is followed by a full
re-fetch of the user's transactions. The balance and the category
breakdowns are always derived from that list, never cached.
"""

from __future__ import annotations

import re
from collections import defaultdict
from datetime import datetime, timezone, tzinfo
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.exc import DataError, SQLAlchemyError
from sqlalchemy.orm import Session

from walletbook.core.config import settings
from walletbook.core.datetime_utils import as_utc, resolve_zone, same_calendar_month
from walletbook.core.exceptions import (
    OverdraftConfirmationRequired,
    PermissionDeniedError,
    StoreError,
    ValidationError,
)
from walletbook.core.logging import get_logger
from walletbook.db import procedures
from walletbook.models.category import EXPENSE, INCOME, KINDS, Category
from walletbook.models.transaction import Transaction
from walletbook.models.user import User
from walletbook.models.wallet import Wallet
from walletbook.schemas.wallet import CategoryAmount, KindSummary, ReconcileOut, SpendingInsight, WalletOut

logger = get_logger(__name__)

MAX_AMOUNT_CENTS = 2**31 - 1
MAX_AMOUNT = Decimal(MAX_AMOUNT_CENTS) / 100

NEGATIVE_BALANCE_TIPS = [
    "Cut back on non-essential spending",
    "Look for additional sources of income",
    "Set up a monthly budget",
    "Define savings goals",
]

_NON_NUMERIC = re.compile(r"[^0-9.]")
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d+)?")


def parse_amount(raw: str | int | float | None) -> int:
    """Parse user-entered money into positive cents.

    Anything that is not a digit or a dot is dropped first, so
    ``"S/. 1,250.50abc"`` parses to 125050.
    """

    invalid = ValidationError("Amount must be a valid number greater than 0")

    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        try:
            value = Decimal(str(raw))
        except InvalidOperation:
            raise invalid from None
        if not value.is_finite():
            raise invalid
    else:
        text = str(raw).strip() if raw is not None else ""
        if not text:
            raise ValidationError("Please enter an amount")
        cleaned = _NON_NUMERIC.sub("", text).lstrip(".")
        match = _LEADING_NUMBER.match(cleaned)
        if not match:
            raise invalid
        value = Decimal(match.group())

    # Bound before quantizing: quantize fails past the context precision.
    if value > MAX_AMOUNT:
        raise ValidationError("Amount is too large")
    cents = int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if cents <= 0:
        raise invalid
    if cents > MAX_AMOUNT_CENTS:
        raise ValidationError("Amount is too large")
    return cents


def fetch_transactions(db: Session, user_id: int, kind: str | None = None) -> list[Transaction]:
    stmt = select(Transaction).where(Transaction.user_id == user_id)
    if kind is not None:
        stmt = stmt.where(Transaction.kind == kind)
    stmt = stmt.order_by(Transaction.occurred_at.desc(), Transaction.id.desc())

    try:
        return list(db.scalars(stmt).unique().all())
    except DataError as exc:
        # A malformed identifier reads as "no rows" rather than an error.
        db.rollback()
        logger.warning("Malformed identifier loading transactions for user %r, using empty list: %s", user_id, exc)
        return []
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Loading transactions for user %r failed: %s", user_id, exc)
        raise StoreError("Could not load transactions", {"reason": str(getattr(exc, "orig", None) or exc)}) from exc


def compute_balance(transactions: Iterable[Transaction]) -> int:
    return sum(t.signed_cents for t in transactions)


def aggregate_categories(
    transactions: Iterable[Transaction],
    kind: str,
    now: datetime,
    zone: tzinfo = timezone.utc,
) -> list[CategoryAmount]:
    """Sum this calendar month's transactions of ``kind`` per category name."""

    totals: dict[str, int] = defaultdict(int)
    for t in transactions:
        if t.kind != kind or not same_calendar_month(t.occurred_at, now, zone):
            continue
        totals[t.category.name] += t.amount_cents

    ordered = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    month_total = sum(totals.values())
    return [
        CategoryAmount(category=name, amountCents=amount, sharePercent=_percent(amount, month_total))
        for name, amount in ordered
    ]


def _percent(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part * 100 / whole, 1)


def spending_insights(expense_breakdown: list[CategoryAmount]) -> list[SpendingInsight]:
    """Top expense category and how it compares with the runner-up.

    ``expense_breakdown`` is expected in the order ``aggregate_categories``
    returns it, largest first.
    """

    if not expense_breakdown:
        return []

    top = expense_breakdown[0]
    insights = [
        SpendingInsight(
            kind="top_expense",
            message=f"Your top expense category is {top.category} ({top.sharePercent:.1f}% of the total)",
            category=top.category,
            percent=top.sharePercent,
        )
    ]

    if len(expense_breakdown) >= 2:
        second = expense_breakdown[1]
        gap = _percent(top.amountCents - second.amountCents, top.amountCents)
        insights.append(
            SpendingInsight(
                kind="comparison",
                message=f"You spend {gap:.1f}% more on {top.category} than on {second.category}",
                category=top.category,
                percent=gap,
                comparedTo=second.category,
            )
        )
    return insights


def _kind_summary(transactions: list[Transaction], kind: str, now: datetime, zone: tzinfo) -> KindSummary:
    breakdown = aggregate_categories(transactions, kind, now, zone)
    return KindSummary(
        totalCents=sum(t.amount_cents for t in transactions if t.kind == kind),
        monthCents=sum(item.amountCents for item in breakdown),
        breakdown=breakdown,
    )


def user_zone(user: User) -> tzinfo:
    return resolve_zone(user.time_zone, settings.default_time_zone)


def build_snapshot(db: Session, user: User, now: datetime | None = None) -> WalletOut:
    now = now or datetime.now(timezone.utc)
    zone = user_zone(user)
    transactions = fetch_transactions(db, user.id)

    balance = compute_balance(transactions)
    local_now = as_utc(now).astimezone(zone)
    expense = _kind_summary(transactions, EXPENSE, now, zone)

    return WalletOut(
        balanceCents=balance,
        month=f"{local_now.year:04d}-{local_now.month:02d}",
        income=_kind_summary(transactions, INCOME, now, zone),
        expense=expense,
        recommendations=list(NEGATIVE_BALANCE_TIPS) if balance < 0 else [],
        insights=spending_insights(expense.breakdown),
    )


def list_transactions(
    db: Session,
    user: User,
    kind: str = "all",
    scope: str = "all",
    now: datetime | None = None,
) -> list[Transaction]:
    if kind not in ("all", *KINDS):
        raise ValidationError("Invalid kind")
    if scope not in ("all", "month"):
        raise ValidationError("Invalid scope")

    rows = fetch_transactions(db, user.id, None if kind == "all" else kind)
    if scope == "month":
        now = now or datetime.now(timezone.utc)
        zone = user_zone(user)
        rows = [r for r in rows if same_calendar_month(r.occurred_at, now, zone)]
    return rows


def list_categories(db: Session, kind: str | None = None) -> list[Category]:
    stmt = select(Category)
    if kind is not None:
        if kind not in KINDS:
            raise ValidationError("Invalid kind")
        stmt = stmt.where(Category.kind == kind)
    return list(db.scalars(stmt.order_by(Category.name.asc(), Category.id.asc())).all())


def _resolve_category(db: Session, category_id: int | None, kind: str) -> Category:
    if category_id is None:
        raise ValidationError("Please select a category")
    category = db.get(Category, category_id)
    if category is None:
        raise ValidationError("Please select a category")
    if category.kind != kind:
        raise ValidationError("Category does not match the transaction kind")
    return category


def add_transaction(
    db: Session,
    user: User,
    *,
    kind: str,
    amount: str | int | float | None,
    category_id: int | None,
    description: str | None = None,
    confirm_overdraft: bool = False,
) -> tuple[Transaction, WalletOut]:
    if kind not in KINDS:
        raise ValidationError("Invalid kind")
    amount_cents = parse_amount(amount)
    category = _resolve_category(db, category_id, kind)

    if kind == EXPENSE:
        balance = compute_balance(fetch_transactions(db, user.id))
        if amount_cents > balance and not confirm_overdraft:
            raise OverdraftConfirmationRequired(
                "This expense exceeds your current balance. Confirm to continue with a negative balance.",
                {"amountCents": amount_cents, "balanceCents": balance},
            )

    row = procedures.create_transaction(
        db,
        user_id=user.id,
        category_id=category.id,
        amount_cents=amount_cents,
        kind=kind,
        description=(description or "").strip() or None,
    )
    logger.info("User %s added %s of %d cents (tx %s)", user.id, kind, amount_cents, row.id)

    return row, build_snapshot(db, user)


def remove_transaction(db: Session, user: User, transaction_id: int) -> WalletOut:
    owned = db.scalar(
        select(Transaction.id).where(Transaction.id == transaction_id, Transaction.user_id == user.id)
    )
    if owned is None:
        logger.warning("User %s tried to delete transaction %s they do not own", user.id, transaction_id)
        raise PermissionDeniedError("You do not have permission to delete this transaction")

    procedures.delete_transaction(db, user_id=user.id, transaction_id=transaction_id)
    logger.info("User %s deleted transaction %s", user.id, transaction_id)

    return build_snapshot(db, user)


def reconcile(db: Session, user: User) -> ReconcileOut:
    """Compare the stored wallet balance with the derived one."""
    derived = compute_balance(fetch_transactions(db, user.id))
    stored = db.scalar(select(Wallet.balance_cents).where(Wallet.user_id == user.id))
    if stored is None:
        return ReconcileOut(storedBalanceCents=None, derivedBalanceCents=derived, driftCents=None, consistent=False)

    drift = int(stored) - derived
    if drift:
        logger.warning("Wallet drift for user %s: stored=%s derived=%s", user.id, stored, derived)
    return ReconcileOut(storedBalanceCents=int(stored), derivedBalanceCents=derived, driftCents=drift, consistent=drift == 0)
