from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from walletbook.core.logging import get_logger

logger = get_logger(__name__)


def utcnow_naive() -> datetime:
    """Timestamps are stored as UTC in timezone-naive columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc(dt: datetime) -> datetime:
    """Treat a DB-stored UTC-naive datetime as UTC-aware for API responses."""

    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc)

    return dt.replace(tzinfo=timezone.utc)


def resolve_zone(name: str | None, default: str = "UTC") -> tzinfo:
    for candidate in (name, default):
        if not candidate:
            continue
        if candidate.upper() == "UTC":
            return timezone.utc
        try:
            return ZoneInfo(candidate)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown time zone %r, falling back", candidate)
    return timezone.utc


def same_calendar_month(dt: datetime, now: datetime, zone: tzinfo) -> bool:
    """Whether ``dt`` falls in the same (year, month) as ``now`` when both are viewed in ``zone``."""

    local = as_utc(dt).astimezone(zone)
    ref = as_utc(now).astimezone(zone)
    return (local.year, local.month) == (ref.year, ref.month)
