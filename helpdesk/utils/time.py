"""Time Utilities - UTC timestamps at MongoDB precision"""
from datetime import datetime, timezone, timedelta


def utc_now() -> datetime:
    """
    Current UTC time, truncated to whole milliseconds

    MongoDB keeps millisecond resolution; truncating up front keeps the
    in-memory value equal to what is read back.
    """
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def spaced(base: datetime, step: int) -> datetime:
    """base + step ms (orders several history entries written by one operation)"""
    return base + timedelta(milliseconds=step)


def days_ago(days: int) -> datetime:
    return utc_now() - timedelta(days=days)


def format_iso(dt: datetime) -> str:
    """ISO 8601 with a Z suffix; naive values are taken as UTC"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")
