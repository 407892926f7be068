"""Date manipulation utilities"""

from datetime import datetime, timezone

MONTH_ABBREVIATIONS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def month_key(value: datetime) -> str:
    """Sortable bucket key, e.g. 2024-01"""
    return f"{value.year}-{value.month:02d}"


def month_label(value: datetime) -> str:
    """Display label, e.g. Jan 2024 (locale independent)"""
    return f"{MONTH_ABBREVIATIONS[value.month - 1]} {value.year}"
