"""Date manipulation utilities"""

from datetime import date, datetime, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def period_start(period: str, today: date) -> date:
    """First day of the current month, quarter, or year"""
    if period == "quarterly":
        quarter_start_month = ((today.month - 1) // 3) * 3 + 1
        return date(today.year, quarter_start_month, 1)
    if period == "yearly":
        return date(today.year, 1, 1)
    return date(today.year, today.month, 1)


def days_ago(days: int, today: date | None = None) -> date:
    return (today or date.today()) - timedelta(days=days)


def lookback_range(days: int, today: date | None = None) -> tuple[date, date]:
    """(start, end) covering the last `days` days, inclusive of today"""
    end = today or date.today()
    return end - timedelta(days=days), end


def is_same_month(day: date, reference: date) -> bool:
    return day.year == reference.year and day.month == reference.month


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops the offset)"""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
