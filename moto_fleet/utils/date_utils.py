"""Date manipulation utilities"""

from datetime import date, datetime, timezone
from typing import Optional


def days_since(past: date, today: Optional[date] = None) -> int:
    """Whole days elapsed from past to today (defaults to the current date)"""
    if today is None:
        today = date.today()
    return (today - past).days


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)
