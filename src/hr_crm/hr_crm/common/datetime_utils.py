from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

from ..core.enums import DashboardRange
from ..core.exceptions import ValidationError

IST = timezone(timedelta(hours=5, minutes=30), name="IST")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value, field_name: str = "Date") -> datetime:
    """Parse an ISO 8601 date or datetime into a naive local datetime.

    Aware values are converted to local time first so they compare with
    ``now_local()``.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        raw = str(value or "").strip()
        if not raw:
            raise ValidationError(f"{field_name} is required")
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            raise ValidationError(f"{field_name} must be a valid ISO 8601 date")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_hhmm(value: Optional[str], field_name: str = "Time") -> str:
    raw = (value or "").strip()
    try:
        return datetime.strptime(raw, "%H:%M").strftime("%H:%M")
    except ValueError:
        raise ValidationError(f"{field_name} must be HH:MM")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch it easily.
    """
    return datetime.now()


def to_ist(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(IST)


def from_ist(value: datetime) -> datetime:
    """Convert an IST wall-clock datetime back into naive local time."""
    return value.replace(tzinfo=IST).astimezone().replace(tzinfo=None)


def ist_day_window(now: datetime) -> Tuple[datetime, datetime]:
    """[start, end) of the IST calendar day containing ``now``, as naive local datetimes."""
    today_ist = to_ist(now).date()
    start = datetime.combine(today_ist, time.min)
    return from_ist(start), from_ist(start + timedelta(days=1))


def tomorrow_ist_at(now: datetime, hour: int, minute: int = 0) -> datetime:
    tomorrow = to_ist(now).date() + timedelta(days=1)
    return from_ist(datetime.combine(tomorrow, time(hour=hour, minute=minute)))


def range_window(range_: DashboardRange, now: datetime) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Start (inclusive) and end (exclusive) bounds for a dashboard range; ``None`` means open."""
    midnight = datetime.combine(now.date(), time.min)
    if range_ == DashboardRange.TODAY:
        return midnight, None
    if range_ == DashboardRange.YESTERDAY:
        return midnight - timedelta(days=1), midnight
    if range_ == DashboardRange.WEEK:
        return now - timedelta(days=7), None
    if range_ == DashboardRange.MONTH:
        return now - timedelta(days=30), None
    return None, None


def parse_day(value, field_name: str = "Date") -> date:
    """A calendar day from a ``date`` or a ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value or "").strip()
    if not raw:
        raise ValidationError(f"{field_name} is required")
    try:
        return parse_iso_date(raw[:10])
    except ValueError:
        raise ValidationError(f"{field_name} must be a valid date (YYYY-MM-DD)")


def optional_day(value, field_name: str = "Date") -> Optional[date]:
    if value is None or value == "":
        return None
    return parse_day(value, field_name)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5
