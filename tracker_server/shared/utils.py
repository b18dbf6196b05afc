import logging
import math
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

log = logging.getLogger(__name__)


def round_hours(value: float, digits: int = 2) -> float:
    """
    Rounds half-up to `digits` decimals, the way the charts have always
    displayed hours (Math.round semantics, not banker's rounding).
    """
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def round_minute(value: float) -> int:
    return math.floor(value + 0.5)


def get_zone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        log.warning(f"Failed to get timezone {name}: {e}, using UTC")
        return timezone.utc


def timezone_from_offset(offset_minutes: int) -> timezone:
    """
    Builds a fixed zone from a browser-style offset (UTC minus local time,
    so UTC+9 arrives as -540).
    """
    return timezone(-timedelta(minutes=offset_minutes))


def local_day_start(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def local_day_key(instant: datetime, tz: tzinfo) -> str:
    """YYYY-MM-DD of `instant` as seen in `tz`."""
    return instant.astimezone(tz).date().isoformat()


def ensure_utc(value: datetime) -> datetime:
    # Naive datetimes coming back from storage are UTC already.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def localize(value: datetime, tz: tzinfo) -> datetime:
    """Reads a naive client timestamp as wall time in `tz`; returns UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    return value.astimezone(timezone.utc)
