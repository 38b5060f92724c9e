"""
Time-zone and time-formatting helpers.

All acclimatized-hour calculations go through hour_in_zone(), which reads the
IANA tz database via zoneinfo, so DST transitions are honoured. Naive datetimes
are treated as UTC. Instants handed back to the engine are in UTC so that
datetime arithmetic measures elapsed time, not wall-clock distance.
"""
from typing import Dict, List, Optional, Tuple
import datetime

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError, available_timezones

from dateutil import parser as _du_parser

from .errors import InvalidZoneError


def resolve_zone(zone_name: Optional[str]) -> ZoneInfo:
    if not zone_name or not isinstance(zone_name, str):
        raise InvalidZoneError(zone_name)
    try:
        return ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        # OSError covers tz database directories such as "America"
        raise InvalidZoneError(zone_name) from None


def ensure_aware(instant: datetime.datetime) -> datetime.datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=datetime.timezone.utc)
    return instant


def to_zone(instant: datetime.datetime, zone_name: str) -> datetime.datetime:
    return ensure_aware(instant).astimezone(resolve_zone(zone_name))


def hour_in_zone(instant: datetime.datetime, zone_name: str) -> int:
    """Wall-clock hour (0..23) of `instant` as observed in `zone_name`."""
    return to_zone(instant, zone_name).hour


def local_date(instant: datetime.datetime, zone_name: str) -> datetime.date:
    return to_zone(instant, zone_name).date()


def wall_clock(day: datetime.date, hour: int, minute: int, zone_name: str) -> datetime.datetime:
    """UTC instant of a local wall-clock time on `day`."""
    local = datetime.datetime.combine(day, datetime.time(hour, minute), tzinfo=resolve_zone(zone_name))
    return local.astimezone(datetime.timezone.utc)


def day_bounds(day: datetime.date, zone_name: str) -> Tuple[datetime.datetime, datetime.datetime]:
    """Half-open [local midnight, next local midnight) window for `day`."""
    start = wall_clock(day, 0, 0, zone_name)
    end = wall_clock(day + datetime.timedelta(days=1), 0, 0, zone_name)
    return start, end


def parse_local(date_str: str, time_str: str, zone_name: str) -> datetime.datetime:
    """
    Parse an entered date ("YYYY-MM-DD") and time ("HH:MM" or "HH:MM:SS") as a
    wall-clock instant in `zone_name`. Raises ValueError on malformed input.
    """
    zone = resolve_zone(zone_name)
    naive = _du_parser.isoparse(f"{str(date_str).strip()}T{str(time_str).strip()}")
    if naive.tzinfo is not None:
        return naive
    return naive.replace(tzinfo=zone)


# ---------- Formatting ----------
def minutes_to_hhmm(minutes: Optional[int]) -> Optional[str]:
    """
    Convert integer minutes to HH:MM string.
    Negative values are prefixed with '-'. Returns None if input is None.
    """
    if minutes is None:
        return None
    m = int(minutes)
    sign = "-" if m < 0 else ""
    m = abs(m)
    return f"{sign}{m // 60:02d}:{m % 60:02d}"


def hours_to_hhmm(hours_float: Optional[float]) -> Optional[str]:
    if hours_float is None:
        return None
    return minutes_to_hhmm(int(round(float(hours_float) * 60)))


def duration_hours(start: datetime.datetime, end: datetime.datetime) -> float:
    return (end - start).total_seconds() / 3600.0


def format_clock(value: str, time_format: str = "24h") -> str:
    """Render an "HH:MM" string in 24h or 12h (AM/PM) display format."""
    if not value:
        return ""
    if str(time_format) != "12h":
        return value
    h, m = (int(p) for p in value.split(":")[:2])
    period = "PM" if h >= 12 else "AM"
    hour = h % 12 or 12
    return f"{hour}:{m:02d} {period}"


def zulu_time(day: Optional[datetime.date], value: str, zone_name: str, time_format: str = "24h") -> str:
    """UTC ("Zulu") rendering of a local entry made on `day` in `zone_name`."""
    if not value or day is None:
        return ""
    try:
        local = parse_local(day.isoformat(), value, zone_name)
    except ValueError:
        return ""
    utc = local.astimezone(datetime.timezone.utc)
    return format_clock(utc.strftime("%H:%M"), time_format)


def _offset_label(zone: ZoneInfo, now: datetime.datetime) -> str:
    offset = now.astimezone(zone).utcoffset() or datetime.timedelta(0)
    total = int(offset.total_seconds() // 60)
    sign = "-" if total < 0 else "+"
    total = abs(total)
    return f"UTC{sign}{total // 60:02d}:{total % 60:02d}"


def list_time_zones(search: str = "", now: Optional[datetime.datetime] = None) -> List[Dict[str, str]]:
    """
    All IANA zones as {"value", "label"} entries sorted by label, where label
    carries the zone's current UTC offset. `search` filters case-insensitively
    on label or value.
    """
    now = ensure_aware(now or datetime.datetime.now(datetime.timezone.utc))
    entries = []
    for name in available_timezones():
        try:
            zone = ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            continue
        display = name.replace("_", " ").replace("/", " / ")
        entries.append({"value": name, "label": f"{display} ({_offset_label(zone, now)})"})
    entries.sort(key=lambda e: e["label"])
    if not search:
        return entries
    needle = search.lower()
    return [e for e in entries if needle in e["label"].lower() or needle in e["value"].lower()]
