"""
Time & Timezone Utilities
=========================

Clock-time helpers for "HH:MM" duty times (optionally "Z"-suffixed UTC),
midnight-wrapping deltas, multi-day elapsed time, history record dates, and
airport UTC offsets.

Airport timezones come from the airportsdata package (~7,800 IATA and
~28,000 ICAO airports). Offsets are evaluated with pytz on the duty date so
DST transitions are honoured.
"""

import logging
import math
import re
from datetime import date, datetime, time
from typing import Dict, Optional, Union

import airportsdata
import pandas as pd
import pytz

from core.errors import InvalidTimeFormat

logger = logging.getLogger(__name__)

TimeLike = Union[str, time]
DateLike = Union[str, date]

_CLOCK_RE = re.compile(r'^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$')

MINUTES_PER_DAY = 24 * 60


# ============================================================================
# CLOCK TIMES
# ============================================================================

def strip_utc_marker(value: str) -> str:
    value = value.strip()
    if value[-1:] in ('z', 'Z'):
        return value[:-1]
    return value


def parse_clock_time(value: TimeLike) -> time:
    """
    Parse "HH:MM" or "HH:MMZ" into a time.

    Raises:
        InvalidTimeFormat: value does not match HH:MM
    """
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise InvalidTimeFormat(value)
    match = _CLOCK_RE.match(strip_utc_marker(value))
    if not match:
        raise InvalidTimeFormat(value)
    return time(int(match.group(1)), int(match.group(2)))


def minutes_of_day(value: TimeLike) -> int:
    t = parse_clock_time(value)
    return t.hour * 60 + t.minute


def format_clock_time(value: TimeLike) -> str:
    t = parse_clock_time(value)
    return f"{t.hour:02d}:{t.minute:02d}"


def format_clock_time_safe(value: str) -> str:
    """Display helper: returns the input unchanged when it cannot be parsed."""
    try:
        return format_clock_time(value)
    except InvalidTimeFormat:
        return value


def hours_between(start: TimeLike, end: TimeLike) -> float:
    """
    Hours from start to end. An end earlier than start is taken as the
    following day (overnight duty).

        hours_between("23:00", "01:00") -> 2.0
        hours_between("01:00", "23:00") -> 22.0
    """
    diff = minutes_of_day(end) - minutes_of_day(start)
    if diff < 0:
        diff += MINUTES_PER_DAY
    return diff / 60.0


def add_hours(value: TimeLike, delta_hours: float) -> time:
    """Shift a clock time by delta_hours, wrapping around 24h."""
    total = (minutes_of_day(value) + int(round(delta_hours * 60))) % MINUTES_PER_DAY
    return time(total // 60, total % 60)


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


# ============================================================================
# HISTORY RECORD DATES
# ============================================================================

# One parser for every consumer of FlightRecord.date, so a record counted in
# the limit totals is also usable for trip context and vice versa
_RECORD_DATE_OPTIONS = dict(errors='coerce', format='ISO8601', utc=True)


def parse_record_dates(values: pd.Series) -> pd.Series:
    """Vectorised record date parsing; unparseable values become NaT."""
    return pd.to_datetime(values, **_RECORD_DATE_OPTIONS)


def parse_record_date(value: Optional[str]) -> Optional[date]:
    """
    Calendar date (UTC) of one record date string, or None.

        parse_record_date("2025-08-05")            -> date(2025, 8, 5)
        parse_record_date("2025-08-05T10:00:00Z")  -> date(2025, 8, 5)
        parse_record_date("32/13/2025")            -> None
    """
    if not value or not value.strip():
        return None
    parsed = pd.to_datetime(value.strip(), **_RECORD_DATE_OPTIONS)
    if pd.isna(parsed):
        return None
    return parsed.date()


def elapsed_hours_across_dates(
    start_date: DateLike,
    start_time: TimeLike,
    end_date: DateLike,
    end_time: TimeLike
) -> float:
    """
    Wall-clock hours between two (date, time) pairs.

    Both pairs are combined into full timestamps before subtracting, so a
    15:35 report on the 5th to a 00:15 report on the 7th is 32h40m, not a
    multiple of 24h.
    """
    start = datetime.combine(_as_date(start_date), parse_clock_time(start_time))
    end = datetime.combine(_as_date(end_date), parse_clock_time(end_time))
    return (end - start).total_seconds() / 3600.0


def format_hours_and_minutes(hours: float) -> str:
    """
    Render decimal hours as "Xh Ym", "Xh" or "Ym", floored to whole minutes.

        format_hours_and_minutes(13.0)  -> "13h"
        format_hours_and_minutes(12.75) -> "12h 45m"
        format_hours_and_minutes(0.5)   -> "30m"
    """
    sign = "-" if hours < 0 else ""
    # Small epsilon so values like 32 + 40/60 don't floor to 39 minutes
    total_minutes = int(math.floor(abs(hours) * 60 + 1e-6))
    h, m = divmod(total_minutes, 60)
    if h == 0:
        return f"{sign}{m}m"
    if m == 0:
        return f"{sign}{h}h"
    return f"{sign}{h}h {m}m"


# ============================================================================
# AIRPORT TIMEZONES (backed by airportsdata)
# ============================================================================

# Module-level load (cached)
_IATA_DB = airportsdata.load('IATA')
_ICAO_DB = airportsdata.load('ICAO')


class AirportTimezoneResolver:
    """
    Airport code -> IANA timezone lookup.

    3-letter codes are looked up as IATA, 4-letter codes as ICAO. Codes
    missing from airportsdata resolve to ``fallback_timezone`` with a
    logged warning; runtime overrides take precedence over the database.
    """

    def __init__(self, fallback_timezone: str = "Europe/London",
                 overrides: Optional[Dict[str, str]] = None):
        pytz.timezone(fallback_timezone)  # fail fast on a bad fallback
        self.fallback_timezone = fallback_timezone
        self._overrides: Dict[str, str] = {
            code.upper(): tz for code, tz in (overrides or {}).items()
        }

    def add_override(self, code: str, timezone_name: str):
        """Add/override an airport timezone (for fields not in airportsdata)."""
        pytz.timezone(timezone_name)
        self._overrides[code.upper()] = timezone_name

    def timezone_name(self, code: str) -> str:
        code = code.strip().upper()
        if code in self._overrides:
            return self._overrides[code]

        db = _ICAO_DB if len(code) == 4 else _IATA_DB
        entry = db.get(code)
        if entry and entry.get('tz'):
            return entry['tz']

        logger.warning(
            f"Airport '{code}' not found in airportsdata. "
            f"Using fallback timezone {self.fallback_timezone}."
        )
        return self.fallback_timezone

    def timezone(self, code: str):
        return pytz.timezone(self.timezone_name(code))

    def utc_offset_hours(self, code: str, on_date: Optional[date] = None,
                         utc_time: Optional[TimeLike] = None) -> float:
        """
        UTC offset (hours) of the airport at the given UTC instant.

        The offset is taken on ``on_date`` rather than on the current date so
        that DST is resolved for the duty itself. ``on_date`` defaults to today
        (UTC) and ``utc_time`` to 12:00.
        """
        on_date = on_date or datetime.now(pytz.utc).date()
        t = parse_clock_time(utc_time) if utc_time is not None else time(12, 0)
        instant = pytz.utc.localize(datetime.combine(on_date, t))
        offset = instant.astimezone(self.timezone(code)).utcoffset()
        return offset.total_seconds() / 3600.0

    def timezone_difference_hours(self, code_a: str, code_b: str,
                                  on_date: Optional[date] = None) -> float:
        """
        Absolute difference between two airports' offsets, in hours.

        Half-hour and quarter-hour zones are kept fractional (Tehran is 3.5h
        from London in winter) so the Table 1 band boundaries are compared
        against the real difference.
        """
        return abs(self.utc_offset_hours(code_a, on_date) - self.utc_offset_hours(code_b, on_date))


_default_resolver = AirportTimezoneResolver()


def get_default_resolver() -> AirportTimezoneResolver:
    return _default_resolver


def convert_utc_to_local(
    utc_time: TimeLike,
    airport_code: str,
    on_date: Optional[date] = None,
    resolver: Optional[AirportTimezoneResolver] = None
) -> time:
    """Convert a UTC clock time to the airport's local clock time on on_date."""
    resolver = resolver or _default_resolver
    offset = resolver.utc_offset_hours(airport_code, on_date, utc_time)
    local = add_hours(utc_time, offset)
    logger.debug(f"{format_clock_time(utc_time)}Z -> {format_clock_time(local)} local at {airport_code} (UTC{offset:+g})")
    return local
