"""Date parsing, formatting and arithmetic for the ``date`` filters.

Format strings use the host's moment-style tokens (``YYYY-MM-DD``,
``ddd, MMM Do``, ``[literal]``) rather than strftime directives.
Timestamps are milliseconds since the epoch and are read as UTC.
"""

from __future__ import annotations

import calendar
import re
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Callable

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

TOKEN_PATTERN = re.compile(
    r"\[[^\]]*\]|YYYY|YY|Q|MMMM|MMM|MM|M|Do|DDDD|DDD|DD|D|dddd|ddd|dd|d|E|WW|W"
    r"|HH|H|hh|h|mm|m|ss|s|SSS|A|a|ZZ|Z|X|x"
)

_FALLBACK_FORMATS = ["%Y/%m/%d", "%Y/%m/%d %H:%M", "%B %d, %Y", "%b %d, %Y", "%d %B %Y", "%d %b %Y"]


def _ordinal(n: int) -> str:
    if 11 <= n % 100 <= 13:
        return f"{n}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def _hour12(dt: datetime) -> int:
    return dt.hour % 12 or 12


def _offset(dt: datetime, sep: str) -> str:
    delta = dt.utcoffset() or timedelta(0)
    minutes = int(delta.total_seconds() // 60)
    sign = "-" if minutes < 0 else "+"
    hours, mins = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}{sep}{mins:02d}"


def _epoch_seconds(dt: datetime) -> float:
    aware = dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    return aware.timestamp()


FORMATTERS: dict[str, Callable[[datetime], str]] = {
    "YYYY": lambda dt: f"{dt.year:04d}",
    "YY": lambda dt: f"{dt.year % 100:02d}",
    "Q": lambda dt: str((dt.month - 1) // 3 + 1),
    "MMMM": lambda dt: MONTHS[dt.month - 1],
    "MMM": lambda dt: MONTHS[dt.month - 1][:3],
    "MM": lambda dt: f"{dt.month:02d}",
    "M": lambda dt: str(dt.month),
    "Do": lambda dt: _ordinal(dt.day),
    "DDDD": lambda dt: f"{dt.timetuple().tm_yday:03d}",
    "DDD": lambda dt: str(dt.timetuple().tm_yday),
    "DD": lambda dt: f"{dt.day:02d}",
    "D": lambda dt: str(dt.day),
    "dddd": lambda dt: WEEKDAYS[dt.weekday()],
    "ddd": lambda dt: WEEKDAYS[dt.weekday()][:3],
    "dd": lambda dt: WEEKDAYS[dt.weekday()][:2],
    "d": lambda dt: str((dt.weekday() + 1) % 7),
    "E": lambda dt: str(dt.isoweekday()),
    "WW": lambda dt: f"{dt.isocalendar()[1]:02d}",
    "W": lambda dt: str(dt.isocalendar()[1]),
    "HH": lambda dt: f"{dt.hour:02d}",
    "H": lambda dt: str(dt.hour),
    "hh": lambda dt: f"{_hour12(dt):02d}",
    "h": lambda dt: str(_hour12(dt)),
    "mm": lambda dt: f"{dt.minute:02d}",
    "m": lambda dt: str(dt.minute),
    "ss": lambda dt: f"{dt.second:02d}",
    "s": lambda dt: str(dt.second),
    "SSS": lambda dt: f"{dt.microsecond // 1000:03d}",
    "A": lambda dt: "PM" if dt.hour >= 12 else "AM",
    "a": lambda dt: "pm" if dt.hour >= 12 else "am",
    "ZZ": lambda dt: _offset(dt, ""),
    "Z": lambda dt: _offset(dt, ":"),
    "X": lambda dt: str(int(_epoch_seconds(dt))),
    "x": lambda dt: str(int(_epoch_seconds(dt) * 1000)),
}

# moment token -> strptime directive, for explicit input formats
PARSE_DIRECTIVES = {
    "YYYY": "%Y",
    "YY": "%y",
    "MMMM": "%B",
    "MMM": "%b",
    "MM": "%m",
    "M": "%m",
    "DD": "%d",
    "D": "%d",
    "dddd": "%A",
    "ddd": "%a",
    "HH": "%H",
    "H": "%H",
    "hh": "%I",
    "h": "%I",
    "mm": "%M",
    "m": "%M",
    "ss": "%S",
    "s": "%S",
    "SSS": "%f",
    "A": "%p",
    "a": "%p",
    "ZZ": "%z",
    "Z": "%z",
}

UNIT_ALIASES = {
    "y": "years", "year": "years", "years": "years",
    "Q": "quarters", "quarter": "quarters", "quarters": "quarters",
    "M": "months", "month": "months", "months": "months",
    "w": "weeks", "week": "weeks", "weeks": "weeks",
    "d": "days", "day": "days", "days": "days",
    "h": "hours", "hour": "hours", "hours": "hours",
    "m": "minutes", "minute": "minutes", "minutes": "minutes",
    "s": "seconds", "second": "seconds", "seconds": "seconds",
    "ms": "milliseconds", "millisecond": "milliseconds", "milliseconds": "milliseconds",
}


def format_date(dt: datetime, fmt: str) -> str:
    """Format a datetime with moment-style tokens."""

    def replace(match: re.Match) -> str:
        token = match.group(0)
        if token.startswith("["):
            return token[1:-1]
        return FORMATTERS[token](dt)

    return TOKEN_PATTERN.sub(replace, fmt)


def to_strptime(fmt: str) -> str:
    """Translate a moment-style input format into a strptime pattern."""
    out = []
    pos = 0
    for match in TOKEN_PATTERN.finditer(fmt):
        out.append(fmt[pos:match.start()].replace("%", "%%"))
        token = match.group(0)
        if token.startswith("["):
            out.append(token[1:-1].replace("%", "%%"))
        elif token in PARSE_DIRECTIVES:
            out.append(PARSE_DIRECTIVES[token])
        else:
            raise ValueError(f"Unsupported input token: {token}")
        pos = match.end()
    out.append(fmt[pos:].replace("%", "%%"))
    return "".join(out)


def from_timestamp(ms: float) -> datetime | None:
    try:
        return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_date(text: str, input_format: str | None = None) -> datetime | None:
    """Parse text into a datetime; None when it is not a recognizable date."""
    text = text.strip()
    if not text:
        return None

    if input_format:
        try:
            return datetime.strptime(text, to_strptime(input_format))
        except ValueError:
            return None

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass

    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        pass

    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _add_months(dt: datetime, months: int) -> datetime:
    total = dt.month - 1 + months
    year, month = dt.year + total // 12, total % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def add_duration(dt: datetime, amount: int, unit: str) -> datetime:
    """Shift a datetime by a signed amount of a unit; unknown units are a no-op."""
    canonical = UNIT_ALIASES.get(unit) or UNIT_ALIASES.get(unit.lower())
    if canonical == "years":
        return _add_months(dt, amount * 12)
    if canonical == "quarters":
        return _add_months(dt, amount * 3)
    if canonical == "months":
        return _add_months(dt, amount)
    if canonical is None:
        return dt
    return dt + timedelta(**{canonical: amount})
