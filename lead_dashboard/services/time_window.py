"""
Time-window filtering: calendar-aligned and rolling windows anchored to "now".

Calendar windows (today, this week/month/year) run from the start of the
period through its end. Rolling windows (last 7/30 days) end at now. Weeks
start on Monday. Every interval is inclusive on both ends.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional, Sequence, Tuple, Union

from lead_dashboard.config import DEFAULT_WINDOW
from lead_dashboard.models.lead import LeadRecord

Bounds = Tuple[datetime, datetime]

_TICK = timedelta(microseconds=1)


class InvalidQuery(ValueError):
    """A request parameter couldn't be interpreted."""


class WindowKind(str, Enum):
    ALL_TIME = 'all'
    LAST_7_DAYS = 'last_7_days'
    LAST_30_DAYS = 'last_30_days'
    THIS_MONTH = 'this_month'
    THIS_WEEK = 'this_week'
    TODAY = 'today'
    THIS_YEAR = 'this_year'
    CUSTOM = 'custom'


@dataclass(frozen=True)
class TimeWindow:
    kind: WindowKind
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @classmethod
    def custom(cls, start: Union[date, datetime], end: Union[date, datetime]) -> 'TimeWindow':
        """Explicit range. Plain dates cover the whole day at each end."""
        start_dt = start if isinstance(start, datetime) else datetime.combine(start, time.min)
        end_dt = end if isinstance(end, datetime) else datetime.combine(end, time.max)
        if start_dt > end_dt:
            raise InvalidQuery(f"Window start {start_dt.isoformat()} is after end {end_dt.isoformat()}")
        return cls(WindowKind.CUSTOM, start_dt, end_dt)

    def to_dict(self):
        return {
            'kind': self.kind.value,
            'start': self.start.isoformat() if self.start else None,
            'end': self.end.isoformat() if self.end else None,
        }


ALL_TIME = TimeWindow(WindowKind.ALL_TIME)
LAST_7_DAYS = TimeWindow(WindowKind.LAST_7_DAYS)
LAST_30_DAYS = TimeWindow(WindowKind.LAST_30_DAYS)
THIS_MONTH = TimeWindow(WindowKind.THIS_MONTH)
THIS_WEEK = TimeWindow(WindowKind.THIS_WEEK)
TODAY = TimeWindow(WindowKind.TODAY)
THIS_YEAR = TimeWindow(WindowKind.THIS_YEAR)


# ── Calendar helpers ─────────────────────────────────────────────────────────

def start_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.min)


def start_of_week(dt: datetime) -> datetime:
    return start_of_day(dt) - timedelta(days=dt.weekday())


def start_of_month(dt: datetime) -> datetime:
    return datetime(dt.year, dt.month, 1)


def add_months(dt: datetime, months: int) -> datetime:
    """First day of the month `months` away from dt's month."""
    index = dt.year * 12 + (dt.month - 1) + months
    return datetime(index // 12, index % 12 + 1, 1)


def window_bounds(window: TimeWindow, now: Optional[datetime] = None) -> Optional[Bounds]:
    """Concrete [start, end] for a window, or None for all time."""
    now = now or datetime.now()
    kind = window.kind

    if kind == WindowKind.ALL_TIME:
        return None
    if kind == WindowKind.CUSTOM:
        return window.start, window.end
    if kind == WindowKind.LAST_7_DAYS:
        return now - timedelta(days=7), now
    if kind == WindowKind.LAST_30_DAYS:
        return now - timedelta(days=30), now
    if kind == WindowKind.TODAY:
        start = start_of_day(now)
        return start, start + timedelta(days=1) - _TICK
    if kind == WindowKind.THIS_WEEK:
        start = start_of_week(now)
        return start, start + timedelta(days=7) - _TICK
    if kind == WindowKind.THIS_MONTH:
        start = start_of_month(now)
        return start, add_months(start, 1) - _TICK
    if kind == WindowKind.THIS_YEAR:
        start = datetime(now.year, 1, 1)
        return start, datetime(now.year + 1, 1, 1) - _TICK
    raise InvalidQuery(f"Unsupported window: {kind}")


def previous_window_bounds(window: TimeWindow, now: Optional[datetime] = None) -> Optional[Bounds]:
    """
    The period immediately before `window`, at the same granularity.

    Calendar windows step back one calendar unit (yesterday, last week, last
    month, last year). Rolling and custom windows step back by their own length.
    """
    now = now or datetime.now()
    current = window_bounds(window, now)
    if current is None:
        return None
    start, end = current
    kind = window.kind

    if kind == WindowKind.TODAY:
        return start - timedelta(days=1), start - _TICK
    if kind == WindowKind.THIS_WEEK:
        return start - timedelta(days=7), start - _TICK
    if kind == WindowKind.THIS_MONTH:
        return add_months(start, -1), start - _TICK
    if kind == WindowKind.THIS_YEAR:
        return datetime(start.year - 1, 1, 1), start - _TICK

    span = end - start
    return start - span - _TICK, start - _TICK


# ── Filtering ────────────────────────────────────────────────────────────────

def records_between(records: Sequence[LeadRecord], bounds: Bounds) -> Tuple[LeadRecord, ...]:
    start, end = bounds
    return tuple(r for r in records if start <= r.parsed_date <= end)


def filter_by_window(records: Sequence[LeadRecord], window: TimeWindow,
                     now: Optional[datetime] = None) -> Sequence[LeadRecord]:
    """Keep records whose parsed_date falls inside the window. All time is the identity."""
    bounds = window_bounds(window, now)
    if bounds is None:
        return records
    return records_between(records, bounds)


# ── Query-string parsing ─────────────────────────────────────────────────────

_WINDOW_ALIASES = {
    'all_time': WindowKind.ALL_TIME,
    '7d': WindowKind.LAST_7_DAYS,
    '30d': WindowKind.LAST_30_DAYS,
    'week': WindowKind.THIS_WEEK,
    'month': WindowKind.THIS_MONTH,
    'year': WindowKind.THIS_YEAR,
}


def parse_date_param(value: Optional[str], name: str, end_of_day: bool = False) -> Optional[datetime]:
    """
    ISO date or datetime query param → datetime; blank → None.

    With end_of_day, a bare date (YYYY-MM-DD) means the last instant of that day.
    Values with a UTC offset are converted to local naive time, like lead dates.
    """
    if not value:
        return None
    value = value.strip()
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise InvalidQuery(f"Invalid {name} date: {value!r} (expected YYYY-MM-DD)")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    if end_of_day and len(value) == 10:
        parsed = datetime.combine(parsed.date(), time.max)
    return parsed


def parse_window(value: Optional[str], start: Optional[str] = None,
                 end: Optional[str] = None) -> TimeWindow:
    """Build a TimeWindow from request args (?window=...&start=...&end=...)."""
    key = (value or DEFAULT_WINDOW).strip().lower().replace('-', '_')
    kind = _WINDOW_ALIASES.get(key)
    if kind is None:
        try:
            kind = WindowKind(key)
        except ValueError:
            allowed = ', '.join(k.value for k in WindowKind)
            raise InvalidQuery(f"Unknown window {value!r}; expected one of: {allowed}")

    if kind != WindowKind.CUSTOM:
        return TimeWindow(kind)

    start_dt = parse_date_param(start, 'start')
    end_dt = parse_date_param(end, 'end', end_of_day=True)
    if start_dt is None or end_dt is None:
        raise InvalidQuery("Custom window requires both start and end")
    return TimeWindow.custom(start_dt, end_dt)
