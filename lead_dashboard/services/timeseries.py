"""
Time-series bucketing: lead counts per day / ISO week / month / year.

Only buckets with at least one lead appear; gaps are not zero-filled.
Sort keys are zero-padded so plain string comparison orders them.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from lead_dashboard.config import DEFAULT_GRANULARITY
from lead_dashboard.models.lead import LeadRecord
from lead_dashboard.services.time_window import InvalidQuery

MONTH_ABBR = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
              'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')


class Granularity(str, Enum):
    DAILY = 'daily'
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'
    YEARLY = 'yearly'


@dataclass(frozen=True)
class TimeBucketCount:
    name: str
    value: int
    sort_key: str

    def to_dict(self) -> Dict:
        return {'name': self.name, 'value': self.value, 'sort_key': self.sort_key}


def bucket_key(dt: datetime, granularity: Granularity) -> Tuple[str, str]:
    """(display label, sort key) for a timestamp."""
    if granularity == Granularity.DAILY:
        return f'{dt.day} {MONTH_ABBR[dt.month - 1]}', dt.date().isoformat()
    if granularity == Granularity.WEEKLY:
        week = dt.isocalendar()[1]
        # Keyed on the week's Monday so a January "Week 53" sorts before "Week 1"
        monday = dt - timedelta(days=dt.weekday())
        return f'Week {week}', f'{monday.year}-{monday.month:02d}-W{week:02d}'
    if granularity == Granularity.MONTHLY:
        return f'{MONTH_ABBR[dt.month - 1]} {dt.year}', f'{dt.year}-{dt.month:02d}'
    if granularity == Granularity.YEARLY:
        return str(dt.year), str(dt.year)
    raise InvalidQuery(f"Unsupported granularity: {granularity}")


def bucket_by_time(records: Sequence[LeadRecord], granularity: Granularity,
                   now: Optional[datetime] = None,
                   weekly_current_month_only: bool = True) -> List[TimeBucketCount]:
    """
    Count records per time bucket, ascending by sort key.

    The weekly view only covers the current calendar month; pass
    weekly_current_month_only=False to bucket every week.
    """
    if granularity == Granularity.WEEKLY and weekly_current_month_only:
        now = now or datetime.now()
        records = [r for r in records
                   if r.parsed_date.year == now.year and r.parsed_date.month == now.month]

    counts: Dict[str, int] = {}
    sort_keys: Dict[str, str] = {}
    for record in records:
        label, key = bucket_key(record.parsed_date, granularity)
        counts[label] = counts.get(label, 0) + 1
        # Labels can repeat across years ("15 Mar"); order by the earliest occurrence
        if label not in sort_keys or key < sort_keys[label]:
            sort_keys[label] = key

    buckets = [TimeBucketCount(label, value, sort_keys[label]) for label, value in counts.items()]
    buckets.sort(key=lambda b: b.sort_key)
    return buckets


def parse_granularity(value: Optional[str]) -> Granularity:
    key = (value or DEFAULT_GRANULARITY).strip().lower()
    try:
        return Granularity(key)
    except ValueError:
        allowed = ', '.join(g.value for g in Granularity)
        raise InvalidQuery(f"Unknown granularity {value!r}; expected one of: {allowed}")
