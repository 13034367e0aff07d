"""
Lead list filters: free-text search, status match, date range.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence, Tuple

from lead_dashboard.models.lead import LeadRecord

SEARCH_FIELDS = (
    'name', 'email', 'phone', 'city', 'assignee_name',
    'facebook_campaign', 'facebook_ad', 'student_preference',
)


@dataclass(frozen=True)
class LeadFilter:
    search: str = ''
    status: str = ''
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return not (self.search.strip() or self.status.strip() or self.start or self.end)

    def matches(self, record: LeadRecord) -> bool:
        if self.start and record.parsed_date < self.start:
            return False
        if self.end and record.parsed_date > self.end:
            return False
        if self.status.strip() and self.status.strip().lower() not in record.status.lower():
            return False
        needle = self.search.strip().lower()
        if needle:
            return any(needle in (getattr(record, f) or '').lower() for f in SEARCH_FIELDS)
        return True


def apply_filter(records: Sequence[LeadRecord], lead_filter: LeadFilter) -> Sequence[LeadRecord]:
    """Records matching every populated criterion. An empty filter is the identity."""
    if lead_filter.is_empty:
        return records
    return tuple(r for r in records if lead_filter.matches(r))


def newest_first(records: Sequence[LeadRecord], limit: Optional[int] = None) -> Tuple[LeadRecord, ...]:
    ordered = sorted(records, key=lambda r: r.parsed_date, reverse=True)
    return tuple(ordered[:limit] if limit is not None else ordered)
