"""
Scorecards: a single count plus its change against the preceding period.

change_percent keeps its sign; whether a rise is good or bad (more lost leads
is bad) is for the caller to decide. With no dataset every card is the
explicit no-data sentinel rather than a misleading zero.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional, Sequence

from lead_dashboard.models.lead import LeadRecord
from lead_dashboard.services.aggregation import is_missing, round_half_up
from lead_dashboard.services.stages import is_lost
from lead_dashboard.services.time_window import (
    THIS_MONTH,
    TimeWindow,
    filter_by_window,
    previous_window_bounds,
    records_between,
)

STATUS_OK = 'ok'
STATUS_NO_DATA = 'no_data'
STATUS_UNAVAILABLE = 'unavailable'


@dataclass(frozen=True)
class ScorecardStat:
    value: Optional[int]
    change_percent: Optional[float]
    status: str = STATUS_OK

    @classmethod
    def no_data(cls) -> 'ScorecardStat':
        return cls(value=None, change_percent=None, status=STATUS_NO_DATA)

    @classmethod
    def unavailable(cls) -> 'ScorecardStat':
        return cls(value=None, change_percent=None, status=STATUS_UNAVAILABLE)

    @property
    def has_value(self) -> bool:
        return self.status == STATUS_OK

    def to_dict(self) -> Dict:
        return {'value': self.value, 'change_percent': self.change_percent, 'status': self.status}


def change_percent(current: int, prior: int) -> float:
    """Percent change vs prior, one decimal. Zero when there's nothing to compare to."""
    if prior == 0:
        return 0.0
    return round_half_up((current - prior) / prior * 100, 1)


def compute_stat(current_records: Sequence[LeadRecord], prior_records: Sequence[LeadRecord],
                 predicate: Optional[Callable[[LeadRecord], bool]] = None) -> ScorecardStat:
    """Count current-period records (optionally matching predicate) and compare to prior."""
    if predicate is None:
        current, prior = len(current_records), len(prior_records)
    else:
        current = sum(1 for r in current_records if predicate(r))
        prior = sum(1 for r in prior_records if predicate(r))
    return ScorecardStat(value=current, change_percent=change_percent(current, prior))


def _periods(records, window: TimeWindow, now: Optional[datetime]):
    """(records in window, records in the period before it)."""
    current = filter_by_window(records, window, now)
    prior_bounds = previous_window_bounds(window, now)
    prior = records_between(records, prior_bounds) if prior_bounds else ()
    return current, prior


def _has_phone(record: LeadRecord) -> bool:
    return not is_missing(record.phone)


def _has_email(record: LeadRecord) -> bool:
    return not is_missing(record.email)


def _lost(record: LeadRecord) -> bool:
    return is_lost(record.status)


def overview_scorecards(records: Sequence[LeadRecord], window: TimeWindow,
                        now: Optional[datetime] = None) -> Dict[str, ScorecardStat]:
    """Total leads, leads this month, leads with a phone, leads with an email."""
    keys = ('total_leads', 'this_month', 'with_phone', 'with_email')
    if not records:
        return {key: ScorecardStat.no_data() for key in keys}

    now = now or datetime.now()
    current, prior = _periods(records, window, now)
    month_current, month_prior = _periods(records, THIS_MONTH, now)
    return {
        'total_leads': compute_stat(current, prior),
        'this_month': compute_stat(month_current, month_prior),
        'with_phone': compute_stat(current, prior, _has_phone),
        'with_email': compute_stat(current, prior, _has_email),
    }


def lost_scorecards(records: Sequence[LeadRecord], window: TimeWindow,
                    now: Optional[datetime] = None) -> Dict[str, ScorecardStat]:
    """
    Total lost, lost this month, and average time to loss.

    The export only carries a creation timestamp, not when the lead was
    marked lost, so time-to-loss is reported as unavailable.
    """
    keys = ('total_lost', 'lost_this_month', 'avg_time_to_loss')
    if not records:
        return {key: ScorecardStat.no_data() for key in keys}

    now = now or datetime.now()
    current, prior = _periods(records, window, now)
    month_current, month_prior = _periods(records, THIS_MONTH, now)
    return {
        'total_lost': compute_stat(current, prior, _lost),
        'lost_this_month': compute_stat(month_current, month_prior, _lost),
        'avg_time_to_loss': ScorecardStat.unavailable(),
    }
